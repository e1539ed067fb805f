"""
State machine enums and helpers for payment models.

This module defines the state enums used by payment models with django-fsm.
"""

from payments.state_machines.states import (
    ESCROW_TRANSITIONS,
    EarningsParty,
    EscrowStatus,
    Gateway,
    GatewayMode,
)

__all__ = [
    "ESCROW_TRANSITIONS",
    "EarningsParty",
    "EscrowStatus",
    "Gateway",
    "GatewayMode",
]
