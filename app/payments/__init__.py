"""
Payments app for the salon booking marketplace.

This app handles:
- Split rules (store / freelancer / platform percentages)
- Escrow records, one per booking, with the computed split
- Checkout against Razorpay orders and Stripe payment intents
- Webhook verification, audit logging and reconciliation

Usage:
    from django.apps import apps

    payments = apps.get_app_config("payments")
    result = payments.checkout.initiate_checkout(amount=500, booking_id="BKG-1", ...)
"""
