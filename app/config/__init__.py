# =============================================================================
# Django Project Configuration Package
# =============================================================================
# Settings, URLs and the WSGI application for the payments service.
# =============================================================================
