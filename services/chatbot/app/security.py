"""
CFC Push Chatbot - Security Validation

Startup checks for credentials and exposed surfaces.
"""

import warnings
from app.config import settings


def validate_security_config() -> None:
    """
    Validate security configuration on startup.

    Issues warnings for insecure configurations but does not crash the application
    (to allow tests and development to run).
    """
    # Twilio credentials: without them replies are computed but never delivered
    if not settings.twilio_configured:
        warnings.warn(
            "Twilio is not configured. Set TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN "
            "and TWILIO_WHATSAPP_NUMBER to deliver WhatsApp replies.",
            UserWarning,
        )

    # Analytics endpoints are only exposed behind an API key
    if not settings.ANALYTICS_API_KEY and settings.is_production:
        warnings.warn(
            "SECURITY WARNING: ANALYTICS_API_KEY is not set in production. "
            "Analytics endpoints will reject every request.",
            UserWarning,
        )

    # CORS validation
    if "*" in str(settings.CORS_ORIGINS):
        warnings.warn(
            "SECURITY WARNING: CORS wildcard (*) detected. "
            "Set specific origins via CORS_ORIGINS.",
            UserWarning,
        )

    if not 0 <= settings.CACHE_REFRESH_HOUR <= 23:
        warnings.warn(
            f"CACHE_REFRESH_HOUR={settings.CACHE_REFRESH_HOUR} is outside 0-23; "
            "the daily menu refresh will fail to schedule.",
            UserWarning,
        )
