"""
CFC Push Chatbot - Configuration Module

This module handles application configuration via environment variables.
"""

import os
from typing import Optional


class Settings:
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "CFC Push Chatbot"
    APP_VERSION: str = "2.0.0"
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

    # Server
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "3001"))

    # MongoDB
    MONGODB_URI: str = os.getenv("MONGODB_URI", "mongodb://mongodb:27017")
    MONGODB_DATABASE: str = os.getenv("MONGODB_DATABASE", "cfc_push")

    # Twilio WhatsApp
    TWILIO_ACCOUNT_SID: Optional[str] = os.getenv("TWILIO_ACCOUNT_SID", None)
    TWILIO_AUTH_TOKEN: Optional[str] = os.getenv("TWILIO_AUTH_TOKEN", None)
    TWILIO_WHATSAPP_NUMBER: Optional[str] = os.getenv("TWILIO_WHATSAPP_NUMBER", None)
    TWILIO_MAX_MESSAGE_LENGTH: int = int(os.getenv("TWILIO_MAX_MESSAGE_LENGTH", "1500"))

    # Menu cache: daily refresh at this wall-clock hour (0-23)
    CACHE_REFRESH_HOUR: int = int(os.getenv("CACHE_REFRESH_HOUR", "6"))

    # Sessions
    SESSION_TIMEOUT_HOURS: int = int(os.getenv("SESSION_TIMEOUT_HOURS", "4"))
    SESSION_EXPIRY_HOURS: int = int(os.getenv("SESSION_EXPIRY_HOURS", "24"))
    SESSION_CLEANUP_INTERVAL_SECONDS: int = int(
        os.getenv("SESSION_CLEANUP_INTERVAL_SECONDS", "3600")
    )
    CONVERSATION_TTL_MINUTES: int = int(os.getenv("CONVERSATION_TTL_MINUTES", "60"))

    # Webhook
    DEDUP_WINDOW_SECONDS: float = float(os.getenv("DEDUP_WINDOW_SECONDS", "3"))
    WEBHOOK_PROCESSING_DELAY_SECONDS: float = float(
        os.getenv("WEBHOOK_PROCESSING_DELAY_SECONDS", "0.01")
    )

    # Analytics
    ANALYTICS_REPORT_HOUR: int = int(os.getenv("ANALYTICS_REPORT_HOUR", "23"))
    ANALYTICS_REPORT_MINUTE: int = int(os.getenv("ANALYTICS_REPORT_MINUTE", "55"))
    ANALYTICS_API_KEY: Optional[str] = os.getenv("ANALYTICS_API_KEY", None)

    # CORS - Allowed origins for the management dashboard
    # Multiple origins can be comma-separated
    CORS_ORIGINS: list[str] = [
        origin.strip()
        for origin in os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:3000").split(",")
        if origin.strip()
    ]

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def twilio_configured(self) -> bool:
        return bool(
            self.TWILIO_ACCOUNT_SID
            and self.TWILIO_AUTH_TOKEN
            and self.TWILIO_WHATSAPP_NUMBER
        )


settings = Settings()
