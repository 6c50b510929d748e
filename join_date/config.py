from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PATH = Path(__file__).resolve().parent.parent / ".env.local"


class Settings(BaseSettings):
    # Environment settings
    environment: str = "development"
    debug: bool = False
    LOG_LEVEL: str = "INFO"

    # HubSpot settings
    HUBSPOT_ACCESS_TOKEN: str | None = None
    HUBSPOT_API_BASE_URL: str = "https://api.hubapi.com"
    HUBSPOT_REQUEST_TIMEOUT: float = 10.0
    HUBSPOT_CONNECTIVITY_CHECK: bool = True

    # Stripe settings (leave the secret unset when the platform verifies signatures)
    STRIPE_WEBHOOK_SECRET: str | None = None
    STRIPE_SIGNATURE_TOLERANCE: int = 300  # 5 minutes

    # =================================================================
    # JOIN DATE POLICY - one zone per deployment, UTC unless overridden
    # =================================================================
    JOIN_DATE_TIMEZONE: str = "UTC"

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def hubspot_base_url(self) -> str:
        return self.HUBSPOT_API_BASE_URL.rstrip("/")

    def join_date_zone(self) -> ZoneInfo:
        """
        Resolve the configured join date time zone.

        Raises:
            ValueError: If JOIN_DATE_TIMEZONE is not a known IANA zone name
        """
        try:
            return ZoneInfo(self.JOIN_DATE_TIMEZONE)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown JOIN_DATE_TIMEZONE: {self.JOIN_DATE_TIMEZONE}") from e


settings = Settings()
