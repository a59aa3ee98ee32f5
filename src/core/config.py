"""Application configuration management using Pydantic Settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    Required settings will raise validation errors if not provided.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="kantin-backend", description="Application name")
    app_env: str = Field(default="development", description="Environment (development/staging/production)")
    debug: bool = Field(default=False, description="Enable debug mode")

    # Server
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8080, description="Server port")

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173,http://localhost:8080",
        description="Comma-separated list of allowed CORS origins",
    )

    # Supabase
    supabase_url: str = Field(..., description="Supabase project URL")
    supabase_secret_key: str = Field(..., description="Supabase secret key for backend operations")
    supabase_jwt_secret: str = Field(..., description="Supabase JWT secret used to verify access tokens")

    # Midtrans
    midtrans_server_key: str = Field(default="", description="Midtrans server key (Basic auth + signature)")
    midtrans_client_key: str = Field(default="", description="Midtrans client key (for Snap.js)")
    midtrans_is_production: bool = Field(default=False, description="Use Midtrans production endpoints")
    midtrans_verify_signature: bool = Field(
        default=True,
        description="Verify signature_key on payment notifications before applying status changes",
    )
    midtrans_timeout_seconds: float = Field(default=15.0, description="Timeout for Snap API calls")

    # Ordering
    currency: str = Field(default="IDR", description="Currency code for all amounts")
    delivery_timezone: str = Field(default="Asia/Jakarta", description="Timezone used for delivery cutoffs")
    order_cutoff_hour: int = Field(default=5, ge=0, le=23, description="Same-day ordering closes at this hour")
    order_window_days: int = Field(default=7, ge=0, description="How many days ahead delivery can be booked")

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins string into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"

    @property
    def midtrans_snap_base_url(self) -> str:
        """Snap API base URL for the configured Midtrans environment."""
        if self.midtrans_is_production:
            return "https://app.midtrans.com/snap/v1"
        return "https://app.sandbox.midtrans.com/snap/v1"

    @property
    def midtrans_api_base_url(self) -> str:
        """Core API base URL, used to query a transaction's current status."""
        if self.midtrans_is_production:
            return "https://api.midtrans.com/v2"
        return "https://api.sandbox.midtrans.com/v2"

    @property
    def midtrans_snap_js_url(self) -> str:
        """Snap.js script URL the browser loads to open the payment overlay."""
        if self.midtrans_is_production:
            return "https://app.midtrans.com/snap/snap.js"
        return "https://app.sandbox.midtrans.com/snap/snap.js"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton.

    Returns:
        Settings: Application settings instance.

    Note:
        Settings are cached using lru_cache for performance.
        Call get_settings.cache_clear() to reload settings.
    """
    return Settings()
