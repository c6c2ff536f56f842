"""Central environment-driven settings for the PixLink service.

The process loads this once at startup. Behavior is controlled by environment
variables (see `.env.example`).
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class CommonSettings(BaseSettings):
    """Typed view of runtime configuration from environment variables."""

    service_name: str = "pixlink"
    log_level: str = "INFO"
    postgres_dsn: str
    api_key: str
    public_origin: str = "http://localhost:8000"
    gateway_url: str = "https://api.fusionpaybr.com.br"
    gateway_public_key: str | None = None
    gateway_secret_key: str | None = None
    gateway_timeout_seconds: float = 15.0
    pix_expires_in_seconds: int = 600
    pix_item_title: str = "Pagamento PIX"
    link_code_length: int = 6
    link_code_max_attempts: int = 5
    otel_enabled: bool = True
    otel_exporter_otlp_endpoint: str = "http://otel-collector:4318/v1/traces"
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = CommonSettings()
