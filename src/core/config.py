from dataclasses import dataclass

from pydantic import Field
from pydantic_settings import BaseSettings


@dataclass(frozen=True)
class FacturamaConfig:
    """Connection details for one Facturama account (production or sandbox)."""
    base_url: str
    username: str
    password: str
    timeout: float = 30.0


class Settings(BaseSettings):
    app_name: str = Field("facturama-cfdi-proxy", alias="APP_NAME")
    app_env: str = Field("dev", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    # Local listener
    host: str = Field("0.0.0.0", alias="HOST")
    port: int = Field(8080, alias="PORT")

    # Facturama production account
    facturama_url: str = Field("https://api.facturama.mx", alias="FACTURAMA_URL")
    facturama_user: str = Field("", alias="PRODUCTION_FACTURAMA_USER")
    facturama_password: str = Field("", alias="FACTURAMA_PASSWORD")

    # Facturama sandbox account
    facturama_sandbox_url: str = Field("https://apisandbox.facturama.mx", alias="FACTURAMA_SANDBOX_URL")
    facturama_sandbox_user: str = Field("", alias="SANDBOX_FACTURAMA_USER")
    facturama_sandbox_password: str = Field("", alias="SANDBOX_FACTURAMA_PASSWORD")

    # Outbound deadline in seconds, applied to every Facturama call
    facturama_timeout: float = Field(30.0, alias="FACTURAMA_TIMEOUT")

    # CORS allowed origins (comma-separated list)
    cors_origins: str = Field("http://localhost:3000,http://127.0.0.1:3000", alias="CORS_ORIGINS")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "populate_by_name": True,
        "frozen": True,
    }

    def production_config(self) -> FacturamaConfig:
        return FacturamaConfig(
            base_url=self.facturama_url,
            username=self.facturama_user,
            password=self.facturama_password,
            timeout=self.facturama_timeout,
        )

    def sandbox_config(self) -> FacturamaConfig:
        return FacturamaConfig(
            base_url=self.facturama_sandbox_url,
            username=self.facturama_sandbox_user,
            password=self.facturama_sandbox_password,
            timeout=self.facturama_timeout,
        )

settings = Settings()
