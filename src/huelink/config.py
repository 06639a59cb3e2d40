"""
huelink Configuration Management
"""
from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_prefix="HUELINK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Logging Configuration
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    json_logs: bool = Field(default=False, description="Emit JSON logs instead of console output")
    log_file: Optional[str] = Field(default=None, description="Optional JSON log file path")

    # Hub Connection Configuration
    app_name: str = Field(default="huelink", description="Application name used when registering")
    discovery_url: str = Field(
        default="https://discovery.meethue.com/",
        description="Bridge discovery lookup service",
    )
    request_timeout_seconds: float = Field(default=10.0, gt=0, description="HTTP request timeout")
    max_authorization_attempts: int = Field(
        default=3, ge=1, description="Link-button registration attempts before giving up"
    )
    cache_file: str = Field(
        default="~/.huelink/bridge.json", description="Where the bridge address and token are cached"
    )

    # Proximity Automation Configuration
    command_delay_ms: int = Field(default=250, ge=0, description="Delay between fixture commands")
    settle_delay_ms: int = Field(default=1000, ge=0, description="Delay after each proximity batch")
    suppress_repeats: bool = Field(
        default=True, description="Skip repeated in-range batches"
    )

    # Bluetooth LE Configuration
    ble_mock: bool = Field(default=True, description="Use scripted proximity events (no radio)")
    ble_company_id: int = Field(default=0xFFFE, description="Beacon manufacturer company id")
    ble_manufacturer_prefix: str = Field(
        default="1234", description="Hex prefix of the beacon manufacturer payload"
    )
    ble_in_range_dbm: int = Field(default=-65, description="RSSI threshold for arriving")
    ble_out_of_range_dbm: int = Field(default=-70, description="RSSI threshold for leaving")
    ble_out_of_range_timeout_seconds: float = Field(
        default=2.0, gt=0, description="Seconds without presence before out of range"
    )
    ble_sampling_interval_seconds: float = Field(
        default=1.0, gt=0, description="Seconds between signal evaluations"
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
