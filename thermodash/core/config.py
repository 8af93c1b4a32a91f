"""
Thermo Dashboard - Configuration
All settings loaded from environment variables (or .env for local development)
"""

from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database (chemicals table)
    database_url: str = "sqlite+aiosqlite:///./thermodash.db"

    # Device WebSocket endpoint: ws://<device_ip>[:<device_port>]/ws
    device_ip: str = "192.168.1.200"
    device_port: int = 80
    connect_timeout: float = 5.0  # seconds

    # Chart / alarm
    window_capacity: int = 20  # samples kept on the live chart
    default_threshold: float = 100.0  # Celsius
    alarm_interval: float = 1.0  # seconds between tone bursts
    alarm_tone_duration: float = 0.5  # seconds, must be shorter than the interval
    alarm_frequency: int = 1000  # Hz

    # Chemical database
    max_chemicals: int = 999

    # Dashboard
    app_title: str = "ESP32 Chemical Sensor Dashboard"
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    log_level: str = "INFO"

    @property
    def device_address(self) -> str:
        """Host part of the device URL (port omitted when it is the default 80)."""
        if self.device_port == 80:
            return self.device_ip
        return f"{self.device_ip}:{self.device_port}"

    class Config:
        env_file = ".env"  # Fallback for local development
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
