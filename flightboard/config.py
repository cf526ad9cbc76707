"""
Configuration management for FlightBoard.

Loads settings from environment variables with sensible defaults.
All configuration is centralized here to avoid magic strings scattered
throughout the codebase.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

DATA_DIR = Path(__file__).parent / 'data'


@dataclass(frozen=True)
class VatsimConfig:
    """VATSIM data feed configuration."""
    data_url: str = os.getenv('VATSIM_DATA_URL', 'https://data.vatsim.net/v3/vatsim-data.json')
    refresh_interval: int = int(os.getenv('REFRESH_INTERVAL_SECONDS', '30'))
    timeout: int = 15


@dataclass(frozen=True)
class ReferenceConfig:
    """Static reference tables (airports, airlines)."""
    vatspy_url: str = os.getenv(
        'VATSPY_URL',
        'https://raw.githubusercontent.com/vatsimnetwork/vatspy-data-project/master/VATSpy.dat',
    )
    # Local copy of VATSpy.dat, takes precedence over the URL
    vatspy_file: Optional[str] = os.getenv('VATSPY_FILE') or None
    airlines_file: str = os.getenv('AIRLINES_FILE', str(DATA_DIR / 'airlines.json'))
    timeout: int = 30

    @property
    def use_local_airports(self) -> bool:
        return bool(self.vatspy_file)


@dataclass(frozen=True)
class PreviewConfig:
    """Unattended preview (kiosk) rotation settings."""
    cycle_interval: int = int(os.getenv('PREVIEW_CYCLE_SECONDS', '15'))
    countdown_tick: int = 1
    flights_per_page: int = int(os.getenv('FLIGHTS_PER_PAGE', '10'))
    # Rotations nobody has polled for this long are stopped
    idle_timeout: int = int(os.getenv('PREVIEW_IDLE_SECONDS', '120'))
    max_airports: int = int(os.getenv('PREVIEW_MAX_AIRPORTS', '20'))


@dataclass(frozen=True)
class AppConfig:
    """Main application configuration."""
    vatsim: VatsimConfig
    reference: ReferenceConfig
    preview: PreviewConfig

    # Flask settings
    secret_key: str
    debug: bool


def load_config() -> AppConfig:
    """Load and validate all configuration."""
    return AppConfig(
        vatsim=VatsimConfig(),
        reference=ReferenceConfig(),
        preview=PreviewConfig(),
        secret_key=os.getenv('SECRET_KEY', 'dev-key-change-in-prod'),
        debug=os.getenv('FLASK_DEBUG', '0') == '1',
    )


# Singleton instance
config = load_config()
