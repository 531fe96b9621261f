"""Runtime settings resolved from arguments, environment variables and defaults."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from timegrid.domain.business_config import (
    DEFAULT_REFERENCE_DATA,
    ReferenceData,
    load_reference_data,
)
from timegrid.domain.errors import ConfigError
from timegrid.domain.quarters import QuarterWindow
from timegrid.domain.scheduler import DEFAULT_DEBOUNCE_SECONDS


ENV_DB_PATH = "TIMEGRID_DB_PATH"
ENV_ALLOWED_PREVIOUS_QUARTERS = "TIMEGRID_ALLOWED_PREVIOUS_QUARTERS"
ENV_DEBOUNCE_SECONDS = "TIMEGRID_DEBOUNCE_SECONDS"
ENV_REFERENCE_FILE = "TIMEGRID_REFERENCE_FILE"

DEFAULT_ALLOWED_PREVIOUS_QUARTERS = 1


def _int_setting(name: str, raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}")
    if value < 0:
        raise ConfigError(f"{name} must not be negative, got {value}")
    return value


def _float_setting(name: str, raw: str) -> float:
    try:
        value = float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}")
    if not value >= 0:
        raise ConfigError(f"{name} must not be negative, got {raw!r}")
    return value


@dataclass(frozen=True)
class Settings:
    """Settings for one timegrid process."""

    db_path: Optional[Path] = None
    allowed_previous_quarters: int = DEFAULT_ALLOWED_PREVIOUS_QUARTERS
    debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS
    reference_file: Optional[Path] = None

    @classmethod
    def from_env(
        cls,
        db_path: Optional[str] = None,
        reference_file: Optional[str] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> "Settings":
        """Resolve settings: explicit arguments win over the environment.

        Args:
            db_path: Database path given on the command line
            reference_file: Reference data file given on the command line
            env: Environment mapping (defaults to ``os.environ``)

        Raises:
            ConfigError: If an environment value is malformed
        """
        if env is None:
            env = os.environ

        db_raw = db_path or env.get(ENV_DB_PATH)
        reference_raw = reference_file or env.get(ENV_REFERENCE_FILE)

        quarters = DEFAULT_ALLOWED_PREVIOUS_QUARTERS
        if env.get(ENV_ALLOWED_PREVIOUS_QUARTERS):
            quarters = _int_setting(
                ENV_ALLOWED_PREVIOUS_QUARTERS, env[ENV_ALLOWED_PREVIOUS_QUARTERS]
            )

        debounce = DEFAULT_DEBOUNCE_SECONDS
        if env.get(ENV_DEBOUNCE_SECONDS):
            debounce = _float_setting(ENV_DEBOUNCE_SECONDS, env[ENV_DEBOUNCE_SECONDS])

        return cls(
            db_path=Path(db_raw).expanduser() if db_raw else None,
            allowed_previous_quarters=quarters,
            debounce_seconds=debounce,
            reference_file=Path(reference_raw).expanduser() if reference_raw else None,
        )

    def load_reference_data(self) -> ReferenceData:
        if self.reference_file is None:
            return DEFAULT_REFERENCE_DATA
        return load_reference_data(self.reference_file)

    def quarter_window(self) -> QuarterWindow:
        return QuarterWindow(allowed_previous_quarters=self.allowed_previous_quarters)
