"""Config management for Circulation.

Reads `config.ini` from the data directory (DATA_DIR env var, or the project root).
The [lending] section carries the loan policy that is injected into the engine.
"""

from __future__ import annotations

import configparser
import dataclasses
import os
import pathlib
from typing import Optional

from .logging_config import get_logger

logger = get_logger(__name__)

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]

# DATA_DIR holds all persistent state (config.ini, circulation.db, circulation.log).
DATA_DIR = pathlib.Path(os.environ.get("DATA_DIR", str(PROJECT_ROOT)))
DEFAULT_CONFIG_PATH = DATA_DIR / "config.ini"

DEFAULT_MAX_LOANS = 5
DEFAULT_LOAN_DAYS = 14


@dataclasses.dataclass
class LibraryConfig:
    name: str = "My Library"


@dataclasses.dataclass(frozen=True)
class LendingPolicy:
    """Borrowing limit and loan period applied by the lending engine."""

    max_loans: int = DEFAULT_MAX_LOANS
    loan_days: int = DEFAULT_LOAN_DAYS

    def __post_init__(self) -> None:
        if self.max_loans <= 0:
            raise ValueError(f"max_loans must be positive, got {self.max_loans}")
        if self.loan_days <= 0:
            raise ValueError(f"loan_days must be positive, got {self.loan_days}")


@dataclasses.dataclass
class LoggingConfig:
    level: str = "INFO"


@dataclasses.dataclass
class CirculationConfig:
    library: LibraryConfig
    lending: LendingPolicy
    logging: LoggingConfig

    @property
    def library_name(self) -> str:
        return self.library.name

    @property
    def database_path(self) -> pathlib.Path:
        return DATA_DIR / "circulation.db"

    @property
    def log_path(self) -> pathlib.Path:
        return DATA_DIR / "circulation.log"


def default_config() -> CirculationConfig:
    return CirculationConfig(
        library=LibraryConfig(),
        lending=LendingPolicy(),
        logging=LoggingConfig(),
    )


def load_config(config_path: Optional[pathlib.Path] = None) -> CirculationConfig:
    """Load configuration from config.ini.

    Defaults to `config.ini` in DATA_DIR. Raises FileNotFoundError when missing
    and ValueError when the lending policy is not made of positive integers.
    """
    path = config_path or DEFAULT_CONFIG_PATH
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    parser = configparser.ConfigParser()
    parser.read(path)

    library = LibraryConfig(
        name=parser.get("library", "name", fallback="My Library"),
    )

    lending = LendingPolicy(
        max_loans=parser.getint("lending", "max_loans", fallback=DEFAULT_MAX_LOANS),
        loan_days=parser.getint("lending", "loan_days", fallback=DEFAULT_LOAN_DAYS),
    )

    log_config = LoggingConfig(
        level=parser.get("logging", "level", fallback="INFO").strip().upper(),
    )

    logger.debug(
        f"Loaded config from {path}: max_loans={lending.max_loans}, "
        f"loan_days={lending.loan_days}"
    )
    return CirculationConfig(library=library, lending=lending, logging=log_config)


def write_config(
    config_path: pathlib.Path,
    library_name: str,
    max_loans: int = DEFAULT_MAX_LOANS,
    loan_days: int = DEFAULT_LOAN_DAYS,
) -> pathlib.Path:
    """Write a config.ini with the given library name and lending policy."""
    # Validates before anything touches the disk.
    LendingPolicy(max_loans=max_loans, loan_days=loan_days)

    parser = configparser.ConfigParser()
    parser["library"] = {"name": library_name}
    parser["lending"] = {
        "max_loans": str(max_loans),
        "loan_days": str(loan_days),
    }
    parser["logging"] = {"level": "INFO"}

    config_path.parent.mkdir(parents=True, exist_ok=True)
    with config_path.open("w") as handle:
        parser.write(handle)
    return config_path


_cached_config: Optional[CirculationConfig] = None


def get_config() -> CirculationConfig:
    """Return the cached config singleton. Loads from disk on first call."""
    global _cached_config
    if _cached_config is None:
        _cached_config = load_config()
    return _cached_config


def reset_config_cache() -> None:
    """Clear the cached config (useful for tests)."""
    global _cached_config
    _cached_config = None
