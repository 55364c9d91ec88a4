"""Project-level configuration and path helpers."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DATA_DIR = PROJECT_ROOT / "03_data"
LOGS_DIR = PROJECT_ROOT / "04_logs"
DEFAULT_TRACE_DB_PATH = DATA_DIR / "harness_traces.db"
DEFAULT_LOG_PATH = LOGS_DIR / "harness.log"

DATA_DIR.mkdir(parents=True, exist_ok=True)
LOGS_DIR.mkdir(parents=True, exist_ok=True)


PathLike = Union[str, Path]


def resolve_db_path(env_value: PathLike | None = None) -> PathLike:
    """Resolve HARNESS_TRACE_DB to an absolute path."""
    if not env_value:
        return DEFAULT_TRACE_DB_PATH

    if str(env_value) == ":memory:":
        return ":memory:"

    candidate = Path(env_value)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


@dataclass
class HarnessConfig:
    """Addresses and timing budgets for one harness run.

    All durations are in seconds.
    """

    api_address: str = "http://127.0.0.1:4000/v1"
    endpoint_address: str = "ws://localhost:4000/v1/endpoints"
    queue_url: str | None = None
    aws_region: str | None = None
    wait_timeout: float = 1.0
    ack_timeout: float = 1.0
    poll_timeout: float = 10.0
    poll_backoff: float = 1.0
    long_poll_seconds: int = 10
    visibility_timeout: int = 20
    trace_db_path: PathLike = DEFAULT_TRACE_DB_PATH


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


def load_config(env_file: PathLike | None = None) -> HarnessConfig:
    """
    Build a HarnessConfig from the environment.

    Args:
        env_file: Optional .env file. Defaults to PROJECT_ROOT/.env.
                  Variables already set in the environment win.

    Returns:
        HarnessConfig populated from POSTCARD_* / HARNESS_* variables
    """
    load_dotenv(env_file or PROJECT_ROOT / ".env")

    defaults = HarnessConfig()
    return HarnessConfig(
        api_address=os.getenv("POSTCARD_API_ADDRESS", defaults.api_address),
        endpoint_address=os.getenv(
            "POSTCARD_ENDPOINT_ADDRESS", defaults.endpoint_address
        ),
        queue_url=os.getenv("POSTCARD_QUEUE_URL") or None,
        aws_region=os.getenv("AWS_REGION") or None,
        wait_timeout=_env_float("HARNESS_WAIT_TIMEOUT", defaults.wait_timeout),
        ack_timeout=_env_float("HARNESS_ACK_TIMEOUT", defaults.ack_timeout),
        poll_timeout=_env_float("HARNESS_POLL_TIMEOUT", defaults.poll_timeout),
        poll_backoff=_env_float("HARNESS_POLL_BACKOFF", defaults.poll_backoff),
        long_poll_seconds=_env_int(
            "HARNESS_LONG_POLL_SECONDS", defaults.long_poll_seconds
        ),
        visibility_timeout=_env_int(
            "HARNESS_VISIBILITY_TIMEOUT", defaults.visibility_timeout
        ),
        trace_db_path=resolve_db_path(os.getenv("HARNESS_TRACE_DB")),
    )
