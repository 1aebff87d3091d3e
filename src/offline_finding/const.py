import os

from offline_finding import __version__

__all__ = [
    "OF_DEBUG",
    "OF_LOG_CORRELATION_ENABLED",
    "OF_LOG_FORMAT",
    "OF_LOG_HUMAN_OUTPUT",
    "OF_LOG_JSON_FILE",
    "OF_LOG_NAME",
    "OF_METRICS_ENABLED",
    "OF_METRICS_PORT",
    "OF_VERSION",
    "SRC_REPO_URL",
    "YES_ANSWER",
    "reload_env",
]

YES_ANSWER = ("true", "1", "yes", "y", "t", 1, "on", "o")
OF_LOG_NAME: str = "offline_finding"
OF_VERSION: str = __version__
SRC_REPO_URL: str = "https://github.com/harryfrankl/Offline-Finding-Wireshark-Dissector"
DEFAULT_METRICS_PORT = 9400

OF_DEBUG: bool = False
OF_LOG_FORMAT: str = "human"
OF_LOG_JSON_FILE: str | None = None
OF_LOG_HUMAN_OUTPUT: str = "stderr"
OF_LOG_CORRELATION_ENABLED: bool = True
OF_METRICS_ENABLED: bool = False
OF_METRICS_PORT: int = DEFAULT_METRICS_PORT


def _parse_port(value: str | None) -> int:
    if not value:
        return DEFAULT_METRICS_PORT
    try:
        return int(value)
    except ValueError:
        return DEFAULT_METRICS_PORT


def reload_env() -> None:
    """(Re)read OF_* settings from the environment into this module."""
    global OF_DEBUG, OF_LOG_FORMAT, OF_LOG_JSON_FILE, OF_LOG_HUMAN_OUTPUT  # noqa: PLW0603
    global OF_LOG_CORRELATION_ENABLED, OF_METRICS_ENABLED, OF_METRICS_PORT  # noqa: PLW0603

    OF_DEBUG = os.environ.get("OF_DEBUG", "0").casefold() in YES_ANSWER

    # Logging Configuration
    OF_LOG_FORMAT = os.environ.get("OF_LOG_FORMAT", "human")  # "json", "human", or "both"
    _json_file = os.environ.get("OF_LOG_JSON_FILE")
    OF_LOG_JSON_FILE = _json_file if _json_file else None
    OF_LOG_HUMAN_OUTPUT = os.environ.get("OF_LOG_HUMAN_OUTPUT", "stderr")  # "stdout", "stderr", or file path
    OF_LOG_CORRELATION_ENABLED = os.environ.get("OF_LOG_CORRELATION_ENABLED", "true").casefold() in YES_ANSWER

    # Prometheus exporter
    OF_METRICS_ENABLED = os.environ.get("OF_METRICS_ENABLED", "0").casefold() in YES_ANSWER
    OF_METRICS_PORT = _parse_port(os.environ.get("OF_METRICS_PORT"))


reload_env()
