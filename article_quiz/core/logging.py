import logging

from .config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str | None = None) -> None:
    """Configures the root logger once, at application start."""
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format=LOG_FORMAT,
    )
    # httpx logs every request at INFO, including the completion endpoint URL
    logging.getLogger("httpx").setLevel(logging.WARNING)
