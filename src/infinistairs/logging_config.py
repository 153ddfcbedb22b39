import logging
import os

ENV_LOG_LEVEL = "INFINISTAIRS_LOG_LEVEL"


def configure_logging(default_level: int = logging.INFO) -> None:
    """Configure root logger with a sane default format.

    Respects INFINISTAIRS_LOG_LEVEL env var if present.
    """
    level_name = os.getenv(ENV_LOG_LEVEL)
    level = default_level
    if level_name:
        level = getattr(logging, level_name.upper(), default_level)
    root = logging.getLogger()
    # Remove existing handlers to avoid duplicates in repeated test runs
    for h in list(root.handlers):
        root.removeHandler(h)
    logging.basicConfig(
        level=level,
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
    )
