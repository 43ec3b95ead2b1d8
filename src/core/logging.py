import logging

from src.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging() -> None:
    """Configure root logging once per process from settings.log_level."""
    root = logging.getLogger()
    if root.handlers:
        root.setLevel(settings.log_level)
        return
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)
    # SQL echo is controlled by settings.debug on the engine, keep it out of INFO noise
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
