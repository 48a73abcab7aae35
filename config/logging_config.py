"""Rich-handler logging preset."""
import logging
from rich.logging import RichHandler
from .app_config import settings


def configure(level: str = None):
    logging.basicConfig(
        level=getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO),
        format="%(asctime)s │ %(name)-24s │ %(message)s",
        datefmt="%H:%M:%S",
        handlers=[RichHandler(rich_tracebacks=True, markup=True)],
    )
    # paho's own log is bridged through MQTTGateway; httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
