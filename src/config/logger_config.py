import sys
from pathlib import Path

from loguru import logger

log_dir = Path("logs")
log_file = log_dir / "migration_{time}.log"

logger.remove()
logger.add(
    sys.stderr,
    level="INFO",
    format="<level>[{level.name.lower()}]</level> {message}",
)
logger.add(
    log_file,
    rotation="256 MB",  # rotate once a file reaches 256MB
    retention="10 days",  # keep only the last 10 days of logs
    compression="zip",
    encoding="utf-8",
    level="DEBUG",
    enqueue=True,
)
