import sys
from pathlib import Path
from typing import Optional, Union
from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)


def setup_logging(debug_mode: bool = False, log_dir: Optional[Union[str, Path]] = None):
    """
    Configures Loguru for the agent.

    Console output goes to stderr; when log_dir is given a rotating
    file sink is added there as well.
    """
    logger.remove()

    level = "DEBUG" if debug_mode else "INFO"
    logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT)

    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(log_dir / "agent_{time}.log"),
            rotation="10 MB",
            retention="1 week",
            level="DEBUG",
            enqueue=True,
        )

    logger.info(f"Logging initialized (level={level})")
