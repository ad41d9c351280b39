# ecfdash/logging_config.py

import sys

from loguru import logger

from . import config


def setup_logging(level=config.LOG_LEVEL, log_file=config.LOG_FILE):
    """
    Configure the loguru sinks used by the app.

    Args:
        level: Minimum level shown on the console
        log_file: Path pattern for the rotating DEBUG file, or None to skip it

    Returns:
        The configured loguru logger
    """
    # Remove o handler padrão para evitar duplicação de logs no console.
    logger.remove()

    logger.add(
        sys.stderr,
        level=level,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        colorize=True
    )

    if log_file:
        # rotation: novo arquivo ao atingir o tamanho; retention: apaga arquivos antigos
        logger.add(
            log_file,
            rotation=config.LOG_ROTATION,
            retention=config.LOG_RETENTION,
            level="DEBUG",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"
        )

    return logger
