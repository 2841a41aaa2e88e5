import logging
from pythonjsonlogger import jsonlogger

LOGGER_NAME = 'enrollment'
FORMAT = '%(asctime)s %(levelname)s %(name)s %(message)s'


def setup_logger(level: int = logging.INFO, json: bool = True) -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    if any(getattr(h, '_enrollment', False) for h in logger.handlers):
        logger.setLevel(level)
        return logger

    logHandler = logging.StreamHandler()
    if json:
        formatter: logging.Formatter = jsonlogger.JsonFormatter(
            FORMAT,
            rename_fields={'levelname': 'level', 'asctime': 'timestamp'}
        )
    else:
        formatter = logging.Formatter(FORMAT)
    logHandler.setFormatter(formatter)
    logHandler._enrollment = True  # type: ignore
    logger.addHandler(logHandler)
    logger.setLevel(level)
    return logger
