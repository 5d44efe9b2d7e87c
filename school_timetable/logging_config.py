import logging

from school_timetable import config


def setup_logging(level: str = config.LOG_LEVEL) -> None:
    """Console logging for the app and uvicorn. Calling it twice is harmless."""
    root = logging.getLogger()
    if root.handlers:
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    ))
    logging.basicConfig(level=level.upper(), handlers=[handler])

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).setLevel(level.upper())
