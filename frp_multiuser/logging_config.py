import logging
import sys

LOG_FORMAT = "%(asctime)s %(filename)s:%(lineno)d: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """
    Console logging for the service.

    Uvicorn installs its own handlers for its loggers; this only sets up the
    root logger that the ``frp_multiuser`` loggers propagate to.
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        stream=sys.stdout,
    )
