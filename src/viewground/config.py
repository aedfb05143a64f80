"""Logging configuration for ViewGround.

The engine logs through the standard :mod:`logging` module,
all loggers are children of the ``viewground`` logger.

By default nothing is emitted: the library doesn't install any
handler until diagnostics are explicitly requested
through :func:`set_log_level`::

    import logging
    from viewground import config

    config.set_log_level(logging.DEBUG)  # Show joins, merges and filters
    config.set_log_level(logging.WARNING)  # Back to quiet
"""

import logging

LOGGER_NAME = "viewground"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_handler: logging.Handler | None = None


def get_logger(name: str | None = None) -> logging.Logger:
    """Get the logger for a component of the engine.

    :param name: The module name, usually ``__name__``.
                 Modules outside of the ``viewground`` package
                 get a child of the ``viewground`` logger.
    """
    if name is None or name == LOGGER_NAME:
        return logging.getLogger(LOGGER_NAME)
    if not name.startswith(LOGGER_NAME + "."):
        name = f"{LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def set_log_level(level: int) -> None:
    """Set the logging level of the engine.

    The first time this is invoked a stream handler
    is attached to the ``viewground`` logger, so that
    messages become visible without having to configure
    logging in the application.

    :param level: A :mod:`logging` level like ``logging.DEBUG``.
    """
    global _handler

    logger = get_logger()
    if _handler is None:
        _handler = logging.StreamHandler()
        _handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(_handler)
    logger.setLevel(level)
    _handler.setLevel(level)
