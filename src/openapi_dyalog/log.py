"""Logging setup for the command line."""

import logging

import click

PACKAGE_LOGGER = "openapi_dyalog"


class ClickEchoHandler(logging.Handler):
    """Writes log records to stderr through ``click.echo``."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            click.echo(self.format(record), err=True)
        except Exception:
            self.handleError(record)


def configure_logging(level: str = "INFO") -> None:
    """Route package log records to stderr as single lines."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        if isinstance(handler, ClickEchoHandler):
            logger.removeHandler(handler)

    handler = ClickEchoHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level.upper())
