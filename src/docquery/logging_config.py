"""
Logging setup for the docquery SDK.

Every module logs through a child of the `docquery` logger
(`logger = get_logger(__name__)`). The package only installs a
`NullHandler`, so nothing is printed until the application calls
[`setup_sdk_logging`][docquery.logging_config.setup_sdk_logging].

The SDK is split into three subsystems whose verbosity can be tuned
separately:

| Subsystem | Logger | Logs |
| --- | --- | --- |
| `query` | `docquery.models.query` | translation, validation failures |
| `mutation` | `docquery.models.mutation` | batch assembly, dropped duplicate deletes |
| `comm` | `docquery.comm` | dispatch to the transport, transport errors |
"""

import logging as root_logging
import sys
from typing import Mapping, Optional, Union

from rich.console import Console
from rich.logging import RichHandler

from .errors import InvalidValueError

_SDK_LOGGER_NAME = "docquery"

SUBSYSTEM_LOGGERS = {
    "query": f"{_SDK_LOGGER_NAME}.models.query",
    "mutation": f"{_SDK_LOGGER_NAME}.models.mutation",
    "comm": f"{_SDK_LOGGER_NAME}.comm",
}

Level = Union[str, int]


def set_subsystem_level(subsystem: str, level: Level):
    """
    Sets the threshold of one SDK subsystem, overriding the SDK-wide level.

    Args:
        subsystem: One of `"query"`, `"mutation"`, `"comm"`.
        level: A logging level name or number. `logging.NOTSET` restores
            inheritance from the `docquery` logger.

    Raises:
        InvalidValueError: If `subsystem` is unknown.
    """
    if subsystem not in SUBSYSTEM_LOGGERS:
        raise InvalidValueError(
            f"unknown logging subsystem '{subsystem}', expected one of {list(SUBSYSTEM_LOGGERS)}"
        )
    root_logging.getLogger(SUBSYSTEM_LOGGERS[subsystem]).setLevel(level)


def _make_handler(level: Level, pretty: bool, console: Optional[Console]):
    if pretty:
        handler = RichHandler(
            level=level,
            console=console or Console(stderr=True),
            show_time=True,
            show_path=True,
            markup=True,
            rich_tracebacks=True,
            log_time_format="[%X]",
        )
        handler.setFormatter(
            root_logging.Formatter(fmt="[dim white]%(name)s[/dim white]: %(message)s")
        )
        return handler

    handler = root_logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        root_logging.Formatter(
            fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    return handler


def setup_sdk_logging(
    level: Level = "INFO",
    pretty: bool = False,
    console: Optional[Console] = None,
    propagate: bool = False,
    subsystem_levels: Optional[Mapping[str, Level]] = None,
):
    """
    Attaches a single output handler to the `docquery` logger.

    Calling it again replaces the previous handler instead of adding one.

    Args:
        level: The SDK-wide threshold. Defaults to `"INFO"`.
        pretty: Use a Rich handler (colors, rich tracebacks) instead of a
            plain stderr stream.
        console: The Rich console the pretty handler writes to. Defaults to
            `Console(stderr=True)`.
        propagate: Let records also reach the root logger.
        subsystem_levels: Per-subsystem thresholds, e.g.
            `{"query": "WARNING"}` to silence translation traces while
            keeping dispatch logs at `DEBUG`.

    Raises:
        InvalidValueError: If `subsystem_levels` names an unknown subsystem.

    Example:
        ```python
        from docquery import setup_sdk_logging

        setup_sdk_logging(level="DEBUG", pretty=True, subsystem_levels={"query": "INFO"})
        ```
    """
    for subsystem, sub_level in (subsystem_levels or {}).items():
        set_subsystem_level(subsystem, sub_level)

    logger = root_logging.getLogger(_SDK_LOGGER_NAME)
    if logger.hasHandlers():
        logger.handlers.clear()

    logger.addHandler(_make_handler(level, pretty, console))
    logger.setLevel(level)
    logger.propagate = propagate

    if pretty:
        logger.info(f"SDK Logging initialized at level: [bold]{level}[/bold]", extra={"markup": True})
    else:
        logger.info(f"SDK Logging initialized at level: {level}")


def get_logger(name: Optional[str] = None) -> root_logging.Logger:
    """
    Returns the logger `name` (typically `__name__` of an SDK module), or the
    top-level `docquery` logger when `name` is None.
    """
    return root_logging.getLogger(name if name is not None else _SDK_LOGGER_NAME)
