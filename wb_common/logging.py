"""Shared logging configuration using structlog."""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass, field

import structlog

from wb_common.config.env import parse_bool_env
from wb_common.errors import ConfigurationError

_LEVEL_ALIASES = {"trace": logging.DEBUG, "warn": logging.WARNING, "off": logging.CRITICAL + 10}


@dataclass(frozen=True)
class LogFilter:
    """Parsed ``level[,logger=level...]`` directive."""

    level: int = logging.INFO
    targets: dict[str, int] = field(default_factory=dict)


def _parse_level(value: str, directive: str) -> int:
    name = value.strip().lower()
    if name in _LEVEL_ALIASES:
        return _LEVEL_ALIASES[name]
    if name.isdigit():
        return int(name)
    level = logging.getLevelNamesMapping().get(name.upper())
    if level is None:
        raise ConfigurationError(
            f"invalid --log-filter: unknown level {value!r}",
            context={"directive": directive},
        )
    return level


def parse_log_filter(directive: str) -> LogFilter:
    """Parse a comma separated log filter such as ``info,httpx=warn``."""
    level = logging.INFO
    targets: dict[str, int] = {}
    for token in directive.split(","):
        token = token.strip()
        if not token:
            continue
        if "=" in token:
            target, raw_level = token.split("=", 1)
            target = target.strip().replace("::", ".")
            if not target:
                raise ConfigurationError(
                    "invalid --log-filter: empty target", context={"directive": directive}
                )
            targets[target] = _parse_level(raw_level, directive)
        else:
            level = _parse_level(token, directive)
    return LogFilter(level=level, targets=targets)


@dataclass(frozen=True)
class LoggingConfig:
    """Process-wide logging setup, applied once by whoever owns the process."""

    log_filter: str | None = None
    json: bool | None = None
    log_file: str | None = None

    def apply(self) -> None:
        configure_logging(
            log_filter=self.log_filter,
            json=self.json,
            log_file=self.log_file,
            force=True,
        )


def _structlog_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ]


def configure_logging(
    *,
    log_filter: str | None = None,
    json: bool | None = None,
    log_file: str | None = None,
    force: bool = False,
) -> None:
    """Configure stdlib logging and structlog with a shared formatter."""
    env_filter = os.environ.get("WB_LOG_LEVEL")
    env_json = parse_bool_env(os.environ.get("WB_LOG_JSON"))
    env_log_file = os.environ.get("WB_LOG_FILE")

    parsed = parse_log_filter(log_filter or env_filter or "info")
    resolved_json = env_json if json is None else json
    resolved_log_file = env_log_file if log_file is None else log_file

    renderer: structlog.types.Processor
    if resolved_json:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    pre_chain = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.stdlib.ExtraAdder(),
    ]

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=pre_chain,
    )

    root_logger = logging.getLogger()
    if root_logger.handlers and not force:
        structlog.configure(
            processors=_structlog_processors(),
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )
        return

    handlers: list[logging.Handler] = []
    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(formatter)
    handlers.append(stream_handler)

    if resolved_log_file:
        file_handler = logging.FileHandler(resolved_log_file)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if force:
        root_logger.handlers.clear()

    root_logger.setLevel(parsed.level)
    for handler in handlers:
        root_logger.addHandler(handler)
    for target, level in parsed.targets.items():
        logging.getLogger(target).setLevel(level)

    structlog.configure(
        processors=_structlog_processors(),
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
