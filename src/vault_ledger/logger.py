"""Logging configuration for vault-ledger."""

from __future__ import annotations

import logging
import os
import sys
from typing import TextIO

# Below DEBUG; also lets the RPC client loggers through
TRACE = 5
logging.addLevelName(TRACE, "TRACE")

# Loggers of the web3 stack; kept at WARNING unless TRACE is requested.
RPC_LOGGERS = ("web3", "urllib3")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class LedgerFormatter(logging.Formatter):
    """Colors the level name when writing to a terminal."""

    LEVEL_COLORS = {
        "TRACE": "\033[90m",
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, color: bool = True):
        super().__init__(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
        self.color = color

    def formatMessage(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelname) if self.color else None
        if color is None:
            return super().formatMessage(record)
        levelname = record.levelname
        record.levelname = f"{color}{levelname}{self.RESET}"
        try:
            return super().formatMessage(record)
        finally:
            record.levelname = levelname


def resolve_level(log_level: str | None) -> int:
    """Map a level name (or LOG_LEVEL, defaulting to INFO) to its number."""
    name = (log_level or os.getenv("LOG_LEVEL", "INFO")).upper()
    if name == "TRACE":
        return TRACE
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def setup_logging(log_level: str | None = None, stream: TextIO | None = None) -> None:
    """Configure the root logger for the CLI and embedding processes.

    Vault activity follows ``log_level``. The RPC client loggers stay at
    WARNING so that ledger output is readable; TRACE shows RPC traffic too.
    """
    level = resolve_level(log_level)
    stream = stream or sys.stdout

    handler = logging.StreamHandler(stream)
    is_tty = getattr(stream, "isatty", None)
    handler.setFormatter(LedgerFormatter(color=bool(is_tty and is_tty())))
    logging.basicConfig(level=level, handlers=[handler], force=True)

    rpc_level = TRACE if level <= TRACE else max(level, logging.WARNING)
    for name in RPC_LOGGERS:
        logging.getLogger(name).setLevel(rpc_level)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
