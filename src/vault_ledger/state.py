"""Application state container."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .settings import LedgerSettings


@dataclass
class AppState:
    """Container for application-wide settings and logger.

    Passed into start-up code to avoid global state and enable testing.
    """

    settings: LedgerSettings
    logger: logging.Logger
