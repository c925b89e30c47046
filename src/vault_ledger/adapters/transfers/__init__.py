from __future__ import annotations

from .base import BaseTransferService

__all__ = ["BaseTransferService"]
