from __future__ import annotations

from .deposit import DepositResult, DepositWorkflow
from .withdrawal import WithdrawalStateMachine

__all__ = ["DepositResult", "DepositWorkflow", "WithdrawalStateMachine"]
