"""Authorization collaborator interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Iterable


class Role(str, Enum):
    ADMIN = "admin"
    # reserved; no core operation requires it yet
    OPERATOR = "operator"


class Authorizer(ABC):
    """Answers whether a principal holds a role."""

    @abstractmethod
    def has_role(self, principal: str, role: Role) -> bool: ...


class StaticAuthorizer(Authorizer):
    """Role table fixed at construction, typically from settings."""

    def __init__(
        self,
        admins: Iterable[str] = (),
        operators: Iterable[str] = (),
    ):
        self._members: dict[Role, frozenset[str]] = {
            Role.ADMIN: frozenset(a.lower() for a in admins),
            Role.OPERATOR: frozenset(o.lower() for o in operators),
        }

    def has_role(self, principal: str, role: Role) -> bool:
        if not isinstance(principal, str):
            return False
        return principal.lower() in self._members.get(role, frozenset())
