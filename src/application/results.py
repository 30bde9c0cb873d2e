from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from src.domain.errors import ErrorCode


@dataclass(frozen=True)
class ActionError:
    message: str
    code: ErrorCode


@dataclass(frozen=True)
class ActionResult:
    """Outcome of a user-facing action; failures carry a user-safe message."""

    success: bool
    message: str | None = None
    error: ActionError | None = None
    critical: bool = False
    data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, message: str | None = None, **data: Any) -> ActionResult:
        return cls(success=True, message=message, data=data)

    @classmethod
    def fail(cls, message: str, code: ErrorCode, *, critical: bool = False) -> ActionResult:
        return cls(success=False, error=ActionError(message=message, code=code), critical=critical)
