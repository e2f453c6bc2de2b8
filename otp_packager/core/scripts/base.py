from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Generic, TypeVar

from otp_packager.core.engine.terms import to_text
from otp_packager.core.errors import TermDecodeError
from otp_packager.core.logging_utils import log_multiline

T = TypeVar("T")


class ScriptStatus(str, Enum):
    OK = "ok"
    WARN = "warn"
    ERROR = "error"
    DEBUG = "debug"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> "ScriptStatus":
        try:
            return cls(to_text(value))
        except ValueError:
            return cls.UNKNOWN


_LOG_LEVELS: Dict[ScriptStatus, int] = {
    ScriptStatus.OK: logging.INFO,
    ScriptStatus.WARN: logging.WARNING,
    ScriptStatus.ERROR: logging.ERROR,
    ScriptStatus.DEBUG: logging.DEBUG,
    ScriptStatus.UNKNOWN: logging.INFO,
}

_SUCCESS = {ScriptStatus.OK, ScriptStatus.WARN}


def log_level_for(status: ScriptStatus) -> int:
    return _LOG_LEVELS[status]


@dataclass(frozen=True)
class ScriptResult:
    status: ScriptStatus
    message: str = ""

    def success(self) -> bool:
        return self.status in _SUCCESS

    def log_output(self, log: logging.Logger) -> None:
        # ok messages are informational noise from the engine; only surface the rest
        if self.message and self.status is not ScriptStatus.OK:
            log_multiline(log, log_level_for(self.status), self.message)


def status_result(term: Any) -> ScriptResult:
    """Interpret a ``{Level, Message}`` pair."""
    if not isinstance(term, tuple) or len(term) != 2:
        raise TermDecodeError(f"expected {{Level, Message}}, got {term!r}")
    return ScriptResult(status=ScriptStatus.parse(term[0]), message=to_text(term[1]))


class Script(ABC, Generic[T]):
    """Erlang source for one engine request plus the interpretation of its result."""

    source: str

    @abstractmethod
    def get(self) -> str:
        ...

    @abstractmethod
    def handle(self, term: Any) -> T:
        ...
