from __future__ import annotations

from enum import Enum
from typing import Iterable, List, Optional


class PackagingError(RuntimeError):
    """Base class for every failure that aborts a packaging run."""

    kind: str = "packaging_error"

    def __init__(self, message: str, details: Optional[Iterable[str]] = None):
        super().__init__(message)
        self.details: List[str] = list(details or [])

    def to_dict(self) -> dict:
        return {"error": self.kind, "message": str(self), "detail": list(self.details)}


class ValidationKind(str, Enum):
    NAME_MISMATCH = "name-mismatch"
    VERSION_MISMATCH = "version-mismatch"
    MODULE_SET_MISMATCH = "module-set-mismatch"
    MISSING_DEPENDENCY = "missing-dependency"
    INVALID_START_MODULE = "invalid-start-module"


class ValidationError(PackagingError):
    kind = "validation_error"

    def __init__(self, validation_kind: ValidationKind, message: str, details: Optional[Iterable[str]] = None):
        super().__init__(message, details)
        self.validation_kind = validation_kind

    def to_dict(self) -> dict:
        out = super().to_dict()
        out["validation_kind"] = self.validation_kind.value
        return out


class DescriptorMissingError(PackagingError):
    kind = "descriptor_missing"


class DescriptorSyntaxError(PackagingError):
    kind = "descriptor_syntax_error"


class EngineExecutionError(PackagingError):
    kind = "engine_error"


class TermDecodeError(EngineExecutionError):
    kind = "term_decode_error"


class PackagingIOError(PackagingError):
    kind = "io_error"


class ArchiveError(PackagingIOError):
    kind = "archive_error"
