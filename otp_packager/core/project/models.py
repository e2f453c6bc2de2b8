from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, Field

OMITTED = "omitted"
BEAM_SUFFIX = ".beam"

# packaging types of dependencies that are themselves OTP applications
ERLANG_KINDS = ("erlang-otp", "erlang-std")

Scope = Literal["compile", "runtime", "test", "provided", "system"]


@dataclass(frozen=True)
class Module:
    name: str
    path: Path

    @classmethod
    def from_path(cls, path: Path) -> "Module":
        p = Path(path).absolute()
        return cls(name=p.name[: -len(BEAM_SUFFIX)] if p.name.endswith(BEAM_SUFFIX) else p.stem, path=p)


@dataclass(frozen=True)
class ApplicationDescriptor:
    name: str
    version: str
    modules: Tuple[str, ...] = field(default_factory=tuple)
    applications: Tuple[str, ...] = field(default_factory=tuple)
    start_module: str = OMITTED

    def has_start_module(self) -> bool:
        return self.start_module != OMITTED


class DependencyArtifact(BaseModel):
    model_config = {"frozen": True}

    artifact_id: str
    scope: Scope = "compile"
    kind: str = "erlang-otp"
    group_id: Optional[str] = None
    version: Optional[str] = None

    def is_application(self) -> bool:
        return self.kind in ERLANG_KINDS

    def is_packaged(self) -> bool:
        return self.scope not in ("test", "provided")


class ProjectModel(BaseModel):
    group_id: str
    artifact_id: str
    version: str
    name: Optional[str] = None
    description: str = ""
    packaging: str = "erlang-otp"
    dependencies: List[DependencyArtifact] = Field(default_factory=list)

    @property
    def id(self) -> str:
        return f"{self.group_id}:{self.artifact_id}:{self.packaging}:{self.version}"

    @property
    def display_name(self) -> str:
        return self.name or self.artifact_id

    @property
    def release_name(self) -> str:
        return f"{self.artifact_id}-{self.version}"
