from __future__ import annotations

from pathlib import Path
from typing import List

from otp_packager.core.project.models import BEAM_SUFFIX, DependencyArtifact, Module, ProjectModel


def enumerate_modules(ebin_dir: Path) -> List[Module]:
    """All compiled ``.beam`` binaries below ``ebin_dir``, sorted by path."""
    root = Path(ebin_dir)
    if not root.is_dir():
        return []
    return [Module.from_path(p) for p in sorted(root.rglob(f"*{BEAM_SUFFIX}")) if p.is_file()]


def application_dependencies(project: ProjectModel) -> List[DependencyArtifact]:
    return [d for d in project.dependencies if d.is_application()]


def dependencies_to_package(project: ProjectModel) -> List[DependencyArtifact]:
    """Direct OTP application dependencies with a scope other than test/provided."""
    return [d for d in application_dependencies(project) if d.is_packaged()]


def foreign_dependencies(project: ProjectModel) -> List[DependencyArtifact]:
    return [d for d in project.dependencies if not d.is_application()]


def foreign_dependencies_to_package(project: ProjectModel) -> List[DependencyArtifact]:
    return [d for d in foreign_dependencies(project) if d.is_packaged()]
