from __future__ import annotations

import fnmatch
import re
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, List, Mapping, Sequence

from otp_packager.core.errors import PackagingIOError
from otp_packager.core.project.models import DependencyArtifact, Module, ProjectModel

DESCRIPTOR_PATTERNS: List[str] = ["*.app", "*.appup"]


def to_module_list(modules: Iterable[Module], prefix: str = "'", suffix: str = "'") -> str:
    return "[" + ", ".join(f"{prefix}{m.name}{suffix}" for m in modules) + "]"


def to_artifact_id_listing(dependencies: Iterable[DependencyArtifact]) -> str:
    return ", ".join(d.artifact_id for d in dependencies)


def project_replacements(project: ProjectModel, artifact_quote: str = "'", common_quote: str = '"') -> dict:
    return {
        "${ARTIFACT}": f"{artifact_quote}{project.artifact_id}{artifact_quote}",
        "${DESCRIPTION}": f"{common_quote}{project.description}{common_quote}",
        "${ID}": f"{common_quote}{project.id}{common_quote}",
        "${NAME}": f"{common_quote}{project.display_name}{common_quote}",
        "${VERSION}": f"{common_quote}{project.version}{common_quote}",
    }


def build_replacements(
    project: ProjectModel,
    modules: Sequence[Module],
    registered: str,
    dependencies: Sequence[DependencyArtifact],
) -> Mapping[str, str]:
    replacements = project_replacements(project)
    replacements["${MODULES}"] = to_module_list(modules)
    replacements["${REGISTERED}"] = registered
    replacements["${APPLICATIONS}"] = to_artifact_id_listing(dependencies)
    return MappingProxyType(replacements)


def substitute(text: str, replacements: Mapping[str, str]) -> str:
    """Replace all tokens in one pass; inserted values are never scanned again."""
    if not replacements:
        return text
    pattern = re.compile("|".join(re.escape(t) for t in sorted(replacements, key=len, reverse=True)))
    return pattern.sub(lambda m: replacements[m.group(0)], text)


def substitute_file(src: Path, dst: Path, replacements: Mapping[str, str]) -> Path:
    """Write ``src`` to ``dst`` with every known token replaced; unknown tokens stay as they are."""
    try:
        content = Path(src).read_text(encoding="utf-8")
        Path(dst).parent.mkdir(parents=True, exist_ok=True)
        Path(dst).write_text(substitute(content, replacements), encoding="utf-8")
    except OSError as e:
        raise PackagingIOError(f"Failed to write {dst}: {e}") from e
    return Path(dst)


def _is_descriptor(name: str, patterns: Sequence[str]) -> bool:
    return any(fnmatch.fnmatch(name, pat) for pat in patterns)


def copy_descriptor_templates(
    src_dir: Path,
    dst_dir: Path,
    replacements: Mapping[str, str],
    patterns: Sequence[str] = DESCRIPTOR_PATTERNS,
) -> int:
    """Copy every descriptor template below ``src_dir`` into ``dst_dir``, filling tokens.

    Relative paths are kept. Returns the number of files written.
    """
    src_root = Path(src_dir)
    if not src_root.is_dir():
        return 0
    copied = 0
    for f in sorted(src_root.rglob("*")):
        if not f.is_file() or not _is_descriptor(f.name, patterns):
            continue
        substitute_file(f, Path(dst_dir) / f.relative_to(src_root), replacements)
        copied += 1
    return copied
