from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Collection, Iterable, List, Optional, Sequence, Set, Tuple

from otp_packager.core.errors import ValidationError, ValidationKind
from otp_packager.core.logging_utils import log_content, log_lines
from otp_packager.core.project.models import BEAM_SUFFIX, ApplicationDescriptor, DependencyArtifact, Module

_log = logging.getLogger("otppkg.packager")

VITAL_APPLICATIONS = ("kernel", "stdlib")
APPLICATION_BEHAVIOUR = "application"
SASL = "sasl"

BehaviourQuery = Callable[[Module], str]


def _fmt_set(values: Iterable[str]) -> str:
    return "[" + ", ".join(sorted(values)) + "]"


def check_name(expected: str, actual: str) -> List[str]:
    if expected == actual:
        return []
    return ["Name mismatch.", f"Project name is {expected} while .app name is {actual}"]


def check_version(expected: str, actual: str) -> List[str]:
    if expected == actual:
        return []
    return ["Version mismatch.", f"Project version is {expected} while .app version is {actual}"]


def module_differences(compiled: Collection[str], declared: Collection[str]) -> Tuple[Set[str], Set[str]]:
    """Returns (undeclared, unbacked): compiled but not declared, declared but not compiled."""
    m, d = set(compiled), set(declared)
    return m - d, d - m


def check_modules(compiled: Collection[str], declared: Collection[str]) -> List[str]:
    undeclared, unbacked = module_differences(compiled, declared)
    if not undeclared and not unbacked:
        return []
    # both halves are always reported together
    return [
        f"Undeclared modules (not in .app file): {_fmt_set(undeclared)}",
        f"Unbacked modules (no .beam file): {_fmt_set(unbacked)}",
    ]


def check_applications(dependencies: Iterable[DependencyArtifact], declared: Sequence[str]) -> List[str]:
    problems: List[str] = []
    for dep in dependencies:
        if dep.artifact_id not in declared:
            problems.append(f"Application dependency to '{dep.artifact_id}' is missing in .app file.")
    if not all(app in declared for app in VITAL_APPLICATIONS):
        problems.append("Vital application dependency to either 'kernel' or 'stdlib' is missing in .app file.")
    return problems


def check_start_module(
    descriptor: ApplicationDescriptor,
    ebin_dir: Path,
    query_behaviours: BehaviourQuery,
) -> List[str]:
    if not descriptor.has_start_module():
        return []

    start = descriptor.start_module
    beam = Path(ebin_dir) / f"{start}{BEAM_SUFFIX}"
    if not beam.is_file():
        return [f"Configured start module '{start}' does not exist."]

    behaviours = query_behaviours(Module.from_path(beam))
    if APPLICATION_BEHAVIOUR not in behaviours:
        return [f"Configured start module '{start}' does not implement the application behaviour."]

    if SASL not in descriptor.applications:
        return ["Application dependency to 'sasl' is missing in .app file."]
    return []


@dataclass(frozen=True)
class _Check:
    kind: ValidationKind
    summary: str
    run: Callable[[], List[str]]


class ConsistencyValidator:
    """Cross-checks a parsed descriptor against the build output and the project dependencies.

    Checks run in a fixed order. A check may report several lines; the run
    stops after the first check that reported anything.
    """

    def __init__(self, *, ebin_dir: Path, query_behaviours: BehaviourQuery, log: Optional[logging.Logger] = None):
        self.ebin_dir = Path(ebin_dir)
        self.query_behaviours = query_behaviours
        self.log = log or _log

    def validate(
        self,
        descriptor: ApplicationDescriptor,
        *,
        artifact_id: str,
        version: str,
        modules: Sequence[Module],
        dependencies: Sequence[DependencyArtifact],
        descriptor_file: Optional[Path] = None,
    ) -> None:
        checks = [
            _Check(
                ValidationKind.NAME_MISMATCH,
                f"Name mismatch {artifact_id} != {descriptor.name}.",
                lambda: check_name(artifact_id, descriptor.name),
            ),
            _Check(
                ValidationKind.VERSION_MISMATCH,
                f"Version mismatch {version} != {descriptor.version}.",
                lambda: check_version(version, descriptor.version),
            ),
            _Check(
                ValidationKind.MODULE_SET_MISMATCH,
                "Module mismatch found, see previous output for details.",
                lambda: check_modules([m.name for m in modules], descriptor.modules),
            ),
            _Check(
                ValidationKind.MISSING_DEPENDENCY,
                "Missing application dependencies.",
                lambda: check_applications(dependencies, descriptor.applications),
            ),
            _Check(
                ValidationKind.INVALID_START_MODULE,
                "Invalid start module configuration.",
                lambda: check_start_module(descriptor, self.ebin_dir, self.query_behaviours),
            ),
        ]

        for check in checks:
            problems = check.run()
            if not problems:
                continue
            log_lines(self.log, logging.ERROR, problems)
            if descriptor_file is not None:
                log_content(self.log, logging.ERROR, descriptor_file)
            raise ValidationError(check.kind, check.summary, details=problems)
