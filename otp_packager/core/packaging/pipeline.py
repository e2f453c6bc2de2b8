from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from otp_packager.core.engine.base import ScriptEngine
from otp_packager.core.errors import ArchiveError, DescriptorMissingError, DescriptorSyntaxError, PackagingError
from otp_packager.core.logging_utils import log_banner, log_content, log_multiline
from otp_packager.core.observability.metrics import inc_run
from otp_packager.core.packaging.archiver import ReleaseArchiver
from otp_packager.core.packaging.templates import build_replacements, copy_descriptor_templates
from otp_packager.core.packaging.validator import ConsistencyValidator
from otp_packager.core.project.artifacts import (
    dependencies_to_package,
    enumerate_modules,
    foreign_dependencies_to_package,
)
from otp_packager.core.project.layout import ProjectLayout
from otp_packager.core.project.models import ApplicationDescriptor, Module
from otp_packager.core.release.verify import verify_release_archive, write_release_metadata
from otp_packager.core.scripts.check_app import CheckAppScript
from otp_packager.core.scripts.check_appup import CheckAppUpScript
from otp_packager.core.scripts.get_attributes import GetAttributesScript

_log = logging.getLogger("otppkg.packager")

APPUP_DOC = "http://www.erlang.org/doc/man/appup.html"


@dataclass
class PackageReport:
    project_id: str
    release_name: str
    modules: List[str] = field(default_factory=list)
    descriptor: Optional[ApplicationDescriptor] = None
    warnings: List[str] = field(default_factory=list)
    archive: Optional[str] = None
    verification: Optional[Dict[str, Any]] = None
    metadata: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        d = self.descriptor
        return {
            "project_id": self.project_id,
            "release_name": self.release_name,
            "modules": list(self.modules),
            "descriptor": None
            if d is None
            else {
                "name": d.name,
                "version": d.version,
                "modules": list(d.modules),
                "applications": list(d.applications),
                "start_module": d.start_module,
            },
            "warnings": list(self.warnings),
            "archive": self.archive,
            "verification": self.verification,
            "metadata": self.metadata,
        }


class Packager:
    """Fills, validates and archives an OTP application.

    Every step runs synchronously against the script engine; the first
    failure raises a PackagingError and nothing after it is attempted.
    """

    def __init__(self, engine: ScriptEngine, node: Optional[str] = None, log: Optional[logging.Logger] = None):
        self.engine = engine
        self.node = node
        self.log = log or _log

    # ------------------------------------------------------------------
    # public operations
    # ------------------------------------------------------------------
    def validate(self, layout: ProjectLayout) -> PackageReport:
        return self._instrumented("validate", layout, archive=False)

    def package(self, layout: ProjectLayout) -> PackageReport:
        return self._instrumented("package", layout, archive=True)

    def _instrumented(self, operation: str, layout: ProjectLayout, *, archive: bool) -> PackageReport:
        outcome = "error"
        try:
            report = self._run(layout, archive=archive)
            outcome = "warn" if report.warnings else "ok"
            return report
        except PackagingError as e:
            outcome = e.kind
            raise
        finally:
            inc_run(operation, outcome)

    # ------------------------------------------------------------------
    # stages
    # ------------------------------------------------------------------
    def query_attributes(self, modules: List[Module], *attributes: str) -> str:
        return self.engine.run(GetAttributesScript(modules, *attributes), self.node)

    def query_behaviours(self, module: Module) -> str:
        return self.query_attributes([module], "behaviour", "behavior")

    def _run(self, layout: ProjectLayout, *, archive: bool) -> PackageReport:
        project = layout.project
        log_banner(self.log, "packager")

        dependencies = dependencies_to_package(project)
        for foreign in foreign_dependencies_to_package(project):
            self.log.debug("Not checking non-OTP dependency %s against the .app file", foreign.artifact_id)

        modules = enumerate_modules(layout.target_ebin)
        registered = self.query_attributes(modules, "registered")
        replacements = build_replacements(project, modules, registered, dependencies)

        copied = copy_descriptor_templates(layout.ebin, layout.target_ebin, replacements)
        self.log.debug("Copied %d application resource files", copied)

        report = PackageReport(
            project_id=project.id,
            release_name=project.release_name,
            modules=[m.name for m in modules],
        )

        app_file = layout.target_app_file
        if not app_file.is_file():
            self.log.error("%s does not exist.", app_file.name)
            self.log.error("Create %s from a template containing the ${...} placeholders.", layout.ebin / app_file.name)
            raise DescriptorMissingError("No .app file found.", details=[str(app_file)])

        descriptor = self.parse_descriptor(app_file)
        report.descriptor = descriptor

        validator = ConsistencyValidator(ebin_dir=layout.target_ebin, query_behaviours=self.query_behaviours, log=self.log)
        validator.validate(
            descriptor,
            artifact_id=project.artifact_id,
            version=project.version,
            modules=modules,
            dependencies=dependencies,
            descriptor_file=app_file,
        )

        report.warnings.extend(self.check_upgrade_descriptor(layout.target_appup_file, project.version))

        if archive:
            self.archive(layout, report)
        return report

    def parse_descriptor(self, app_file: Path) -> ApplicationDescriptor:
        result = self.engine.run(CheckAppScript(app_file), self.node)
        result.log_output(self.log)
        if not result.success() or result.descriptor is None:
            self.log.error("Failed to consult file")
            log_content(self.log, logging.ERROR, app_file)
            raise DescriptorSyntaxError("Failed to consult .app file.", details=result.message.splitlines())
        return result.descriptor

    def check_upgrade_descriptor(self, appup_file: Path, version: str) -> List[str]:
        """Returns warnings; raises when an existing .appup file does not fit the project."""
        if not appup_file.is_file():
            warnings = [
                f"{appup_file.name} does not exist.",
                f"You must edit your .appup file according to {APPUP_DOC}.",
            ]
            for w in warnings:
                self.log.warning("%s", w)
            return warnings

        error = self.engine.run(CheckAppUpScript(appup_file, version), self.node)
        if error is not None:
            log_multiline(self.log, logging.ERROR, error)
            log_content(self.log, logging.ERROR, appup_file)
            self.log.error("You must edit your .appup file according to %s.", APPUP_DOC)
            raise DescriptorSyntaxError("Failed to verify .appup file.", details=error.splitlines())
        return []

    def archive(self, layout: ProjectLayout, report: PackageReport) -> None:
        archive_file = ReleaseArchiver(self.engine, self.node).create(layout.target_project, layout.archive_file)

        verification = verify_release_archive(archive_file, expected_top=layout.target_project.name)
        if not verification.get("ok"):
            raise ArchiveError(
                f"Archive {archive_file.name} failed verification.",
                details=[verification.get("error") or f"top level entries: {verification.get('top_level')}"],
            )
        try:
            metadata = write_release_metadata(
                layout.metadata_file,
                project=layout.project.artifact_id,
                version=layout.project.version,
                verification=verification,
            )
        except OSError as e:
            raise ArchiveError(f"Failed to write {layout.metadata_file}: {e}") from e

        report.archive = str(archive_file)
        report.verification = verification
        report.metadata = metadata
        self.log.info("Successfully packaged application:")
        self.log.info("%s", archive_file)
