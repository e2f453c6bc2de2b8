from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from otp_packager.core.project.models import ProjectModel


@dataclass(frozen=True)
class ProjectLayout:
    """Directory conventions of a packaged OTP application.

    <base>/ebin/                          descriptor templates (.app, .appup)
    <base>/target/<artifact>-<vsn>/       release directory that gets archived
    <base>/target/<artifact>-<vsn>/ebin/  compiled modules and filled descriptors
    <base>/target/<artifact>-<vsn>.tar.gz release archive
    """

    base_dir: Path
    project: ProjectModel

    @property
    def ebin(self) -> Path:
        return self.base_dir / "ebin"

    @property
    def target(self) -> Path:
        return self.base_dir / "target"

    @property
    def target_project(self) -> Path:
        return self.target / self.project.release_name

    @property
    def target_ebin(self) -> Path:
        return self.target_project / "ebin"

    @property
    def target_app_file(self) -> Path:
        return self.target_ebin / f"{self.project.artifact_id}.app"

    @property
    def target_appup_file(self) -> Path:
        return self.target_ebin / f"{self.project.artifact_id}.appup"

    @property
    def archive_file(self) -> Path:
        return self.target / f"{self.project.release_name}.tar.gz"

    @property
    def metadata_file(self) -> Path:
        return self.target / f"{self.project.release_name}.release_metadata.json"
