"""
Project metadata loader.

Reads the project file of an OTP application directory. JSON is tried first,
YAML second:

    group_id: com.example
    artifact_id: myapp
    version: 1.0.0
    description: My application
    dependencies:
      - artifact_id: kernel
        kind: erlang-std
      - artifact_id: meck
        scope: test

Search order: project.json, project.yaml, project.yml
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError as PydanticValidationError

from otp_packager.core.errors import PackagingError
from otp_packager.core.project.models import ProjectModel

_log = logging.getLogger("otppkg.config")

PROJECT_FILES = ("project.json", "project.yaml", "project.yml")


class ProjectConfigError(PackagingError):
    kind = "project_config_error"


def find_project_file(project_dir: Path) -> Optional[Path]:
    for name in PROJECT_FILES:
        p = Path(project_dir) / name
        if p.is_file():
            return p
    return None


def _parse(raw_text: str, path: Path) -> Any:
    try:
        return json.loads(raw_text)
    except json.JSONDecodeError:
        pass
    try:
        return yaml.safe_load(raw_text)
    except yaml.YAMLError as exc:
        raise ProjectConfigError(f"Failed to parse project file {path} as JSON or YAML: {exc}") from exc


def load_project(path: Path) -> ProjectModel:
    """Load and validate a project file, or the first project file found in a directory."""
    p = Path(path)
    if p.is_dir():
        found = find_project_file(p)
        if found is None:
            raise ProjectConfigError(f"No project file found in {p} (looked for {', '.join(PROJECT_FILES)})")
        p = found

    try:
        raw_text = p.read_text(encoding="utf-8")
    except OSError as exc:
        raise ProjectConfigError(f"Cannot read project file {p}: {exc}") from exc

    data = _parse(raw_text, p)
    if not isinstance(data, dict):
        raise ProjectConfigError(f"Project file {p} must be a mapping, got {type(data).__name__}")

    try:
        project = ProjectModel.model_validate(data)
    except PydanticValidationError as exc:
        details = [f"{'.'.join(str(x) for x in e['loc'])}: {e['msg']}" for e in exc.errors()]
        raise ProjectConfigError(f"Invalid project file {p}", details=details) from exc

    _log.debug("Loaded project %s from %s", project.id, p)
    return project
