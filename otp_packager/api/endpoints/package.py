from __future__ import annotations

from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from otp_packager.core.engine.base import ScriptEngine
from otp_packager.core.packaging.pipeline import Packager
from otp_packager.core.project.layout import ProjectLayout
from otp_packager.core.project.loader import load_project
from otp_packager.core.settings import PackagerSettings

router = APIRouter(prefix="/api/v2/package", tags=["package"])


class PackageRequest(BaseModel):
    project_dir: str = Field(..., description="Local directory holding the project file, ebin/ and target/")
    node: Optional[str] = Field(default=None, description="Erlang node to run scripts on; defaults to OTPPKG_NODE")


def get_settings() -> PackagerSettings:
    return PackagerSettings.from_env()


def get_engine(settings: PackagerSettings = Depends(get_settings)) -> ScriptEngine:
    return settings.build_engine()


def _packager(payload: PackageRequest, engine: ScriptEngine, settings: PackagerSettings) -> tuple[Packager, ProjectLayout]:
    base = Path(payload.project_dir)
    if not base.is_dir():
        raise HTTPException(status_code=404, detail=f"Project directory not found: {base}")
    project = load_project(base)
    return Packager(engine, node=payload.node or settings.node), ProjectLayout(base_dir=base, project=project)


@router.post("/validate")
def validate(
    payload: PackageRequest,
    engine: ScriptEngine = Depends(get_engine),
    settings: PackagerSettings = Depends(get_settings),
):
    packager, layout = _packager(payload, engine, settings)
    return packager.validate(layout).to_dict()


@router.post("/build")
def build(
    payload: PackageRequest,
    engine: ScriptEngine = Depends(get_engine),
    settings: PackagerSettings = Depends(get_settings),
):
    packager, layout = _packager(payload, engine, settings)
    return packager.package(layout).to_dict()
