import os
import tarfile
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from otp_packager.core.engine.base import ScriptEngine
from otp_packager.core.engine.terms import Atom, decode, encode
from otp_packager.core.observability.metrics import reset_metrics
from otp_packager.core.scripts.check_app import CheckAppScript
from otp_packager.core.scripts.check_appup import CheckAppUpScript
from otp_packager.core.scripts.get_attributes import GetAttributesScript
from otp_packager.core.scripts.make_tar import CreateTarScript, MakeTarScript


class FakeEngine(ScriptEngine):
    """Answers scripts the way an Erlang node would, using Python stand-ins.

    .app/.appup files are consulted with the term decoder, module attributes
    come from ``attributes`` and archives are written with tarfile.
    """

    name = "fake"

    def __init__(self, attributes: Optional[Dict[str, Dict[str, List[str]]]] = None):
        self.attributes = attributes or {}
        self.calls: List[Any] = []
        self.sources: List[str] = []
        self.fail_tar: Optional[str] = None
        self._script = None

    def run(self, script, node=None):
        self._script = script
        self.calls.append(script)
        return super().run(script, node)

    def execute(self, source: str, node: Optional[str] = None) -> Any:
        self.sources.append(source)
        script = self._script
        if isinstance(script, CheckAppScript):
            return self._check_app(script.app_file)
        if isinstance(script, CheckAppUpScript):
            return self._check_appup(script.appup_file, script.version)
        if isinstance(script, GetAttributesScript):
            values: List[str] = []
            for m in script.modules:
                attrs = self.attributes.get(m.name, {})
                for a in script.attributes:
                    values.extend(attrs.get(a, []))
            return "[" + ",".join(values) + "]"
        if isinstance(script, CreateTarScript):
            if self.fail_tar:
                return (Atom("error"), self.fail_tar)
            with tarfile.open(script.archive_file, "w:gz") as tf:
                tf.add(script.source_dir, arcname=script.source_dir.name)
            return (Atom("ok"), "")
        if isinstance(script, MakeTarScript):
            out = script.outdir / f"{script.release_file.stem}.tar.gz"
            with tarfile.open(out, "w:gz") as tf:
                tf.add(script.release_file, arcname=script.release_file.name)
            return (Atom("warn"), "no erts included")
        raise AssertionError(f"unexpected script {script!r}")

    @staticmethod
    def _check_app(app_file: Path):
        failed = lambda msg: (Atom("error"), msg, "", "", [], [], "omitted")  # noqa: E731
        try:
            term = decode(Path(app_file).read_text(encoding="utf-8"))
        except Exception as e:
            return failed(str(e))
        if not (isinstance(term, tuple) and len(term) == 3 and term[0] == "application"):
            return failed(f"expected a single application term, got {term!r}")
        props = {p[0]: p[1] for p in term[2] if isinstance(p, tuple) and len(p) == 2}
        mod = props.get("mod")
        start = str(mod[0]) if isinstance(mod, tuple) else "omitted"
        return (
            Atom("ok"),
            "",
            str(term[1]),
            props.get("vsn", "undefined"),
            [str(m) for m in props.get("modules", [])],
            [str(a) for a in props.get("applications", [])],
            start,
        )

    @staticmethod
    def _check_appup(appup_file: Path, version: str):
        term = decode(Path(appup_file).read_text(encoding="utf-8"))
        if term[0] == version:
            return Atom("ok")
        return f"Version mismatch, .appup version is {encode(term[0])} while project version is {encode(version)}."


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for key in list(os.environ):
        if key.startswith("OTPPKG_"):
            monkeypatch.delenv(key, raising=False)
    reset_metrics()


@pytest.fixture()
def engine():
    return FakeEngine()


APP_TEMPLATE = """{application, ${ARTIFACT},
 [{description, ${DESCRIPTION}},
  {id, ${ID}},
  {vsn, ${VERSION}},
  {modules, ${MODULES}},
  {registered, ${REGISTERED}},
  {applications, [${APPLICATIONS}]},
  {env, []}%(mod)s]}.
"""

PROJECT_YAML = """\
group_id: com.example
artifact_id: myapp
version: 1.0.0
description: My application
dependencies:
  - artifact_id: kernel
    kind: erlang-std
  - artifact_id: stdlib
    kind: erlang-std
%(extra)s"""


@pytest.fixture()
def make_project(tmp_path: Path):
    """Builds an OTP project directory: project.yaml, an .app template and compiled beams."""

    def _make(
        modules=("myapp_sup", "myapp_worker"),
        template: Optional[str] = None,
        start_module: Optional[str] = None,
        extra_deps: str = "",
        appup: Optional[str] = None,
    ) -> Path:
        base = tmp_path / "myapp"
        (base / "ebin").mkdir(parents=True)
        (base / "project.yaml").write_text(PROJECT_YAML % {"extra": extra_deps}, encoding="utf-8")
        mod = f",\n  {{mod, {{{start_module}, []}}}}" if start_module else ""
        (base / "ebin" / "myapp.app").write_text(template or APP_TEMPLATE % {"mod": mod}, encoding="utf-8")
        if appup is not None:
            (base / "ebin" / "myapp.appup").write_text(appup, encoding="utf-8")
        target_ebin = base / "target" / "myapp-1.0.0" / "ebin"
        target_ebin.mkdir(parents=True)
        for m in modules:
            (target_ebin / f"{m}.beam").write_bytes(b"FOR1\x00\x00\x00\x00BEAM")
        return base

    return _make


@pytest.fixture()
def client(engine):
    from otp_packager.api.endpoints.package import get_engine
    from otp_packager.api.main import app

    app.dependency_overrides[get_engine] = lambda: engine
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def engine_factory():
    return FakeEngine
