import json

from otp_packager.core.settings import PackagerSettings
from tools.package_app import main


def test_cli_packages_project(make_project, engine, monkeypatch, capsys):
    monkeypatch.setattr(PackagerSettings, "build_engine", lambda self: engine)
    base = make_project()

    assert main([str(base)]) == 0

    out = capsys.readouterr().out
    assert "Release archive:" in out
    assert (base / "target" / "myapp-1.0.0.tar.gz").is_file()


def test_cli_validate_only_json(make_project, engine, monkeypatch, capsys):
    monkeypatch.setattr(PackagerSettings, "build_engine", lambda self: engine)
    base = make_project()

    assert main([str(base), "--validate-only", "--json"]) == 0

    report = json.loads(capsys.readouterr().out)
    assert report["descriptor"]["version"] == "1.0.0"
    assert not (base / "target" / "myapp-1.0.0.tar.gz").exists()


def test_cli_reports_failures(make_project, engine, monkeypatch, capsys):
    monkeypatch.setattr(PackagerSettings, "build_engine", lambda self: engine)
    template = "{application, myapp, [{vsn, \"0.0.1\"}, {modules, []}, {applications, []}]}."
    base = make_project(template=template)

    assert main([str(base)]) == 1

    err = capsys.readouterr().err
    assert "BUILD FAILURE: Version mismatch 1.0.0 != 0.0.1." in err
