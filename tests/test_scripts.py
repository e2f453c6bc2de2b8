import logging
from pathlib import Path

import pytest

from otp_packager.core.engine.terms import Atom
from otp_packager.core.errors import TermDecodeError
from otp_packager.core.project.models import OMITTED, Module
from otp_packager.core.scripts.base import ScriptResult, ScriptStatus, log_level_for, status_result
from otp_packager.core.scripts.check_app import CheckAppScript
from otp_packager.core.scripts.check_appup import CheckAppUpScript
from otp_packager.core.scripts.get_attributes import GetAttributesScript
from otp_packager.core.scripts.make_tar import CreateTarScript, MakeTarScript


@pytest.mark.parametrize(
    "status, success, level",
    [
        ("ok", True, logging.INFO),
        ("warn", True, logging.WARNING),
        ("error", False, logging.ERROR),
        ("debug", False, logging.DEBUG),
    ],
)
def test_status_table(status, success, level):
    s = ScriptStatus.parse(Atom(status))
    assert ScriptResult(status=s).success() is success
    assert log_level_for(s) == level


def test_unknown_status_logs_at_info_but_fails():
    s = ScriptStatus.parse(Atom("badrpc"))
    assert s is ScriptStatus.UNKNOWN
    assert log_level_for(s) == logging.INFO
    assert not status_result((Atom("badrpc"), "nodedown")).success()


def test_check_app_handle_unknown_status_has_no_descriptor():
    term = (Atom("badrpc"), "nodedown", "myapp", "1.0.0", [], [], "omitted")
    result = CheckAppScript(Path("x.app")).handle(term)
    assert not result.success()
    assert result.descriptor is None
    assert result.message == "nodedown"


def test_log_output_skips_ok_messages(caplog):
    caplog.set_level(logging.DEBUG, logger="t")
    log = logging.getLogger("t")
    ScriptResult(ScriptStatus.OK, "quiet").log_output(log)
    ScriptResult(ScriptStatus.WARN, "line one\nline two").log_output(log)
    assert "quiet" not in caplog.text
    warnings = [r.getMessage() for r in caplog.records if r.levelno == logging.WARNING]
    assert warnings == ["line one", "line two"]


def test_status_result_requires_pair():
    assert status_result((Atom("error"), "boom")) == ScriptResult(ScriptStatus.ERROR, "boom")
    with pytest.raises(TermDecodeError):
        status_result(Atom("ok"))


def test_check_app_script_embeds_escaped_path():
    script = CheckAppScript(Path("/tmp/it's \"here\"/myapp.app"))
    assert '"/tmp/it\'s \\"here\\"/myapp.app"' in script.get()
    assert "file:consult(AppFile)" in script.get()


def test_check_app_handle_success():
    term = (Atom("ok"), [], "myapp", "1.0.0", ["a", "b"], ["kernel", "stdlib"], "myapp_app")
    result = CheckAppScript(Path("x.app")).handle(term)
    assert result.success()
    d = result.descriptor
    assert (d.name, d.version, d.modules, d.applications, d.start_module) == (
        "myapp",
        "1.0.0",
        ("a", "b"),
        ("kernel", "stdlib"),
        "myapp_app",
    )


def test_check_app_handle_empty_lists_and_omitted_start():
    result = CheckAppScript(Path("x.app")).handle((Atom("ok"), [], "myapp", "1.0.0", [], [], "omitted"))
    assert result.descriptor.modules == ()
    assert result.descriptor.start_module == OMITTED
    assert not result.descriptor.has_start_module()


def test_check_app_handle_error_has_no_descriptor():
    result = CheckAppScript(Path("x.app")).handle((Atom("error"), "syntax error before: ']'", [], [], [], [], "omitted"))
    assert not result.success()
    assert result.descriptor is None
    assert "syntax error" in result.message


def test_check_app_handle_rejects_unexpected_shape():
    with pytest.raises(TermDecodeError):
        CheckAppScript(Path("x.app")).handle((Atom("ok"), "too short"))


def test_check_appup_script():
    script = CheckAppUpScript(Path("/x/myapp.appup"), "1.0.0")
    assert 'Version = "1.0.0"' in script.get()
    assert script.handle(Atom("ok")) is None
    assert script.handle("Version mismatch") == "Version mismatch"
    assert script.handle("") is None


def test_get_attributes_is_one_batched_request():
    modules = [Module(name=n, path=Path(f"/ebin/{n}.beam")) for n in ("a", "b", "c")]
    script = GetAttributesScript(modules, "behaviour", "behavior")
    source = script.get()
    assert '["/ebin/a.beam", "/ebin/b.beam", "/ebin/c.beam"]' in source
    assert "[behaviour, behavior]" in source
    assert script.handle("[application]") == "[application]"


def test_get_attributes_requires_attribute_names():
    with pytest.raises(ValueError):
        GetAttributesScript([])


def test_create_tar_script_names_single_top_level_entry():
    source = CreateTarScript(Path("/t/myapp-1.0.0"), Path("/t/myapp-1.0.0.tar.gz")).get()
    assert 'Entries = [{"myapp-1.0.0", "/t/myapp-1.0.0"}]' in source
    assert "[compressed]" in source


def test_make_tar_script_strips_rel_suffix_and_encodes_options():
    script = MakeTarScript(Path("/r/myrel-1.rel"), Path("/out"), [(Atom("erts"), "/usr/lib/erlang")])
    source = script.get()
    assert 'Rel = "/r/myrel-1"' in source
    assert 'Opts = [{erts, "/usr/lib/erlang"}]' in source
    assert script.handle((Atom("warn"), "w")).success()
