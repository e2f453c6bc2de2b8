from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from otp_packager.core.engine.terms import encode, to_text, to_text_list
from otp_packager.core.errors import TermDecodeError
from otp_packager.core.project.models import OMITTED, ApplicationDescriptor
from otp_packager.core.scripts.base import Script, ScriptResult, ScriptStatus

_SOURCE = """
AppFile = %(app_file)s,
Failed = fun(Msg) -> {error, Msg, "", "", [], [], "omitted"} end,
case file:consult(AppFile) of
    {ok, [{application, Name, Props}]} when is_atom(Name), is_list(Props) ->
        Vsn = proplists:get_value(vsn, Props, "undefined"),
        Modules = [atom_to_list(M) || M <- proplists:get_value(modules, Props, []), is_atom(M)],
        Apps = [atom_to_list(A) || A <- proplists:get_value(applications, Props, []), is_atom(A)],
        Start = case proplists:get_value(mod, Props) of
                    {Mod, _} when is_atom(Mod) -> atom_to_list(Mod);
                    _ -> "omitted"
                end,
        {ok, "", atom_to_list(Name), Vsn, Modules, Apps, Start};
    {ok, Other} ->
        Failed(lists:flatten(io_lib:format("expected a single application term, got ~p", [Other])));
    {error, Reason} ->
        Failed(lists:flatten(file:format_error(Reason)))
end.
"""


@dataclass(frozen=True)
class CheckAppResult(ScriptResult):
    descriptor: Optional[ApplicationDescriptor] = None


class CheckAppScript(Script[CheckAppResult]):
    """Consults an application resource file and extracts the fields the validator needs.

    A successful result only means the file holds a well-formed
    ``{application, Name, Props}`` term.
    """

    def __init__(self, app_file: Path):
        self.app_file = Path(app_file)

    def get(self) -> str:
        return _SOURCE % {"app_file": encode(self.app_file)}

    def handle(self, term: Any) -> CheckAppResult:
        if not isinstance(term, tuple) or len(term) != 7:
            raise TermDecodeError(f"unexpected check_app result: {term!r}")
        level, message, name, vsn, modules, apps, start = term
        status = ScriptStatus.parse(level)
        if not ScriptResult(status).success():
            return CheckAppResult(status=status, message=to_text(message))

        descriptor = ApplicationDescriptor(
            name=to_text(name),
            version=to_text(vsn),
            modules=tuple(to_text_list(modules)),
            applications=tuple(to_text_list(apps)),
            start_module=to_text(start) or OMITTED,
        )
        return CheckAppResult(status=status, message=to_text(message), descriptor=descriptor)
