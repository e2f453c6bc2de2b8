from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

from otp_packager.core.engine.terms import Atom, encode, to_text
from otp_packager.core.scripts.base import Script

_SOURCE = """
AppUpFile = %(appup_file)s,
Version = %(version)s,
case file:consult(AppUpFile) of
    {ok, [{Version, Up, Down}]} when is_list(Up), is_list(Down) ->
        ok;
    {ok, [{Other, Up, Down}]} when is_list(Up), is_list(Down) ->
        lists:flatten(io_lib:format("Version mismatch, .appup version is ~p while project version is ~p.", [Other, Version]));
    {ok, Other} ->
        lists:flatten(io_lib:format("Expected a single {Vsn, UpFrom, DownTo} term, got ~p.", [Other]));
    {error, Reason} ->
        lists:flatten(file:format_error(Reason))
end.
"""

_NO_ERROR = {"ok", "undefined", "null"}


class CheckAppUpScript(Script[Optional[str]]):
    """Checks an upgrade descriptor against the current project version.

    The result is ``None`` when the file is fine, otherwise the diagnostic text.
    """

    def __init__(self, appup_file: Path, version: str):
        self.appup_file = Path(appup_file)
        self.version = version

    def get(self) -> str:
        return _SOURCE % {"appup_file": encode(self.appup_file), "version": encode(self.version)}

    def handle(self, term: Any) -> Optional[str]:
        if term is None or (isinstance(term, Atom) and term in _NO_ERROR):
            return None
        error = to_text(term).strip()
        return error or None
