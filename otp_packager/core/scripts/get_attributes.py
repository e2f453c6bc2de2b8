from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, List

from otp_packager.core.engine.terms import Atom, encode, to_text
from otp_packager.core.project.models import Module
from otp_packager.core.scripts.base import Script

_SOURCE = """
Beams = %(beams)s,
Attrs = %(attributes)s,
Values = lists:flatmap(
    fun(Beam) ->
        case beam_lib:chunks(Beam, [attributes]) of
            {ok, {_, [{attributes, Found}]}} ->
                lists:flatmap(fun(K) -> lists:flatten(proplists:get_all_values(K, Found)) end, Attrs);
            _ ->
                []
        end
    end, Beams),
lists:flatten(io_lib:format("~p", [Values])).
"""


class GetAttributesScript(Script[str]):
    """Collects module attribute values from compiled binaries in a single request.

    Several attribute names may be given for the same logical attribute
    (``behaviour``/``behavior``); all of them are looked up. The result is the
    Erlang list rendering of every value found, e.g. ``[my_server,my_sup]``.
    """

    def __init__(self, modules: Iterable[Module], *attributes: str):
        if not attributes:
            raise ValueError("at least one attribute name is required")
        self.modules: List[Module] = list(modules)
        self.attributes = attributes

    def get(self) -> str:
        return _SOURCE % {
            "beams": encode([Path(m.path) for m in self.modules]),
            "attributes": encode([Atom(a) for a in self.attributes]),
        }

    def handle(self, term: Any) -> str:
        return to_text(term)
