from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Optional

from otp_packager.core.engine.terms import encode
from otp_packager.core.scripts.base import Script, ScriptResult, status_result

_TAR_SOURCE = """
Archive = %(archive)s,
Entries = [{%(name)s, %(source)s}],
case erl_tar:create(Archive, Entries, [compressed]) of
    ok -> {ok, ""};
    {error, Reason} -> {error, lists:flatten(erl_tar:format_error(Reason))}
end.
"""

_RELEASE_SOURCE = """
Rel = %(rel)s,
OutDir = %(outdir)s,
Opts = %(options)s,
case systools:make_tar(Rel, [{outdir, OutDir}, silent | Opts]) of
    ok -> {ok, ""};
    {ok, _, []} -> {ok, ""};
    {ok, Mod, Warnings} -> {warn, lists:flatten(Mod:format_warning(Warnings))};
    {error, Mod, Error} -> {error, lists:flatten(Mod:format_error(Error))};
    error -> {error, "systools:make_tar/2 failed"}
end.
"""


class CreateTarScript(Script[ScriptResult]):
    """Packs a directory into a gzip tar whose only top-level entry is that directory."""

    def __init__(self, source_dir: Path, archive_file: Path):
        self.source_dir = Path(source_dir)
        self.archive_file = Path(archive_file)

    def get(self) -> str:
        return _TAR_SOURCE % {
            "archive": encode(self.archive_file),
            "name": encode(self.source_dir.name),
            "source": encode(self.source_dir),
        }

    def handle(self, term: Any) -> ScriptResult:
        return status_result(term)


class MakeTarScript(Script[ScriptResult]):
    """Builds an OTP release package from a ``.rel`` file using ``systools:make_tar/2``.

    ``options`` are extra ``systools`` options as encodable values, for
    example ``[(Atom("erts"), "/usr/lib/erlang")]``.
    """

    def __init__(self, release_file: Path, outdir: Path, options: Optional[Iterable[Any]] = None):
        self.release_file = Path(release_file)
        self.outdir = Path(outdir)
        self.options = list(options or [])

    def get(self) -> str:
        rel = self.release_file.absolute().as_posix()
        if rel.endswith(".rel"):
            rel = rel[: -len(".rel")]
        return _RELEASE_SOURCE % {
            "rel": encode(rel),
            "outdir": encode(self.outdir),
            "options": encode(self.options),
        }

    def handle(self, term: Any) -> ScriptResult:
        return status_result(term)
