from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, Optional

from otp_packager.core.engine.base import ScriptEngine
from otp_packager.core.errors import ArchiveError
from otp_packager.core.scripts.base import ScriptResult
from otp_packager.core.scripts.make_tar import CreateTarScript, MakeTarScript

_log = logging.getLogger("otppkg.packager")


class ReleaseArchiver:
    def __init__(self, engine: ScriptEngine, node: Optional[str] = None):
        self.engine = engine
        self.node = node

    def _check(self, result: ScriptResult, what: str) -> None:
        result.log_output(_log)
        if not result.success():
            raise ArchiveError(f"Failed to create {what}.", details=result.message.splitlines())

    def create(self, source_dir: Path, archive_file: Path) -> Path:
        """Archive ``source_dir`` so that extracting the result recreates it as the only top-level entry."""
        source_dir = Path(source_dir).absolute()
        archive_file = Path(archive_file).absolute()
        if not source_dir.is_dir():
            raise ArchiveError(f"Release directory {source_dir} does not exist.")
        try:
            archive_file.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ArchiveError(f"Cannot create {archive_file.parent}: {e}") from e

        self._check(self.engine.run(CreateTarScript(source_dir, archive_file), self.node), archive_file.name)

        if not archive_file.is_file() or archive_file.stat().st_size == 0:
            raise ArchiveError(f"Archive {archive_file} was not written.")
        return archive_file

    def create_release_tar(self, release_file: Path, outdir: Path, options: Optional[Iterable[Any]] = None) -> Path:
        """Builds ``<release>.tar.gz`` for an OTP ``.rel`` file into ``outdir``."""
        release_file = Path(release_file).absolute()
        if not release_file.is_file():
            raise ArchiveError(f"Release file {release_file} does not exist.")
        outdir = Path(outdir).absolute()
        try:
            outdir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ArchiveError(f"Cannot create {outdir}: {e}") from e

        self._check(self.engine.run(MakeTarScript(release_file, outdir, options), self.node), release_file.name)

        archive_file = outdir / f"{release_file.stem}.tar.gz"
        if not archive_file.is_file():
            raise ArchiveError(f"Release package {archive_file} was not written.")
        return archive_file
