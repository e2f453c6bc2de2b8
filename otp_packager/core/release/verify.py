from __future__ import annotations

import hashlib
import json
import tarfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional


def sha256_file(p: Path) -> str:
    h = hashlib.sha256()
    with Path(p).open("rb") as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b""):
            h.update(chunk)
    return h.hexdigest()


def _top_level(name: str) -> str:
    if name.startswith("./"):
        name = name[2:]
    return name.lstrip("/").split("/", 1)[0]


def verify_release_archive(
    archive_path: str | Path,
    expected_top: Optional[str] = None,
    expected_sha256: Optional[str] = None,
) -> Dict[str, Any]:
    p = Path(archive_path)
    if not p.exists():
        return {"ok": False, "error": f"artifact not found: {p}"}
    if not p.is_file():
        return {"ok": False, "error": f"artifact is not a file: {p}"}

    actual_sha = sha256_file(p)
    sha256_match = True if expected_sha256 is None else (actual_sha == expected_sha256.strip().lower())

    try:
        with tarfile.open(p, mode="r:gz") as tf:
            members = tf.getmembers()
    except (tarfile.ReadError, EOFError, OSError):
        return {"ok": False, "error": "not a gzipped tarball", "artifact_sha256": actual_sha}

    top_level: List[str] = sorted({_top_level(m.name) for m in members if _top_level(m.name)})
    layout_ok = len(top_level) == 1 and (expected_top is None or top_level[0] == expected_top)

    return {
        "ok": bool(sha256_match and layout_ok),
        "artifact": p.name,
        "artifact_path": str(p),
        "artifact_sha256": actual_sha,
        "sha256_match": sha256_match,
        "layout_ok": layout_ok,
        "top_level": top_level,
        "file_count": sum(1 for m in members if m.isfile()),
    }


def write_release_metadata(path: Path, *, project: str, version: str, verification: Dict[str, Any]) -> Dict[str, Any]:
    metadata = {
        "project": project,
        "version": version,
        "artifact": verification.get("artifact"),
        "sha256": verification.get("artifact_sha256"),
        "file_count": verification.get("file_count"),
        "built_at_utc": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
    }
    Path(path).write_text(json.dumps(metadata, indent=2, sort_keys=True), encoding="utf-8")
    return metadata
