from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable

SEPARATOR = "-" * 72

_LINE_BREAK = re.compile(r"\r?\n")


def log_banner(log: logging.Logger, title: str) -> None:
    log.info(SEPARATOR)
    log.info(" %s", " ".join(title.upper()))
    log.info(SEPARATOR)


def log_multiline(log: logging.Logger, level: int, text: str, prefix: str = "") -> None:
    """Log each line of ``text`` separately so multi-line messages stay readable."""
    for line in _LINE_BREAK.split(text):
        log.log(level, "%s%s", prefix, line)


def log_lines(log: logging.Logger, level: int, lines: Iterable[str], prefix: str = "") -> None:
    for line in lines:
        log.log(level, "%s%s", prefix, line)


def log_content(log: logging.Logger, level: int, path: Path, prefix: str = "") -> None:
    """Log the absolute path of a file followed by its content."""
    log_multiline(log, level, f"{Path(path).absolute()}:", prefix)
    try:
        log_multiline(log, level, Path(path).read_text(encoding="utf-8"), prefix)
    except OSError as e:
        log_multiline(log, level, str(e), prefix)
