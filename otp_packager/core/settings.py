"""
Runtime settings, read from the environment.

    OTPPKG_ENGINE          script engine registry key (default: erl)
    OTPPKG_ERL             erl executable used by the erl engine (default: erl)
    OTPPKG_NODE            node to evaluate scripts on (default: local helper node)
    OTPPKG_COOKIE          distribution cookie for OTPPKG_NODE
    OTPPKG_ENGINE_TIMEOUT  seconds before a script call is abandoned (default: none)
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

from otp_packager.core.engine import ENGINES, ScriptEngine
from otp_packager.core.errors import PackagingError

_log = logging.getLogger("otppkg.config")


def _env(name: str) -> Optional[str]:
    value = (os.getenv(name) or "").strip()
    return value or None


@dataclass(frozen=True)
class PackagerSettings:
    engine: str = "erl"
    erl: str = "erl"
    node: Optional[str] = None
    cookie: Optional[str] = None
    engine_timeout: Optional[float] = None

    @classmethod
    def from_env(cls) -> "PackagerSettings":
        timeout_raw = _env("OTPPKG_ENGINE_TIMEOUT")
        timeout: Optional[float] = None
        if timeout_raw is not None:
            try:
                timeout = float(timeout_raw)
            except ValueError:
                _log.warning("Ignoring invalid OTPPKG_ENGINE_TIMEOUT %r", timeout_raw)
        return cls(
            engine=_env("OTPPKG_ENGINE") or "erl",
            erl=_env("OTPPKG_ERL") or "erl",
            node=_env("OTPPKG_NODE"),
            cookie=_env("OTPPKG_COOKIE"),
            engine_timeout=timeout,
        )

    def build_engine(self) -> ScriptEngine:
        factory = ENGINES.get(self.engine)
        if factory is None:
            raise PackagingError(f"Unknown script engine {self.engine!r}, expected one of {sorted(ENGINES)}")
        return factory(erl=self.erl, cookie=self.cookie, timeout=self.engine_timeout)
