from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Optional, TypeVar

if TYPE_CHECKING:
    from otp_packager.core.scripts.base import Script

T = TypeVar("T")


class ScriptEngine(ABC):
    name: str

    @abstractmethod
    def execute(self, source: str, node: Optional[str] = None) -> Any:
        """Evaluate Erlang expressions on ``node`` and return the decoded result term.

        Blocks until the engine answers. Raises EngineExecutionError when the
        engine process or the remote call fails.
        """

    def run(self, script: "Script[T]", node: Optional[str] = None) -> T:
        return script.handle(self.execute(script.get(), node))
