from typing import Callable, Dict

from .base import ScriptEngine
from .erl_shell import ErlShellEngine

ENGINES: Dict[str, Callable[..., ScriptEngine]] = {
    "erl": ErlShellEngine,
}
