from __future__ import annotations

import logging
import os
import subprocess
import uuid
from typing import Any, List, Optional

from otp_packager.core.engine.base import ScriptEngine
from otp_packager.core.engine.terms import Atom, decode, encode
from otp_packager.core.errors import EngineExecutionError

_log = logging.getLogger("otppkg.engine")

_WRAPPER = (
    "Src = {source}, "
    "{{ok, Toks, _}} = erl_scan:string(Src), "
    "{{ok, Exprs}} = erl_parse:parse_exprs(Toks), "
    "R = case {node} of "
    "undefined -> element(2, erl_eval:exprs(Exprs, [])); "
    "Node -> case rpc:call(Node, erl_eval, exprs, [Exprs, []]) of "
    "{{badrpc, Reason}} -> io:format(standard_error, \"badrpc: ~p~n\", [Reason]), halt(2); "
    "{{value, V, _}} -> V "
    "end "
    "end, "
    "io:format(\"~p.~n\", [R]), "
    "halt(0)."
)


def build_eval_expression(source: str, node: Optional[str]) -> str:
    return _WRAPPER.format(
        source=encode(source),
        node=encode(Atom(node)) if node else "undefined",
    )


def helper_node_name() -> str:
    # one name per call; concurrent helpers from the same process must not clash
    return f"otppkg_{os.getpid()}_{uuid.uuid4().hex[:8]}"

class ErlShellEngine(ScriptEngine):
    """Runs each script in a short-lived ``erl -noshell`` process.

    With a target node the expressions are shipped there through
    ``rpc:call/4``; without one they are evaluated in the helper process.
    """

    name = "erl"

    def __init__(self, *, erl: str = "erl", cookie: Optional[str] = None, timeout: Optional[float] = None):
        self.erl = erl
        self.cookie = cookie
        self.timeout = timeout

    def command(self, source: str, node: Optional[str] = None) -> List[str]:
        cmd = [self.erl, "-noshell", "-hidden"]
        if node:
            host = node.split("@", 1)[1] if "@" in node else None
            self_name = helper_node_name()
            if host and "." in host:
                cmd += ["-name", f"{self_name}@{host}"]
            else:
                cmd += ["-sname", self_name]
            if self.cookie:
                cmd += ["-setcookie", self.cookie]
        cmd += ["-eval", build_eval_expression(source, node)]
        return cmd

    def execute(self, source: str, node: Optional[str] = None) -> Any:
        cmd = self.command(source, node)
        _log.debug("Executing script on %s", node or "local helper node")
        try:
            r = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout)
        except FileNotFoundError as e:
            raise EngineExecutionError(f"erlang runtime not found: {self.erl}") from e
        except subprocess.TimeoutExpired as e:
            raise EngineExecutionError(f"script execution timed out after {self.timeout}s") from e

        if r.returncode != 0:
            detail = (r.stderr or r.stdout or "").strip()
            raise EngineExecutionError(
                f"script execution failed with exit code {r.returncode}",
                details=detail.splitlines(),
            )
        return decode(r.stdout)
