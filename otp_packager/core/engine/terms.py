"""
Erlang term codec.

Script arguments are never spliced into Erlang source as raw text. Every value
goes through ``encode`` which renders a literal with structural escaping:

    str        -> "string"
    Atom       -> 'atom'
    bool       -> true | false
    None       -> undefined
    int/float  -> number
    list       -> [..]
    tuple      -> {..}
    Path       -> "string" (absolute posix form)

``decode`` parses the text an engine prints with ``io:format("~p.~n", [R])``
back into Python values: atoms come back as ``Atom`` (a ``str`` subclass),
strings and string binaries as ``str``, tuples as ``tuple``.
"""
from __future__ import annotations

import re
from pathlib import Path, PurePath
from typing import Any, List, Tuple

from otp_packager.core.errors import TermDecodeError


class Atom(str):
    """An Erlang atom. Compares equal to its plain string name."""

    def __repr__(self) -> str:
        return f"Atom({str.__repr__(self)})"


_UNQUOTED_ATOM = re.compile(r"^[a-z][A-Za-z0-9_@]*$")
_RESERVED = {
    "after", "and", "andalso", "band", "begin", "bnot", "bor", "bsl", "bsr",
    "bxor", "case", "catch", "cond", "div", "end", "fun", "if", "let", "not",
    "of", "or", "orelse", "receive", "rem", "try", "when", "xor",
}

_ESCAPES_OUT = {
    "\\": "\\\\",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\b": "\\b",
    "\f": "\\f",
    "\v": "\\v",
    "\x1b": "\\e",
    "\x7f": "\\d",
}


def _escape(text: str, quote: str) -> str:
    out: List[str] = []
    for ch in text:
        if ch == quote:
            out.append("\\" + quote)
        elif ch in _ESCAPES_OUT:
            out.append(_ESCAPES_OUT[ch])
        elif ord(ch) < 0x20:
            out.append("\\x{%X}" % ord(ch))
        else:
            out.append(ch)
    return "".join(out)


def encode_atom(name: str) -> str:
    if _UNQUOTED_ATOM.match(name) and name not in _RESERVED:
        return name
    return "'" + _escape(name, "'") + "'"


def encode(value: Any) -> str:
    if isinstance(value, Atom):
        return encode_atom(str(value))
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "undefined"
    if isinstance(value, PurePath):
        return encode(Path(value).absolute().as_posix())
    if isinstance(value, str):
        return '"' + _escape(value, '"') + '"'
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, tuple):
        return "{" + ", ".join(encode(v) for v in value) + "}"
    if isinstance(value, (list, set, frozenset)):
        items = sorted(value) if isinstance(value, (set, frozenset)) else value
        return "[" + ", ".join(encode(v) for v in items) + "]"
    raise TypeError(f"cannot encode {type(value).__name__} as an Erlang term")


# ---------------------------------------------------------------------------
# decoding
# ---------------------------------------------------------------------------

_TOKEN = re.compile(
    r"""
    (?P<ws>\s+|%[^\n]*)
  | (?P<float>-?\d+\.\d+(?:[eE][+-]?\d+)?)
  | (?P<int>-?\d+\#[0-9A-Za-z]+|-?\d+)
  | (?P<char>\$(?:\\.|.))
  | (?P<string>"(?:[^"\\]|\\.)*")
  | (?P<qatom>'(?:[^'\\]|\\.)*')
  | (?P<atom>[a-z][A-Za-z0-9_@]*)
  | (?P<open_bin><<)
  | (?P<close_bin>>>)
  | (?P<punct>[{}\[\],|.])
    """,
    re.VERBOSE | re.DOTALL,
)

_ESCAPES_IN = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "e": "\x1b",
    "d": "\x7f",
    "s": " ",
    "0": "\0",
}


def _unescape(body: str) -> str:
    out: List[str] = []
    i = 0
    while i < len(body):
        ch = body[i]
        if ch != "\\":
            out.append(ch)
            i += 1
            continue
        i += 1
        if i >= len(body):
            raise TermDecodeError("dangling escape in quoted term")
        esc = body[i]
        if esc in "01234567":
            m = re.match(r"[0-7]{1,3}", body[i:])
            out.append(chr(int(m.group(0), 8)))  # type: ignore[union-attr]
            i += len(m.group(0))  # type: ignore[union-attr]
            continue
        if esc == "x":
            m = re.match(r"x\{([0-9A-Fa-f]+)\}|x([0-9A-Fa-f]{2})", body[i:])
            if not m:
                raise TermDecodeError(f"bad hex escape in {body!r}")
            out.append(chr(int(m.group(1) or m.group(2), 16)))
            i += len(m.group(0))
            continue
        if esc == "^" and i + 1 < len(body):
            out.append(chr(ord(body[i + 1]) % 32))
            i += 2
            continue
        out.append(_ESCAPES_IN.get(esc, esc))
        i += 1
    return "".join(out)


def _tokenize(text: str) -> List[Tuple[str, str]]:
    tokens: List[Tuple[str, str]] = []
    pos = 0
    while pos < len(text):
        m = _TOKEN.match(text, pos)
        if not m:
            raise TermDecodeError(f"unexpected input at offset {pos}: {text[pos:pos + 20]!r}")
        kind = m.lastgroup or ""
        if kind != "ws":
            tokens.append((kind, m.group(0)))
        pos = m.end()
    return tokens


class _Parser:
    def __init__(self, tokens: List[Tuple[str, str]]):
        self.tokens = tokens
        self.pos = 0

    def peek(self) -> Tuple[str, str]:
        if self.pos >= len(self.tokens):
            return ("eof", "")
        return self.tokens[self.pos]

    def take(self) -> Tuple[str, str]:
        tok = self.peek()
        if tok[0] == "eof":
            raise TermDecodeError("unexpected end of term")
        self.pos += 1
        return tok

    def expect(self, value: str) -> None:
        kind, text = self.take()
        if text != value:
            raise TermDecodeError(f"expected {value!r}, got {text!r}")

    def term(self) -> Any:
        kind, text = self.take()
        if kind == "int":
            if "#" in text:
                base, digits = text.split("#", 1)
                sign = -1 if base.startswith("-") else 1
                return sign * int(digits, abs(int(base)))
            return int(text)
        if kind == "float":
            return float(text)
        if kind == "char":
            return ord(_unescape(text[1:]))
        if kind == "string":
            parts = [_unescape(text[1:-1])]
            # ~p splits long strings into adjacent literals
            while self.peek()[0] == "string":
                parts.append(_unescape(self.take()[1][1:-1]))
            return "".join(parts)
        if kind == "qatom":
            return Atom(_unescape(text[1:-1]))
        if kind == "atom":
            return Atom(text)
        if kind == "open_bin":
            return self.binary()
        if text == "{":
            return tuple(self.sequence("}"))
        if text == "[":
            return self.sequence("]")
        raise TermDecodeError(f"unexpected token {text!r}")

    def sequence(self, close: str) -> List[Any]:
        items: List[Any] = []
        if self.peek()[1] == close:
            self.take()
            return items
        while True:
            items.append(self.term())
            kind, text = self.take()
            if text == close:
                return items
            if text == "|":
                raise TermDecodeError("improper lists are not supported")
            if text != ",":
                raise TermDecodeError(f"expected ',' or {close!r}, got {text!r}")

    def binary(self) -> Any:
        if self.peek()[0] == "close_bin":
            self.take()
            return ""
        if self.peek()[0] == "string":
            value = self.term()
            self.expect(">>")
            return value
        raw = bytearray()
        while True:
            kind, text = self.take()
            if kind != "int":
                raise TermDecodeError(f"unsupported binary segment {text!r}")
            raw.append(int(text))
            kind, text = self.take()
            if kind == "close_bin":
                return bytes(raw)
            if text != ",":
                raise TermDecodeError(f"expected ',' in binary, got {text!r}")


def decode(text: str) -> Any:
    """Parse a single printed Erlang term; a trailing full stop is optional."""
    tokens = _tokenize(text)
    if tokens and tokens[-1] == ("punct", "."):
        tokens = tokens[:-1]
    if not tokens:
        raise TermDecodeError("empty term")
    parser = _Parser(tokens)
    value = parser.term()
    if parser.peek()[0] != "eof":
        raise TermDecodeError(f"trailing input after term: {parser.peek()[1]!r}")
    return value


def to_text(value: Any) -> str:
    """Flatten a decoded atom, string, binary or charlist into a plain string."""
    if isinstance(value, str):
        return str(value)
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, list) and all(isinstance(x, int) for x in value):
        return "".join(chr(x) for x in value)
    if isinstance(value, list):
        return "".join(to_text(x) for x in value)
    return str(value)


def to_text_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        raise TermDecodeError(f"expected a list, got {type(value).__name__}")
    return [to_text(x) for x in value]
