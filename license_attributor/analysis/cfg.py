"""Target predicate parsing and evaluation for dependency edges.

Edges may be restricted to targets either by a cfg predicate or by naming a
target triple directly::

    cfg(windows)
    cfg(all(unix, not(target_os = "macos")))
    cfg(any(target_arch = "x86_64", target_pointer_width = "64"))
    x86_64-pc-windows-msvc

Grammar::

    predicate   = "cfg(" expr ")" / triple
    expr        = ident / ident "=" string / op "(" [expr ("," expr)* [","]] ")"
    op          = "all" / "any" / "not"

Facts about a target (arch, os, family, env, vendor, pointer width, endian)
are derived from its triple. Identifiers that carry no target meaning, such
as ``test``, ``debug_assertions`` or ``feature = "x"``, evaluate to false.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Union

from license_attributor.exceptions import GraphFilterError


@dataclass(frozen=True)
class CfgName:
    """A bare identifier such as ``unix``."""

    name: str


@dataclass(frozen=True)
class CfgKeyValue:
    """A ``key = "value"`` test."""

    key: str
    value: str


@dataclass(frozen=True)
class CfgAll:
    """True when every operand is true. ``all()`` is true."""

    operands: tuple[CfgExpr, ...]


@dataclass(frozen=True)
class CfgAny:
    """True when some operand is true. ``any()`` is false."""

    operands: tuple[CfgExpr, ...]


@dataclass(frozen=True)
class CfgNot:
    """Negation of a single operand."""

    operand: CfgExpr


@dataclass(frozen=True)
class CfgTriple:
    """A predicate that names a target triple directly."""

    triple: str


CfgExpr = Union[CfgName, CfgKeyValue, CfgAll, CfgAny, CfgNot]
Predicate = Union[CfgExpr, CfgTriple]


_TOKEN_RE = re.compile(
    r"""
    \s*
    (?:
        ([A-Za-z_][A-Za-z0-9_]*)     # group 1: identifier
      | "((?:[^"\\]|\\.)*)"          # group 2: string literal
      | (\()                         # group 3: left paren
      | (\))                         # group 4: right paren
      | (,)                          # group 5: comma
      | (=)                          # group 6: equals
    )
    """,
    re.VERBOSE,
)

_TRIPLE_RE = re.compile(r"^[A-Za-z0-9_.]+(?:-[A-Za-z0-9_.]+){1,3}$")

_TOK_IDENT = "IDENT"
_TOK_STRING = "STRING"
_TOK_LPAREN = "("
_TOK_RPAREN = ")"
_TOK_COMMA = ","
_TOK_EQ = "="
_TOK_EOF = "EOF"


@dataclass
class _Token:
    kind: str
    value: str
    pos: int


def _error(text: str, pos: int, detail: str) -> GraphFilterError:
    return GraphFilterError(
        f"malformed cfg predicate '{text}' at position {pos}: {detail}"
    )


def _tokenize(text: str) -> list[_Token]:
    tokens: list[_Token] = []
    pos = 0
    while pos < len(text):
        if text[pos].isspace():
            pos += 1
            continue
        m = _TOKEN_RE.match(text, pos)
        if m is None:
            raise _error(text, pos, f"unexpected character {text[pos]!r}")
        if m.group(1):
            tokens.append(_Token(_TOK_IDENT, m.group(1), m.start(1)))
        elif m.group(2) is not None:
            tokens.append(_Token(_TOK_STRING, m.group(2), m.start(2)))
        elif m.group(3):
            tokens.append(_Token(_TOK_LPAREN, "(", m.start(3)))
        elif m.group(4):
            tokens.append(_Token(_TOK_RPAREN, ")", m.start(4)))
        elif m.group(5):
            tokens.append(_Token(_TOK_COMMA, ",", m.start(5)))
        else:
            tokens.append(_Token(_TOK_EQ, "=", m.start(6)))
        pos = m.end()
    tokens.append(_Token(_TOK_EOF, "", len(text)))
    return tokens


class _Parser:
    """Recursive descent parser for cfg expressions."""

    def __init__(self, text: str, tokens: list[_Token]) -> None:
        self._text = text
        self._tokens = tokens
        self._pos = 0

    def _peek(self) -> _Token:
        return self._tokens[self._pos]

    def _advance(self) -> _Token:
        tok = self._tokens[self._pos]
        self._pos += 1
        return tok

    def _expect(self, kind: str) -> _Token:
        tok = self._peek()
        if tok.kind != kind:
            raise _error(
                self._text, tok.pos, f"expected {kind}, got {tok.kind} ({tok.value!r})"
            )
        return self._advance()

    def parse_predicate(self) -> CfgExpr:
        tok = self._expect(_TOK_IDENT)
        if tok.value != "cfg":
            raise _error(self._text, tok.pos, f"expected 'cfg', got {tok.value!r}")
        self._expect(_TOK_LPAREN)
        expr = self._parse_expr()
        self._expect(_TOK_RPAREN)
        end = self._peek()
        if end.kind != _TOK_EOF:
            raise _error(self._text, end.pos, f"unexpected trailing {end.value!r}")
        return expr

    def _parse_expr(self) -> CfgExpr:
        tok = self._expect(_TOK_IDENT)
        nxt = self._peek()
        if nxt.kind == _TOK_EQ:
            self._advance()
            value = self._expect(_TOK_STRING)
            return CfgKeyValue(tok.value, value.value)
        if nxt.kind == _TOK_LPAREN:
            if tok.value not in ("all", "any", "not"):
                raise _error(self._text, tok.pos, f"unknown operator {tok.value!r}")
            operands = self._parse_operands()
            if tok.value == "all":
                return CfgAll(operands)
            if tok.value == "any":
                return CfgAny(operands)
            if len(operands) != 1:
                raise _error(self._text, tok.pos, "not() takes exactly one operand")
            return CfgNot(operands[0])
        return CfgName(tok.value)

    def _parse_operands(self) -> tuple[CfgExpr, ...]:
        self._expect(_TOK_LPAREN)
        operands: list[CfgExpr] = []
        while self._peek().kind != _TOK_RPAREN:
            operands.append(self._parse_expr())
            if self._peek().kind == _TOK_COMMA:
                self._advance()
            elif self._peek().kind != _TOK_RPAREN:
                tok = self._peek()
                raise _error(
                    self._text, tok.pos, f"expected ',' or ')', got {tok.value!r}"
                )
        self._expect(_TOK_RPAREN)
        return tuple(operands)


def parse_cfg(text: str) -> Predicate:
    """Parse a target predicate.

    Args:
        text: Either ``cfg(...)`` or a bare target triple.

    Returns:
        The parsed predicate.

    Raises:
        GraphFilterError: If the predicate is malformed.
    """
    stripped = text.strip()
    if not stripped:
        raise _error(text, 0, "empty predicate")
    if not stripped.startswith("cfg"):
        if _TRIPLE_RE.match(stripped):
            return CfgTriple(stripped)
        raise _error(text, 0, "neither a cfg() expression nor a target triple")
    parser = _Parser(stripped, _tokenize(stripped))
    return parser.parse_predicate()


# Vendors that may appear as the second component of a triple
_VENDORS = frozenset(
    {"unknown", "pc", "apple", "sun", "nvidia", "fortanix", "uwp", "wrs", "sony"}
)

_UNIX_OSES = frozenset(
    {
        "linux", "macos", "ios", "tvos", "watchos", "android", "freebsd", "netbsd",
        "openbsd", "dragonfly", "solaris", "illumos", "haiku", "redox", "fuchsia",
        "emscripten", "hurd", "aix",
    }
)

_BIG_ENDIAN_ARCHES = frozenset(
    {"powerpc", "powerpc64", "mips", "mips64", "s390x", "sparc", "sparc64", "m68k"}
)

_OS_ALIASES = {"darwin": "macos"}


def _normalize_arch(arch: str) -> str:
    if re.match(r"^i[3-6]86$", arch):
        return "x86"
    if arch.startswith(("armv", "thumbv", "armeb")) or arch == "arm":
        return "arm"
    if arch.startswith("riscv64"):
        return "riscv64"
    if arch.startswith("riscv32"):
        return "riscv32"
    if arch == "aarch64_be":
        return "aarch64"
    if arch == "powerpc64le":
        return "powerpc64"
    if arch == "mipsel":
        return "mips"
    if arch == "mips64el":
        return "mips64"
    return arch


def _normalize_env(env: str) -> str:
    for known in ("gnu", "musl", "msvc", "sgx", "uclibc", "newlib"):
        if env.startswith(known):
            return known
    return ""


@dataclass(frozen=True)
class TargetInfo:
    """cfg facts for a single target triple."""

    triple: str
    arch: str
    vendor: str
    os: str
    env: str
    families: tuple[str, ...] = field(default_factory=tuple)
    pointer_width: str = "64"
    endian: str = "little"

    @classmethod
    def from_triple(cls, triple: str) -> TargetInfo:
        """Derive cfg facts from a target triple such as 'x86_64-pc-windows-msvc'."""
        parts = triple.split("-")
        raw_arch = parts[0]
        vendor = "unknown"
        os_name = "none"
        env = ""

        rest = parts[1:]
        if len(rest) >= 2 and rest[0] in _VENDORS:
            vendor = rest[0]
            rest = rest[1:]
        if rest:
            os_name = rest[0]
            env = rest[1] if len(rest) > 1 else ""

        os_name = _OS_ALIASES.get(os_name, os_name)
        if env.startswith("android"):
            os_name = "android"
            env = ""
        if os_name == "wasi":
            env = ""

        arch = _normalize_arch(raw_arch)

        families: list[str] = []
        if os_name == "windows":
            families.append("windows")
        elif os_name in _UNIX_OSES:
            families.append("unix")
        if arch in ("wasm32", "wasm64"):
            families.append("wasm")

        if "64" in raw_arch or raw_arch.startswith("s390x"):
            pointer_width = "64"
        elif raw_arch in ("avr", "msp430"):
            pointer_width = "16"
        else:
            pointer_width = "32"

        big_endian = (
            raw_arch in _BIG_ENDIAN_ARCHES
            or raw_arch.endswith("_be")
            or raw_arch.startswith("armeb")
        )
        endian = "big" if big_endian else "little"

        return cls(
            triple=triple,
            arch=arch,
            vendor=vendor,
            os=os_name,
            env=_normalize_env(env),
            families=tuple(families),
            pointer_width=pointer_width,
            endian=endian,
        )

    def has_key_value(self, key: str, value: str) -> bool:
        """Evaluate a ``key = "value"`` test against this target."""
        if key == "target_family":
            return value in self.families
        facts = {
            "target_arch": self.arch,
            "target_os": self.os,
            "target_env": self.env,
            "target_vendor": self.vendor,
            "target_pointer_width": self.pointer_width,
            "target_endian": self.endian,
        }
        return facts.get(key) == value

    def has_name(self, name: str) -> bool:
        """Evaluate a bare identifier against this target."""
        if name in ("unix", "windows", "wasm"):
            return name in self.families
        return False


def evaluate(expr: Predicate, target: TargetInfo) -> bool:
    """Evaluate a parsed predicate for a target."""
    if isinstance(expr, CfgTriple):
        return expr.triple == target.triple
    if isinstance(expr, CfgName):
        return target.has_name(expr.name)
    if isinstance(expr, CfgKeyValue):
        return target.has_key_value(expr.key, expr.value)
    if isinstance(expr, CfgAll):
        return all(evaluate(op, target) for op in expr.operands)
    if isinstance(expr, CfgAny):
        return any(evaluate(op, target) for op in expr.operands)
    return not evaluate(expr.operand, target)


class CfgPredicate:
    """A parsed target predicate that can be matched against target triples."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.expr = parse_cfg(text)

    def matches(self, target: Union[str, TargetInfo]) -> bool:
        if isinstance(target, str):
            target = TargetInfo.from_triple(target)
        return evaluate(self.expr, target)

    def matches_any(self, targets: list[TargetInfo]) -> bool:
        """True if the predicate holds for at least one of the targets."""
        return any(self.matches(target) for target in targets)

    def __repr__(self) -> str:
        return f"CfgPredicate({self.text!r})"
