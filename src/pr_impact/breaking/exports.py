"""Lexical extraction of exported symbols from TypeScript/JavaScript source.

Each export form has its own pattern; they run over comment-stripped text and
a symbol is kept the first time its key is seen. The key is the exported
name, prefixed with ``default::`` for default exports, so that a default and
a named export of the same identifier stay distinct.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

_COMMENT_RE = re.compile(
    r"""("(?:\\.|[^"\\\n])*"|'(?:\\.|[^'\\\n])*'|`(?:\\.|[^`\\])*`)"""
    r"""|/\*[\s\S]*?\*/"""
    r"""|//[^\n]*"""
)

_SIGNATURE = r"(\([^)]*\)(?:\s*:\s*[^{;]+)?)"

EXPORT_DEFAULT_FUNCTION_RE = re.compile(
    r"export\s+default\s+(?:async\s+)?function\s*\*?\s*(\w+)\s*" + _SIGNATURE
)
EXPORT_DEFAULT_ANON_FUNCTION_RE = re.compile(
    r"export\s+default\s+(?:async\s+)?function\s*\*?\s*" + _SIGNATURE
)
EXPORT_FUNCTION_RE = re.compile(
    r"export\s+(?:declare\s+)?(?:async\s+)?function\s*\*?\s*(\w+)\s*" + _SIGNATURE
)
EXPORT_DEFAULT_CLASS_RE = re.compile(r"export\s+default\s+(?:abstract\s+)?class\s+(\w+)")
EXPORT_CLASS_RE = re.compile(r"export\s+(?:declare\s+)?(?:abstract\s+)?class\s+(\w+)")
EXPORT_VARIABLE_RE = re.compile(
    r"export\s+(?:declare\s+)?(const|let|var)\s+(\w+)\s*(?::\s*([^=;]+?))?(?:\s*=|;)"
)
EXPORT_INTERFACE_RE = re.compile(r"export\s+(?:declare\s+)?interface\s+(\w+)[^{]*\{")
EXPORT_TYPE_RE = re.compile(r"export\s+(?:declare\s+)?type\s+(\w+)\b")
EXPORT_ENUM_RE = re.compile(r"export\s+(?:declare\s+)?(?:const\s+)?enum\s+(\w+)\s*\{")
EXPORT_NAMED_RE = re.compile(r"export\s*(type\s*)?\{([^}]*)\}")
EXPORT_DEFAULT_EXPR_RE = re.compile(
    r"export\s+default\s+(?!(?:function|class|interface|type|enum|async|abstract|new)\b)(\w+)"
)

_AS_RE = re.compile(r"^(\w+)\s+as\s+(\w+)$")
_IDENT_RE = re.compile(r"^\w+$")
_WS_RE = re.compile(r"\s+")

_OPENERS = "<([{"
_CLOSERS = ">)]}"


@dataclass(frozen=True)
class ExportedSymbol:
    """One exported name of a module."""

    name: str
    kind: str  # function, class, variable, const, type, interface, enum
    signature: str | None = None
    is_default: bool = False
    # Normalized body of a type alias, interface or enum
    body: str | None = field(default=None, compare=False)

    @property
    def key(self) -> str:
        return f"default::{self.name}" if self.is_default else self.name

    @property
    def shape(self) -> str:
        """Signature, or body for type-like symbols; '' when neither is known."""
        return self.signature or self.body or ""

    def describe(self) -> str:
        parts = []
        if self.is_default:
            parts.append("default")
        parts.append(self.kind)
        parts.append(self.name)
        if self.signature:
            parts.append(self.signature)
        return " ".join(parts)


@dataclass
class ExportDiff:
    removed: list[ExportedSymbol] = field(default_factory=list)
    added: list[ExportedSymbol] = field(default_factory=list)
    modified: list[tuple[ExportedSymbol, ExportedSymbol]] = field(default_factory=list)


def strip_comments(content: str) -> str:
    """Remove line and block comments, leaving string literals intact."""
    return _COMMENT_RE.sub(lambda m: m.group(1) or "", content)


def normalize(text: str) -> str:
    return _WS_RE.sub(" ", text).strip()


def _balanced_block(text: str, open_index: int) -> str:
    """Contents of the brace block starting at `open_index` (which holds '{')."""
    depth = 0
    for i in range(open_index, len(text)):
        ch = text[i]
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[open_index + 1:i]
    return text[open_index + 1:]


def _type_alias_body(text: str, start: int) -> str:
    """Right-hand side of the type alias whose name ends at `start`.

    Skips generic parameters and the '='. The body ends at a top-level ';',
    or at a top-level line break unless the expression obviously continues
    (a union/intersection operator on either side of the break).
    """
    i = start
    while i < len(text) and text[i].isspace():
        i += 1
    if i < len(text) and text[i] == "<":
        depth = 0
        while i < len(text):
            if text[i] == "<":
                depth += 1
            elif text[i] == ">" and text[i - 1] != "=":
                depth -= 1
                if depth == 0:
                    i += 1
                    break
            i += 1
        while i < len(text) and text[i].isspace():
            i += 1
    if i < len(text) and text[i] == "=":
        i += 1
    start = i
    depth = 0
    i = start
    while i < len(text):
        ch = text[i]
        if ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS and not (ch == ">" and i > 0 and text[i - 1] == "="):
            depth -= 1
        elif depth <= 0 and ch == ";":
            return text[start:i]
        elif depth <= 0 and ch == "\n":
            before = text[start:i].rstrip()
            after = text[i + 1:].lstrip()
            if not before or before.endswith(("|", "&", "=")) or after.startswith(("|", "&")):
                i += 1
                continue
            return text[start:i]
        i += 1
    return text[start:]


def split_top_level(text: str, separators: str) -> list[str]:
    """Split on any of `separators` outside brackets, dropping empty parts."""
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    for i, ch in enumerate(text):
        if ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS and not (ch == ">" and i > 0 and text[i - 1] == "="):
            depth -= 1
        elif ch in separators and depth == 0:
            part = normalize("".join(current))
            if part:
                parts.append(part)
            current = []
            continue
        current.append(ch)
    part = normalize("".join(current))
    if part:
        parts.append(part)
    return parts


def body_members(body: str) -> list[str]:
    """Members of a type-like body: object members, or union/intersection parts."""
    stripped = body.strip()
    if stripped.startswith("{") and stripped.endswith("}"):
        return split_top_level(stripped[1:-1], ";,\n")
    if stripped.startswith("|"):
        stripped = stripped[1:]
    members = split_top_level(stripped, "|&")
    return members if members else [normalize(stripped)]


def parse_exports(content: str) -> list[ExportedSymbol]:
    """Extract exported symbols, in a stable pattern-then-position order."""
    text = strip_comments(content)
    symbols: list[ExportedSymbol] = []
    seen: set[str] = set()

    def add(sym: ExportedSymbol) -> None:
        if sym.key not in seen:
            seen.add(sym.key)
            symbols.append(sym)

    for m in EXPORT_DEFAULT_FUNCTION_RE.finditer(text):
        add(ExportedSymbol(m.group(1), "function", normalize(m.group(2)), is_default=True))

    for m in EXPORT_DEFAULT_ANON_FUNCTION_RE.finditer(text):
        add(ExportedSymbol("default", "function", normalize(m.group(1)), is_default=True))

    for m in EXPORT_FUNCTION_RE.finditer(text):
        add(ExportedSymbol(m.group(1), "function", normalize(m.group(2))))

    for m in EXPORT_DEFAULT_CLASS_RE.finditer(text):
        add(ExportedSymbol(m.group(1), "class", is_default=True))

    for m in EXPORT_CLASS_RE.finditer(text):
        add(ExportedSymbol(m.group(1), "class"))

    for m in EXPORT_VARIABLE_RE.finditer(text):
        keyword, name, annotation = m.groups()
        add(ExportedSymbol(
            name,
            "const" if keyword == "const" else "variable",
            normalize(annotation) if annotation else None,
        ))

    for m in EXPORT_INTERFACE_RE.finditer(text):
        body = _balanced_block(text, m.end() - 1)
        add(ExportedSymbol(m.group(1), "interface", body="{ " + normalize(body) + " }"))

    for m in EXPORT_TYPE_RE.finditer(text):
        add(ExportedSymbol(m.group(1), "type", body=normalize(_type_alias_body(text, m.end()))))

    for m in EXPORT_ENUM_RE.finditer(text):
        body = _balanced_block(text, m.end() - 1)
        add(ExportedSymbol(m.group(1), "enum", body="{ " + normalize(body) + " }"))

    for m in EXPORT_NAMED_RE.finditer(text):
        type_only = bool(m.group(1))
        for item in m.group(2).split(","):
            item = normalize(item)
            item_is_type = type_only
            if item.startswith("type "):
                item = item[5:].strip()
                item_is_type = True
            if not item:
                continue
            is_default = False
            as_match = _AS_RE.match(item)
            if as_match:
                exported = as_match.group(2)
                if exported == "default":
                    is_default = True
                    exported = as_match.group(1)
            else:
                exported = item
            if not _IDENT_RE.match(exported):
                continue
            add(ExportedSymbol(
                exported,
                "type" if item_is_type else "variable",
                is_default=is_default,
            ))

    for m in EXPORT_DEFAULT_EXPR_RE.finditer(text):
        add(ExportedSymbol(m.group(1), "variable", is_default=True))

    return symbols


def diff_exports(base_content: str, head_content: str) -> ExportDiff:
    """Compare the exports of two versions of a file, keyed by export key."""
    base = {s.key: s for s in parse_exports(base_content)}
    head = {s.key: s for s in parse_exports(head_content)}

    diff = ExportDiff()
    for key, before in base.items():
        after = head.get(key)
        if after is None:
            diff.removed.append(before)
        elif (
            before.kind != after.kind
            or (before.signature or "") != (after.signature or "")
            or (before.body or "") != (after.body or "")
        ):
            diff.modified.append((before, after))
    for key, after in head.items():
        if key not in base:
            diff.added.append(after)
    return diff
