"""Structural comparison of function and variable signatures.

Signatures look like ``(a: string, b?: number): boolean`` for functions and
like a bare type annotation for variables. Parameters are split at top-level
commas so generics such as ``Map<string, number>`` stay intact.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from pr_impact.breaking.exports import normalize, split_top_level
from pr_impact.models import Severity


@dataclass(frozen=True)
class Parameter:
    name: str
    type: str | None
    optional: bool = False
    rest: bool = False


@dataclass(frozen=True)
class ParsedSignature:
    params: list[Parameter] = field(default_factory=list)
    return_type: str | None = None


@dataclass(frozen=True)
class SignatureDiff:
    changed: bool
    details: str
    severity: Severity = Severity.LOW


def _split_at_top_level(text: str, separator: str) -> tuple[str, str | None]:
    """Split once at the first top-level `separator`."""
    depth = 0
    for i, ch in enumerate(text):
        if ch in "<([{":
            depth += 1
        elif ch in ">)]}" and not (ch == ">" and i > 0 and text[i - 1] == "="):
            depth -= 1
        elif ch == separator and depth == 0:
            if separator == "=" and i + 1 < len(text) and text[i + 1] == ">":
                continue
            return text[:i], text[i + 1:]
    return text, None


def parse_parameter(raw: str) -> Parameter:
    text = normalize(raw)
    rest = text.startswith("...")
    if rest:
        text = text[3:].strip()
    text, default = _split_at_top_level(text, "=")
    name, type_ = _split_at_top_level(text.strip(), ":")
    name = name.strip()
    optional = default is not None or rest or name.endswith("?")
    return Parameter(
        name=name.rstrip("?").strip(),
        type=normalize(type_) if type_ is not None else None,
        optional=optional,
        rest=rest,
    )


def parse_signature(signature: str) -> ParsedSignature | None:
    """Parse a function signature; None if it is not a parameter list."""
    text = normalize(signature)
    if not text.startswith("("):
        return None

    depth = 0
    close = -1
    for i, ch in enumerate(text):
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                close = i
                break
    if close == -1:
        return ParsedSignature(params=[parse_parameter(p) for p in split_top_level(text[1:], ",")])

    params = [parse_parameter(p) for p in split_top_level(text[1:close], ",")]
    rest = text[close + 1:].strip()
    return_type = normalize(rest[1:]) if rest.startswith(":") else None
    return ParsedSignature(params=params, return_type=return_type or None)


def _max(a: Severity, b: Severity) -> Severity:
    return a if a.rank >= b.rank else b


def diff_signatures(before: str | None, after: str | None) -> SignatureDiff:
    """Describe how a signature changed and how severe that is for callers.

    High: a parameter removed, a required parameter added, a parameter type
    changed, or an optional parameter made required. Medium: return type
    changed or removed, a variable's type changed, or a change that cannot
    be classified structurally. Low: additive or cosmetic changes.
    """
    if before is None and after is None:
        return SignatureDiff(False, "no signatures to compare")
    if before is None:
        return SignatureDiff(True, "signature added", Severity.LOW)
    if after is None:
        return SignatureDiff(True, "signature removed", Severity.MEDIUM)

    norm_before, norm_after = normalize(before), normalize(after)
    if norm_before == norm_after:
        return SignatureDiff(False, "signatures are identical")

    base = parse_signature(norm_before)
    head = parse_signature(norm_after)
    if base is None or head is None:
        if base is None and head is None:
            return SignatureDiff(
                True,
                f"type changed from '{norm_before}' to '{norm_after}'",
                Severity.MEDIUM,
            )
        return SignatureDiff(True, "signature changed", Severity.MEDIUM)

    differences: list[str] = []
    severity = Severity.LOW

    base_count, head_count = len(base.params), len(head.params)
    if base_count != head_count:
        differences.append(f"parameter count changed from {base_count} to {head_count}")
    if head_count < base_count:
        severity = Severity.HIGH
    for param in head.params[base_count:]:
        if not param.optional:
            differences.append(f"required parameter '{param.name}' added")
            severity = Severity.HIGH
        else:
            differences.append(f"optional parameter '{param.name}' added")

    for old, new in zip(base.params, head.params):
        if old.type != new.type:
            differences.append(
                f"parameter '{old.name}' type changed from '{old.type or 'any'}' "
                f"to '{new.type or 'any'}'"
            )
            severity = Severity.HIGH
        elif old.name != new.name:
            differences.append(f"parameter '{old.name}' renamed to '{new.name}'")
        if old.optional and not new.optional:
            differences.append(f"parameter '{new.name}' is now required")
            severity = Severity.HIGH

    if base.return_type != head.return_type:
        if base.return_type is None:
            differences.append(f"return type added: '{head.return_type}'")
        elif head.return_type is None:
            differences.append(f"return type removed (was '{base.return_type}')")
            severity = _max(severity, Severity.MEDIUM)
        else:
            differences.append(
                f"return type changed from '{base.return_type}' to '{head.return_type}'"
            )
            severity = _max(severity, Severity.MEDIUM)

    if not differences:
        return SignatureDiff(True, "signature changed", Severity.MEDIUM)
    return SignatureDiff(True, "; ".join(differences), severity)
