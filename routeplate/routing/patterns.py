"""Compilation of route contracts into anchored regular expressions.

Every segment renders as ``/`` followed by either its escaped literal text or
the generic token expression. The expression is anchored at both ends and
accepts one optional trailing slash, so ``/a/1`` and ``/a/1/`` are the same
path and a path can never partially match a shorter template.

Placeholder names never reach the expression, so ``/items/<id>`` and
``/items/<name>`` compile to the same pattern text.
"""

import re
from dataclasses import dataclass, field

from routeplate.exceptions import UnsupportedSegmentKindException
from routeplate.routing.segments import TOKEN_PATTERN, Contract, SegmentKind


@dataclass(frozen=True)
class CompiledPattern:
    text: str
    regex: re.Pattern = field(compare=False, repr=False)

    def matches(self, path: str) -> bool:
        return self.regex.match(path) is not None


def compile_contract(contract: Contract) -> CompiledPattern:
    parts = [r"\A"]
    for segment in contract.segments:
        match segment.kind:
            case SegmentKind.STATIC:
                parts.append("/" + re.escape(segment.value))
            case SegmentKind.DYNAMIC:
                parts.append("/" + TOKEN_PATTERN)
            case _:
                raise UnsupportedSegmentKindException(
                    f"Unsupported segment kind {segment.kind!r} for segment {segment.value!r}"
                )

    parts.append("/?")
    parts.append(r"\Z")

    text = "".join(parts)
    return CompiledPattern(text, re.compile(text))
