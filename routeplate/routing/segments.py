"""Template and path tokenization for routeplate routing.

Route templates and request paths are split with the same grammar so that the
structural index of a dynamic segment in a template is also the index of its
value in a matching path.

Examples:
    >>> tokenize("/photos/<id>/size/")
    ['photos', '<id>', 'size']

    >>> parse_template("/photos/<id>").placeholder_names
    ('id',)
"""

import re
from dataclasses import dataclass
from enum import Enum

# A run of the token alphabet, optionally wrapped in a single "<" and ">".
TOKEN_ALPHABET = r"[\w\-%.(),~]+"
TOKEN_PATTERN = f"<?{TOKEN_ALPHABET}>?"

_token_regex = re.compile(TOKEN_PATTERN)


class SegmentKind(Enum):
    STATIC = "static"
    DYNAMIC = "dynamic"


@dataclass(frozen=True)
class Segment:
    """One component of a route template.

    For static segments ``value`` is the literal text to match, for dynamic
    segments it is the placeholder name bound to a handler parameter.
    """

    kind: SegmentKind
    value: str

    @property
    def is_dynamic(self) -> bool:
        return self.kind is SegmentKind.DYNAMIC


@dataclass(frozen=True)
class Contract:
    """The ordered segment sequence describing one route template."""

    segments: tuple[Segment, ...]

    @property
    def dynamic_segments(self) -> tuple[Segment, ...]:
        return tuple(segment for segment in self.segments if segment.is_dynamic)

    @property
    def placeholder_names(self) -> tuple[str, ...]:
        return tuple(segment.value for segment in self.dynamic_segments)

    @property
    def dynamic_positions(self) -> tuple[int, ...]:
        """Structural index of every dynamic segment, left to right."""
        return tuple(
            index for index, segment in enumerate(self.segments) if segment.is_dynamic
        )

    def __len__(self) -> int:
        return len(self.segments)


def tokenize(value: str) -> list[str]:
    """Split a template or request path into raw tokens.

    Characters outside the token alphabet act as delimiters and are dropped.
    """
    return _token_regex.findall(value)


def classify(token: str) -> Segment:
    if len(token) > 2 and token.startswith("<") and token.endswith(">"):
        return Segment(SegmentKind.DYNAMIC, token[1:-1])

    return Segment(SegmentKind.STATIC, token)


def parse_template(template: str) -> Contract:
    return Contract(tuple(classify(token) for token in tokenize(template)))
