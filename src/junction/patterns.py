"""Path pattern compilation.

A pattern such as ``/users/:id/posts`` is split on ``/`` into segments. A
segment that starts with ``:`` is a named parameter matching exactly one
non-empty path segment; any other segment is literal text. Empty segments
produced by leading, trailing or doubled slashes are dropped, so ``/users``,
``users`` and ``/users/`` all compile to the same pattern, while *paths* are
never normalised: the compiled matcher is anchored at both ends and only
accepts ``/users``. A path ending in ``/`` therefore only ever matches the
root pattern.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

import msgspec
import rure
from rure.regex import RegexObject

from .exceptions import PatternError

_PARAM_MARKER = ":"
_SEGMENT_CAPTURE = "[^/]+"
# Characters with syntax meaning in a rure pattern outside a character class.
_REGEX_META = frozenset("\\.+*?()|[]{}^$")


class Literal(msgspec.Struct, frozen=True):
    text: str


class Param(msgspec.Struct, frozen=True):
    name: str


Segment = Literal | Param


def parse_segments(pattern: str) -> tuple[Segment, ...]:
    """Split ``pattern`` into literal and parameter segments.

    Examples::

        "/users"        -> (Literal("users"),)
        "/users/:id"    -> (Literal("users"), Param("id"))
        "/"             -> ()
    """
    segments: list[Segment] = []
    for part in pattern.split("/"):
        if not part:
            continue
        if part.startswith(_PARAM_MARKER):
            segments.append(Param(part[len(_PARAM_MARKER) :]))
        else:
            segments.append(Literal(part))
    return tuple(segments)


def _escape(text: str) -> str:
    return "".join(f"\\{char}" if char in _REGEX_META else char for char in text)


def _group_name(index: int) -> str:
    # Parameter names are arbitrary text; regex groups are numbered instead.
    return f"p{index}"


def _build_regex(segments: Sequence[Segment]) -> str:
    if not segments:
        return "^/$"
    parts: list[str] = []
    index = 0
    for segment in segments:
        if isinstance(segment, Param):
            parts.append(f"/(?P<{_group_name(index)}>{_SEGMENT_CAPTURE})")
            index += 1
        else:
            parts.append("/" + _escape(segment.text))
    return "^" + "".join(parts) + "$"


@dataclass(slots=True, frozen=True)
class PathPattern:
    """A compiled, immutable route pattern."""

    source: str
    segments: tuple[Segment, ...]
    param_names: tuple[str, ...]
    regex: RegexObject = field(repr=False, compare=False)

    @classmethod
    def compile(cls, pattern: str) -> "PathPattern":
        segments = parse_segments(pattern)
        names = tuple(segment.name for segment in segments if isinstance(segment, Param))
        if len(set(names)) != len(names):
            duplicates = sorted({name for name in names if names.count(name) > 1})
            raise PatternError(f"Duplicate path parameters {duplicates} in pattern {pattern!r}")
        return cls(
            source=pattern,
            segments=segments,
            param_names=names,
            regex=rure.compile(_build_regex(segments)),
        )

    def match(self, path: str) -> tuple[str, ...] | None:
        """Return the captured parameter values in declaration order, or ``None``."""

        try:
            captures = self.regex.match(path)
        except UnicodeEncodeError:
            # Lone surrogates (undecodable bytes) cannot reach the UTF-8 engine.
            return None
        if captures is None:
            return None
        values: list[str] = []
        for index in range(len(self.param_names)):
            group = captures.group(_group_name(index))
            if group is None:
                return None
            values.append(group)
        return tuple(values)

    def params(self, path: str) -> dict[str, str] | None:
        """Return a name to value mapping for ``path``, or ``None`` when it does not match."""

        values = self.match(path)
        if values is None:
            return None
        return dict(zip(self.param_names, values))


__all__ = ["Literal", "Param", "PathPattern", "Segment", "parse_segments"]
