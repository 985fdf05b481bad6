"""Wildcard patterns for selecting packages by group and artifact.

A pattern is a string in which ``%`` matches any run of characters and
every other character matches itself.  Patterns are parsed into a small
tree of `Literal` and `Wildcard` nodes and compiled to an anchored regular
expression; literal text is fully escaped, so characters such as ``+`` or
``(`` in a group name match only themselves.
"""

import re
from dataclasses import dataclass
from functools import cached_property
from typing import Self, TypeAlias

WILDCARD = "%"
"""The only wildcard token.  It matches any sequence of characters."""

__all__ = [
    "WILDCARD",
    "Literal",
    "PackageFilter",
    "Pattern",
    "Wildcard",
]


@dataclass(frozen=True)
class Literal:
    """Text that must appear exactly."""

    text: str

    def to_regex(self) -> str:
        return re.escape(self.text)


@dataclass(frozen=True)
class Wildcard:
    """Any sequence of characters, including none."""

    def to_regex(self) -> str:
        return ".*"


Segment: TypeAlias = Literal | Wildcard


@dataclass(frozen=True)
class Pattern:
    """A parsed wildcard pattern."""

    segments: tuple[Segment, ...]

    @classmethod
    def parse(cls, text: str) -> Self:
        segments: list[Segment] = []
        for idx, chunk in enumerate(text.split(WILDCARD)):
            if idx > 0 and not (segments and segments[-1] == Wildcard()):
                # Consecutive wildcards collapse into one.
                segments.append(Wildcard())
            if chunk:
                segments.append(Literal(chunk))
        return cls(segments=tuple(segments))

    @property
    def is_wildcard(self) -> bool:
        """True if the pattern matches everything."""
        return self.segments == (Wildcard(),)

    def to_regex(self) -> str:
        return "".join(x.to_regex() for x in self.segments)


@dataclass(frozen=True)
class PackageFilter:
    """Group and artifact patterns, combined into one predicate over the
    dot-joined ``group.artifact`` package name.
    """

    group: Pattern
    artifact: Pattern

    @classmethod
    def from_strings(
        cls, group: str = WILDCARD, artifact: str = WILDCARD
    ) -> Self:
        return cls(
            group=Pattern.parse(group), artifact=Pattern.parse(artifact)
        )

    @cached_property
    def regex(self) -> re.Pattern[str]:
        return re.compile(
            f"^{self.group.to_regex()}\\.{self.artifact.to_regex()}$",
            flags=re.DOTALL,
        )

    def matches(self, name: str) -> bool:
        return self.regex.match(name) is not None

    def __str__(self) -> str:
        return f"{self._unparse(self.group)}.{self._unparse(self.artifact)}"

    @staticmethod
    def _unparse(pattern: Pattern) -> str:
        return "".join(
            WILDCARD if isinstance(x, Wildcard) else x.text
            for x in pattern.segments
        )
