#!/usr/bin/env python3
r"""Pattern matching for relative file paths with glob and regex support.

This module provides the path filters used by content rules:
- Glob matching with ``**``, ``*``, ``?`` and ``{a,b}`` alternatives
- Regex matching with compiled patterns
- Path normalization (``./`` prefixes, backslashes, leading slashes)
- Basename matching for globs without a slash
- Multiple pattern support with OR logic

Example:
    >>> matcher = PatternMatcher()
    >>> matcher.add_glob_pattern("./src/main/{java,kotlin}/**/*.{java,kt}")
    >>> matcher.matches("src/main/kotlin/expo/modules/Foo.kt")
    True
"""

import re
from dataclasses import dataclass
from enum import Enum
from pathlib import PurePath
from typing import Iterable, List, Optional, Pattern, Union

_BRACE_RE = re.compile(r"\{([^{}]*)\}")


class PatternType(Enum):
    """Pattern matching type."""

    GLOB = "glob"  # Shell-style patterns (*.kt, **/*.java)
    REGEX = "regex"  # Regular expressions


@dataclass
class PatternEntry:
    """A single pattern entry with its compiled forms."""

    pattern: str
    pattern_type: PatternType
    compiled: List[Pattern[str]]
    case_sensitive: bool = True
    name: Optional[str] = None
    basename_only: bool = False


def expand_braces(pattern: str) -> List[str]:
    """Expand ``{a,b}`` alternatives into separate patterns.

    Nested and repeated groups are expanded left to right, so
    ``{java,kotlin}/*.{java,kt}`` yields four patterns.
    """
    match = _BRACE_RE.search(pattern)
    if not match:
        return [pattern]

    head, tail = pattern[: match.start()], pattern[match.end():]
    expanded = []
    for option in match.group(1).split(","):
        expanded.extend(expand_braces(head + option + tail))
    return expanded


def glob_to_regex(pattern: str) -> str:
    """Translate a slash-aware glob into an anchored regex.

    ``**`` matches any number of path segments (including none),
    ``*`` and ``?`` never cross a ``/``.
    """
    DOUBLESTAR = "\x00DOUBLESTAR\x00"
    STAR = "\x00STAR\x00"
    QUESTION = "\x00QUESTION\x00"

    regex = pattern.replace("**", DOUBLESTAR).replace("*", STAR).replace("?", QUESTION)
    regex = re.escape(regex)

    # **/ → optional path prefix, /** → optional path suffix
    regex = regex.replace(re.escape(DOUBLESTAR) + re.escape("/"), "(?:.*/|)")
    regex = regex.replace(re.escape("/") + re.escape(DOUBLESTAR), "(?:/.*|)")
    regex = regex.replace(re.escape(DOUBLESTAR), ".*")
    regex = regex.replace(re.escape(STAR), "[^/]*")
    regex = regex.replace(re.escape(QUESTION), "[^/]")

    return "^" + regex + "$"


def normalize_path(path: Union[str, PurePath]) -> str:
    """Normalize a relative path for matching.

    Args:
        path: Path string or PurePath

    Returns:
        POSIX-style path without ``./`` or leading ``/``
    """
    if isinstance(path, PurePath):
        path = path.as_posix()

    path = path.replace("\\", "/")
    while path.startswith("./"):
        path = path[2:]
    return path.lstrip("/")


class PatternMatcher:
    """Pattern matcher supporting glob and regex patterns.

    Features:
    - Multiple pattern types (glob, regex)
    - Case-sensitive/insensitive matching
    - Patterns compiled once when added
    - OR logic (matches any pattern)
    """

    def __init__(self, case_sensitive: bool = True, match_base: bool = True):
        """Initialize pattern matcher.

        Args:
            case_sensitive: Whether patterns are case-sensitive
            match_base: Match globs without a ``/`` against the basename only
        """
        self._patterns: List[PatternEntry] = []
        self._case_sensitive = case_sensitive
        self._match_base = match_base

    def add_glob_pattern(
        self, pattern: str, name: Optional[str] = None, case_sensitive: Optional[bool] = None
    ) -> None:
        """Add glob pattern.

        Args:
            pattern: Glob pattern (e.g., "*.kt", "./src/main/{java,kotlin}/**")
            name: Optional name for this pattern
            case_sensitive: Override default case sensitivity
        """
        is_case_sensitive = case_sensitive if case_sensitive is not None else self._case_sensitive
        flags = 0 if is_case_sensitive else re.IGNORECASE

        normalized = normalize_path(pattern)
        compiled = [re.compile(glob_to_regex(p), flags) for p in expand_braces(normalized)]

        self._patterns.append(
            PatternEntry(
                pattern=pattern,
                pattern_type=PatternType.GLOB,
                compiled=compiled,
                case_sensitive=is_case_sensitive,
                name=name,
                basename_only=self._match_base and "/" not in normalized,
            )
        )

    def add_regex_pattern(
        self, pattern: str, name: Optional[str] = None, case_sensitive: Optional[bool] = None
    ) -> None:
        """Add regex pattern.

        Args:
            pattern: Regular expression searched for in the normalized path
            name: Optional name for this pattern
            case_sensitive: Override default case sensitivity
        """
        is_case_sensitive = case_sensitive if case_sensitive is not None else self._case_sensitive
        flags = 0 if is_case_sensitive else re.IGNORECASE

        self._patterns.append(
            PatternEntry(
                pattern=pattern,
                pattern_type=PatternType.REGEX,
                compiled=[re.compile(pattern, flags)],
                case_sensitive=is_case_sensitive,
                name=name,
            )
        )

    def add_patterns(self, patterns: Iterable[str], pattern_type: PatternType = PatternType.GLOB) -> None:
        """Add several patterns of one type."""
        for pattern in patterns:
            if pattern_type == PatternType.GLOB:
                self.add_glob_pattern(pattern)
            else:
                self.add_regex_pattern(pattern)

    def matches(self, path: Union[str, PurePath]) -> bool:
        """Check if path matches any pattern.

        Args:
            path: Relative file path to check

        Returns:
            True if path matches any pattern
        """
        normalized = normalize_path(path)
        return any(self._matches_entry(normalized, entry) for entry in self._patterns)

    def _matches_entry(self, path: str, entry: PatternEntry) -> bool:
        if entry.pattern_type == PatternType.REGEX:
            return bool(entry.compiled[0].search(path))

        candidate = path.rsplit("/", 1)[-1] if entry.basename_only else path
        return any(regex.match(candidate) for regex in entry.compiled)

    def get_matching_patterns(self, path: str) -> List[str]:
        """Get all pattern names that match the path."""
        normalized = normalize_path(path)
        return [
            entry.name or entry.pattern
            for entry in self._patterns
            if self._matches_entry(normalized, entry)
        ]

    def get_patterns(self) -> List[PatternEntry]:
        """Get all registered patterns."""
        return self._patterns.copy()

    def clear(self) -> None:
        """Clear all patterns."""
        self._patterns.clear()

    def __len__(self) -> int:
        return len(self._patterns)

    def __bool__(self) -> bool:
        return bool(self._patterns)
