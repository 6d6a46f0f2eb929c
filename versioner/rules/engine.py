#!/usr/bin/env python3
"""Rule primitives for rewriting paths and file contents.

This module provides the declarative rules a versioning pass is made of:
- TransformRule: find/replace over a file's relative path
- ContentRule: find/replace or text transform scoped by path globs
- FileTransformSet: ordered, immutable path and content rule lists

Rules run strictly in declared order and every rule sees the output of the
previous one. Overlapping patterns are never disambiguated automatically.

Example:
    >>> rules = FileTransformSet(
    ...     path=[TransformRule(r"src/main/kotlin", "src/main/java/V1")],
    ...     content=[ContentRule(paths="**/*.kt", find=r"\\bcom\\.foo\\b", replace_with="V1.com.foo")],
    ... )
    >>> rules.rewrite_path("src/main/kotlin/X.kt")
    'src/main/java/V1/X.kt'
"""

import re
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Pattern, Sequence, Tuple, Union

from versioner.rules.patterns import PatternMatcher, normalize_path
from versioner.transforms.base import (
    FunctionTransform,
    PatternCompileError,
    Transform,
    TransformError,
)

Find = Union[str, Pattern[str]]
TextFunction = Callable[[str], str]


def literal(text: str) -> Pattern[str]:
    """Compile text as a pattern matching itself verbatim."""
    return compile_pattern(text, literal=True)


def compile_pattern(find: Find, literal: bool = False) -> Pattern[str]:
    """Compile a find pattern.

    Args:
        find: Regex string, literal string or already compiled pattern
        literal: Treat a string as literal text instead of a regex

    Returns:
        Compiled pattern

    Raises:
        PatternCompileError: If the pattern is empty or invalid
    """
    if isinstance(find, re.Pattern):
        return find

    if not isinstance(find, str) or not find:
        raise PatternCompileError("Find pattern must be a non-empty string", pattern=find)

    try:
        return re.compile(re.escape(find) if literal else find)
    except re.error as e:
        raise PatternCompileError(f"Invalid find pattern {find!r}: {e}", pattern=find)


def _substitute(
    pattern: Pattern[str], replace_with: str, text: str, count: int, literal: bool
) -> str:
    repl: Union[str, Callable[[re.Match], str]] = replace_with
    if literal:

        def repl(_match: re.Match) -> str:
            return replace_with

    try:
        return pattern.sub(repl, text, count=count)
    except (re.error, IndexError) as e:
        raise PatternCompileError(
            f"Invalid replacement {replace_with!r} for {pattern.pattern!r}: {e}",
            pattern=pattern.pattern,
        )


@dataclass(frozen=True)
class TransformRule:
    """Rename rule applied to a relative path.

    ``replace_with`` may reference groups (``\\1``, ``\\g<name>``) unless
    ``literal`` is set. Only the first match is replaced by default.
    """

    find: Find
    replace_with: str
    literal: bool = False
    count: int = 1
    name: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "find", compile_pattern(self.find, self.literal))

    def apply(self, path: str) -> str:
        return _substitute(self.find, self.replace_with, path, self.count, self.literal)


def _as_paths(paths: Union[None, str, Iterable[str]]) -> Optional[Tuple[str, ...]]:
    if paths is None:
        return None
    if isinstance(paths, str):
        return (paths,)
    return tuple(paths)


@dataclass(frozen=True)
class ContentRule:
    """Content rule scoped to files matching ``paths``.

    Either ``find``/``replace_with`` (all matches replaced by default) or
    ``transform`` (a ``str -> str`` callable or a Transform) must be given.
    ``paths=None`` scopes the rule to every file.
    """

    paths: Union[None, str, Tuple[str, ...]] = None
    find: Optional[Find] = None
    replace_with: Optional[str] = None
    transform: Union[None, TextFunction, Transform] = None
    literal: bool = False
    count: int = 0
    name: Optional[str] = None
    _matcher: Optional[PatternMatcher] = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self):
        has_replace = self.find is not None
        if has_replace == (self.transform is not None):
            raise TransformError("ContentRule needs either find/replace_with or transform", self.name)
        if has_replace and self.replace_with is None:
            raise TransformError("ContentRule with find needs replace_with", self.name)

        paths = _as_paths(self.paths)
        object.__setattr__(self, "paths", paths)

        if has_replace:
            object.__setattr__(self, "find", compile_pattern(self.find, self.literal))

        if paths is not None:
            matcher = PatternMatcher()
            for glob in paths:
                matcher.add_glob_pattern(glob)
            object.__setattr__(self, "_matcher", matcher)

    @property
    def label(self) -> str:
        if self.name:
            return self.name
        if self.find is not None:
            return f"replace:{self.find.pattern}"
        return getattr(self.transform, "name", None) or getattr(
            self.transform, "__name__", "transform"
        )

    def matches(self, path: str) -> bool:
        """Check whether the rule's path filter covers a relative path."""
        if self._matcher is None:
            return True
        return self._matcher.matches(path)

    def apply(self, text: str, path: str = "") -> str:
        """Apply the rule to text regardless of its path filter."""
        if self.find is not None:
            return _substitute(self.find, self.replace_with, text, self.count, self.literal)
        if isinstance(self.transform, Transform):
            return self.transform.transform(text, path)
        result = self.transform(text)
        if not isinstance(result, str):
            raise TransformError(
                f"Transform returned {type(result).__name__}, expected str", self.label
            )
        return result

    def as_transform(self) -> Transform:
        """Wrap the rule as a Transform for use in a TransformPipeline."""
        return FunctionTransform(lambda text, _rule=self: _rule.apply(text), name=self.label)


def apply_path_rules(path: str, rules: Sequence[TransformRule]) -> str:
    """Apply every path rule in declared order to a relative path."""
    result = normalize_path(path)
    for rule in rules:
        result = rule.apply(result)
    return result


def apply_content_rules(
    text: str, rules: Sequence[ContentRule], path: Optional[str] = None
) -> str:
    """Apply content rules in declared order.

    Args:
        text: Input text
        rules: Content rules
        path: When given, only rules whose filter matches it are applied

    Returns:
        Rewritten text
    """
    for rule in rules:
        if path is None or rule.matches(path):
            text = rule.apply(text, path or "")
    return text


@dataclass(frozen=True)
class FileTransformSet:
    """Ordered path and content rules for one (module, version) pass."""

    path: Tuple[TransformRule, ...] = ()
    content: Tuple[ContentRule, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "path", tuple(self.path))
        object.__setattr__(self, "content", tuple(self.content))

    def extend(self, other: "FileTransformSet") -> "FileTransformSet":
        """Return a new set with ``other``'s rules appended after this one's."""
        return FileTransformSet(path=self.path + other.path, content=self.content + other.content)

    def rewrite_path(self, path: str) -> str:
        return apply_path_rules(path, self.path)

    def rewrite_content(self, text: str, path: Optional[str] = None) -> str:
        return apply_content_rules(text, self.content, path)

    def content_rules_for(self, *paths: str) -> List[ContentRule]:
        """Content rules whose path filter matches any of the given paths."""
        return [rule for rule in self.content if any(rule.matches(p) for p in paths)]

    def __len__(self) -> int:
        return len(self.path) + len(self.content)
