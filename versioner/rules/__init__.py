"""Versioner Rules System.

This module provides the rule primitives of a versioning pass:
- PatternMatcher: Glob and regex path filters
- TransformRule / ContentRule: Path and content rewrite rules
- FileTransformSet: Ordered rule lists for one (module, version) pair
"""

from .engine import (
    ContentRule,
    FileTransformSet,
    TransformRule,
    apply_content_rules,
    apply_path_rules,
    compile_pattern,
    literal,
)
from .patterns import PatternEntry, PatternMatcher, PatternType, expand_braces, normalize_path

__all__ = [
    # Pattern matching
    "PatternType",
    "PatternEntry",
    "PatternMatcher",
    "expand_braces",
    "normalize_path",
    # Rules
    "TransformRule",
    "ContentRule",
    "FileTransformSet",
    "apply_path_rules",
    "apply_content_rules",
    "compile_pattern",
    "literal",
]
