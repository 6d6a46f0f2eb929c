"""Versioner - namespaced, side-by-side copies of library source trees."""

from versioner.core.constants import VERSIONER_VERSION as __version__
from versioner.main import version_module
from versioner.rules.engine import ContentRule, FileTransformSet, TransformRule
from versioner.versioning.applier import ApplyReport, TransformApplier
from versioner.versioning.builder import build_transform_set, default_module_overrides

__all__ = [
    "__version__",
    "version_module",
    "build_transform_set",
    "default_module_overrides",
    "TransformRule",
    "ContentRule",
    "FileTransformSet",
    "TransformApplier",
    "ApplyReport",
]
