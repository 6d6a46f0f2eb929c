"""Versioner Versioning - Transform set builder and tree applier.

- build_transform_set: Layer base rules and module overrides for a version
- TransformApplier: Rewrite a source tree into a versioned destination tree
"""

from .applier import ApplyReport, FileError, FileResult, TransformApplier, VersioningError
from .builder import (
    ModuleConfig,
    ModuleOverride,
    base_transform_set,
    build_transform_set,
    default_module_overrides,
    overrides_from_config,
    package_pattern,
)

__all__ = [
    # Builder
    "ModuleConfig",
    "ModuleOverride",
    "base_transform_set",
    "build_transform_set",
    "default_module_overrides",
    "overrides_from_config",
    "package_pattern",
    # Applier
    "TransformApplier",
    "ApplyReport",
    "FileError",
    "FileResult",
    "VersioningError",
]
