"""
Versioner Core: Constants and Type Definitions

This module provides system-wide constants, error codes, and type definitions
shared by the rule, transform and versioning layers.
"""
from enum import Enum, IntEnum
from typing import TypeAlias

# Version information
VERSIONER_VERSION = "1.0.0"


# Error codes (0-9 range)
class ErrorCode(IntEnum):
    """Standardized error codes for versioner operations."""

    SUCCESS = 0  # Operation completed successfully
    INVALID_INPUT = 1  # Bad path, invalid configuration
    NOT_FOUND = 2  # File or resource doesn't exist
    PERMISSION_DENIED = 3  # Insufficient permissions
    CONFLICT = 4  # Two sources map to one target
    DEPENDENCY_ERROR = 5  # Missing dependency
    INTERNAL_ERROR = 6  # Bug in versioner
    CANCELLED = 7  # Pass aborted between files


class ErrorKind(Enum):
    """Kind of a per-file failure reported by the applier."""

    MALFORMED_REGION = "MalformedRegion"  # Unterminated strip region
    PATTERN_COMPILE = "PatternCompileError"  # Invalid find pattern
    IO = "IOError"  # Read/write/filesystem failure
    DECODE = "DecodeError"  # File selected for rewriting is not UTF-8 text
    UNKNOWN_MODULE = "UnknownModule"  # Non-fatal, base set is used
    TRANSFORM = "TransformError"  # Any other content transform failure


# Type aliases for clarity
RelativePath: TypeAlias = str
VersionToken: TypeAlias = str
PackageName: TypeAlias = str


class Sentinel:
    """Sentinel markers inserted and removed during a single pass."""

    # Prefix that protects kept packages from the rename rules
    DO_NOT_VERSION = "temporarydonotversion."

    # Manifest is moved aside so it is not processed as the real manifest
    MANIFEST_PATH = "src/main/AndroidManifest.xml"
    TEMPORARY_MANIFEST_PATH = "src/main/TemporaryExpoModuleAndroidManifest.xml"

    # Comment replaced by a versioned import of the host R class
    NEEDS_EXPOVIEW_R = r"// *EXPO_VERSIONING_NEEDS_EXPOVIEW_R"

    # Region markers used by module overrides
    REMOVE_FROM_HERE = "WHEN_VERSIONING_REMOVE_FROM_HERE"
    REMOVE_TO_HERE = "WHEN_VERSIONING_REMOVE_TO_HERE"


class Limits:
    """Resource limits and default values."""

    MAX_PATH_LENGTH = 4096
    MAX_VERSION_TOKEN_LENGTH = 128
    MAX_MODULE_NAME_LENGTH = 214  # npm package name limit
    MAX_FILE_SIZE = 256 * 1024 * 1024  # 256MB
    MAX_WORKERS = 64
    DEFAULT_WORKERS = 1


# Source roots rewritten by the base path rules
SOURCE_ROOTS = ("src/main/java", "src/main/kotlin")

# Files whose contents the base content rules rewrite
SOURCE_GLOBS = (
    "./src/main/{java,kotlin}/**/*.{java,kt}",
    "./src/main/AndroidManifest.xml",
)


class ConfigKey:
    """Configuration key constants."""

    ROOT = "versioner"
    VERSION = "version"
    MODULE = "module"
    PACKAGES_TO_KEEP = "packages_to_keep"
    PACKAGES_TO_RENAME = "packages_to_rename"
    WORKERS = "workers"
    HALT_ON_ERROR = "halt_on_error"
    LOGGING = "logging"
    MODULES = "modules"

    # Module override entries
    PATH = "path"
    CONTENT = "content"
    STRIP_REGIONS = "strip_regions"
    PATHS = "paths"
    FIND = "find"
    REPLACE_WITH = "replace_with"
    LITERAL = "literal"
    START = "start"
    END = "end"


# Default configuration values
DEFAULT_CONFIG = {
    ConfigKey.ROOT: {
        ConfigKey.PACKAGES_TO_KEEP: [],
        ConfigKey.PACKAGES_TO_RENAME: [],
        ConfigKey.WORKERS: Limits.DEFAULT_WORKERS,
        ConfigKey.HALT_ON_ERROR: False,
        ConfigKey.LOGGING: {
            "level": "INFO",
            "file": None,
        },
        ConfigKey.MODULES: {},
    }
}
