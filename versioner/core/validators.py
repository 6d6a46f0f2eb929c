"""
Versioner Core: Input Validators.

This module provides validation functions for configuration, version tokens,
module and package names, and find/path patterns.
"""
import re
from typing import Any, Dict, Pattern

from versioner.core.constants import ConfigKey, ErrorCode, Limits

_IDENTIFIER = r"[A-Za-z_][A-Za-z0-9_]*"
_VERSION_TOKEN_RE = re.compile(rf"^{_IDENTIFIER}$")
_PACKAGE_NAME_RE = re.compile(rf"^{_IDENTIFIER}(\.{_IDENTIFIER})*$")
_MODULE_NAME_RE = re.compile(r"^(@[a-z0-9][a-z0-9._-]*/)?[A-Za-z0-9][A-Za-z0-9._-]*$")


class ValidationError(Exception):
    """Base exception for validation errors."""

    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.INVALID_INPUT):
        """Initialize ValidationError.

        Args:
            message: Error message
            error_code: Associated error code
        """
        super().__init__(message)
        self.error_code = error_code


def validate_version_token(version: str) -> bool:
    """Validate a version token.

    The token becomes both a directory name and the first segment of every
    renamed package, so it must be a plain identifier.

    Args:
        version: Version token (e.g. "ABI45_0_0")

    Returns:
        True if valid

    Raises:
        ValidationError: If token is invalid
    """
    if not isinstance(version, str):
        raise ValidationError(f"Version token must be string, got {type(version)}")

    if not version:
        raise ValidationError("Version token cannot be empty")

    if len(version) > Limits.MAX_VERSION_TOKEN_LENGTH:
        raise ValidationError(
            f"Version token exceeds maximum length ({Limits.MAX_VERSION_TOKEN_LENGTH})"
        )

    if not _VERSION_TOKEN_RE.match(version):
        raise ValidationError(
            f"Invalid version token: {version!r}. Must start with a letter or underscore "
            "and contain only letters, digits and underscores"
        )

    return True


def validate_package_name(name: str) -> bool:
    """Validate a dotted package name such as ``expo.modules.core``.

    Raises:
        ValidationError: If name is invalid
    """
    if not isinstance(name, str) or not name:
        raise ValidationError("Package name must be a non-empty string")

    if not _PACKAGE_NAME_RE.match(name):
        raise ValidationError(f"Invalid package name: {name!r}")

    return True


def validate_module_name(name: str) -> bool:
    """Validate a module name (npm-style, optionally scoped).

    Raises:
        ValidationError: If name is invalid
    """
    if not isinstance(name, str) or not name:
        raise ValidationError("Module name must be a non-empty string")

    if len(name) > Limits.MAX_MODULE_NAME_LENGTH:
        raise ValidationError(
            f"Module name exceeds maximum length ({Limits.MAX_MODULE_NAME_LENGTH})"
        )

    if not _MODULE_NAME_RE.match(name):
        raise ValidationError(f"Invalid module name: {name!r}")

    return True


def validate_regex(pattern: str) -> Pattern[str]:
    """Validate and compile a regex pattern.

    Args:
        pattern: Regex pattern string

    Returns:
        Compiled regex pattern

    Raises:
        ValidationError: If pattern is invalid
    """
    if not pattern:
        raise ValidationError("Regex pattern cannot be empty")

    try:
        return re.compile(pattern)
    except re.error as e:
        raise ValidationError(f"Failed to compile regex pattern: {e}")


def validate_glob(pattern: str) -> bool:
    """Validate glob pattern.

    Args:
        pattern: Glob pattern string

    Returns:
        True if valid

    Raises:
        ValidationError: If pattern is invalid
    """
    if not isinstance(pattern, str) or not pattern:
        raise ValidationError("Glob pattern cannot be empty")

    if len(pattern) > Limits.MAX_PATH_LENGTH:
        raise ValidationError(f"Glob pattern exceeds maximum length ({Limits.MAX_PATH_LENGTH})")

    if "\0" in pattern:
        raise ValidationError("Invalid glob pattern: contains null bytes")

    if pattern.count("{") != pattern.count("}"):
        raise ValidationError(f"Invalid glob pattern: unbalanced braces in {pattern!r}")

    for part in pattern.split("/"):
        if "**" in part and part != "**":
            raise ValidationError(f"'**' must be alone in path segment: {part}")

    return True


def validate_workers(workers: Any) -> bool:
    """Validate worker count.

    Raises:
        ValidationError: If workers is not an integer in range
    """
    if isinstance(workers, bool) or not isinstance(workers, int):
        raise ValidationError(f"Workers must be integer, got {type(workers)}")

    if workers < 1 or workers > Limits.MAX_WORKERS:
        raise ValidationError(f"Workers must be in range 1-{Limits.MAX_WORKERS}, got {workers}")

    return True


def _validate_paths(paths: Any, where: str) -> None:
    if paths is None:
        return
    if isinstance(paths, str):
        paths = [paths]
    if not isinstance(paths, list):
        raise ValidationError(f"{where}: 'paths' must be a glob or list of globs")
    for glob in paths:
        validate_glob(glob)


def validate_module_override(name: str, override: Dict[str, Any]) -> bool:
    """Validate one entry of the ``modules`` configuration section.

    Args:
        name: Module name
        override: Override mapping with optional path/content/strip_regions lists

    Raises:
        ValidationError: If the override is invalid
    """
    validate_module_name(name)

    if not isinstance(override, dict):
        raise ValidationError(f"Module override for {name} must be a dictionary")

    unknown = set(override) - {ConfigKey.PATH, ConfigKey.CONTENT, ConfigKey.STRIP_REGIONS}
    if unknown:
        raise ValidationError(
            f"Unknown fields in module override {name}: {', '.join(sorted(unknown))}"
        )

    for kind in (ConfigKey.PATH, ConfigKey.CONTENT, ConfigKey.STRIP_REGIONS):
        entries = override.get(kind, [])
        if not isinstance(entries, list):
            raise ValidationError(f"Module override {name}.{kind} must be a list")

        for i, entry in enumerate(entries):
            where = f"{name}.{kind}[{i}]"
            if not isinstance(entry, dict):
                raise ValidationError(f"{where} must be a dictionary")

            if kind == ConfigKey.STRIP_REGIONS:
                for required in (ConfigKey.START, ConfigKey.END):
                    if not entry.get(required):
                        raise ValidationError(f"{where} must have '{required}' field")
                _validate_paths(entry.get(ConfigKey.PATHS), where)
                continue

            if not entry.get(ConfigKey.FIND):
                raise ValidationError(f"{where} must have 'find' field")
            if not isinstance(entry.get(ConfigKey.REPLACE_WITH), str):
                raise ValidationError(f"{where} must have string 'replace_with' field")
            if kind == ConfigKey.CONTENT:
                _validate_paths(entry.get(ConfigKey.PATHS), where)

    return True


def validate_config(config: Dict[str, Any]) -> bool:
    """Validate the merged ``versioner`` configuration section.

    Args:
        config: The ``versioner`` section

    Returns:
        True if valid

    Raises:
        ValidationError: If configuration is invalid
    """
    if not isinstance(config, dict):
        raise ValidationError("Configuration must be a dictionary")

    if config.get(ConfigKey.VERSION) is not None:
        validate_version_token(config[ConfigKey.VERSION])

    if config.get(ConfigKey.MODULE) is not None:
        validate_module_name(config[ConfigKey.MODULE])

    for key in (ConfigKey.PACKAGES_TO_KEEP, ConfigKey.PACKAGES_TO_RENAME):
        packages = config.get(key, [])
        if not isinstance(packages, list):
            raise ValidationError(f"{key} must be a list")
        for package in packages:
            try:
                validate_package_name(package)
            except ValidationError as e:
                raise ValidationError(f"Invalid entry in {key}: {e}")

    if ConfigKey.WORKERS in config:
        validate_workers(config[ConfigKey.WORKERS])

    if ConfigKey.HALT_ON_ERROR in config and not isinstance(config[ConfigKey.HALT_ON_ERROR], bool):
        raise ValidationError("halt_on_error must be boolean")

    modules = config.get(ConfigKey.MODULES, {}) or {}
    if not isinstance(modules, dict):
        raise ValidationError("modules must be a mapping of module name to overrides")
    for name, override in modules.items():
        validate_module_override(name, override)

    return True
