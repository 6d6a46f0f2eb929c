#!/usr/bin/env python3
"""Transform set builder for versioned module copies.

A transform set is layered in a fixed order:
1. Path rules moving source roots under the version token and moving the
   manifest aside to a sentinel name
2. Keep rules marking protected packages with a sentinel prefix
3. Rename rules prefixing packages with the version token
4. A cleanup rule removing the sentinel prefix again
5. Import injection for the ``EXPO_VERSIONING_NEEDS_EXPOVIEW_R`` marker comment
6. Module overrides, appended after the base rules

Example:
    >>> transforms = build_transform_set(
    ...     "expo-updates",
    ...     "ABI45_0_0",
    ...     packages_to_keep=["expo.modules.core.interfaces"],
    ...     packages_to_rename=["expo.modules"],
    ...     module_overrides=default_module_overrides(),
    ... )
"""

import re
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from versioner.core.constants import SOURCE_GLOBS, SOURCE_ROOTS, ConfigKey, ErrorKind, Sentinel
from versioner.core.logging import get_logger
from versioner.core.validators import (
    ValidationError,
    validate_module_override,
    validate_package_name,
    validate_version_token,
)
from versioner.rules.engine import ContentRule, FileTransformSet, TransformRule
from versioner.transforms.regions import RegionStripTransform
from versioner.transforms.template import TemplateRenderer

# An override is either a ready set or a factory taking the version token
ModuleOverride = Union[FileTransformSet, Callable[[str], FileTransformSet]]
ModuleConfig = Mapping[str, ModuleOverride]

# Standalone package occurrence: not part of a longer dotted name
_TOKEN_BEFORE = r"(?<![\w.$])"
_TOKEN_AFTER = r"(?![\w$])"


def package_pattern(package: str) -> str:
    """Regex matching standalone occurrences of a dotted package name.

    ``com.foo`` matches in ``import com.foo.Bar`` and ``"com.foo"`` but not
    in ``com.foobar`` or ``x.com.foo``.
    """
    return _TOKEN_BEFORE + re.escape(package) + _TOKEN_AFTER


def base_path_rules(version: str) -> List[TransformRule]:
    """Path rules moving source roots under ``src/main/java/<version>``.

    Roots are anchored at the start of the relative path and a root already
    followed by the version segment is left alone, so the rules never
    re-match their own output.
    """
    target = f"src/main/java/{version}"
    segment_end = "(?=/|$)"
    not_versioned = f"(?!/{re.escape(version)}(?:/|$))"

    rules = [
        TransformRule(
            "^" + re.escape(root) + segment_end + (not_versioned if root == SOURCE_ROOTS[0] else ""),
            target,
            name=f"relocate:{root}",
        )
        for root in SOURCE_ROOTS
    ]
    rules.append(
        TransformRule(
            "^" + re.escape(Sentinel.MANIFEST_PATH) + "$",
            Sentinel.TEMPORARY_MANIFEST_PATH,
            name="manifest-aside",
        )
    )
    return rules


def keep_rules(packages: Sequence[str]) -> List[ContentRule]:
    """Rules marking protected packages with the sentinel prefix."""
    return [
        ContentRule(
            paths=SOURCE_GLOBS,
            find=package_pattern(package),
            replace_with=Sentinel.DO_NOT_VERSION + package,
            name=f"keep:{package}",
        )
        for package in packages
    ]


def rename_rules(packages: Sequence[str], version: str) -> List[ContentRule]:
    """Rules prefixing packages with the version token."""
    return [
        ContentRule(
            paths=SOURCE_GLOBS,
            find=package_pattern(package),
            replace_with=f"{version}.{package}",
            name=f"rename:{package}",
        )
        for package in packages
    ]


def unmark_rule() -> ContentRule:
    """Rule removing the sentinel prefix inserted by the keep rules."""
    return ContentRule(
        paths=SOURCE_GLOBS,
        find=Sentinel.DO_NOT_VERSION,
        replace_with="",
        literal=True,
        name="unmark-kept",
    )


def import_injection_rules(version: str) -> List[ContentRule]:
    """Rules replacing the R-class marker comment with a versioned import."""
    return [
        ContentRule(
            paths="./src/main/{java,kotlin}/**/*.java",
            find=Sentinel.NEEDS_EXPOVIEW_R,
            replace_with=f"import {version}.host.exp.expoview.R;",
            name="inject-r-import:java",
        ),
        ContentRule(
            paths="./src/main/{java,kotlin}/**/*.kt",
            find=Sentinel.NEEDS_EXPOVIEW_R,
            replace_with=f"import {version}.host.exp.expoview.R",
            name="inject-r-import:kotlin",
        ),
    ]


def base_transform_set(
    version: str,
    packages_to_keep: Sequence[str] = (),
    packages_to_rename: Sequence[str] = (),
) -> FileTransformSet:
    """Build the module-independent part of a transform set."""
    content: List[ContentRule] = []
    content.extend(keep_rules(packages_to_keep))
    content.extend(rename_rules(packages_to_rename, version))
    content.append(unmark_rule())
    content.extend(import_injection_rules(version))

    return FileTransformSet(path=base_path_rules(version), content=content)


def default_module_overrides() -> Dict[str, ModuleOverride]:
    """Built-in module overrides."""

    def expo_updates(version: str) -> FileTransformSet:
        return FileTransformSet(
            content=[
                ContentRule(
                    paths="./src/main/{java,kotlin}/expo/modules/updates/UpdatesPackage.kt",
                    transform=RegionStripTransform(
                        Sentinel.REMOVE_FROM_HERE, Sentinel.REMOVE_TO_HERE, name="strip-dev-only"
                    ),
                    name="expo-updates:strip-dev-only",
                )
            ]
        )

    return {"expo-updates": expo_updates}


def overrides_from_config(modules: Mapping[str, Mapping[str, Any]]) -> Dict[str, ModuleOverride]:
    """Build module overrides from the ``modules`` configuration section.

    Strings in each entry are Jinja2 templates rendered with ``version`` and
    ``module`` when the override is resolved for a version.

    Raises:
        ValidationError: If an override entry is invalid
    """
    overrides: Dict[str, ModuleOverride] = {}

    for module, override in modules.items():
        validate_module_override(module, override)
        overrides[module] = _config_override_factory(module, dict(override))

    return overrides


def _config_override_factory(module: str, override: Dict[str, Any]) -> Callable[[str], FileTransformSet]:
    def factory(version: str) -> FileTransformSet:
        renderer = TemplateRenderer(version=version, module=module, name=f"modules.{module}")

        def render_paths(paths):
            if paths is None:
                return None
            if isinstance(paths, str):
                paths = [paths]
            return tuple(renderer.render(p) for p in paths)

        path_rules = [
            TransformRule(
                renderer.render(entry[ConfigKey.FIND]),
                renderer.render(entry[ConfigKey.REPLACE_WITH]),
                literal=bool(entry.get(ConfigKey.LITERAL, False)),
                name=f"{module}:path[{i}]",
            )
            for i, entry in enumerate(override.get(ConfigKey.PATH, []))
        ]

        content_rules = [
            ContentRule(
                paths=render_paths(entry.get(ConfigKey.PATHS)),
                find=renderer.render(entry[ConfigKey.FIND]),
                replace_with=renderer.render(entry[ConfigKey.REPLACE_WITH]),
                literal=bool(entry.get(ConfigKey.LITERAL, False)),
                name=f"{module}:content[{i}]",
            )
            for i, entry in enumerate(override.get(ConfigKey.CONTENT, []))
        ]

        for i, entry in enumerate(override.get(ConfigKey.STRIP_REGIONS, [])):
            content_rules.append(
                ContentRule(
                    paths=render_paths(entry.get(ConfigKey.PATHS)),
                    transform=RegionStripTransform(
                        renderer.render(entry[ConfigKey.START]),
                        renderer.render(entry[ConfigKey.END]),
                        name=f"{module}:strip_regions[{i}]",
                    ),
                    name=f"{module}:strip_regions[{i}]",
                )
            )

        return FileTransformSet(path=path_rules, content=content_rules)

    return factory


def resolve_override(override: ModuleOverride, version: str) -> FileTransformSet:
    if isinstance(override, FileTransformSet):
        return override
    return override(version)


def build_transform_set(
    module: str,
    version: str,
    packages_to_keep: Sequence[str] = (),
    packages_to_rename: Sequence[str] = (),
    module_overrides: Optional[ModuleConfig] = None,
) -> FileTransformSet:
    """Build the transform set for a (module, version) pair.

    Args:
        module: Module name (e.g. "expo-updates")
        version: Version token (e.g. "ABI45_0_0")
        packages_to_keep: Packages never prefixed with the version token
        packages_to_rename: Packages prefixed with the version token
        module_overrides: Mapping of module name to extra rules; unknown
            modules fall back to the base set

    Returns:
        Immutable transform set

    Raises:
        ValidationError: If the version token or a package name is invalid
    """
    validate_version_token(version)
    for package in list(packages_to_keep) + list(packages_to_rename):
        try:
            validate_package_name(package)
        except ValidationError as e:
            raise ValidationError(f"Cannot build transforms for {module}: {e}")

    logger = get_logger()
    transforms = base_transform_set(version, packages_to_keep, packages_to_rename)

    override = (module_overrides or {}).get(module)
    if override is None:
        logger.warning(
            "No module overrides, using base transforms",
            module=module,
            error_kind=ErrorKind.UNKNOWN_MODULE.value,
        )
        return transforms

    logger.debug("Applying module overrides", module=module, version=version)
    return transforms.extend(resolve_override(override, version))
