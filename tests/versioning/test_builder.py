#!/usr/bin/env python3
"""Tests for the versioned transform set builder."""

import io
import logging
import re

import pytest

from versioner.core.constants import Sentinel
from versioner.core.logging import Logger, set_global_logger
from versioner.core.validators import ValidationError
from versioner.rules.engine import ContentRule, FileTransformSet, TransformRule
from versioner.transforms.base import MalformedRegionError, TransformError
from versioner.versioning.builder import (
    base_path_rules,
    base_transform_set,
    build_transform_set,
    default_module_overrides,
    import_injection_rules,
    overrides_from_config,
    package_pattern,
    resolve_override,
)

JAVA = "src/main/java/com/foo/A.java"
KOTLIN = "src/main/kotlin/com/foo/B.kt"
MANIFEST = "src/main/AndroidManifest.xml"


def rewrite(transforms, path, text):
    return transforms.rewrite_content(text, path)


@pytest.fixture
def log_stream():
    stream = io.StringIO()
    set_global_logger(
        Logger(name="versioner", level="DEBUG", handlers=[logging.StreamHandler(stream)])
    )
    return stream


class TestPackagePattern:
    """Tests for package_pattern."""

    @pytest.mark.parametrize(
        "text",
        ["import com.foo.Bar;", "package com.foo", '"com.foo"', "(com.foo.Bar::class)", "com.foo"],
    )
    def test_matches_standalone(self, text):
        assert re.search(package_pattern("com.foo"), text)

    @pytest.mark.parametrize(
        "text", ["import com.foobar.Baz;", "import x.com.foo.Bar;", "com.foo_bar", "com.foo$Inner"]
    )
    def test_rejects_embedded(self, text):
        assert not re.search(package_pattern("com.foo"), text)

    def test_dots_are_literal(self):
        assert not re.search(package_pattern("com.foo"), "comxfoo")


class TestBasePathRules:
    """Tests for path relocation."""

    @pytest.fixture
    def transforms(self):
        return FileTransformSet(path=base_path_rules("V1"))

    @pytest.mark.parametrize(
        "path,expected",
        [
            ("src/main/kotlin/X.kt", "src/main/java/V1/X.kt"),
            ("src/main/java/com/foo/A.java", "src/main/java/V1/com/foo/A.java"),
            ("src/main/kotlin/com/foo/B.kt", "src/main/java/V1/com/foo/B.kt"),
            ("src/main/AndroidManifest.xml", Sentinel.TEMPORARY_MANIFEST_PATH),
            ("./src/main/java/A.java", "src/main/java/V1/A.java"),
            ("src/main/res/layout/view.xml", "src/main/res/layout/view.xml"),
            ("build.gradle", "build.gradle"),
            ("src/main/javafoo/A.java", "src/main/javafoo/A.java"),
            ("lib/src/main/java/A.java", "lib/src/main/java/A.java"),
            ("src/test/java/ATest.java", "src/test/java/ATest.java"),
        ],
    )
    def test_rewrite(self, transforms, path, expected):
        assert transforms.rewrite_path(path) == expected

    @pytest.mark.parametrize(
        "path",
        [
            "src/main/java/com/foo/A.java",
            "src/main/kotlin/X.kt",
            "src/main/AndroidManifest.xml",
            "src/main/res/values/strings.xml",
        ],
    )
    def test_idempotent(self, transforms, path):
        once = transforms.rewrite_path(path)

        assert transforms.rewrite_path(once) == once

    def test_manifest_never_keeps_its_name(self, transforms):
        assert transforms.rewrite_path(MANIFEST) != MANIFEST


class TestBaseContentRules:
    """Tests for keep/rename/unmark and import injection."""

    def test_rename(self):
        transforms = base_transform_set("V1", packages_to_rename=["com.foo"])

        assert rewrite(transforms, JAVA, "import com.foo.Bar;\n") == "import V1.com.foo.Bar;\n"

    def test_rename_all_occurrences(self):
        transforms = base_transform_set("V1", packages_to_rename=["com.foo"])
        text = "package com.foo\n\nimport com.foo.Bar\nval name = \"com.foo.Baz\"\n"

        result = rewrite(transforms, KOTLIN, text)

        assert result == "package V1.com.foo\n\nimport V1.com.foo.Bar\nval name = \"V1.com.foo.Baz\"\n"

    def test_rename_is_not_applied_to_longer_names(self):
        transforms = base_transform_set("V1", packages_to_rename=["com.foo"])

        assert rewrite(transforms, JAVA, "import com.foobar.Baz;") == "import com.foobar.Baz;"

    def test_keep_protects_subpackage(self):
        transforms = base_transform_set(
            "V1", packages_to_keep=["com.foo.keep"], packages_to_rename=["com.foo"]
        )
        text = "import com.foo.keep.Kept;\nimport com.foo.Renamed;\n"

        result = rewrite(transforms, JAVA, text)

        assert result == "import com.foo.keep.Kept;\nimport V1.com.foo.Renamed;\n"
        assert Sentinel.DO_NOT_VERSION not in result

    def test_keep_without_rename_is_identity(self):
        transforms = base_transform_set("V1", packages_to_keep=["com.foo"])
        text = "import com.foo.Bar;\n"

        assert rewrite(transforms, JAVA, text) == text

    def test_rename_order_is_declared_order(self):
        transforms = base_transform_set("V1", packages_to_rename=["com.foo", "com"])

        # The second rule sees the output of the first
        assert rewrite(transforms, JAVA, "com.foo.A com.B") == "V1.com.foo.A V1.com.B"

    def test_rules_scoped_to_sources(self):
        transforms = base_transform_set("V1", packages_to_rename=["com.foo"])

        assert transforms.content_rules_for("build.gradle") == []
        assert transforms.content_rules_for("src/main/res/values/strings.xml") == []
        assert transforms.content_rules_for(MANIFEST)

    def test_manifest_content_renamed(self):
        transforms = base_transform_set("V1", packages_to_rename=["com.foo"])

        assert rewrite(transforms, MANIFEST, 'package="com.foo"') == 'package="V1.com.foo"'

    def test_java_import_injection(self):
        transforms = base_transform_set("V1")

        result = rewrite(transforms, JAVA, "package a;\n// EXPO_VERSIONING_NEEDS_EXPOVIEW_R\n")

        assert result == "package a;\nimport V1.host.exp.expoview.R;\n"

    def test_kotlin_import_injection(self):
        transforms = base_transform_set("V1")

        result = rewrite(transforms, KOTLIN, "package a\n//EXPO_VERSIONING_NEEDS_EXPOVIEW_R\n")

        assert result == "package a\nimport V1.host.exp.expoview.R\n"

    def test_built_set_injects_import_for_module_marker(self):
        transforms = build_transform_set("m", "V1")

        result = transforms.rewrite_content(
            "package a;\n// EXPO_VERSIONING_NEEDS_EXPOVIEW_R\n", "src/main/java/a/A.java"
        )

        assert result == "package a;\nimport V1.host.exp.expoview.R;\n"

    def test_injection_rules_are_language_specific(self):
        java, kotlin = import_injection_rules("V1")

        assert java.matches(JAVA) and not java.matches(KOTLIN)
        assert kotlin.matches(KOTLIN) and not kotlin.matches(JAVA)

    def test_rule_order(self):
        transforms = base_transform_set("V1", ["k.eep"], ["r.ename"])
        names = [rule.label for rule in transforms.content]

        assert names == [
            "keep:k.eep",
            "rename:r.ename",
            "unmark-kept",
            "inject-r-import:java",
            "inject-r-import:kotlin",
        ]


class TestModuleOverrides:
    """Tests for module override resolution."""

    def test_expo_updates_strips_dev_region(self):
        transforms = build_transform_set("expo-updates", "V1", module_overrides=default_module_overrides())
        path = "src/main/java/expo/modules/updates/UpdatesPackage.kt"
        text = (
            "package expo.modules.updates\n"
            "// WHEN_VERSIONING_REMOVE_FROM_HERE\n"
            "import expo.modules.updates.dev.Controller\n"
            "// WHEN_VERSIONING_REMOVE_TO_HERE\n"
            "class UpdatesPackage\n"
        )

        assert rewrite(transforms, path, text) == "package expo.modules.updates\nclass UpdatesPackage\n"

    def test_expo_updates_unterminated_region(self):
        transforms = build_transform_set("expo-updates", "V1", module_overrides=default_module_overrides())
        path = "src/main/kotlin/expo/modules/updates/UpdatesPackage.kt"

        with pytest.raises(MalformedRegionError):
            rewrite(transforms, path, "// WHEN_VERSIONING_REMOVE_FROM_HERE\nx\n")

    def test_override_appended_after_base(self):
        base = base_transform_set("V1")
        transforms = build_transform_set("expo-updates", "V1", module_overrides=default_module_overrides())

        assert [r.label for r in transforms.content[: len(base.content)]] == [r.label for r in base.content]
        assert len(transforms.content) == len(base.content) + 1
        assert transforms.content[-1].label == "expo-updates:strip-dev-only"

    def test_unknown_module_uses_base_set(self, log_stream):
        transforms = build_transform_set("expo-camera", "V1", ["a.b"], ["c.d"], default_module_overrides())
        base = base_transform_set("V1", ["a.b"], ["c.d"])

        assert [r.label for r in transforms.content] == [r.label for r in base.content]
        assert "UnknownModule" in log_stream.getvalue()
        assert "module=expo-camera" in log_stream.getvalue()

    def test_no_overrides(self):
        transforms = build_transform_set("expo-updates", "V1")

        assert len(transforms) == len(base_transform_set("V1"))

    def test_fixed_set_override(self):
        extra = FileTransformSet(content=[ContentRule(paths="**/*.kt", find="x", replace_with="y", name="x-y")])
        transforms = build_transform_set("m", "V1", module_overrides={"m": extra})

        assert transforms.content[-1].label == "x-y"

    def test_resolve_override(self):
        fixed = FileTransformSet()

        def factory(version):
            return FileTransformSet(path=[TransformRule("a", version)])

        assert resolve_override(fixed, "V1") is fixed
        assert resolve_override(factory, "V2").rewrite_path("a") == "V2"

    def test_invalid_version(self):
        with pytest.raises(ValidationError):
            build_transform_set("expo-updates", "1.0")

    def test_invalid_package(self):
        with pytest.raises(ValidationError, match="expo-updates"):
            build_transform_set("expo-updates", "V1", packages_to_rename=["com..foo"])


class TestOverridesFromConfig:
    """Tests for configured module overrides."""

    def test_content_rule_rendered(self):
        overrides = overrides_from_config(
            {
                "expo-camera": {
                    "content": [
                        {
                            "paths": "./src/main/{java,kotlin}/**/*.kt",
                            "find": r"R\.layout",
                            "replace_with": "{{ version }}.host.exp.expoview.R.layout",
                        }
                    ]
                }
            }
        )
        transforms = build_transform_set("expo-camera", "V1", module_overrides=overrides)

        result = rewrite(transforms, "src/main/java/Camera.kt", "R.layout.camera")

        assert result == "V1.host.exp.expoview.R.layout.camera"

    def test_path_rule_rendered(self):
        overrides = overrides_from_config(
            {
                "expo-camera": {
                    "path": [
                        {
                            "find": r"^src/main/res/layout/(\w+)\.xml$",
                            "replace_with": r"src/main/res/layout/{{ version | lower }}_\1.xml",
                        }
                    ]
                }
            }
        )
        transforms = build_transform_set("expo-camera", "ABI45_0_0", module_overrides=overrides)

        assert transforms.rewrite_path("src/main/res/layout/camera.xml") == (
            "src/main/res/layout/abi45_0_0_camera.xml"
        )

    def test_literal_content_rule(self):
        overrides = overrides_from_config(
            {"m": {"content": [{"find": "a.b", "replace_with": "c", "literal": True}]}}
        )
        transforms = build_transform_set("m", "V1", module_overrides=overrides)

        assert transforms.rewrite_content("a.b axb") == "c axb"

    def test_strip_regions(self):
        overrides = overrides_from_config(
            {"m": {"strip_regions": [{"paths": "**/*.java", "start": "BEGIN_{{ module }}", "end": "END"}]}}
        )
        transforms = build_transform_set("m", "V1", module_overrides=overrides)

        assert rewrite(transforms, JAVA, "a\n// BEGIN_m\nb\n// END\nc\n") == "a\nc\n"
        assert rewrite(transforms, KOTLIN, "a\n// BEGIN_m\n") == "a\n// BEGIN_m\n"

    def test_rule_names(self):
        overrides = overrides_from_config(
            {"m": {"content": [{"find": "a", "replace_with": "b"}], "strip_regions": [{"start": "S", "end": "E"}]}}
        )
        transforms = resolve_override(overrides["m"], "V1")

        assert [rule.label for rule in transforms.content] == ["m:content[0]", "m:strip_regions[0]"]

    def test_invalid_entry(self):
        with pytest.raises(ValidationError):
            overrides_from_config({"m": {"content": [{"find": "a"}]}})

    def test_undefined_template_variable(self):
        overrides = overrides_from_config({"m": {"content": [{"find": "a", "replace_with": "{{ nope }}"}]}})

        with pytest.raises(TransformError, match="Undefined"):
            build_transform_set("m", "V1", module_overrides=overrides)
