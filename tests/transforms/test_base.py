#!/usr/bin/env python3
"""Tests for Transform base classes and the error hierarchy."""

import pytest

from versioner.core.constants import ErrorCode, ErrorKind
from versioner.transforms.base import (
    FunctionTransform,
    MalformedRegionError,
    PatternCompileError,
    TargetCollisionError,
    Transform,
    TransformError,
    TransformIOError,
    TransformResult,
)


class UppercaseTransform(Transform):
    """Transform that uppercases content."""

    def transform(self, content, path):
        return content.upper()


class KotlinOnlyTransform(Transform):
    """Transform that only supports .kt files."""

    def supports(self, path):
        return path.endswith(".kt")

    def transform(self, content, path):
        return content + "// kotlin\n"


class RegionFailingTransform(Transform):
    """Transform that always reports an unterminated region."""

    def transform(self, content, path):
        raise MalformedRegionError("Region never closed", line=3)


class CrashingTransform(Transform):
    """Transform with a bug."""

    def transform(self, content, path):
        raise KeyError("boom")


class TestErrorHierarchy:
    """Tests for the per-file error classes."""

    def test_all_derive_from_transform_error(self):
        for cls in (MalformedRegionError, PatternCompileError, TransformIOError, TargetCollisionError):
            assert issubclass(cls, TransformError)

    def test_error_kinds(self):
        assert TransformError("x").error_kind == ErrorKind.TRANSFORM
        assert MalformedRegionError("x").error_kind == ErrorKind.MALFORMED_REGION
        assert PatternCompileError("x").error_kind == ErrorKind.PATTERN_COMPILE
        assert TransformIOError("x").error_kind == ErrorKind.IO
        assert TargetCollisionError("x").error_kind == ErrorKind.IO

    def test_malformed_region_carries_line(self):
        error = MalformedRegionError("Region never closed", line=7, transform_name="strip")

        assert error.line == 7
        assert error.transform_name == "strip"
        assert error.error_code == ErrorCode.INVALID_INPUT
        assert str(error) == "Region never closed"

    def test_pattern_compile_carries_pattern(self):
        assert PatternCompileError("bad", pattern="(").pattern == "("

    def test_collision_is_conflict(self):
        error = TargetCollisionError("two sources", "src/main/java/V1/A.kt")

        assert error.error_code == ErrorCode.CONFLICT
        assert error.path == "src/main/java/V1/A.kt"


class TestTransform:
    """Tests for Transform base class."""

    def test_default_name(self):
        assert UppercaseTransform().name == "UppercaseTransform"

    def test_call(self):
        assert UppercaseTransform()("abc") == "ABC"

    def test_apply_success(self):
        result = UppercaseTransform(name="upper").apply("abc", "A.kt")

        assert isinstance(result, TransformResult)
        assert result.success
        assert result.content == "ABC"
        assert result.transform_name == "upper"
        assert result.metadata == {"transform": "upper"}

    def test_apply_unsupported_path(self):
        result = KotlinOnlyTransform().apply("abc", "A.java")

        assert result.content == "abc"
        assert result.metadata["reason"] == "Path not supported"

    def test_apply_failure_keeps_original(self):
        result = RegionFailingTransform().apply("original", "A.kt")

        assert not result.success
        assert result.content == "original"
        assert result.error_kind == ErrorKind.MALFORMED_REGION
        assert isinstance(result.exception, MalformedRegionError)
        assert "Region never closed" in result.error

    def test_apply_unexpected_exception(self):
        result = CrashingTransform().apply("x", "A.kt")

        assert not result.success
        assert result.error_kind == ErrorKind.TRANSFORM
        assert isinstance(result.exception, KeyError)

    def test_repr(self):
        transform = UppercaseTransform(name="upper")

        assert repr(transform) == "<UppercaseTransform name=upper>"


class TestFunctionTransform:
    """Tests for FunctionTransform."""

    def test_wraps_callable(self):
        transform = FunctionTransform(str.upper)

        assert transform.name == "upper"
        assert transform.apply("abc", "A.kt").content == "ABC"

    def test_explicit_name(self):
        assert FunctionTransform(lambda s: s, name="identity").name == "identity"

    def test_non_string_result(self):
        transform = FunctionTransform(lambda s: 42, name="broken")

        with pytest.raises(TransformError, match="returned int"):
            transform.transform("abc", "A.kt")
