#!/usr/bin/env python3
"""Base classes for content transformations.

This module provides the foundation for all text transforms:
- Transform abstract base class
- FunctionTransform for plain ``str -> str`` callables
- TransformResult for returning transformed content
- TransformError and the per-file error hierarchy

Example:
    >>> class UppercaseTransform(Transform):
    ...     def transform(self, content, path):
    ...         return content.upper()
    ...
    >>> transform = UppercaseTransform()
    >>> result = transform.apply("hello", "src/main/java/Foo.java")
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from versioner.core.constants import ErrorCode, ErrorKind


class TransformError(Exception):
    """Error during transformation."""

    error_kind = ErrorKind.TRANSFORM

    def __init__(
        self,
        message: str,
        transform_name: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
    ):
        self.message = message
        self.transform_name = transform_name
        self.error_code = error_code
        super().__init__(message)


class MalformedRegionError(TransformError):
    """A strip region has a start marker but no following end marker."""

    error_kind = ErrorKind.MALFORMED_REGION

    def __init__(self, message: str, line: Optional[int] = None, transform_name: Optional[str] = None):
        self.line = line
        super().__init__(message, transform_name, ErrorCode.INVALID_INPUT)


class PatternCompileError(TransformError):
    """A find pattern could not be compiled."""

    error_kind = ErrorKind.PATTERN_COMPILE

    def __init__(self, message: str, pattern: Optional[str] = None, transform_name: Optional[str] = None):
        self.pattern = pattern
        super().__init__(message, transform_name, ErrorCode.INVALID_INPUT)


class TransformIOError(TransformError):
    """Reading, decoding or writing a file failed."""

    error_kind = ErrorKind.IO

    def __init__(self, message: str, path: Optional[str] = None, error_code: ErrorCode = ErrorCode.INTERNAL_ERROR):
        self.path = path
        super().__init__(message, error_code=error_code)


class TargetCollisionError(TransformIOError):
    """Two source files were mapped to the same destination path."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message, path, ErrorCode.CONFLICT)


@dataclass
class TransformResult:
    """Result of a transformation.

    Contains the transformed content and metadata about the transformation.
    On failure ``content`` is the unmodified input and ``exception`` holds
    the original error.
    """

    content: str
    success: bool = True
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    exception: Optional[BaseException] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    transform_name: Optional[str] = None
    duration_ms: float = 0.0


class Transform(ABC):
    """Abstract base class for text transformations.

    All transforms must implement:
    - transform(): Core transformation logic

    Optional overrides:
    - supports(): Check if transform applies to a path
    - get_metadata(): Return transform metadata
    """

    def __init__(self, name: Optional[str] = None):
        """Initialize transform.

        Args:
            name: Optional name for this transform
        """
        self.name = name or self.__class__.__name__

    @abstractmethod
    def transform(self, content: str, path: str) -> str:
        """Transform content.

        Args:
            content: Input text
            path: Relative file path (for context)

        Returns:
            Transformed text

        Raises:
            TransformError: If transformation fails
        """

    def supports(self, path: str) -> bool:
        """Check if this transform supports the given path."""
        return True

    def __call__(self, content: str, path: str = "") -> str:
        return self.transform(content, path)

    def apply(self, content: str, path: str) -> TransformResult:
        """Apply transformation with error handling and timing.

        Failures are captured in the returned result rather than raised.

        Args:
            content: Input text
            path: Relative file path

        Returns:
            TransformResult with transformed content
        """
        if not self.supports(path):
            return TransformResult(
                content=content,
                metadata={"skipped": True, "reason": "Path not supported"},
                transform_name=self.name,
            )

        start_time = time.time()

        try:
            transformed = self.transform(content, path)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            return TransformResult(
                content=content,  # Return original on error
                success=False,
                error=f"{self.name}: {e}",
                error_kind=getattr(e, "error_kind", ErrorKind.TRANSFORM),
                exception=e,
                transform_name=self.name,
                duration_ms=duration_ms,
            )

        duration_ms = (time.time() - start_time) * 1000

        return TransformResult(
            content=transformed,
            metadata=self.get_metadata(path),
            transform_name=self.name,
            duration_ms=duration_ms,
        )

    def get_metadata(self, path: str) -> Dict[str, Any]:
        """Get transform metadata."""
        return {"transform": self.name}

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name}>"


class FunctionTransform(Transform):
    """Transform backed by a plain ``text -> text`` callable."""

    def __init__(self, func: Callable[[str], str], name: Optional[str] = None):
        super().__init__(name=name or getattr(func, "__name__", None))
        self._func = func

    def transform(self, content: str, path: str) -> str:
        result = self._func(content)
        if not isinstance(result, str):
            raise TransformError(
                f"Transform function returned {type(result).__name__}, expected str", self.name
            )
        return result
