#!/usr/bin/env python3
"""Transform pipeline for chaining content transformations.

This module provides sequential execution of text transforms:
- Declared-order chaining (each transform sees the previous output)
- Error capture with optional halt on first failure

Example:
    >>> pipeline = TransformPipeline([RegionStripTransform("FROM_HERE", "TO_HERE")], halt_on_error=True)
    >>> result = pipeline.apply(text, "src/main/java/Foo.java")
"""

from typing import Iterable, Optional

from versioner.core.logging import get_logger
from versioner.transforms.base import Transform, TransformResult


class TransformPipeline:
    """Pipeline for chaining multiple transforms.

    The transform list is fixed at construction, so one pipeline can be
    applied from several threads.
    """

    def __init__(self, transforms: Optional[Iterable[Transform]] = None, halt_on_error: bool = False):
        """Initialize transform pipeline.

        Args:
            transforms: Transforms, in execution order
            halt_on_error: Stop pipeline on first error (vs continue)
        """
        self._transforms = tuple(transforms or ())
        self._halt_on_error = halt_on_error
        self._logger = get_logger()

    def apply(self, content: str, path: str) -> TransformResult:
        """Apply all transforms in pipeline.

        Args:
            content: Input text
            path: Relative file path

        Returns:
            Final transform result; on failure it carries the first error
        """
        current = content
        transform_results = []
        first_failure: Optional[TransformResult] = None

        for transform in self._transforms:
            if not transform.supports(path):
                continue

            result = transform.apply(current, path)
            transform_results.append(
                {
                    "name": transform.name,
                    "success": result.success,
                    "error": result.error,
                    "duration_ms": result.duration_ms,
                }
            )

            if result.success:
                current = result.content
                continue

            self._logger.debug(f"Transform {transform.name} failed", path=path, error=result.error)
            if first_failure is None:
                first_failure = result
            if self._halt_on_error:
                break

        success = first_failure is None
        final_result = TransformResult(
            content=current,
            success=success,
            metadata={
                "transforms_applied": len(transform_results),
                "transform_results": transform_results,
                "pipeline_halted": not success and self._halt_on_error,
            },
        )
        if first_failure is not None:
            final_result.error = first_failure.error
            final_result.error_kind = first_failure.error_kind
            final_result.exception = first_failure.exception
            final_result.transform_name = first_failure.transform_name

        return final_result

    def __len__(self) -> int:
        return len(self._transforms)

    def __repr__(self) -> str:
        transform_names = [t.name for t in self._transforms]
        return f"<TransformPipeline transforms={transform_names}>"
