"""Versioner Transforms - Text transformation system.

This module provides content transformation capabilities:
- TransformPipeline: Chain multiple transforms together
- Base transform classes and the per-file error hierarchy
- Region stripping between marker lines
- Jinja2 rendering of configured rule strings
"""

from .base import (
    FunctionTransform,
    MalformedRegionError,
    PatternCompileError,
    TargetCollisionError,
    Transform,
    TransformError,
    TransformIOError,
    TransformResult,
)
from .pipeline import TransformPipeline
from .regions import RegionStripTransform, delete_lines_between_tags
from .template import TemplateRenderer, render_template

__all__ = [
    # Pipeline
    "TransformPipeline",
    # Base classes
    "Transform",
    "FunctionTransform",
    "TransformResult",
    # Errors
    "TransformError",
    "MalformedRegionError",
    "PatternCompileError",
    "TransformIOError",
    "TargetCollisionError",
    # Regions
    "RegionStripTransform",
    "delete_lines_between_tags",
    # Templates
    "TemplateRenderer",
    "render_template",
]
