#!/usr/bin/env python3
"""Removal of tagged line regions.

A region starts at a line matching the start marker and ends at the next
line matching the end marker. Both marker lines are removed together with
everything between them.

Example:
    >>> text = "a\\n// WHEN_VERSIONING_REMOVE_FROM_HERE\\nb\\n// WHEN_VERSIONING_REMOVE_TO_HERE\\nc\\n"
    >>> delete_lines_between_tags("REMOVE_FROM_HERE", "REMOVE_TO_HERE", text)
    'a\\nc\\n'
"""

import re
from typing import Optional, Pattern, Union

from versioner.transforms.base import MalformedRegionError, PatternCompileError, Transform

Marker = Union[str, Pattern[str]]

# Lines end at "\n" only
_LINE_END = re.compile(r"(?<=\n)")


def _compile_marker(marker: Marker) -> Pattern[str]:
    if isinstance(marker, re.Pattern):
        return marker
    try:
        return re.compile(marker)
    except re.error as e:
        raise PatternCompileError(f"Invalid region marker {marker!r}: {e}", pattern=marker)


def delete_lines_between_tags(start: Marker, end: Marker, text: str) -> str:
    """Strip every start...end region from text.

    Args:
        start: Regex (or compiled pattern) searched for in each line
        end: Regex (or compiled pattern) closing the region
        text: Input text

    Returns:
        Text without the regions; line endings of kept lines are untouched

    Raises:
        MalformedRegionError: If a start marker has no following end marker
    """
    start_re = _compile_marker(start)
    end_re = _compile_marker(end)

    kept = []
    region_start: Optional[int] = None

    lines = [line for line in _LINE_END.split(text) if line]
    for lineno, line in enumerate(lines, start=1):
        if region_start is None:
            match = start_re.search(line)
            if match:
                region_start = lineno
                # A single line may open and close a region
                if end_re.search(line, match.end()):
                    region_start = None
                continue
            kept.append(line)
        elif end_re.search(line):
            region_start = None

    if region_start is not None:
        raise MalformedRegionError(
            f"Region opened at line {region_start} by {start_re.pattern!r} "
            f"is never closed by {end_re.pattern!r}",
            line=region_start,
        )

    return "".join(kept)


class RegionStripTransform(Transform):
    """Transform that strips tagged regions from file content."""

    def __init__(self, start: Marker, end: Marker, name: Optional[str] = None):
        """Initialize region strip transform.

        Args:
            start: Start marker pattern
            end: End marker pattern
            name: Transform name
        """
        super().__init__(name=name or "strip-region")
        self._start = _compile_marker(start)
        self._end = _compile_marker(end)

    @property
    def start(self) -> Pattern[str]:
        return self._start

    @property
    def end(self) -> Pattern[str]:
        return self._end

    def transform(self, content: str, path: str) -> str:
        try:
            return delete_lines_between_tags(self._start, self._end, content)
        except MalformedRegionError as e:
            e.transform_name = self.name
            raise

    def get_metadata(self, path: str):
        return {"transform": self.name, "start": self._start.pattern, "end": self._end.pattern}
