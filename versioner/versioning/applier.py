#!/usr/bin/env python3
"""Transform applier: materializes a versioned copy of a source tree.

For every file under the source root the applier:
1. Rewrites the relative path with the set's path rules
2. Runs the content rules whose filter matches the original or the new
   path, in declared order, or copies the bytes unchanged if none match
3. Writes the result under the destination root

Per-file failures are collected into the report and never abort the pass
silently; ``halt_on_error`` stops scheduling new files after the first one.

Example:
    >>> applier = TransformApplier(transforms, workers=4)
    >>> report = applier.apply("android", "versioned/ABI45_0_0/expo-updates")
    >>> report.raise_for_errors()
"""

import os
import shutil
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from versioner.core.constants import ErrorCode, ErrorKind, Limits
from versioner.core.logging import Logger, get_logger
from versioner.rules.engine import FileTransformSet
from versioner.transforms.base import TargetCollisionError, TransformError, TransformIOError
from versioner.transforms.pipeline import TransformPipeline

PathLike = Union[str, Path]


@dataclass
class FileError:
    """A failure while producing one destination file."""

    file: str
    error_kind: ErrorKind
    message: str
    target: Optional[str] = None
    exception: Optional[BaseException] = field(default=None, repr=False, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"file": self.file, "errorKind": self.error_kind.value, "message": self.message}


@dataclass
class FileResult:
    """Outcome for one source file."""

    source: str
    target: str
    transformed: bool = False
    rules_applied: List[str] = field(default_factory=list)
    error: Optional[FileError] = None

    @property
    def success(self) -> bool:
        return self.error is None


class VersioningError(TransformError):
    """Raised by ApplyReport.raise_for_errors when any file failed."""

    def __init__(self, errors: List[FileError]):
        self.errors = errors
        lines = [f"{e.file}: [{e.error_kind.value}] {e.message}" for e in errors]
        super().__init__(
            f"{len(errors)} file(s) failed to transform:\n" + "\n".join(lines),
            error_code=ErrorCode.INVALID_INPUT,
        )


@dataclass
class ApplyReport:
    """Aggregated result of one applier pass."""

    source_root: str
    dest_root: str
    results: List[FileResult] = field(default_factory=list)
    errors: List[FileError] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    cancelled: bool = False
    halted: bool = False
    duration_ms: float = 0.0

    @property
    def success(self) -> bool:
        return not self.errors and not self.cancelled

    @property
    def files_written(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def files_transformed(self) -> int:
        return sum(1 for r in self.results if r.success and r.transformed)

    def raise_for_errors(self) -> None:
        """Raise VersioningError if any file failed."""
        if self.errors:
            raise VersioningError(self.errors)

    def summary(self) -> Dict[str, Any]:
        return {
            "files": len(self.results),
            "written": self.files_written,
            "transformed": self.files_transformed,
            "failed": len(self.errors),
            "skipped": len(self.skipped),
            "cancelled": self.cancelled,
            "duration_ms": round(self.duration_ms, 2),
        }


def _error_kind(exc: BaseException) -> ErrorKind:
    if isinstance(exc, TransformError):
        return exc.error_kind
    if isinstance(exc, UnicodeDecodeError):
        return ErrorKind.DECODE
    if isinstance(exc, OSError):
        return ErrorKind.IO
    return ErrorKind.TRANSFORM


class TransformApplier:
    """Applies a FileTransformSet to a source tree.

    The set is only read, and each source file owns exactly one destination
    path, so worker threads never write the same file.
    """

    def __init__(
        self,
        transform_set: FileTransformSet,
        workers: int = Limits.DEFAULT_WORKERS,
        halt_on_error: bool = False,
        preserve_mode: bool = True,
        logger: Optional[Logger] = None,
    ):
        """Initialize applier.

        Args:
            transform_set: Rules to apply
            workers: Worker threads for file-level parallelism
            halt_on_error: Stop scheduling files after the first failure
            preserve_mode: Copy source file permission bits to the output
            logger: Logger (default: global logger)
        """
        if workers < 1:
            raise ValueError(f"workers must be positive, got {workers}")

        self._transforms = transform_set
        self._workers = workers
        self._halt_on_error = halt_on_error
        self._preserve_mode = preserve_mode
        self._logger = logger or get_logger()
        self._stop = threading.Event()
        self._halted = False
        self._lock = threading.Lock()

    @property
    def transform_set(self) -> FileTransformSet:
        return self._transforms

    def cancel(self) -> None:
        """Abort the pass before the next file starts.

        The destination tree of a cancelled pass is incomplete and must be
        discarded.
        """
        self._stop.set()

    @property
    def cancelled(self) -> bool:
        return self._stop.is_set() and not self._halted

    def iter_source_files(self, source_root: PathLike) -> List[str]:
        """List relative POSIX paths of all files under source_root, sorted."""
        root = Path(source_root)
        files = []
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames.sort()
            rel_dir = Path(dirpath).relative_to(root)
            for filename in sorted(filenames):
                full = Path(dirpath) / filename
                if full.is_file():
                    files.append((rel_dir / filename).as_posix())
        return sorted(files)

    def plan(self, source_root: PathLike) -> List[Tuple[str, str]]:
        """Map every source file to its rewritten relative path."""
        return [(rel, self._transforms.rewrite_path(rel)) for rel in self.iter_source_files(source_root)]

    def apply(self, source_root: PathLike, dest_root: PathLike) -> ApplyReport:
        """Rewrite source_root into dest_root.

        Args:
            source_root: Directory to read
            dest_root: Directory to write (created if missing)

        Returns:
            ApplyReport with per-file results and errors

        Raises:
            TransformIOError: If the roots are unusable
        """
        source = Path(source_root).resolve()
        dest = Path(dest_root).resolve()
        self._check_roots(source, dest)
        self._stop.clear()
        self._halted = False

        start_time = time.time()
        report = ApplyReport(source_root=str(source), dest_root=str(dest))
        files = self.iter_source_files(source)

        self._logger.info(
            "Applying transforms",
            source=str(source),
            dest=str(dest),
            files=len(files),
            rules=len(self._transforms),
            workers=self._workers,
        )

        claimed: Dict[str, str] = {}
        jobs: List[Tuple[str, str, Optional[str]]] = []
        for rel in files:
            try:
                target = self._transforms.rewrite_path(rel)
            except TransformError as e:
                # A broken path rule fails the file, not the pass
                result = FileResult(source=rel, target=rel, error=self._file_error(rel, None, e))
                report.results.append(result)
                report.errors.append(result.error)
                if self._halt_on_error:
                    self._halted = True
                    self._stop.set()
                continue
            jobs.append((rel, target, claimed.get(target)))
            claimed.setdefault(target, rel)

        if self._workers == 1:
            outcomes = [self._run(source, dest, *job) for job in jobs]
        else:
            with ThreadPoolExecutor(max_workers=self._workers) as pool:
                outcomes = list(pool.map(lambda job: self._run(source, dest, *job), jobs))

        for (rel, _target, _owner), outcome in zip(jobs, outcomes):
            if outcome is None:
                report.skipped.append(rel)
                continue
            report.results.append(outcome)
            if outcome.error is not None:
                report.errors.append(outcome.error)

        report.halted = self._halted
        report.cancelled = self.cancelled
        report.duration_ms = (time.time() - start_time) * 1000

        log = self._logger.info if report.success else self._logger.error
        log("Transform pass finished", **report.summary())
        return report

    def _check_roots(self, source: Path, dest: Path) -> None:
        if not source.is_dir():
            raise TransformIOError(
                f"Source directory does not exist: {source}", str(source), ErrorCode.NOT_FOUND
            )
        if dest == source or source in dest.parents:
            raise TransformIOError(
                f"Destination {dest} must not be inside source {source}", str(dest), ErrorCode.CONFLICT
            )
        if dest in source.parents:
            raise TransformIOError(
                f"Source {source} must not be inside destination {dest}", str(dest), ErrorCode.CONFLICT
            )
        if dest.exists() and not dest.is_dir():
            raise TransformIOError(f"Destination is not a directory: {dest}", str(dest))

    def _run(
        self, source: Path, dest: Path, rel: str, target: str, owner: Optional[str]
    ) -> Optional[FileResult]:
        if self._stop.is_set():
            return None

        with self._logger.add_context(file=rel):
            result = self.process_file(source, dest, rel, target, owner)

        if result.error is not None and self._halt_on_error:
            with self._lock:
                self._halted = True
            self._stop.set()
        return result

    def process_file(
        self, source: Path, dest: Path, rel: str, target: str, owner: Optional[str] = None
    ) -> FileResult:
        """Transform and write a single file.

        Args:
            source: Source root
            dest: Destination root
            rel: Relative source path
            target: Relative destination path
            owner: Earlier source file already mapped to target, if any

        Returns:
            FileResult; failures are recorded on it, never raised
        """
        result = FileResult(source=rel, target=target)

        try:
            if owner is not None:
                raise TargetCollisionError(f"{rel} and {owner} both map to {target}", target)

            target_path = (dest / target).resolve()
            if dest not in target_path.parents:
                raise TransformIOError(f"Rewritten path {target!r} escapes destination", target)

            rules = self._transforms.content_rules_for(rel, target)
            source_path = source / rel
            target_path.parent.mkdir(parents=True, exist_ok=True)

            if not rules:
                shutil.copyfile(source_path, target_path)
                self._logger.debug("Copied", target=target)
            else:
                with open(source_path, "r", encoding="utf-8", newline="") as f:
                    text = f.read()

                pipeline = TransformPipeline(
                    [rule.as_transform() for rule in rules], halt_on_error=True
                )
                transformed = pipeline.apply(text, rel)
                if not transformed.success:
                    if isinstance(transformed.exception, TransformError):
                        raise transformed.exception
                    raise TransformError(transformed.error or "Transform failed", transformed.transform_name)

                with open(target_path, "w", encoding="utf-8", newline="") as f:
                    f.write(transformed.content)

                result.transformed = True
                result.rules_applied = [rule.label for rule in rules]
                self._logger.debug("Transformed", target=target, rules=len(rules))

            if self._preserve_mode:
                shutil.copymode(source_path, target_path)

        except (TransformError, OSError, UnicodeDecodeError) as e:
            result.error = self._file_error(rel, target, e)

        return result

    def _file_error(self, rel: str, target: Optional[str], exc: BaseException) -> FileError:
        error = FileError(
            file=rel,
            error_kind=_error_kind(exc),
            message=str(exc),
            target=target,
            exception=exc,
        )
        self._logger.error(
            "File failed", file=rel, target=target, error_kind=error.error_kind.value, error=str(exc)
        )
        return error
