#!/usr/bin/env python3
"""Main entry point for a versioning run.

This module handles:
- Component initialization (module overrides, transform set, applier)
- Signal handling for cancelling a pass between files
- Dry runs that only print the path mapping
- Reporting per-file failures and deriving the exit status

Example:
    >>> from versioner.main import version_module
    >>> report = version_module("android", "out/ABI45_0_0", "ABI45_0_0", "expo-updates",
    ...                         packages_to_rename=["expo.modules"])
"""

import argparse
import signal
import sys
import threading
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from versioner.core.constants import ConfigKey, ErrorKind
from versioner.core.logging import Logger, get_logger
from versioner.rules.engine import FileTransformSet
from versioner.versioning.applier import ApplyReport, TransformApplier
from versioner.versioning.builder import (
    ModuleConfig,
    ModuleOverride,
    build_transform_set,
    default_module_overrides,
    overrides_from_config,
    resolve_override,
)


def version_module(
    source: str,
    dest: str,
    version: str,
    module: str,
    packages_to_keep: Sequence[str] = (),
    packages_to_rename: Sequence[str] = (),
    module_overrides: Optional[ModuleConfig] = None,
    workers: int = 1,
    halt_on_error: bool = False,
) -> ApplyReport:
    """Build the transform set for a module and apply it to a tree.

    Args:
        source: Module source root
        dest: Destination root for the versioned copy
        version: Version token
        module: Module name
        packages_to_keep: Packages left un-prefixed
        packages_to_rename: Packages prefixed with the version token
        module_overrides: Module override mapping (default: built-in overrides)
        workers: Worker threads
        halt_on_error: Stop after the first failing file

    Returns:
        ApplyReport; call ``raise_for_errors()`` to turn failures into an exception
    """
    if module_overrides is None:
        module_overrides = default_module_overrides()

    transforms = build_transform_set(
        module, version, packages_to_keep, packages_to_rename, module_overrides
    )
    applier = TransformApplier(transforms, workers=workers, halt_on_error=halt_on_error)
    return applier.apply(source, dest)


class VersionerMain:
    """
    Main class for a versioning run.

    Handles component setup, the applier pass, and reporting.
    """

    def __init__(self, args: argparse.Namespace, config: Dict[str, Any], logger: Logger):
        """
        Initialize versioner main controller.

        Args:
            args: Parsed command-line arguments
            config: Merged ``versioner`` configuration section
            logger: Logger instance
        """
        self.args = args
        self.config = config
        self.logger = logger

        self.module_overrides: Optional[ModuleConfig] = None
        self.transform_set: Optional[FileTransformSet] = None
        self.applier: Optional[TransformApplier] = None
        self.report: Optional[ApplyReport] = None

    def initialize_components(self) -> None:
        """
        Build module overrides, the transform set and the applier.

        Raises:
            ValidationError: If the configuration is invalid
        """
        self.logger.info("Initializing components...")

        # Configured overrides are layered after the built-in ones
        overrides: Dict[str, Any] = dict(default_module_overrides())
        configured = overrides_from_config(self.config.get(ConfigKey.MODULES) or {})
        for name, override in configured.items():
            if name in overrides:
                overrides[name] = _chain(overrides[name], override)
            else:
                overrides[name] = override
        self.module_overrides = overrides

        module = self.config.get(ConfigKey.MODULE) or Path(self.args.source).resolve().name
        version = self.config[ConfigKey.VERSION]

        with self.logger.add_context(module=module, version=version):
            self.transform_set = build_transform_set(
                module,
                version,
                self.config.get(ConfigKey.PACKAGES_TO_KEEP, []),
                self.config.get(ConfigKey.PACKAGES_TO_RENAME, []),
                self.module_overrides,
            )
            self.logger.debug(
                "Transform set built",
                path_rules=len(self.transform_set.path),
                content_rules=len(self.transform_set.content),
            )

        self.applier = TransformApplier(
            self.transform_set,
            workers=self.config.get(ConfigKey.WORKERS, 1),
            halt_on_error=self.config.get(ConfigKey.HALT_ON_ERROR, False),
            logger=self.logger,
        )

        self.logger.info("All components initialized successfully")

    def setup_signal_handlers(self) -> Dict[int, Any]:
        """
        Cancel the pass between files on SIGTERM/SIGINT.

        Returns:
            Previous handlers, for restore_signal_handlers()
        """

        def signal_handler(signum, frame):
            sig_name = signal.Signals(signum).name
            self.logger.warning(f"Received signal {sig_name}, cancelling after current files")
            if self.applier:
                self.applier.cancel()

        previous = {}
        for signum in (signal.SIGTERM, signal.SIGINT):
            previous[signum] = signal.signal(signum, signal_handler)

        self.logger.debug("Signal handlers registered")
        return previous

    def restore_signal_handlers(self, previous: Dict[int, Any]) -> None:
        for signum, handler in previous.items():
            signal.signal(signum, handler)

    def print_plan(self) -> int:
        """Print the source → destination path mapping without writing."""
        for rel, target in self.applier.plan(self.args.source):
            marker = "*" if self.transform_set.content_rules_for(rel, target) else " "
            print(f"{marker} {rel} -> {target}")
        return 0

    def report_errors(self, report: ApplyReport) -> None:
        for error in report.errors:
            self.logger.error(
                error.message, file=error.file, error_kind=error.error_kind.value
            )
            if error.error_kind == ErrorKind.MALFORMED_REGION:
                self.logger.error(
                    "Unterminated strip region would leave unversioned code in the output",
                    file=error.file,
                )

    def run(self) -> int:
        """
        Run the versioning pass.

        Returns:
            Exit code (0 for success, 1 on failures, 130 if cancelled)
        """
        self.initialize_components()

        if getattr(self.args, "dry_run", False):
            return self.print_plan()

        previous = self.setup_signal_handlers() if threading_main() else {}
        try:
            self.report = self.applier.apply(self.args.source, self.args.dest)
        finally:
            self.restore_signal_handlers(previous)

        if self.report.cancelled:
            self.logger.warning(
                "Pass cancelled, destination tree is incomplete and must be discarded",
                dest=self.report.dest_root,
            )
            return 130

        if self.report.errors:
            self.report_errors(self.report)
            return 1

        self.logger.info("Versioned copy written", **self.report.summary())
        return 0


def _chain(first: ModuleOverride, second: ModuleOverride) -> ModuleOverride:
    def factory(version: str) -> FileTransformSet:
        return resolve_override(first, version).extend(resolve_override(second, version))

    return factory


def threading_main() -> bool:
    """True when running on the main thread, where signal handlers may be set."""
    return threading.current_thread() is threading.main_thread()


def run_versioner(args: argparse.Namespace, config: Dict[str, Any], logger: Optional[Logger] = None) -> int:
    """
    Main entry point for running a versioning pass.

    Args:
        args: Parsed command-line arguments
        config: Merged ``versioner`` configuration section
        logger: Logger instance

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    main = VersionerMain(args, config, logger or get_logger())
    return main.run()


def main():
    """
    Entry point when run as standalone script.
    """
    from versioner.cli import main as cli_main

    return cli_main()


if __name__ == "__main__":
    sys.exit(main())
