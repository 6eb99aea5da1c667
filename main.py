#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Drive Inspector - Console Entry Point

Prints the disk section of the system information report, or the media
type of a single drive.
"""

import argparse
import sys
from typing import List, Optional

from PySide6.QtCore import QCoreApplication


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="drive-inspector",
        description="Report capacity and media type (HDD/SSD/NVMe) of local fixed drives"
    )
    parser.add_argument("--drive", "-d", action="append",
                        help="Resolve only this drive letter (repeatable), e.g. C or D:")
    parser.add_argument("--debug", action="store_true",
                        help="Show debug log messages on the console")
    parser.add_argument("--diagnostics", action="store_true",
                        help="Include per-source detection details")
    parser.add_argument("--timeout", type=float, default=None,
                        help="Deadline in seconds for the whole collection")
    return parser.parse_args(argv)


def resolve_drives(drives: List[str]) -> int:
    """Resolve the given drives synchronously; exit code 1 if any stayed Unknown"""
    from core.logger import logger
    from core.services import get_service
    from drive_inspector import IMediaTypeService

    resolver = get_service(IMediaTypeService)
    exit_code = 0
    for drive, result in resolver.resolve_many(drives).items():
        logger.info(f"{drive}: {result.label}" + (f" ({result.error})" if result.error else ""))
        if result.diagnostics:
            logger.info(result.diagnostic_text())
        if result.is_unknown:
            exit_code = 1
    return exit_code


def collect_report(app: QCoreApplication, timeout: Optional[float]) -> int:
    """Run the full disk collection on a worker thread and log the rows"""
    from core.logger import logger
    from drive_inspector.workers import DiskInfoWorker

    outcome = {'exit_code': 0}

    def on_result(result):
        if result.success:
            for row in result.value:
                logger.info(f"[{row.category}] {row.item}: {row.value}")
            for warning in result.warnings:
                logger.warning(warning)
        else:
            logger.error(result.error.message)
            outcome['exit_code'] = 2

    worker = DiskInfoWorker(timeout=timeout)
    worker.result_ready.connect(on_result)
    worker.finished.connect(app.quit)
    worker.progress_update.connect(lambda pct, msg: logger.debug(f"{pct:3d}% {msg}"))
    worker.start()

    app.exec()
    worker.wait()
    return outcome['exit_code']


def main(argv: Optional[List[str]] = None) -> int:
    """Application entry point"""
    args = parse_args(argv)

    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    app.setApplicationName("Drive Inspector")
    app.setOrganizationName("DriveInspector")

    from core.logger import logger
    from core.settings_manager import settings
    import drive_inspector

    if args.debug or settings.debug_logging:
        logger.enable_debug(True)
    logger.cleanup_old_logs(settings.log_retention_days)

    try:
        drive_inspector.register_services(settings, include_diagnostics=args.diagnostics or None)
    except Exception as e:
        logger.error(f"Drive inspector initialization failed: {e}")
        return 2

    if args.drive:
        return resolve_drives(args.drive)
    return collect_report(app, args.timeout)


if __name__ == "__main__":
    sys.exit(main())
