"""Application entry point — wires services and runs a backup or restore.

Usage:
    savevault backup [GAME ...] [--manifest FILE] [--path DIR] [--merge] [--preview]
    savevault restore [GAME ...] [--path DIR] [--preview]
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from loguru import logger

from savevault.config import DEFAULT_DATA_DIR, Config, get_config
from savevault.context import AppContext
from savevault.core.backup import BackupManager
from savevault.core.layout import BackupLayout
from savevault.core.restore import RestoreManager
from savevault.core.scanner import Scanner
from savevault.core.strict_path import StrictPath
from savevault.errors import (
    ConfigInvalidError,
    RestorationSourceInvalidError,
    SaveVaultError,
    SomeEntriesFailedError,
)
from savevault.logger import setup_logger
from savevault.models.game import Manifest
from savevault.models.scan import BackupInfo, OperationStatus, OperationStepDecision, ScanInfo
from savevault.utils import format_size


def create_context(config: Config | None = None) -> AppContext:
    """Wire all services and return an AppContext."""
    config = config or get_config()
    return AppContext(
        config=config,
        scanner=Scanner(),
        backup_manager=BackupManager(),
        restore_manager=RestoreManager(),
    )


def _report_game(
    name: str,
    scan_info: ScanInfo,
    backup_info: BackupInfo,
    decision: OperationStepDecision,
) -> None:
    label = "" if decision is OperationStepDecision.PROCESSED else f" ({decision})"
    print(f"{name}{label} [{format_size(scan_info.sum_bytes(backup_info))}]:")
    for file in sorted(scan_info.found_files, key=lambda f: f.path):
        marker = "[FAILED] " if file in backup_info.failed_files else ""
        shown = file.original_path or file.path
        print(f"  - {marker}{shown.render()}")
    for key in sorted(scan_info.found_registry_keys):
        marker = "[FAILED] " if key in backup_info.failed_registry else ""
        print(f"  - {marker}{key}")


def _report_overall(status: OperationStatus) -> None:
    print(
        f"\nOverall: {status.processed_games}/{status.total_games} games, "
        f"{format_size(status.processed_bytes)}/{format_size(status.total_bytes)}"
    )


def _select_games(requested: list[str], available: list[str]) -> list[str]:
    if not requested:
        return sorted(available)
    unknown = [name for name in requested if name not in available]
    if unknown:
        raise SaveVaultError(f"Unrecognized games: {', '.join(unknown)}")
    return requested


def run_backup(
    ctx: AppContext,
    games: list[str],
    manifest_file: Path | None = None,
    path: StrictPath | None = None,
    merge: bool | None = None,
    preview: bool = False,
) -> OperationStatus:
    manifest_file = manifest_file or ctx.config.manifest_path
    if manifest_file is None:
        raise ConfigInvalidError("no manifest file configured")
    manifest = Manifest.load(str(manifest_file))
    manifest_dir = StrictPath(str(Path(manifest_file).resolve().parent))

    target = path or ctx.config.backup_path
    merge = ctx.config.merge if merge is None else merge
    if not preview:
        ctx.backup_manager.prepare_backup_target(target, merge)
    layout = BackupLayout(target)
    roots = ctx.config.roots
    decision = OperationStepDecision.IGNORED if preview else OperationStepDecision.PROCESSED

    status = OperationStatus()
    failed: list[str] = []
    for name in _select_games(games, list(manifest.games)):
        scan_info = ctx.scanner.scan_game_for_backup(manifest[name], name, roots, manifest_dir)
        if not scan_info.found_anything():
            continue
        backup_info = BackupInfo()
        if decision is OperationStepDecision.PROCESSED:
            backup_info = ctx.backup_manager.back_up_game(scan_info, name, layout)
        status.add_game(scan_info, backup_info, processed=decision is OperationStepDecision.PROCESSED)
        if not backup_info.successful():
            failed.append(name)
        _report_game(name, scan_info, backup_info, decision)

    _report_overall(status)
    if failed:
        raise SomeEntriesFailedError(failed)
    return status


def run_restore(
    ctx: AppContext,
    games: list[str],
    path: StrictPath | None = None,
    preview: bool = False,
) -> OperationStatus:
    source = path or ctx.config.restore_path
    if not source.is_dir():
        raise RestorationSourceInvalidError(source)
    layout = BackupLayout(source)
    redirects = ctx.config.redirects
    decision = OperationStepDecision.IGNORED if preview else OperationStepDecision.PROCESSED

    status = OperationStatus()
    failed: list[str] = []
    for name in _select_games(games, list(layout.mapping.games)):
        scan_info = ctx.scanner.scan_game_for_restoration(name, layout)
        if not scan_info.found_anything():
            continue
        restore_info = BackupInfo()
        if decision is OperationStepDecision.PROCESSED:
            restore_info = ctx.restore_manager.restore_game(scan_info, redirects)
        status.add_game(scan_info, restore_info, processed=decision is OperationStepDecision.PROCESSED)
        if not restore_info.successful():
            failed.append(name)
        _report_game(name, scan_info, restore_info, decision)

    _report_overall(status)
    if failed:
        raise SomeEntriesFailedError(failed)
    return status


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="savevault", description="Back up and restore game save data.")
    parser.add_argument("-v", "--verbose", action="store_true", help="show debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    backup = sub.add_parser("backup", help="back up game data")
    backup.add_argument("games", nargs="*", help="only back up these games")
    backup.add_argument("--manifest", type=Path, help="manifest YAML file")
    backup.add_argument("--path", help="backup folder (default from config)")
    backup.add_argument(
        "--merge",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="keep other games already in the backup folder (default from config)",
    )
    backup.add_argument("--preview", action="store_true", help="list what would be backed up without copying")

    restore = sub.add_parser("restore", help="restore game data")
    restore.add_argument("games", nargs="*", help="only restore these games")
    restore.add_argument("--path", help="backup folder to restore from (default from config)")
    restore.add_argument("--preview", action="store_true", help="list what would be restored without copying")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Application entry point."""
    args = build_parser().parse_args(argv)
    # Before the config is read, so its warnings reach the log file
    setup_logger(DEFAULT_DATA_DIR / "logs", verbose=args.verbose)
    ctx = create_context()

    path = StrictPath(args.path) if args.path else None
    try:
        if args.command == "backup":
            run_backup(ctx, args.games, args.manifest, path, args.merge, args.preview)
        else:
            run_restore(ctx, args.games, path, args.preview)
    except SaveVaultError as e:
        logger.error(str(e))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
