#!/usr/bin/env python3
import sys
import logging
import asyncio
from typing import List, Optional

from catalog_app.cli import parse_arguments
from catalog_app.catalog_client import CatalogClient
from catalog_app.config_manager import ConfigManager, ConfigHelper
from catalog_app.enums import ResolutionStatus
from catalog_app.exceptions import ResolverError, UserAbortError, ConfigError
from catalog_app.log_setup import setup_logging
from catalog_app.models import LocalSeriesItem, LocalSeasonItem, LocalEpisodeFile, ResolutionResult
from catalog_app.processor import LibraryProcessor
from catalog_app.ui_utils import make_console, make_error_console, print_results
from catalog_app.utils import scan_episode_files

log = logging.getLogger("catalog_app")

EXIT_OK = 0
EXIT_NO_MATCH = 1
EXIT_CATALOG_UNAVAILABLE = 2
EXIT_CONFIG_ERROR = 3
EXIT_ABORTED = 130


def exit_code_for(results: List[ResolutionResult]) -> int:
    if any(r.status is ResolutionStatus.CATALOG_UNAVAILABLE for r in results):
        return EXIT_CATALOG_UNAVAILABLE
    if any(not r.status.has_match for r in results):
        return EXIT_NO_MATCH
    return EXIT_OK


async def run_command(args, cfg: ConfigHelper, processor: LibraryProcessor) -> List[ResolutionResult]:
    if args.command == 'series':
        item = LocalSeriesItem.from_folder(args.folder, name=args.name, year=args.year, bound_id=args.bound_id)
        return [await processor.process_series(item)]

    if args.command == 'season':
        item = LocalSeasonItem(season_number=args.season_number, bound_id=args.bound_id)
        return [await processor.process_season(args.series_id, item)]

    if args.command == 'episode':
        local_file = LocalEpisodeFile.from_path(args.file, season_number=args.season, episode_number=args.episode)
        return [await processor.process_episode(args.series_id, local_file)]

    if args.command == 'scan':
        if not args.folder.is_dir():
            raise ResolverError(f"Scan target is not a directory: {args.folder}")
        recursive = bool(cfg('recursive', True, arg_value=args.recursive))
        files = [
            LocalEpisodeFile.from_path(p, year=args.year)
            for p in scan_episode_files(args.folder, cfg.get_list('video_extensions'), cfg.get_list('ignore_patterns'), recursive=recursive)
        ]
        log.info(f"Found {len(files)} episode file(s) in '{args.folder}'.")
        item = LocalSeriesItem.from_folder(args.folder, name=args.name, year=args.year, bound_id=args.bound_id)
        return await processor.process_folder(item, files)

    raise ResolverError(f"Unknown command: {args.command}")


async def main_async(argv=None) -> int:
    args = parse_arguments(argv)
    is_quiet = getattr(args, 'quiet', False)
    console = make_console(quiet=is_quiet)
    err_console = make_error_console()
    catalog: Optional[CatalogClient] = None

    try:
        config_manager = ConfigManager(config_path_override=getattr(args, 'config', None))
        cfg = ConfigHelper(config_manager, args)

        log_level_str = cfg('log_level', 'INFO', arg_value=getattr(args, 'log_level', None))
        log_level_val_console = getattr(logging, str(log_level_str).upper(), logging.INFO)
        setup_logging(
            log_level_console=log_level_val_console,
            log_file=cfg('log_file', None, arg_value=getattr(args, 'log_file', None)),
            session={
                "Profile": cfg.profile,
                "Config": config_manager.config_path,
                "Catalog": cfg('catalog_api_url'),
                "Command": args.command,
            },
        )
        log.debug(f"Full logging configured. Parsed args: {args}")
        log.debug(f"Using profile: {args.profile}")

        catalog = CatalogClient.from_config(cfg)
        processor = LibraryProcessor.from_config(catalog, cfg)
        try:
            results = await run_command(args, cfg, processor)
        except asyncio.CancelledError:
            raise UserAbortError("Resolution cancelled by user.")
        print_results(console, results, title=f"Catalog resolution: {args.command}")
        return exit_code_for(results)

    except ConfigError as e_cfg:
        err_console.print(f"[bold red]FATAL CONFIGURATION ERROR:[/bold red] {e_cfg}")
        if log.handlers: log.critical(f"Config Error: {e_cfg}")
        return EXIT_CONFIG_ERROR
    except UserAbortError as e_abort:
        if log.handlers: log.warning(str(e_abort))
        err_console.print(f"\n{e_abort}")
        return EXIT_ABORTED
    except ResolverError as e_app:
        if log.handlers: log.error(f"Application Error: {e_app}")
        err_console.print(f"[bold red]ERROR:[/bold red] {e_app}")
        return EXIT_NO_MATCH
    finally:
        if catalog is not None:
            catalog.close()


def main(argv=None):
    try:
        exit_code = asyncio.run(main_async(argv))
    except KeyboardInterrupt:
        print("\nCancelled by user.", file=sys.stderr)
        exit_code = EXIT_ABORTED
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
