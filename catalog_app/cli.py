import argparse
from pathlib import Path
from . import __version__

def create_parser():
    parser = argparse.ArgumentParser(
        description=f"Resolve local series folders and episode files against the metadata catalog (v{__version__}).",
        formatter_class=argparse.RawTextHelpFormatter
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument('--config', type=Path, help='Path to TOML config file (overrides default search).')
    parser.add_argument('--profile', type=str, default='default', help='Configuration profile to use.')
    parser.add_argument('--log-level', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'], default=None, help='Console logging level (overrides config).')
    parser.add_argument('--log-file', type=str, default=None, help='Log file path (overrides config).')
    parser.add_argument('--quiet', '-q', action='store_true', default=False, help='Suppress result tables. Errors still shown.')

    subparsers = parser.add_subparsers(dest='command', required=True, help='Item kind to resolve')

    # --- Series Subparser ---
    parser_series = subparsers.add_parser('series', help='Resolve a series folder to a catalog series.', formatter_class=argparse.ArgumentDefaultsHelpFormatter)
    parser_series.add_argument("folder", type=Path, help="Series folder (its name is the fallback query).")
    parser_series.add_argument("--name", type=str, default=None, help="Declared series name (defaults to the folder name).")
    parser_series.add_argument("--year", type=int, default=None, help="Production year used for the year bonus.")
    parser_series.add_argument("--bound-id", type=str, default=None, help="Previously stored catalog series ID to validate.")

    # --- Season Subparser ---
    parser_season = subparsers.add_parser('season', help='Resolve a season inside a bound catalog series.', formatter_class=argparse.ArgumentDefaultsHelpFormatter)
    parser_season.add_argument("series_id", type=str, help="Catalog series ID of the parent series.")
    parser_season.add_argument("--season-number", type=int, default=None, help="Local season number.")
    parser_season.add_argument("--bound-id", type=str, default=None, help="Previously stored catalog season ID.")

    # --- Episode Subparser ---
    parser_episode = subparsers.add_parser('episode', help='Resolve one episode file inside a bound catalog series.', formatter_class=argparse.ArgumentDefaultsHelpFormatter)
    parser_episode.add_argument("series_id", type=str, help="Catalog series ID of the parent series.")
    parser_episode.add_argument("file", type=Path, help="Episode file.")
    parser_episode.add_argument("--season", type=int, default=None, help="Declared season index (default: guessed from the file name).")
    parser_episode.add_argument("--episode", type=int, default=None, help="Declared episode index (default: guessed from the file name).")

    # --- Scan Subparser ---
    parser_scan = subparsers.add_parser('scan', help='Resolve a series folder, then every episode file inside it.', formatter_class=argparse.ArgumentDefaultsHelpFormatter)
    parser_scan.add_argument("folder", type=Path, help="Series folder to scan.")
    parser_scan.add_argument("--name", type=str, default=None, help="Declared series name (defaults to the folder name).")
    parser_scan.add_argument("--year", type=int, default=None, help="Production year used for the year bonus.")
    parser_scan.add_argument("--bound-id", type=str, default=None, help="Previously stored catalog series ID to validate.")
    parser_scan.add_argument("-r", "--recursive", action=argparse.BooleanOptionalAction, default=None, help="Scan subfolders (overrides config).")

    return parser

def parse_arguments(argv=None):
    parser = create_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, 'profile') or args.profile is None:
        args.profile = 'default'
    return args
