# catalog_app/utils.py

import re
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Tuple, Optional, Set, Any, Iterator, Iterable

import dateutil.parser
from guessit import guessit

log = logging.getLogger(__name__)

_INTEGER_RE = re.compile(r'^[+-]?\d+$')

# --- Untrusted catalog value parsing ---

def parse_catalog_id(value: Any) -> Optional[str]:
    """
    Normalizes a cross-referenced ID that may arrive as a number, a string,
    null or the literal text "NULL" (any case). Returns None when absent.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if value != value: return None # NaN
        return str(int(value)) if value.is_integer() else repr(value)
    text = str(value).strip()
    if not text or text.upper() == "NULL":
        return None
    return text

def parse_optional_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    text = str(value).strip()
    if _INTEGER_RE.match(text):
        return int(text)
    return None

def parse_optional_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None

def parse_optional_str(value: Any) -> Optional[str]:
    if value is None: return None
    text = str(value)
    return text if text.strip() else None

def parse_date(date_str: Optional[str]) -> Optional[datetime]:
    """Parses a catalog date; naive values are taken as UTC. None on failure."""
    if not date_str or not str(date_str).strip(): return None
    try:
        parsed = dateutil.parser.parse(str(date_str))
    except (ValueError, OverflowError) as e:
        log.warning(f"Could not parse date string '{date_str}': {e}")
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)

def split_csv(value: Optional[str]) -> List[str]:
    if not value: return []
    return [item.strip() for item in str(value).split(',') if item.strip()]

# --- Local file facts ---

def guess_episode_indices(file_path: Path) -> Tuple[Optional[int], Optional[int]]:
    """Season and episode numbers read from the file name, (None, None) when absent."""
    try:
        guess = guessit(str(Path(file_path).name))
    except Exception as e: # guessit raises its own error types on odd names
        log.warning(f"Guessit failed for '{file_path}': {e}")
        return None, None
    log.debug(f"Guessit: {dict(guess)}")

    season = guess.get('season')
    episode = guess.get('episode')
    if isinstance(season, list): season = season[0] if season else None
    if isinstance(episode, list): episode = episode[0] if episode else None
    return parse_optional_int(season), parse_optional_int(episode)

def _is_ignored(item_path: Path, ignore_patterns: Iterable[str]) -> bool:
    """Checks if a given path should be ignored based on config."""
    for pattern in ignore_patterns:
        try:
            if item_path.match(pattern):
                log.debug(f"  -> Ignoring '{item_path}' (matches ignore pattern: '{pattern}')")
                return True
        except ValueError as e_match:
            log.error(f"  -> Error matching pattern '{pattern}' against '{item_path}': {e_match}")
            return True
    return False

def scan_episode_files(series_dir: Path, video_extensions: Iterable[str], ignore_patterns: Iterable[str] = ('.*', '*[sS]ample*'), recursive: bool = True) -> Iterator[Path]:
    """Yields video files below a series folder in a stable (sorted) order."""
    base_path = Path(series_dir).resolve()
    if not base_path.is_dir():
        log.error(f"Target path is not a valid directory: {base_path}")
        return
    allowed_ext: Set[str] = {ext.lower() for ext in video_extensions}
    patterns = list(ignore_patterns)
    iterator = base_path.rglob('*') if recursive else base_path.glob('*')
    for item in sorted(iterator):
        if any(_is_ignored(Path(part), patterns) for part in item.relative_to(base_path).parts):
            continue
        if item.is_file() and item.suffix.lower() in allowed_ext:
            yield item
