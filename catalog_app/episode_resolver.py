# catalog_app/episode_resolver.py
"""
Episode resolution for a file inside an already-resolved series.

Tier 1 compares normalized file names for exact equality across every season.
Tier 2 runs only when tier 1 finds nothing and the file declares both a season
and an episode index; it matches the season number, then the explicit episode
number, then the numeric display episode.
"""

import logging
import os
import re
from pathlib import Path
from typing import Optional, List, Tuple, Any

from .models import CatalogEpisode, CatalogSeason, EpisodeMatch, LocalEpisodeFile
from .normalizer import normalize_filename
from .utils import parse_optional_int

log = logging.getLogger(__name__)

# (season, episodes of that season) for every season of a series, in catalog order.
SeriesSnapshot = List[Tuple[CatalogSeason, List[CatalogEpisode]]]

_PATH_SEPARATORS_RE = re.compile(r"[\\/]")


def file_name_key(file_name: Optional[str]) -> str:
    """
    Matching key for a file name as stored by the catalog or found on disk:
    directory part dropped (either separator), last extension dropped, then normalized.
    """
    if not file_name or not str(file_name).strip():
        return ""
    base_name = _PATH_SEPARATORS_RE.split(str(file_name).strip())[-1]
    stem, _ext = os.path.splitext(base_name)
    return normalize_filename(stem or base_name)


def resolve_numbering(episode: CatalogEpisode, season: CatalogSeason) -> Tuple[Optional[int], Optional[int]]:
    """(season_number, episode_number) preferring explicit catalog numbers over display fields."""
    episode_number = episode.episode_number
    if episode_number is None:
        episode_number = parse_optional_int(episode.display_episode)
    season_number = season.season_number
    if season_number is None:
        season_number = parse_optional_int(episode.display_season)
    return season_number, episode_number


def match_by_filename(local_key: str, seasons_with_episodes: SeriesSnapshot) -> Optional[Tuple[CatalogEpisode, CatalogSeason]]:
    if not local_key:
        return None
    matches: List[Tuple[CatalogEpisode, CatalogSeason]] = []
    for season, episodes in seasons_with_episodes:
        for episode in episodes:
            original_key = file_name_key(episode.original_filename)
            nfo_key = file_name_key(episode.nfo_filename)
            if (original_key and original_key == local_key) or (nfo_key and nfo_key == local_key):
                matches.append((episode, season))
    if not matches:
        return None
    if len(matches) > 1:
        log.debug(f"{len(matches)} file name matches for '{local_key}', preferring one with an explicit episode number")
    numbered = next((m for m in matches if m[0].episode_number is not None), None)
    return numbered or matches[0]


def match_by_number(episodes: List[CatalogEpisode], episode_number: int) -> Optional[CatalogEpisode]:
    explicit = next((e for e in episodes if e.episode_number == episode_number), None)
    if explicit is not None:
        return explicit
    return next((e for e in episodes if parse_optional_int(e.display_episode) == episode_number), None)


class EpisodeResolver:
    def __init__(self, catalog):
        self.catalog = catalog

    async def load_snapshot(self, series_id: Any) -> SeriesSnapshot:
        """Every season of the series with its episodes; empty when the series has no seasons."""
        seasons = await self.catalog.get_seasons_for_series(series_id)
        if not seasons:
            log.warning(f"No seasons found in the catalog for series ID '{series_id}'.")
            return []
        snapshot: SeriesSnapshot = []
        for season in seasons:
            snapshot.append((season, await self.catalog.get_episodes_for_season(season.id)))
        log.debug(f"Loaded {len(snapshot)} season(s) with {sum(len(e) for _, e in snapshot)} episode(s) for series ID '{series_id}'")
        return snapshot

    async def resolve(self, series_id: Any, local_file: LocalEpisodeFile, snapshot: Optional[SeriesSnapshot] = None) -> Optional[EpisodeMatch]:
        """Matches one file; `snapshot` lets a batch share a single catalog read."""
        file_name = Path(local_file.path).name
        if snapshot is None:
            snapshot = await self.load_snapshot(series_id)
        if not snapshot:
            log.debug(f"Nothing to match '{file_name}' against in series ID '{series_id}'.")
            return None

        local_key = file_name_key(file_name)
        log.debug(f"Normalized local file name for matching: '{local_key}' (from: '{file_name}')")

        found = match_by_filename(local_key, snapshot)
        if found is not None:
            episode, season = found
            log.info(f"MATCH FOUND (FILE NAME): '{file_name}' is catalog episode ID {episode.id}.")
            return self._build_match(episode, season, tier=1)

        if local_file.season_number is not None and local_file.episode_number is not None:
            log.debug(f"No file name match. Trying numeric match S{local_file.season_number}E{local_file.episode_number}.")
            season, episodes = next(((s, e) for s, e in snapshot if s.season_number == local_file.season_number), (None, []))
            if season is not None:
                episode = match_by_number(episodes, local_file.episode_number)
                if episode is not None:
                    log.info(f"MATCH FOUND (NUMBER): S{local_file.season_number}E{local_file.episode_number} is catalog episode ID {episode.id}.")
                    return self._build_match(episode, season, tier=2)

        log.warning(f"NO MATCH FOUND for file '{file_name}' in series ID '{series_id}'.")
        return None

    def _build_match(self, episode: CatalogEpisode, season: CatalogSeason, tier: int) -> EpisodeMatch:
        season_number, episode_number = resolve_numbering(episode, season)
        log.debug(f"Resolved numbering for episode ID {episode.id}: S={season_number}, E={episode_number}")
        return EpisodeMatch(episode=episode, season=season, episode_number=episode_number, season_number=season_number, tier=tier)
