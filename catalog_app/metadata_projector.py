# catalog_app/metadata_projector.py
"""Maps catalog records onto library-facing metadata. Nothing here performs I/O."""

import logging
from typing import Optional, Iterable, Dict

from .enums import SeriesStatus
from .models import (
    CatalogSeries, CatalogSeason, CatalogActor, EpisodeMatch,
    SeriesMetadata, SeasonMetadata, EpisodeMetadata, PersonInfo,
    SERIES_PROVIDER_ID, SEASON_PROVIDER_ID, EPISODE_PROVIDER_ID,
)
from .utils import parse_date, split_csv

log = logging.getLogger(__name__)


def parse_series_status(status: Optional[str]) -> Optional[SeriesStatus]:
    if not status or not status.strip(): return None
    try:
        return SeriesStatus(status.strip().lower())
    except ValueError:
        return None


def _external_ids(provider_name: str, catalog_id: int, imdb_id: Optional[str], tmdb_id: Optional[str], tvdb_id: Optional[str]) -> Dict[str, str]:
    ids = {provider_name: str(catalog_id)}
    for key, value in (('Imdb', imdb_id), ('Tmdb', tmdb_id), ('Tvdb', tvdb_id)):
        if value and value.strip():
            ids[key] = value.strip()
    return ids


def project_series(series: CatalogSeries, actors: Iterable[CatalogActor] = ()) -> SeriesMetadata:
    log.debug(f"Catalog data for ID {series.id}: ImdbId='{series.imdb_id}', TmdbId='{series.tmdb_id}', TvdbId='{series.tvdb_id}'")
    people = [PersonInfo(name=a.name.strip(), role=a.role) for a in actors if a.name and a.name.strip()]
    return SeriesMetadata(
        name=series.title,
        original_title=series.original_title,
        overview=series.plot,
        premiere_date=parse_date(series.premiered),
        production_year=series.year,
        official_rating=series.mpaa,
        studios=[series.studio.strip()] if series.studio and series.studio.strip() else [],
        tagline=series.tagline,
        status=parse_series_status(series.status),
        sort_name=series.sort_title,
        community_rating=series.rating_value,
        genres=split_csv(series.genres),
        provider_ids=_external_ids(SERIES_PROVIDER_ID, series.id, series.imdb_id, series.tmdb_id, series.tvdb_id),
        people=people,
    )


def project_season(season: CatalogSeason) -> SeasonMetadata:
    premiere_date = parse_date(season.premiered)
    production_year = season.year
    if production_year is None and premiere_date is not None:
        production_year = premiere_date.year
    return SeasonMetadata(
        name=season.title,
        overview=season.plot,
        index_number=season.season_number,
        premiere_date=premiere_date,
        production_year=production_year,
        sort_name=season.sort_title,
        provider_ids=_external_ids(SEASON_PROVIDER_ID, season.id, season.imdb_id, season.tmdb_id, season.tvdb_id),
    )


def project_episode(match: EpisodeMatch, local_year: Optional[int] = None) -> EpisodeMetadata:
    episode = match.episode
    log.debug(f"Applying metadata: Title='{episode.title}', S={match.season_number}, E={match.episode_number}")
    return EpisodeMetadata(
        name=episode.title,
        overview=episode.plot,
        premiere_date=parse_date(episode.aired),
        index_number=match.episode_number,
        parent_index_number=match.season_number,
        official_rating=episode.mpaa,
        studios=[episode.studio.strip()] if episode.studio and episode.studio.strip() else [],
        production_year=local_year,
        provider_ids={EPISODE_PROVIDER_ID: str(episode.id)},
    )
