# models.py
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional, List, Dict, Any, Union

from .enums import ItemKind, ResolutionStatus, SeriesStatus
from .utils import (
    parse_catalog_id, parse_optional_int, parse_optional_float, parse_optional_str,
    guess_episode_indices
)

# Provider ID names under which bindings are stored by the host.
SERIES_PROVIDER_ID = "CatalogSeriesId"
SEASON_PROVIDER_ID = "CatalogSeasonId"
EPISODE_PROVIDER_ID = "CatalogEpisodeId"


# --- Catalog records (read-only projections of the remote JSON) ---

@dataclass
class CatalogSeries:
    id: int
    title: Optional[str] = None
    sort_title: Optional[str] = None
    original_title: Optional[str] = None
    show_title: Optional[str] = None
    title_for_plex: Optional[str] = None # Alternate/display title
    year: Optional[int] = None
    plot: Optional[str] = None
    rating_value: Optional[float] = None
    rating_votes: Optional[int] = None
    mpaa: Optional[str] = None
    premiered: Optional[str] = None
    studio: Optional[str] = None
    country: Optional[str] = None
    genres: Optional[str] = None # Comma-separated
    status: Optional[str] = None
    tagline: Optional[str] = None
    imdb_id: Optional[str] = None
    tmdb_id: Optional[str] = None
    tvdb_id: Optional[str] = None
    poster_image: Optional[str] = None
    fanart_image: Optional[str] = None
    banner_image: Optional[str] = None
    logo_image: Optional[str] = None
    theme_music: Optional[str] = None

    @property
    def match_titles(self) -> List[Optional[str]]:
        """Title fields compared against a local name, in priority order."""
        return [self.title, self.title_for_plex, self.original_title]

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> Optional['CatalogSeries']:
        series_id = parse_optional_int(data.get('id'))
        if series_id is None: return None
        return cls(
            id=series_id,
            title=parse_optional_str(data.get('title')),
            sort_title=parse_optional_str(data.get('sort_title')),
            original_title=parse_optional_str(data.get('original_title')),
            show_title=parse_optional_str(data.get('show_title')),
            title_for_plex=parse_optional_str(data.get('title_for_plex')),
            year=parse_optional_int(data.get('year')),
            plot=parse_optional_str(data.get('plot')),
            rating_value=parse_optional_float(data.get('rating_value')),
            rating_votes=parse_optional_int(data.get('rating_votes')),
            mpaa=parse_optional_str(data.get('mpaa')),
            premiered=parse_optional_str(data.get('premiered')),
            studio=parse_optional_str(data.get('studio')),
            country=parse_optional_str(data.get('country')),
            genres=parse_optional_str(data.get('genres')),
            status=parse_optional_str(data.get('status')),
            tagline=parse_optional_str(data.get('tagline')),
            imdb_id=parse_catalog_id(data.get('imdb_id')),
            tmdb_id=parse_catalog_id(data.get('tmdb_id')),
            tvdb_id=parse_catalog_id(data.get('tvdb_id')),
            poster_image=parse_optional_str(data.get('poster_image')),
            fanart_image=parse_optional_str(data.get('fanart_image')),
            banner_image=parse_optional_str(data.get('banner_image')),
            logo_image=parse_optional_str(data.get('logo_image')),
            theme_music=parse_optional_str(data.get('theme_music')),
        )

@dataclass
class CatalogSeason:
    id: int
    series_id: Optional[int] = None
    season_number: Optional[int] = None # May need derivation from episodes
    title: Optional[str] = None
    sort_title: Optional[str] = None
    plot: Optional[str] = None
    premiered: Optional[str] = None
    year: Optional[int] = None
    imdb_id: Optional[str] = None
    tmdb_id: Optional[str] = None
    tvdb_id: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> Optional['CatalogSeason']:
        season_id = parse_optional_int(data.get('id'))
        if season_id is None: return None
        return cls(
            id=season_id,
            series_id=parse_optional_int(parse_catalog_id(data.get('serie_id', data.get('series_id')))),
            season_number=parse_optional_int(data.get('season_number')),
            title=parse_optional_str(data.get('title')),
            sort_title=parse_optional_str(data.get('sort_title')),
            plot=parse_optional_str(data.get('plot')),
            premiered=parse_optional_str(data.get('premiered')),
            year=parse_optional_int(data.get('year')),
            imdb_id=parse_catalog_id(data.get('imdb_id')),
            tmdb_id=parse_catalog_id(data.get('tmdb_id')),
            tvdb_id=parse_catalog_id(data.get('tvdb_id')),
        )

@dataclass
class CatalogEpisode:
    id: int
    season_id: Optional[int] = None
    episode_number: Optional[int] = None
    display_episode: Optional[str] = None # Free text, may be non-numeric
    display_season: Optional[str] = None
    title: Optional[str] = None
    plot: Optional[str] = None
    aired: Optional[str] = None
    mpaa: Optional[str] = None
    studio: Optional[str] = None
    duration_seconds: Optional[int] = None
    original_filename: Optional[str] = None
    nfo_filename: Optional[str] = None # Alternate, NFO-derived name
    formatted_name: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> Optional['CatalogEpisode']:
        episode_id = parse_optional_int(data.get('id'))
        if episode_id is None: return None
        return cls(
            id=episode_id,
            season_id=parse_optional_int(parse_catalog_id(data.get('season_id'))),
            episode_number=parse_optional_int(data.get('episode_number')),
            display_episode=parse_optional_str(data.get('display_episode')),
            display_season=parse_optional_str(data.get('display_season')),
            title=parse_optional_str(data.get('title')),
            plot=parse_optional_str(data.get('plot')),
            aired=parse_optional_str(data.get('aired')),
            mpaa=parse_optional_str(data.get('mpaa')),
            studio=parse_optional_str(data.get('studio')),
            duration_seconds=parse_optional_int(data.get('duration')),
            original_filename=parse_optional_str(data.get('original_filename')),
            nfo_filename=parse_optional_str(data.get('nfo_filename')),
            formatted_name=parse_optional_str(data.get('formatted_name')),
        )

@dataclass
class CatalogActor:
    id: Optional[int] = None
    name: Optional[str] = None
    role: Optional[str] = None
    thumb_url: Optional[str] = None
    tmdb_id: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'CatalogActor':
        return cls(
            id=parse_optional_int(data.get('id')),
            name=parse_optional_str(data.get('name')),
            role=parse_optional_str(data.get('role')),
            thumb_url=parse_optional_str(data.get('thumb_url')),
            tmdb_id=parse_catalog_id(data.get('tmdb_id')),
        )


# --- Local facts (passed in by the caller) ---

@dataclass
class LocalSeriesItem:
    name: Optional[str] = None        # Declared name, possibly stale
    folder_name: Optional[str] = None
    bound_id: Optional[str] = None    # Previously stored catalog series ID
    year: Optional[int] = None
    path: Optional[Path] = None

    @classmethod
    def from_folder(cls, folder: Union[str, Path], name: Optional[str] = None, year: Optional[int] = None, bound_id: Optional[str] = None) -> 'LocalSeriesItem':
        folder_path = Path(folder)
        return cls(name=name or folder_path.name, folder_name=folder_path.name, bound_id=parse_catalog_id(bound_id), year=year, path=folder_path)

@dataclass
class LocalSeasonItem:
    season_number: Optional[int] = None
    name: Optional[str] = None
    bound_id: Optional[str] = None

@dataclass
class LocalEpisodeFile:
    path: Path
    season_number: Optional[int] = None
    episode_number: Optional[int] = None
    year: Optional[int] = None

    @classmethod
    def from_path(cls, path: Union[str, Path], season_number: Optional[int] = None, episode_number: Optional[int] = None, year: Optional[int] = None) -> 'LocalEpisodeFile':
        file_path = Path(path)
        if season_number is None or episode_number is None:
            guessed_season, guessed_episode = guess_episode_indices(file_path)
            season_number = season_number if season_number is not None else guessed_season
            episode_number = episode_number if episode_number is not None else guessed_episode
        return cls(path=file_path, season_number=season_number, episode_number=episode_number, year=year)


# --- Resolver outputs ---

@dataclass
class ScoredCandidate:
    series: CatalogSeries
    distance: int
    score: int

@dataclass
class SeriesResolution:
    """What the series-level resolution decided, before projection."""
    series: Optional[CatalogSeries] = None
    score: Optional[int] = None
    drift_detected: bool = False
    previous_id: Optional[str] = None # Stored ID that was discarded, if any

@dataclass
class EpisodeMatch:
    episode: CatalogEpisode
    season: CatalogSeason
    episode_number: Optional[int] = None # After numbering resolution
    season_number: Optional[int] = None
    tier: int = 1 # 1 = file name correlation, 2 = numeric correlation

@dataclass
class ResolutionBinding:
    """Proposed {local item -> catalog ID} relation; persisted by the caller."""
    item_kind: ItemKind
    local_key: str
    catalog_id: str
    provider_id_name: str


# --- Projected metadata ---

@dataclass
class PersonInfo:
    name: str
    role: Optional[str] = None
    kind: str = "Actor"

@dataclass
class SeriesMetadata:
    name: Optional[str] = None
    original_title: Optional[str] = None
    overview: Optional[str] = None
    premiere_date: Optional[datetime] = None
    production_year: Optional[int] = None
    official_rating: Optional[str] = None
    studios: List[str] = field(default_factory=list)
    tagline: Optional[str] = None
    status: Optional[SeriesStatus] = None
    sort_name: Optional[str] = None
    community_rating: Optional[float] = None
    genres: List[str] = field(default_factory=list)
    provider_ids: Dict[str, str] = field(default_factory=dict)
    people: List[PersonInfo] = field(default_factory=list)

@dataclass
class SeasonMetadata:
    name: Optional[str] = None
    overview: Optional[str] = None
    index_number: Optional[int] = None
    premiere_date: Optional[datetime] = None
    production_year: Optional[int] = None
    sort_name: Optional[str] = None
    provider_ids: Dict[str, str] = field(default_factory=dict)

@dataclass
class EpisodeMetadata:
    name: Optional[str] = None
    overview: Optional[str] = None
    premiere_date: Optional[datetime] = None
    index_number: Optional[int] = None
    parent_index_number: Optional[int] = None
    official_rating: Optional[str] = None
    studios: List[str] = field(default_factory=list)
    production_year: Optional[int] = None
    provider_ids: Dict[str, str] = field(default_factory=dict)

@dataclass
class ResolutionResult:
    """Returned to the host for one local item."""
    item_kind: ItemKind
    status: ResolutionStatus
    local_key: str
    binding: Optional[ResolutionBinding] = None
    metadata: Optional[Union[SeriesMetadata, SeasonMetadata, EpisodeMetadata]] = None
    message: Optional[str] = None
