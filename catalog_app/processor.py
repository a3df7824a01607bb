# catalog_app/processor.py

import asyncio
import logging
from typing import Optional, Any, List, Iterable

from .config_manager import ConfigHelper, ResolverConfig
from .enums import ItemKind, ResolutionStatus
from .episode_resolver import EpisodeResolver, SeriesSnapshot
from .exceptions import CatalogUnavailableError
from .identity_validator import IdentityConsistencyValidator
from .metadata_projector import project_series, project_season, project_episode
from .models import (
    LocalSeriesItem, LocalSeasonItem, LocalEpisodeFile, ResolutionBinding, ResolutionResult,
    SERIES_PROVIDER_ID, SEASON_PROVIDER_ID, EPISODE_PROVIDER_ID,
)
from .season_resolver import SeasonResolver
from .series_resolver import SeriesResolver

log = logging.getLogger(__name__)


def _series_key(item: LocalSeriesItem) -> str:
    if item.path is not None: return str(item.path)
    return item.folder_name or item.name or ""

def _season_key(item: LocalSeasonItem) -> str:
    if item.season_number is not None: return f"Season {item.season_number}"
    return item.name or ""

def _has_parent(series_id: Any) -> bool:
    return series_id is not None and bool(str(series_id).strip())

def _unavailable_episode(local_file: LocalEpisodeFile, error: CatalogUnavailableError) -> ResolutionResult:
    return ResolutionResult(ItemKind.EPISODE, ResolutionStatus.CATALOG_UNAVAILABLE, str(local_file.path), message=str(error))


class LibraryProcessor:
    """
    Entry point a host library calls, one method per item kind.
    Every call returns a ResolutionResult; catalog outages become a status, not an exception.
    """

    def __init__(self, catalog, config: ResolverConfig, max_concurrent: int = 4):
        self.catalog = catalog
        self.config = config
        self.max_concurrent = max(1, int(max_concurrent))
        self.series_resolver = SeriesResolver(catalog, config)
        self.validator = IdentityConsistencyValidator(self.series_resolver)
        self.season_resolver = SeasonResolver(catalog)
        self.episode_resolver = EpisodeResolver(catalog)

    @classmethod
    def from_config(cls, catalog, cfg_helper: ConfigHelper) -> 'LibraryProcessor':
        return cls(
            catalog,
            ResolverConfig.from_config(cfg_helper),
            max_concurrent=int(cfg_helper('max_concurrent_resolutions', 4)),
        )

    async def process_series(self, item: LocalSeriesItem) -> ResolutionResult:
        local_key = _series_key(item)
        log.debug(f"GetMetadata for series: name='{item.name}', folder='{item.folder_name}', bound_id='{item.bound_id}'")
        try:
            resolution = await self.validator.resolve(item)
            if resolution.series is None:
                return ResolutionResult(ItemKind.SERIES, ResolutionStatus.NO_MATCH, local_key,
                                        message=f"No catalog series matches '{item.name or item.folder_name}'.")
            series = resolution.series
            actors = await self.catalog.get_actors_for_series(series.id)
        except CatalogUnavailableError as e:
            log.error(f"Catalog unavailable while resolving series '{local_key}': {e}")
            return ResolutionResult(ItemKind.SERIES, ResolutionStatus.CATALOG_UNAVAILABLE, local_key, message=str(e))

        status = ResolutionStatus.REBOUND if resolution.drift_detected else ResolutionStatus.MATCHED
        message = f"'{series.title}' (ID: {series.id})"
        if resolution.previous_id:
            message += f", replaces stored ID {resolution.previous_id}"
        return ResolutionResult(
            ItemKind.SERIES, status, local_key,
            binding=ResolutionBinding(ItemKind.SERIES, local_key, str(series.id), SERIES_PROVIDER_ID),
            metadata=project_series(series, actors),
            message=message,
        )

    async def process_season(self, series_id: Any, item: LocalSeasonItem) -> ResolutionResult:
        local_key = _season_key(item)
        if not _has_parent(series_id):
            log.warning(f"Cannot resolve season '{local_key}': parent series has no catalog ID.")
            return ResolutionResult(ItemKind.SEASON, ResolutionStatus.MISSING_PARENT, local_key,
                                    message="Parent series is not bound to the catalog.")
        try:
            season = await self.season_resolver.resolve(series_id, item)
        except CatalogUnavailableError as e:
            log.error(f"Catalog unavailable while resolving season '{local_key}' of series {series_id}: {e}")
            return ResolutionResult(ItemKind.SEASON, ResolutionStatus.CATALOG_UNAVAILABLE, local_key, message=str(e))

        if season is None:
            return ResolutionResult(ItemKind.SEASON, ResolutionStatus.NO_MATCH, local_key,
                                    message=f"No catalog season matches '{local_key}' in series {series_id}.")
        return ResolutionResult(
            ItemKind.SEASON, ResolutionStatus.MATCHED, local_key,
            binding=ResolutionBinding(ItemKind.SEASON, local_key, str(season.id), SEASON_PROVIDER_ID),
            metadata=project_season(season),
            message=f"'{season.title}' (ID: {season.id})",
        )

    async def process_episode(self, series_id: Any, local_file: LocalEpisodeFile, snapshot: Optional[SeriesSnapshot] = None) -> ResolutionResult:
        local_key = str(local_file.path)
        if not _has_parent(series_id):
            log.warning(f"Cannot resolve episode '{local_file.path}': parent series has no catalog ID.")
            return ResolutionResult(ItemKind.EPISODE, ResolutionStatus.MISSING_PARENT, local_key,
                                    message="Parent series is not bound to the catalog.")
        try:
            match = await self.episode_resolver.resolve(series_id, local_file, snapshot)
        except CatalogUnavailableError as e:
            log.error(f"Catalog unavailable while resolving episode '{local_key}': {e}")
            return _unavailable_episode(local_file, e)

        if match is None:
            return ResolutionResult(ItemKind.EPISODE, ResolutionStatus.NO_MATCH, local_key,
                                    message=f"No catalog episode matches '{local_file.path.name}'.")
        episode = match.episode
        tier_label = "file name" if match.tier == 1 else "number"
        return ResolutionResult(
            ItemKind.EPISODE, ResolutionStatus.MATCHED, local_key,
            binding=ResolutionBinding(ItemKind.EPISODE, local_key, str(episode.id), EPISODE_PROVIDER_ID),
            metadata=project_episode(match, local_file.year),
            message=f"S{match.season_number}E{match.episode_number} '{episode.title}' (ID: {episode.id}, by {tier_label})",
        )

    async def process_episodes(self, series_id: Any, files: Iterable[LocalEpisodeFile]) -> List[ResolutionResult]:
        """
        Resolves files concurrently against one catalog snapshot of the series;
        results keep the input order.
        """
        file_list = list(files)
        if not file_list: return []

        snapshot: Optional[SeriesSnapshot] = None
        if _has_parent(series_id):
            try:
                snapshot = await self.episode_resolver.load_snapshot(series_id)
            except CatalogUnavailableError as e:
                log.error(f"Catalog unavailable while loading episodes of series {series_id}: {e}")
                return [_unavailable_episode(f, e) for f in file_list]

        semaphore = asyncio.Semaphore(self.max_concurrent)

        async def _bounded(local_file: LocalEpisodeFile) -> ResolutionResult:
            async with semaphore:
                return await self.process_episode(series_id, local_file, snapshot)

        log.info(f"Resolving {len(file_list)} episode file(s) for series {series_id} (max {self.max_concurrent} at a time)")
        return list(await asyncio.gather(*(_bounded(f) for f in file_list)))

    async def process_folder(self, item: LocalSeriesItem, files: Iterable[LocalEpisodeFile]) -> List[ResolutionResult]:
        """Series first, then its episodes against the series binding (if any)."""
        series_result = await self.process_series(item)
        results: List[ResolutionResult] = [series_result]
        series_id: Optional[str] = series_result.binding.catalog_id if series_result.binding else None
        if series_result.status is ResolutionStatus.CATALOG_UNAVAILABLE:
            return results
        results.extend(await self.process_episodes(series_id, files))
        return results
