# catalog_app/season_resolver.py
import logging
from typing import Optional, Any

from .models import CatalogSeason, LocalSeasonItem

log = logging.getLogger(__name__)


class SeasonResolver:
    """Stored season ID first, season number second. Seasons are never searched by title."""

    def __init__(self, catalog):
        self.catalog = catalog

    async def resolve(self, series_id: Any, item: LocalSeasonItem) -> Optional[CatalogSeason]:
        seasons = await self.catalog.get_seasons_for_series(series_id)
        if not seasons:
            log.warning(f"No seasons returned by the catalog for series ID: {series_id}")
            return None

        matched: Optional[CatalogSeason] = None
        if item.bound_id:
            matched = next((s for s in seasons if str(s.id) == str(item.bound_id).strip()), None)
            if matched is None:
                log.debug(f"Stored season ID '{item.bound_id}' not found under series {series_id}; trying season number.")

        if matched is None and item.season_number is not None:
            matched = next((s for s in seasons if s.season_number == item.season_number), None)

        if matched is None:
            log.warning(f"Could not match season (number: {item.season_number}) in catalog series ID {series_id}")
            return None
        log.info(f"Match found for season: '{matched.title}' (catalog ID: {matched.id})")
        return matched
