# catalog_app/series_resolver.py
"""
Fuzzy series resolution over a catalog snapshot.

A candidate's distance is the smallest edit distance between the normalized
query and any of its normalized title fields. Candidates scoring at or below
the acceptance cutoff are dropped; survivors whose year equals the query year
get a bonus; ranking is by score with ties kept in catalog listing order.
"""

import logging
from typing import Optional, List, Sequence

from .config_manager import ResolverConfig
from .models import CatalogSeries, LocalSeriesItem, ScoredCandidate
from .normalizer import normalize_title
from .scoring import best_distance, similarity_score

log = logging.getLogger(__name__)


def rank_candidates(query_name: Optional[str], catalog_listing: Sequence[CatalogSeries], config: ResolverConfig, year: Optional[int] = None) -> List[ScoredCandidate]:
    """Pure ranking of a listing snapshot; best candidate first."""
    query_key = normalize_title(query_name)
    if not query_key:
        return []
    log.debug(f"Similarity search for '{query_name}' (normalized: '{query_key}') over {len(catalog_listing)} series")

    accepted: List[ScoredCandidate] = []
    for series in catalog_listing:
        candidate_distance = best_distance(query_key, (normalize_title(t) for t in series.match_titles))
        if candidate_distance is None:
            continue
        score = similarity_score(candidate_distance, config.penalty_factor)
        if score <= config.acceptance_cutoff:
            continue
        if year is not None and series.year is not None and year == series.year:
            score += config.year_match_bonus
        log.debug(f"Potential match '{series.title}' (ID:{series.id}) distance {candidate_distance}, score {score}")
        accepted.append(ScoredCandidate(series=series, distance=candidate_distance, score=score))

    # sorted() is stable, so equal scores keep listing order.
    return sorted(accepted, key=lambda c: c.score, reverse=True)


class SeriesResolver:
    def __init__(self, catalog, config: ResolverConfig):
        self.catalog = catalog
        self.config = config

    async def search(self, query_name: Optional[str], year: Optional[int] = None) -> List[ScoredCandidate]:
        if not query_name or not query_name.strip():
            log.debug("Series search skipped: empty query name.")
            return []
        all_series = await self.catalog.get_all_series()
        if not all_series:
            log.warning("The full series listing could not be retrieved from the catalog (no data).")
            return []
        candidates = rank_candidates(query_name, all_series, self.config, year)
        if not candidates:
            log.warning(f"No title match found for '{query_name}'.")
            return []
        best = candidates[0]
        log.info(f"Best match for '{query_name}' is '{best.series.title}' (ID:{best.series.id}) with score {best.score}")
        return candidates

    async def best_match(self, query_name: Optional[str], year: Optional[int] = None) -> Optional[ScoredCandidate]:
        candidates = await self.search(query_name, year)
        return candidates[0] if candidates else None

    async def resolve(self, item: LocalSeriesItem) -> Optional[CatalogSeries]:
        """Fast path through a bound ID, otherwise fuzzy search on the declared name."""
        if item.bound_id:
            series = await self.catalog.get_series_by_id(item.bound_id)
            if series is not None:
                log.debug(f"Bound catalog ID {item.bound_id} fetched directly: '{series.title}'")
                return series
            log.warning(f"Bound catalog ID {item.bound_id} returned no data. Falling back to search.")
        query_name = item.name if item.name and item.name.strip() else item.folder_name
        match = await self.best_match(query_name, item.year)
        return match.series if match else None
