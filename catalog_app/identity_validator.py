# catalog_app/identity_validator.py
import logging
from typing import Optional, Tuple

from .enums import BindingState
from .models import CatalogSeries, LocalSeriesItem, SeriesResolution
from .normalizer import normalize_title
from .series_resolver import SeriesResolver

log = logging.getLogger(__name__)


def binding_agrees(canonical_title: Optional[str], item: LocalSeriesItem) -> bool:
    """
    True when the canonical title matches both the declared name and the folder
    name after normalization. A local fact that normalizes to empty is not
    evidence either way and is skipped.
    """
    canonical_key = normalize_title(canonical_title)
    for local_value in (item.name, item.folder_name):
        local_key = normalize_title(local_value)
        if local_key and local_key != canonical_key:
            return False
    return True


class IdentityConsistencyValidator:
    """Wraps series resolution so stale or false-positive bindings self-heal."""

    def __init__(self, resolver: SeriesResolver):
        self.resolver = resolver
        self.catalog = resolver.catalog

    async def check_binding(self, item: LocalSeriesItem) -> Tuple[BindingState, Optional[CatalogSeries]]:
        if not item.bound_id:
            return BindingState.UNBOUND, None
        canonical = await self.catalog.get_series_by_id(item.bound_id)
        if canonical is None:
            log.warning(f"Stored catalog ID '{item.bound_id}' no longer resolves to a series.")
            return BindingState.MISSING, None
        if not binding_agrees(canonical.title, item):
            log.warning(
                f"INCONSISTENCY DETECTED: stored catalog ID '{item.bound_id}' is '{canonical.title}', "
                f"but the local series is named '{item.name}' in folder '{item.folder_name}'. Forcing re-identification."
            )
            return BindingState.DRIFTED, canonical
        return BindingState.VALID, canonical

    async def resolve(self, item: LocalSeriesItem) -> SeriesResolution:
        state, canonical = await self.check_binding(item)
        if state is BindingState.VALID:
            return SeriesResolution(series=canonical)

        if state is BindingState.DRIFTED:
            # Drifted bindings are re-resolved from the folder name.
            query_name = item.folder_name if item.folder_name and item.folder_name.strip() else item.name
        else:
            query_name = item.name if item.name and item.name.strip() else item.folder_name

        log.debug(f"No valid catalog ID. Searching for '{query_name}' (year={item.year})")
        match = await self.resolver.best_match(query_name, item.year)
        drifted = state in (BindingState.DRIFTED, BindingState.MISSING)
        if match is None:
            log.warning(f"No catalog ID found via search for series '{query_name}'.")
            return SeriesResolution(drift_detected=drifted, previous_id=item.bound_id if drifted else None)

        log.info(f"Catalog ID found/corrected via search: {match.series.id} for series '{match.series.title}'")
        return SeriesResolution(
            series=match.series,
            score=match.score,
            drift_detected=drifted,
            previous_id=item.bound_id if drifted else None,
        )
