# catalog_app/scoring.py
import logging
from typing import Iterable, Optional

from rapidfuzz.distance import Levenshtein

log = logging.getLogger(__name__)

DEFAULT_PENALTY_FACTOR = 5
MAX_SCORE = 100


def distance(a: Optional[str], b: Optional[str]) -> int:
    """Unit-cost insert/delete/substitute edit distance between two keys."""
    return int(Levenshtein.distance(a or "", b or ""))


def similarity_score(edit_distance: int, penalty_factor: int = DEFAULT_PENALTY_FACTOR) -> int:
    # Not clamped: negative scores simply rank below any cutoff.
    return MAX_SCORE - (edit_distance * penalty_factor)


def best_distance(query_key: str, candidate_keys: Iterable[str]) -> Optional[int]:
    """Smallest distance from the query to any non-empty candidate key, or None."""
    distances = [distance(query_key, key) for key in candidate_keys if key]
    return min(distances) if distances else None
