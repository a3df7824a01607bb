# catalog_app/enums.py
from enum import Enum, auto

class ItemKind(Enum):
    """Kind of local library item a resolver works on."""
    SERIES = auto()
    SEASON = auto()
    EPISODE = auto()

    def __str__(self):
        return self.name.title()


class ResolutionStatus(Enum):
    """
    Outcome of a single resolution request.
    Only MATCHED and REBOUND results carry metadata and a binding proposal.
    """
    MATCHED = auto()              # Binding found (fast path or fuzzy search)
    REBOUND = auto()              # Stored binding drifted and a new one was found
    NO_MATCH = auto()             # Expected outcome for unlisted items
    CATALOG_UNAVAILABLE = auto()  # Transport/decoding failure, nothing attempted
    MISSING_PARENT = auto()       # Season/episode asked without a series binding

    def __str__(self):
        return self.name.replace("_", " ").title()

    @property
    def has_match(self) -> bool:
        return self in (ResolutionStatus.MATCHED, ResolutionStatus.REBOUND)


class BindingState(Enum):
    """Result of checking a stored series binding against local facts."""
    UNBOUND = auto()   # No stored catalog ID
    VALID = auto()     # Canonical title agrees with name and folder
    DRIFTED = auto()   # Canonical title disagrees with name or folder
    MISSING = auto()   # Stored ID no longer exists in the catalog


class SeriesStatus(Enum):
    CONTINUING = "continuing"
    ENDED = "ended"
