"""Static ratebook data for MasterContractor."""

from mastercontractor.data.ratebook import (
    DEFAULT_RATEBOOK,
    Ratebook,
    ScopeDependency,
    get_ratebook,
    load_ratebook,
)

__all__ = [
    "DEFAULT_RATEBOOK",
    "Ratebook",
    "ScopeDependency",
    "get_ratebook",
    "load_ratebook",
]
