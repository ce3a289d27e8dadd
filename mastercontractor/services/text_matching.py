"""Text matching strategies for conflict detection.

Dimension and brand extraction are heuristics. They sit behind a narrow
``extract(text) -> candidates`` interface so a stronger parser can replace
them without touching conflict-detection policy.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Pattern, Protocol, Sequence, Tuple


@dataclass(frozen=True)
class Dimension:
    """A width x height pair parsed from text."""

    width: Optional[int]
    height: Optional[int]
    raw: str = ""


class DimensionExtractor(Protocol):
    """Returns dimension candidates, highest precedence first."""

    def extract(self, text: str) -> List[Dimension]:
        ...


class BrandExtractor(Protocol):
    """Returns the catalog brands mentioned in text, in catalog order."""

    def extract(self, text: str, brands: Sequence[str]) -> List[str]:
        ...


# Order is precedence: the first pattern that matches wins.
DIMENSION_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(r"(\d+)\s*[xX]\s*(\d+)"),                           # 36x80
    re.compile(r"(\d+)['\"]\s*[xX]\s*(\d+)['\"]"),                 # 36"x80"
    re.compile(r"(\d+)'(\d+)?['\"]?\s*[xX]\s*(\d+)'(\d+)?['\"]?"),  # 3'x6'8"
)


class RegexDimensionExtractor:
    """Regex dimension parser covering 36x80, 36"x80" and 3'x6'-8" notations."""

    def __init__(self, patterns: Sequence[Pattern[str]] = DIMENSION_PATTERNS):
        self.patterns = tuple(patterns)

    def extract(self, text: str) -> List[Dimension]:
        candidates = []
        for pattern in self.patterns:
            match = pattern.search(text or "")
            if not match:
                continue
            width = int(match.group(1))
            # Feet-inch notation keeps the height feet in group 3
            height_group = match.group(3) if pattern.groups >= 3 else match.group(2)
            candidates.append(Dimension(
                width=width,
                height=int(height_group) if height_group else None,
                raw=match.group(0),
            ))
        return candidates


class SubstringBrandMatcher:
    """Case-insensitive substring brand matcher.

    No word-boundary check: a short brand inside a longer word still counts.
    """

    def extract(self, text: str, brands: Sequence[str]) -> List[str]:
        lowered = (text or "").lower()
        return [brand for brand in brands if brand.lower() in lowered]


DEFAULT_DIMENSION_EXTRACTOR = RegexDimensionExtractor()
DEFAULT_BRAND_MATCHER = SubstringBrandMatcher()


def parse_dimensions(
    text: str,
    extractor: DimensionExtractor = DEFAULT_DIMENSION_EXTRACTOR,
) -> Dimension:
    """Parse the highest-precedence dimension from text.

    Returns:
        Dimension with width/height None when nothing was found.
    """
    candidates = extractor.extract(text)
    if not candidates:
        return Dimension(width=None, height=None)
    return candidates[0]


def find_brand(
    text: str,
    brands: Sequence[str],
    matcher: BrandExtractor = DEFAULT_BRAND_MATCHER,
) -> Optional[str]:
    """First catalog brand mentioned in text, or None."""
    found = matcher.extract(text, brands)
    return found[0] if found else None
