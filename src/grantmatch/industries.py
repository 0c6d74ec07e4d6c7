"""Industry tag matching.

Programs and profiles describe industries with free-form tags such as
"tech", "Technology" or "food_beverage". Two tags match when either one
contains the other after normalization.
"""

from typing import Iterable

ALL_INDUSTRIES = "all"


def normalize_tag(tag: str) -> str:
    """Normalize an industry tag for comparison."""
    return tag.strip().lower()


def tags_match(a: str, b: str) -> bool:
    """Check whether two industry tags refer to the same industry.

    Examples:
        tags_match("tech", "Technology") -> True
        tags_match("Retail", "retail_ecommerce") -> True
        tags_match("retail", "tech") -> False
    """
    a_norm = normalize_tag(a)
    b_norm = normalize_tag(b)
    if not a_norm or not b_norm:
        return False
    return a_norm in b_norm or b_norm in a_norm


def industries_match(program_tags: Iterable[str], profile_tags: Iterable[str]) -> bool:
    """True if any program tag matches any profile tag."""
    profile_tags = list(profile_tags)
    return any(
        tags_match(program_tag, profile_tag)
        for program_tag in program_tags
        for profile_tag in profile_tags
    )
