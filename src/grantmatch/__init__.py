"""
grantmatch - Match founders to government funding programs.

This package scores funding programs (grants, loans and tax credits) against
a founder's profile and produces ranked, explained matches with priority
tiers and deadline-aware boosting.
"""

from .models import AgeRange, FundingProgram, GrantMatch, UserProfile
from .matcher import (
    GrantMatcher,
    high_priority_matches,
    match_catalog,
    score_match,
    top_recommendations,
    upcoming_deadline_matches,
)
from .parser import ProgramParser, parse_age_range
from .profile import DEFAULT_PROFILE, merge_profile, normalize_experience_level, profile_from_wizard
from .catalog import by_type, load_catalog, newcomer_friendly, side_hustle_friendly, youth_programs
from .api import CatalogAPI

__version__ = "0.1.0"
__all__ = [
    "AgeRange",
    "FundingProgram",
    "GrantMatch",
    "UserProfile",
    "GrantMatcher",
    "score_match",
    "match_catalog",
    "top_recommendations",
    "high_priority_matches",
    "upcoming_deadline_matches",
    "ProgramParser",
    "parse_age_range",
    "DEFAULT_PROFILE",
    "merge_profile",
    "normalize_experience_level",
    "profile_from_wizard",
    "load_catalog",
    "by_type",
    "newcomer_friendly",
    "side_hustle_friendly",
    "youth_programs",
    "CatalogAPI",
]
