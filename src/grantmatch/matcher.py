"""Grant matching - score funding programs against a user profile."""

import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from .industries import industries_match
from .models import FundingProgram, GrantMatch, UserProfile
from .parser import ensure_utc, parse_age_range

logger = logging.getLogger(__name__)

PRIORITY_ORDER = {"high": 0, "medium": 1, "low": 2}


class GrantMatcher:
    """Score funding programs against a user profile.

    Each rule awards a fixed share of a 100 point budget. Rules that cannot
    be evaluated (missing program fields, profile flags not set) award
    nothing and never fail.
    """

    POINTS = {
        "geography": 30,
        "industry": 25,
        "newcomer": 15,
        "age": 10,
        "funding": 10,
        "side_hustle": 5,
        "simplicity": 5,
    }

    MIN_SCORE = 30
    HIGH_PRIORITY_SCORE = 80
    MEDIUM_PRIORITY_SCORE = 50
    DEADLINE_BOOST_DAYS = 30
    SIMPLE_COMPLEXITY = 2
    MAX_LISTED_INDUSTRIES = 3

    def score_match(self, program: FundingProgram, profile: UserProfile,
                    now: Optional[datetime] = None) -> GrantMatch:
        """Score one program for one profile.

        Args:
            program: Catalog entry to evaluate
            profile: Profile of the user asking
            now: Reference time for deadline checks (defaults to current UTC time)

        Returns:
            GrantMatch with score, reasons, gaps and priority
        """
        now = ensure_utc(now) if now else datetime.now(timezone.utc)
        score = 0
        reasons: list[str] = []
        missing: list[str] = []

        # Geography (30)
        if program.is_federal or program.province == profile.province:
            score += self.POINTS["geography"]
            if program.is_federal:
                reasons.append("Federal program - available Canada-wide")
            else:
                reasons.append(f"Available in {profile.province}")
        else:
            missing.append(f"Only available in {program.province}")

        # Industry (25)
        if program.is_open_to_all_industries:
            score += self.POINTS["industry"]
            reasons.append("Open to all industries")
        elif industries_match(program.industries, profile.industries):
            score += self.POINTS["industry"]
            reasons.append("Industry eligible")
        else:
            listed = ", ".join(program.industries[:self.MAX_LISTED_INDUSTRIES])
            missing.append(f"Focuses on: {listed}")

        # Newcomer fit (15), only for newcomers
        if profile.is_newcomer:
            if program.newcomer_eligible:
                score += self.POINTS["newcomer"]
                reasons.append("Newcomer-friendly program")
            elif program.newcomer_eligible is False:
                missing.append("May require Canadian work experience")

        # Age eligibility (10)
        age_range = parse_age_range(program.age_restrictions)
        if age_range and profile.age is not None:
            if age_range.contains(profile.age):
                score += self.POINTS["age"]
                reasons.append(f"Age eligible ({program.age_restrictions})")
            else:
                missing.append(f"Age requirement: {program.age_restrictions}")
        elif program.age_restrictions and "39" in program.age_restrictions:
            # Youth programs (e.g. founders 18-39) we cannot verify
            reasons.append("For entrepreneurs under 40")

        # Funding amount (10)
        if program.funding_min is not None and program.funding_max is not None:
            if program.funding_min <= profile.funding_needed <= program.funding_max:
                score += self.POINTS["funding"]
                reasons.append("Funding amount matches your needs")
        elif program.funding_max is not None and program.funding_max >= profile.funding_needed:
            score += self.POINTS["funding"]
            reasons.append(f"Up to ${program.funding_max:,} available")

        # Side hustle (5), only for part-time founders
        if profile.is_side_hustle:
            if program.side_hustle_eligible is not False:
                score += self.POINTS["side_hustle"]
                reasons.append("Part-time entrepreneurs welcome")
            else:
                missing.append("May require full-time commitment")

        # Simple application (5)
        if (program.application_complexity is not None
                and program.application_complexity <= self.SIMPLE_COMPLEXITY):
            score += self.POINTS["simplicity"]
            reasons.append("Simple application process")

        priority = self._base_priority(score)

        days_left = self.days_until_deadline(program, now)
        if (days_left is not None and 0 < days_left <= self.DEADLINE_BOOST_DAYS
                and score >= self.MEDIUM_PRIORITY_SCORE):
            priority = "high"
            reasons.append(f"Deadline in {days_left} days!")

        logger.debug(f"{program.id}: score={score} priority={priority}")

        return GrantMatch(
            program=program,
            score=score,
            match_percentage=min(100, max(0, score)),
            match_reasons=reasons,
            missing_requirements=missing,
            estimated_approval_weeks=program.approval_time_weeks or None,
            priority=priority,
        )

    def match_catalog(self, catalog: Iterable[FundingProgram], profile: UserProfile,
                      now: Optional[datetime] = None) -> list[GrantMatch]:
        """Score every program, drop weak matches and rank the rest.

        Matches scoring below MIN_SCORE are dropped. The rest are ordered by
        priority (high first), then by score (highest first).
        """
        now = ensure_utc(now) if now else datetime.now(timezone.utc)
        matches = [self.score_match(program, profile, now) for program in catalog]
        matches = [m for m in matches if m.score >= self.MIN_SCORE]
        matches.sort(key=lambda m: (PRIORITY_ORDER[m.priority], -m.score))
        return matches

    def top_recommendations(self, catalog: Iterable[FundingProgram], profile: UserProfile,
                            limit: int = 5, now: Optional[datetime] = None) -> list[GrantMatch]:
        """Return the best ``limit`` matches."""
        if limit < 0:
            raise ValueError(f"limit must be >= 0, got {limit}")
        return self.match_catalog(catalog, profile, now)[:limit]

    def high_priority_matches(self, catalog: Iterable[FundingProgram], profile: UserProfile,
                              now: Optional[datetime] = None) -> list[GrantMatch]:
        return [m for m in self.match_catalog(catalog, profile, now) if m.priority == "high"]

    def upcoming_deadline_matches(self, catalog: Iterable[FundingProgram], profile: UserProfile,
                                  days_ahead: int = 30,
                                  now: Optional[datetime] = None) -> list[GrantMatch]:
        """Return matches whose deadline falls within the next ``days_ahead`` days.

        Results are ordered soonest deadline first.
        """
        now = ensure_utc(now) if now else datetime.now(timezone.utc)
        cutoff = now + timedelta(days=days_ahead)
        upcoming = [
            m for m in self.match_catalog(catalog, profile, now)
            if m.program.deadline and now < ensure_utc(m.program.deadline) <= cutoff
        ]
        upcoming.sort(key=lambda m: ensure_utc(m.program.deadline))
        return upcoming

    def _base_priority(self, score: int) -> str:
        if score >= self.HIGH_PRIORITY_SCORE:
            return "high"
        if score >= self.MEDIUM_PRIORITY_SCORE:
            return "medium"
        return "low"

    @staticmethod
    def days_until_deadline(program: FundingProgram, now: datetime) -> Optional[int]:
        """Whole days left before the deadline, rounded up. None for rolling programs.

        Naive datetimes are taken as UTC.
        """
        if not program.deadline:
            return None
        seconds = (ensure_utc(program.deadline) - ensure_utc(now)).total_seconds()
        return math.ceil(seconds / 86400)


_default_matcher = GrantMatcher()


def score_match(program: FundingProgram, profile: UserProfile,
                now: Optional[datetime] = None) -> GrantMatch:
    return _default_matcher.score_match(program, profile, now)


def match_catalog(catalog: Iterable[FundingProgram], profile: UserProfile,
                  now: Optional[datetime] = None) -> list[GrantMatch]:
    return _default_matcher.match_catalog(catalog, profile, now)


def top_recommendations(catalog: Iterable[FundingProgram], profile: UserProfile,
                        limit: int = 5, now: Optional[datetime] = None) -> list[GrantMatch]:
    return _default_matcher.top_recommendations(catalog, profile, limit, now)


def high_priority_matches(catalog: Iterable[FundingProgram], profile: UserProfile,
                          now: Optional[datetime] = None) -> list[GrantMatch]:
    return _default_matcher.high_priority_matches(catalog, profile, now)


def upcoming_deadline_matches(catalog: Iterable[FundingProgram], profile: UserProfile,
                              days_ahead: int = 30,
                              now: Optional[datetime] = None) -> list[GrantMatch]:
    return _default_matcher.upcoming_deadline_matches(catalog, profile, days_ahead, now)
