"""Tests for the grant matcher."""

from datetime import timedelta

import pytest

from grantmatch.matcher import (
    PRIORITY_ORDER,
    GrantMatcher,
    high_priority_matches,
    match_catalog,
    score_match,
    top_recommendations,
    upcoming_deadline_matches,
)
from grantmatch.models import FundingProgram, UserProfile


def make_program(**kwargs):
    kwargs.setdefault("id", "p")
    kwargs.setdefault("name", "Program")
    return FundingProgram(**kwargs)


class TestScoreMatch:
    def test_sample_scenario(self, open_program, ontario_profile, now):
        match = score_match(open_program, ontario_profile, now)
        assert match.score == 70
        assert match.match_percentage == 70
        assert match.priority == "medium"
        assert match.match_reasons == [
            "Federal program - available Canada-wide",
            "Open to all industries",
            "Up to $50,000 available",
            "Simple application process",
        ]
        assert match.missing_requirements == []

    def test_sample_scenario_with_gaps(self, now):
        program = make_program(id="B", province="Quebec", industries=["tech"], newcomer_eligible=False)
        profile = UserProfile(province="Ontario", industries=["retail"], is_newcomer=True,
                              funding_needed=50000)
        match = score_match(program, profile, now)
        assert match.score == 0
        assert match.priority == "low"
        assert match.match_reasons == []
        assert len(match.missing_requirements) == 3
        assert "Quebec" in match.missing_requirements[0]
        assert "tech" in match.missing_requirements[1]
        assert match_catalog([program], profile, now) == []

    def test_all_rules_sum_to_100(self, now):
        program = make_program(
            industries=["Retail"],
            newcomer_eligible=True,
            age_restrictions="18-39",
            funding_min=5000,
            funding_max=60000,
            application_complexity=2,
        )
        profile = UserProfile(province="Ontario", age=25, is_newcomer=True, industries=["retail"],
                              funding_needed=20000, is_side_hustle=True)
        match = score_match(program, profile, now)
        assert match.score == 100
        assert match.match_percentage == 100
        assert match.priority == "high"


class TestGeography:
    def test_federal_program_available_everywhere(self, ontario_profile, now):
        for province in ("Ontario", "Yukon", "Nova Scotia"):
            profile = UserProfile(province=province, industries=["retail"])
            match = score_match(make_program(), profile, now)
            assert match.match_reasons[0] == "Federal program - available Canada-wide"
            assert not any("Only available" in m for m in match.missing_requirements)

    def test_federal_sentinel(self, ontario_profile, now):
        match = score_match(make_program(province="Federal", industries=["tech"]), ontario_profile, now)
        assert match.score == 30

    def test_same_province(self, ontario_profile, now):
        match = score_match(make_program(province="Ontario", industries=["tech"]), ontario_profile, now)
        assert match.score == 30
        assert match.match_reasons == ["Available in Ontario"]

    def test_other_province(self, ontario_profile, now):
        match = score_match(make_program(province="Alberta", industries=["tech"]), ontario_profile, now)
        assert match.score == 0
        assert match.missing_requirements[0] == "Only available in Alberta"


class TestIndustry:
    def test_all_wildcard(self, now):
        profile = UserProfile(province="Ontario", industries=["anything"])
        match = score_match(make_program(province="Alberta", industries=["all"]), profile, now)
        assert match.score == 25

    def test_substring_either_direction(self, now):
        profile = UserProfile(province="Alberta", industries=["Technology"])
        assert score_match(make_program(province="Yukon", industries=["tech"]), profile, now).score == 25
        profile = UserProfile(province="Alberta", industries=["tech"])
        assert score_match(make_program(province="Yukon", industries=["Technology"]), profile, now).score == 25

    def test_gap_lists_at_most_three(self, ontario_profile, now):
        program = make_program(province="Ontario", industries=["tech", "energy", "mining", "fishing"])
        match = score_match(program, ontario_profile, now)
        assert match.missing_requirements == ["Focuses on: tech, energy, mining"]

    def test_no_profile_industries(self, now):
        profile = UserProfile(province="Ontario")
        match = score_match(make_program(province="Ontario", industries=["tech"]), profile, now)
        assert match.score == 30


class TestNewcomer:
    @pytest.mark.parametrize("eligible", [True, False, None])
    def test_skipped_for_non_newcomers(self, ontario_profile, now, eligible):
        program = make_program(province="Alberta", industries=["tech"], newcomer_eligible=eligible)
        match = score_match(program, ontario_profile, now)
        assert match.score == 0
        assert not any("Newcomer" in r for r in match.match_reasons)
        assert not any("Canadian work experience" in m for m in match.missing_requirements)

    def test_newcomer_friendly(self, now):
        profile = UserProfile(province="Ontario", is_newcomer=True)
        program = make_program(province="Alberta", industries=["tech"], newcomer_eligible=True)
        match = score_match(program, profile, now)
        assert match.score == 15
        assert "Newcomer-friendly program" in match.match_reasons

    def test_unknown_gives_nothing(self, now):
        profile = UserProfile(province="Ontario", is_newcomer=True)
        program = make_program(province="Alberta", industries=["tech"])
        match = score_match(program, profile, now)
        assert match.score == 0
        assert len(match.missing_requirements) == 2


class TestAge:
    def test_in_range(self, now):
        profile = UserProfile(province="Ontario", age=30)
        program = make_program(province="Alberta", industries=["tech"], age_restrictions="18-39")
        match = score_match(program, profile, now)
        assert match.score == 10
        assert match.match_reasons == ["Age eligible (18-39)"]

    def test_out_of_range(self, now):
        profile = UserProfile(province="Ontario", age=45)
        program = make_program(province="Alberta", industries=["tech"], age_restrictions="Ages 18 - 39")
        match = score_match(program, profile, now)
        assert match.score == 0
        assert "Age requirement: Ages 18 - 39" in match.missing_requirements

    def test_youth_hint_without_age(self, now):
        profile = UserProfile(province="Ontario")
        program = make_program(province="Alberta", industries=["tech"], age_restrictions="18-39")
        match = score_match(program, profile, now)
        assert match.score == 0
        assert match.match_reasons == ["For entrepreneurs under 40"]

    def test_youth_hint_unparseable(self, now):
        profile = UserProfile(province="Ontario", age=50)
        program = make_program(province="Alberta", industries=["tech"], age_restrictions="under 39")
        match = score_match(program, profile, now)
        assert match.score == 0
        assert match.match_reasons == ["For entrepreneurs under 40"]
        assert not any("Age requirement" in m for m in match.missing_requirements)

    def test_unrelated_text_ignored(self, now):
        profile = UserProfile(province="Ontario", age=50)
        program = make_program(province="Alberta", industries=["tech"], age_restrictions="Adults only")
        match = score_match(program, profile, now)
        assert match.match_reasons == []
        assert len(match.missing_requirements) == 2


class TestFunding:
    @pytest.mark.parametrize("needed,points", [(5000, 10), (10000, 10), (4999, 0), (10001, 0)])
    def test_range_is_inclusive(self, now, needed, points):
        profile = UserProfile(province="Ontario", funding_needed=needed)
        program = make_program(province="Alberta", industries=["tech"], funding_min=5000, funding_max=10000)
        assert score_match(program, profile, now).score == points

    def test_max_only(self, now):
        program = make_program(province="Alberta", industries=["tech"], funding_max=10000)
        assert score_match(program, UserProfile(province="Ontario", funding_needed=10000), now).score == 10
        assert score_match(program, UserProfile(province="Ontario", funding_needed=10001), now).score == 0

    def test_min_only_scores_nothing(self, now):
        program = make_program(province="Alberta", industries=["tech"], funding_min=1000)
        match = score_match(program, UserProfile(province="Ontario", funding_needed=5000), now)
        assert match.score == 0
        assert match.match_reasons == []


class TestSideHustle:
    def test_absent_flag_is_eligible(self, now):
        profile = UserProfile(province="Ontario", is_side_hustle=True)
        match = score_match(make_program(province="Alberta", industries=["tech"]), profile, now)
        assert match.score == 5
        assert match.match_reasons == ["Part-time entrepreneurs welcome"]

    def test_explicitly_excluded(self, now):
        profile = UserProfile(province="Ontario", is_side_hustle=True)
        program = make_program(province="Alberta", industries=["tech"], side_hustle_eligible=False)
        match = score_match(program, profile, now)
        assert match.score == 0
        assert "May require full-time commitment" in match.missing_requirements

    def test_skipped_for_full_time(self, ontario_profile, now):
        program = make_program(province="Alberta", industries=["tech"], side_hustle_eligible=False)
        match = score_match(program, ontario_profile, now)
        assert not any("full-time" in m for m in match.missing_requirements)


class TestSimplicity:
    @pytest.mark.parametrize("complexity,points", [(1, 5), (2, 5), (3, 0), (None, 0)])
    def test_simple_application(self, ontario_profile, now, complexity, points):
        program = make_program(province="Alberta", industries=["tech"], application_complexity=complexity)
        assert score_match(program, ontario_profile, now).score == points


class TestPriority:
    def test_deadline_escalation(self, now):
        # 30 + 25 + 5 = 60
        program = make_program(
            province="Ontario",
            application_complexity=1,
            deadline=now + timedelta(days=10),
        )
        profile = UserProfile(province="Ontario", funding_needed=1000000)
        match = score_match(program, profile, now)
        assert match.score == 60
        assert match.priority == "high"
        assert match.match_reasons[-1] == "Deadline in 10 days!"

    def test_partial_day_rounds_up(self, now):
        program = make_program(province="Ontario", application_complexity=1,
                               deadline=now + timedelta(days=9, hours=1))
        match = score_match(program, UserProfile(province="Ontario"), now)
        assert "Deadline in 10 days!" in match.match_reasons

    def test_no_escalation_for_weak_match(self, now):
        program = make_program(province="Ontario", industries=["tech"],
                               deadline=now + timedelta(days=5))
        match = score_match(program, UserProfile(province="Ontario"), now)
        assert match.score == 30
        assert match.priority == "low"
        assert not any("Deadline" in r for r in match.match_reasons)

    def test_no_escalation_for_far_or_past_deadline(self, now):
        profile = UserProfile(province="Ontario")
        for delta in (timedelta(days=31), timedelta(days=-2)):
            program = make_program(province="Ontario", application_complexity=1, deadline=now + delta)
            match = score_match(program, profile, now)
            assert match.priority == "medium"
            assert not any("Deadline" in r for r in match.match_reasons)

    def test_approval_weeks_copied(self, ontario_profile, now):
        match = score_match(make_program(approval_time_weeks=6), ontario_profile, now)
        assert match.estimated_approval_weeks == 6


@pytest.fixture
def catalog(now):
    return [
        # 30 + 25 = 55 -> medium
        make_program(id="medium", province="Ontario"),
        # 30 -> low
        make_program(id="low", province="Ontario", industries=["tech"]),
        # 0 -> dropped
        make_program(id="dropped", province="Quebec", industries=["tech"]),
        # 30 + 25 + 10 + 5 = 70 -> medium
        make_program(id="strong", funding_max=100000, application_complexity=1),
        # 30 + 25 + 5 = 60 with deadline in 20 days -> high
        make_program(id="urgent", application_complexity=2, deadline=now + timedelta(days=20)),
        # 30 + 25 = 55 with deadline in 3 days -> high
        make_program(id="soonest", province="Ontario", deadline=now + timedelta(days=3)),
        # 30, deadline in 15 days but low score -> stays low
        make_program(id="low-deadline", industries=["mining"], deadline=now + timedelta(days=15)),
    ]


class TestMatchCatalog:
    def test_filters_below_threshold(self, catalog, ontario_profile, now):
        matches = match_catalog(catalog, ontario_profile, now)
        assert all(m.score >= 30 for m in matches)
        assert "dropped" not in [m.program.id for m in matches]

    def test_sorted_by_priority_then_score(self, catalog, ontario_profile, now):
        matches = match_catalog(catalog, ontario_profile, now)
        assert [m.program.id for m in matches] == [
            "urgent", "soonest", "strong", "medium", "low", "low-deadline",
        ]
        ranks = [PRIORITY_ORDER[m.priority] for m in matches]
        assert ranks == sorted(ranks)

    def test_empty_catalog(self, ontario_profile, now):
        assert match_catalog([], ontario_profile, now) == []

    def test_top_recommendations(self, catalog, ontario_profile, now):
        all_matches = match_catalog(catalog, ontario_profile, now)
        top = top_recommendations(catalog, ontario_profile, 3, now)
        assert len(top) == 3
        assert [m.program.id for m in top] == [m.program.id for m in all_matches[:3]]

    def test_top_recommendations_zero(self, catalog, ontario_profile, now):
        assert top_recommendations(catalog, ontario_profile, 0, now) == []

    def test_top_recommendations_negative(self, catalog, ontario_profile, now):
        with pytest.raises(ValueError):
            top_recommendations(catalog, ontario_profile, -1, now)

    def test_high_priority(self, catalog, ontario_profile, now):
        matches = high_priority_matches(catalog, ontario_profile, now)
        assert [m.program.id for m in matches] == ["urgent", "soonest"]

    def test_upcoming_deadlines_soonest_first(self, catalog, ontario_profile, now):
        matches = upcoming_deadline_matches(catalog, ontario_profile, now=now)
        assert [m.program.id for m in matches] == ["soonest", "low-deadline", "urgent"]

    def test_upcoming_deadlines_window(self, catalog, ontario_profile, now):
        matches = upcoming_deadline_matches(catalog, ontario_profile, days_ahead=10, now=now)
        assert [m.program.id for m in matches] == ["soonest"]


class TestGrantMatcherConfig:
    def test_custom_threshold(self, catalog, ontario_profile, now):
        class StrictMatcher(GrantMatcher):
            MIN_SCORE = 60

        matches = StrictMatcher().match_catalog(catalog, ontario_profile, now)
        assert [m.program.id for m in matches] == ["urgent", "strong"]

    def test_points_budget(self):
        assert sum(GrantMatcher.POINTS.values()) == 100


class TestNaiveDatetimes:
    def test_naive_deadline_taken_as_utc(self, now):
        naive_deadline = (now + timedelta(days=10)).replace(tzinfo=None)
        program = make_program(province="Ontario", application_complexity=1, deadline=naive_deadline)
        match = score_match(program, UserProfile(province="Ontario"), now)
        assert match.priority == "high"
        assert "Deadline in 10 days!" in match.match_reasons

    def test_naive_now(self, now):
        program = make_program(province="Ontario", application_complexity=1, deadline=now + timedelta(days=10))
        match = score_match(program, UserProfile(province="Ontario"), now.replace(tzinfo=None))
        assert "Deadline in 10 days!" in match.match_reasons

    def test_upcoming_with_naive_deadlines(self, now):
        catalog = [
            make_program(id="later", deadline=(now + timedelta(days=20)).replace(tzinfo=None)),
            make_program(id="sooner", deadline=now + timedelta(days=5)),
        ]
        matches = upcoming_deadline_matches(catalog, UserProfile(province="Ontario"), now=now)
        assert [m.program.id for m in matches] == ["sooner", "later"]
