"""Data models for grantmatch package."""

from dataclasses import dataclass, asdict, field
from datetime import datetime
from typing import Optional

GRANT_TYPES = ("grant", "loan", "tax_credit")
BUSINESS_STAGES = ("idea", "startup", "growing")

# Some catalogs mark nationwide programs explicitly instead of leaving province empty
FEDERAL = "Federal"


@dataclass
class AgeRange:
    """Inclusive age bounds parsed from a program's age restriction text."""
    min: int
    max: int

    def contains(self, age: int) -> bool:
        return self.min <= age <= self.max


@dataclass
class FundingProgram:
    """A funding opportunity (grant, loan or tax credit) in the catalog."""
    id: str
    name: str
    description: str = ""
    url: str = ""
    grant_type: str = "grant"
    province: Optional[str] = None
    industries: list[str] = field(default_factory=list)
    funding_min: Optional[int] = None
    funding_max: Optional[int] = None
    deadline: Optional[datetime] = None
    newcomer_eligible: Optional[bool] = None
    side_hustle_eligible: Optional[bool] = None
    age_restrictions: Optional[str] = None
    application_complexity: Optional[int] = None
    approval_time_weeks: Optional[int] = None
    eligibility: Optional[str] = None
    experience_required: Optional[str] = None
    is_active: bool = True

    @property
    def is_federal(self) -> bool:
        return not self.province or self.province == FEDERAL

    @property
    def is_open_to_all_industries(self) -> bool:
        return not self.industries or "all" in self.industries

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        data = asdict(self)
        data["deadline"] = self.deadline.date().isoformat() if self.deadline else None
        return data


@dataclass
class UserProfile:
    """The attributes of one user that drive personalized matching."""
    province: str
    age: Optional[int] = None
    is_newcomer: bool = False
    years_in_canada: Optional[int] = None
    industries: list[str] = field(default_factory=list)
    business_stage: str = "idea"
    funding_needed: int = 0
    is_side_hustle: bool = False
    experience_level: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return asdict(self)


@dataclass
class GrantMatch:
    """Score and explanation for one program evaluated against one profile."""
    program: FundingProgram
    score: int
    match_percentage: int
    match_reasons: list[str] = field(default_factory=list)
    missing_requirements: list[str] = field(default_factory=list)
    estimated_approval_weeks: Optional[int] = None
    priority: str = "low"

    def to_dict(self) -> dict:
        """Convert to a flat dictionary suitable for JSON or CSV export."""
        return {
            "program_id": self.program.id,
            "program_name": self.program.name,
            "grant_type": self.program.grant_type,
            "province": self.program.province,
            "deadline": self.program.deadline.date().isoformat() if self.program.deadline else None,
            "url": self.program.url,
            "score": self.score,
            "match_percentage": self.match_percentage,
            "priority": self.priority,
            "match_reasons": list(self.match_reasons),
            "missing_requirements": list(self.missing_requirements),
            "estimated_approval_weeks": self.estimated_approval_weeks,
        }
