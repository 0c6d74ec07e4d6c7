"""Catalog record parser.

Catalog rows arrive as loosely typed JSON from the hosted database or from
local files. Everything is coerced here so the scoring rules only ever see
well-typed ``FundingProgram`` values.
"""

import logging
import re
from datetime import datetime, time, timezone
from typing import Any, Iterable, Optional

from .models import AgeRange, FundingProgram

logger = logging.getLogger(__name__)

AGE_RANGE_PATTERN = re.compile(r"(\d+)\s*-\s*(\d+)")

TRUE_VALUES = {"true", "yes", "y", "1", "t"}
FALSE_VALUES = {"false", "no", "n", "0", "f"}


def parse_age_range(text: Optional[str]) -> Optional[AgeRange]:
    """Extract the first ``<int>-<int>`` range from free text.

    Args:
        text: Age restriction descriptor, e.g. "18-39" or "Ages 18 - 39 only"

    Returns:
        AgeRange, or None when no numeric range is present
    """
    if not text:
        return None
    match = AGE_RANGE_PATTERN.search(text)
    if not match:
        return None
    return AgeRange(min=int(match.group(1)), max=int(match.group(2)))


def parse_deadline(value: Any) -> Optional[datetime]:
    """Parse a deadline into an aware UTC datetime.

    Date-only values are taken as midnight UTC. Naive datetimes are assumed
    to be UTC. Anything unparseable is treated as a rolling program.
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            if len(text) == 10:
                parsed = datetime.combine(datetime.strptime(text, "%Y-%m-%d").date(), time())
            else:
                parsed = datetime.fromisoformat(text)
        except ValueError:
            logger.warning(f"Unparseable deadline {value!r}, treating as rolling")
            return None

    return ensure_utc(parsed)


def ensure_utc(value: datetime) -> datetime:
    """Convert to UTC, assuming naive datetimes are already UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def to_int(value: Any, name: str = "value") -> Optional[int]:
    """Coerce to an integer, tolerating numeric strings and floats."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    text = str(value).strip().replace(",", "").lstrip("$")
    if not text:
        return None
    try:
        return int(float(text))
    except (ValueError, OverflowError):
        logger.debug(f"Ignoring non-numeric {name}={value!r}")
        return None


def to_bool(value: Any) -> Optional[bool]:
    """Coerce to a tri-state flag: True, False or None when unknown."""
    if value is None or isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    return None


def to_list(value: Any) -> list[str]:
    """Coerce to a list of tags. Strings are split on commas or semicolons."""
    if value is None:
        return []
    if isinstance(value, str):
        parts = re.split(r"[;,]", value)
    elif isinstance(value, (list, tuple, set)):
        parts = [str(v) for v in value if v is not None]
    else:
        parts = [str(value)]
    return [p.strip() for p in parts if p.strip()]


class ProgramParser:
    """Parser for catalog rows (database records or file entries)."""

    # snake_case column name -> accepted camelCase alias
    ALIASES = {
        "grant_type": "grantType",
        "funding_min": "fundingMin",
        "funding_max": "fundingMax",
        "newcomer_eligible": "newcomerEligible",
        "side_hustle_eligible": "sideHustleEligible",
        "age_restrictions": "ageRestrictions",
        "application_complexity": "applicationComplexity",
        "approval_time_weeks": "approvalTimeWeeks",
        "experience_required": "experienceRequired",
        "is_active": "isActive",
    }

    def parse_program(self, record: dict) -> Optional[FundingProgram]:
        """Convert one catalog row into a FundingProgram.

        Args:
            record: Raw row from the database or a catalog file

        Returns:
            FundingProgram, or None if the row has no id or name
        """
        program_id = self._get_text(record, "id")
        name = self._get_text(record, "name")
        if not program_id or not name:
            logger.warning(f"Skipping catalog row without id/name: {record!r:.80}")
            return None

        is_active = self._get_bool(record, "is_active")

        return FundingProgram(
            id=program_id,
            name=name,
            description=self._get_text(record, "description") or "",
            url=self._get_text(record, "url") or "",
            grant_type=(self._get_text(record, "grant_type") or "grant").lower(),
            province=self._get_text(record, "province"),
            industries=self._get_list(record, "industries"),
            funding_min=self._get_int(record, "funding_min"),
            funding_max=self._get_int(record, "funding_max"),
            deadline=parse_deadline(self._get(record, "deadline")),
            newcomer_eligible=self._get_bool(record, "newcomer_eligible"),
            side_hustle_eligible=self._get_bool(record, "side_hustle_eligible"),
            age_restrictions=self._get_text(record, "age_restrictions"),
            application_complexity=self._get_int(record, "application_complexity"),
            approval_time_weeks=self._get_int(record, "approval_time_weeks"),
            eligibility=self._get_text(record, "eligibility"),
            experience_required=self._get_text(record, "experience_required"),
            is_active=True if is_active is None else is_active,
        )

    def parse_catalog(self, records: Iterable[dict]) -> list[FundingProgram]:
        """Parse many rows, skipping the ones that cannot be identified."""
        programs = []
        for record in records:
            program = self.parse_program(record)
            if program:
                programs.append(program)
        return programs

    def _get(self, record: dict, key: str) -> Any:
        """Look up a column by its snake_case name or camelCase alias."""
        if key in record:
            return record[key]
        alias = self.ALIASES.get(key)
        if alias:
            return record.get(alias)
        return None

    def _get_text(self, record: dict, key: str) -> Optional[str]:
        return to_text(self._get(record, key))

    def _get_int(self, record: dict, key: str) -> Optional[int]:
        return to_int(self._get(record, key), key)

    def _get_bool(self, record: dict, key: str) -> Optional[bool]:
        return to_bool(self._get(record, key))

    def _get_list(self, record: dict, key: str) -> list[str]:
        return to_list(self._get(record, key))
