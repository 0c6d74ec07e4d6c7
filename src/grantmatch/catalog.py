"""Local catalog loading and browse filters."""

import csv
import json
import logging
from pathlib import Path
from typing import Iterable

from .models import GRANT_TYPES, FundingProgram
from .parser import ProgramParser

logger = logging.getLogger(__name__)


def load_catalog(path: Path) -> list[FundingProgram]:
    """Load active funding programs from a catalog file.

    Supports JSON (a list of rows, or {"grants": [...]} / {"programs": [...]})
    and CSV with one program per row. Inactive programs are dropped.
    """
    if not path.exists():
        raise FileNotFoundError(f"Catalog file not found: {path}")

    if path.suffix.lower() == ".csv":
        with open(path, newline="", encoding="utf-8") as f:
            records = list(csv.DictReader(f))
    else:
        data = json.loads(path.read_text(encoding="utf-8"))
        if isinstance(data, list):
            records = data
        elif isinstance(data, dict) and "grants" in data:
            records = data["grants"]
        elif isinstance(data, dict) and "programs" in data:
            records = data["programs"]
        else:
            raise ValueError("JSON catalog must be a list or have a 'grants' or 'programs' key")

    programs = ProgramParser().parse_catalog(records)
    active = [p for p in programs if p.is_active]
    logger.info(f"Loaded {len(active)} active programs from {path}")
    return active


def by_type(catalog: Iterable[FundingProgram], grant_type: str) -> list[FundingProgram]:
    """Programs of one type: grant, loan or tax_credit."""
    if grant_type not in GRANT_TYPES:
        raise ValueError(f"Unknown grant type '{grant_type}'. Expected one of: {', '.join(GRANT_TYPES)}")
    return [p for p in catalog if p.grant_type == grant_type]


def newcomer_friendly(catalog: Iterable[FundingProgram]) -> list[FundingProgram]:
    return [p for p in catalog if p.newcomer_eligible]


def side_hustle_friendly(catalog: Iterable[FundingProgram]) -> list[FundingProgram]:
    """Programs that do not exclude part-time founders."""
    return [p for p in catalog if p.side_hustle_eligible is not False]


def youth_programs(catalog: Iterable[FundingProgram]) -> list[FundingProgram]:
    """Programs aimed at young founders (under 40)."""
    return [
        p for p in catalog
        if (p.age_restrictions and "39" in p.age_restrictions) or "youth" in p.name.lower()
    ]
