"""Command-line interface for grantmatch."""

import argparse
import csv
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from .api import CatalogAPI
from .catalog import by_type, load_catalog, newcomer_friendly, side_hustle_friendly, youth_programs
from .matcher import GrantMatcher
from .models import BUSINESS_STAGES, GRANT_TYPES, FundingProgram, GrantMatch, UserProfile
from .profile import merge_profile, profile_from_wizard

logger = logging.getLogger(__name__)

VIEWS = ["all", "top", "high", "deadlines"]

CSV_FIELDS = [
    "program_id",
    "program_name",
    "grant_type",
    "province",
    "deadline",
    "score",
    "match_percentage",
    "priority",
    "match_reasons",
    "missing_requirements",
    "estimated_approval_weeks",
    "url",
]


def setup_logging(verbose: bool = False):
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[logging.StreamHandler()]
    )
    # Quiet down requests library
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def load_profile_file(path: Path) -> dict:
    """Load a partial profile from JSON.

    Accepts either profile fields (snake_case) or raw wizard answers
    (camelCase keys such as "isNewcomer" or "budgetMax").
    """
    if not path.exists():
        raise FileNotFoundError(f"Profile file not found: {path}")

    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("Profile file must contain a JSON object")

    if any(key in data for key in ("isNewcomer", "isSideHustle", "budgetMax", "experienceLevel")):
        return profile_from_wizard(data)
    return data


def profile_overrides(args: argparse.Namespace) -> dict:
    """Collect profile fields given on the command line."""
    return {
        "province": args.province,
        "age": args.age,
        "is_newcomer": True if args.newcomer else None,
        "years_in_canada": args.years_in_canada,
        "industries": args.industry,
        "business_stage": args.stage,
        "funding_needed": args.funding,
        "is_side_hustle": True if args.side_hustle else None,
        "experience_level": args.experience,
    }


def filter_catalog(catalog: list[FundingProgram], args: argparse.Namespace) -> list[FundingProgram]:
    """Narrow the catalog with the browse options before matching."""
    if args.type:
        catalog = by_type(catalog, args.type)
    if args.newcomer_only:
        catalog = newcomer_friendly(catalog)
    if args.side_hustle_only:
        catalog = side_hustle_friendly(catalog)
    if args.youth_only:
        catalog = youth_programs(catalog)
    return catalog


def run_view(matcher: GrantMatcher, view: str, catalog: list, profile: UserProfile,
             limit: int, days: int) -> list[GrantMatch]:
    if view == "top":
        return matcher.top_recommendations(catalog, profile, limit)
    if view == "high":
        return matcher.high_priority_matches(catalog, profile)
    if view == "deadlines":
        return matcher.upcoming_deadline_matches(catalog, profile, days)
    return matcher.match_catalog(catalog, profile)


def print_table(matches: list[GrantMatch]):
    """Print matches as a readable list."""
    if not matches:
        print("No matching programs.")
        return

    for i, match in enumerate(matches, 1):
        program = match.program
        print(f"\n{i}. {program.name} [{match.priority.upper()}] {match.match_percentage}%")
        print(f"   {program.grant_type} | {program.province or 'Federal'}"
              f"{' | deadline ' + program.deadline.date().isoformat() if program.deadline else ''}")
        for reason in match.match_reasons:
            print(f"   + {reason}")
        for gap in match.missing_requirements:
            print(f"   - {gap}")
        if program.url:
            print(f"   {program.url}")


def write_csv(matches: list[GrantMatch], output_path: Path) -> int:
    """Write matches to CSV file. Returns number of rows written."""
    output_path.parent.mkdir(parents=True, exist_ok=True)

    rows = []
    for match in matches:
        row = match.to_dict()
        row["match_reasons"] = "; ".join(row["match_reasons"])
        row["missing_requirements"] = "; ".join(row["missing_requirements"])
        rows.append({k: "" if row[k] is None else row[k] for k in CSV_FIELDS})

    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=CSV_FIELDS)
        writer.writeheader()
        writer.writerows(rows)

    return len(rows)


def write_json(matches: list[GrantMatch], profile: UserProfile, output_path: Path):
    """Write matches and the profile used to JSON file."""
    output_path.parent.mkdir(parents=True, exist_ok=True)

    data = {
        "profile": profile.to_dict(),
        "matches": [m.to_dict() for m in matches],
        "total_matches": len(matches),
    }

    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="grantmatch",
        description="Match a founder profile to government funding programs"
    )

    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "-c", "--catalog",
        type=Path,
        help="Path to a catalog file (JSON or CSV)"
    )
    source.add_argument(
        "--remote",
        action="store_true",
        help="Fetch the active catalog from the hosted database"
    )

    profile = parser.add_argument_group("profile")
    profile.add_argument("--profile", type=Path, help="JSON file with a partial profile or wizard answers")
    profile.add_argument("--user-id", help="Use the latest completed wizard session of this user (with --remote)")
    profile.add_argument("--province", help="Province the business operates in")
    profile.add_argument("--age", type=int, help="Founder age")
    profile.add_argument("--newcomer", action="store_true", help="Founder is a newcomer to Canada")
    profile.add_argument("--years-in-canada", type=int, help="Years since arriving in Canada")
    profile.add_argument("--industry", action="append", help="Industry tag (repeatable)")
    profile.add_argument("--stage", choices=BUSINESS_STAGES, help="Business stage")
    profile.add_argument("--funding", type=int, help="Funding needed in CAD")
    profile.add_argument("--side-hustle", action="store_true", help="Business is run part-time")
    profile.add_argument("--experience", help="Experience level (none, beginner, some, experienced)")

    browse = parser.add_argument_group("browse")
    browse.add_argument("--type", choices=GRANT_TYPES, help="Only programs of this type")
    browse.add_argument("--newcomer-only", action="store_true", help="Only newcomer-friendly programs")
    browse.add_argument("--side-hustle-only", action="store_true",
                        help="Only programs open to part-time founders")
    browse.add_argument("--youth-only", action="store_true", help="Only programs for founders under 40")

    parser.add_argument(
        "--view",
        choices=VIEWS,
        default="all",
        help="Which matches to show (default: all)"
    )
    parser.add_argument("--limit", type=int, default=5, help="Number of results for --view top (default: 5)")
    parser.add_argument("--days", type=int, default=30, help="Window for --view deadlines (default: 30)")
    parser.add_argument(
        "-o", "--output",
        type=Path,
        help="Write results to this file instead of printing"
    )
    parser.add_argument(
        "--format",
        choices=["csv", "json"],
        default="csv",
        help="Output file format (default: csv)"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output"
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Quiet mode (minimal output)"
    )
    return parser


def main(argv: Optional[list[str]] = None):
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Setup logging
    if args.quiet:
        logging.basicConfig(level=logging.ERROR)
    else:
        setup_logging(args.verbose)

    if args.limit < 0:
        print("Error: --limit must be >= 0", file=sys.stderr)
        sys.exit(1)

    stored = {}
    try:
        if args.remote:
            api = CatalogAPI()
            catalog = api.get_active_programs()
            if args.user_id:
                stored = profile_from_wizard(api.get_latest_wizard_data(args.user_id))
        else:
            catalog = load_catalog(args.catalog)

        if args.profile:
            # Explicit profile file takes precedence over a stored session
            stored = merge_profile(stored=stored, override=load_profile_file(args.profile)).to_dict()
    except (FileNotFoundError, json.JSONDecodeError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if not catalog:
        print("Error: No funding programs available.", file=sys.stderr)
        sys.exit(1)

    catalog = filter_catalog(catalog, args)
    profile = merge_profile(stored=stored, override=profile_overrides(args))
    logger.debug(f"Matching {len(catalog)} programs for {profile}")

    matcher = GrantMatcher()
    matches = run_view(matcher, args.view, catalog, profile, args.limit, args.days)

    if args.output:
        output_path = args.output
        if args.format == "json":
            if output_path.suffix != ".json":
                output_path = output_path.with_suffix(".json")
            write_json(matches, profile, output_path)
        else:
            if output_path.suffix != ".csv":
                output_path = output_path.with_suffix(".csv")
            write_csv(matches, output_path)
        if not args.quiet:
            print(f"Wrote {len(matches)} match(es) to {output_path}")
    elif args.quiet:
        for match in matches:
            print(f"{match.program.id}\t{match.priority}\t{match.score}")
    else:
        print(f"{len(matches)} program(s) matched out of {len(catalog)} for {profile.province}")
        print_table(matches)


if __name__ == "__main__":
    main()
