"""User profile assembly.

A matching request combines up to three layers: a caller-supplied partial
override, the profile stored from the user's last wizard session, and the
package defaults. Layers are merged field by field.
"""

import logging
from dataclasses import fields
from typing import Optional, Union

from .models import BUSINESS_STAGES, UserProfile
from .parser import to_bool, to_int, to_list, to_text

logger = logging.getLogger(__name__)

DEFAULT_PROVINCE = "Ontario"
DEFAULT_FUNDING_NEEDED = 50_000

DEFAULT_PROFILE = UserProfile(
    province=DEFAULT_PROVINCE,
    funding_needed=DEFAULT_FUNDING_NEEDED,
)

# Fields where an explicit False or 0 must win over lower layers
NULLISH_FIELDS = {"is_newcomer", "is_side_hustle", "years_in_canada"}

INT_FIELDS = {"age", "years_in_canada", "funding_needed"}
BOOL_FIELDS = {"is_newcomer", "is_side_hustle"}

PartialProfile = Union[UserProfile, dict, None]


def normalize_experience_level(value: Optional[str]) -> Optional[str]:
    """Map an upstream experience answer onto beginner/some/experienced.

    Returns None when the value is absent, so an unanswered question stays
    unanswered instead of being coerced to a default.
    """
    if not value:
        return None
    if value in ("none", "beginner"):
        return "beginner"
    if value == "some":
        return "some"
    return "experienced"


def _coerce(name: str, value):
    """Coerce one loosely typed profile value to its field type."""
    if name in INT_FIELDS:
        return to_int(value, name)
    if name in BOOL_FIELDS:
        return to_bool(value)
    if name == "industries":
        return to_list(value)
    text = to_text(value)
    if name == "business_stage" and text not in BUSINESS_STAGES:
        if text:
            logger.debug(f"Ignoring unknown business_stage={value!r}")
        return None
    return text


def _as_dict(partial: PartialProfile) -> dict:
    """Turn one profile layer into a dict of coerced field values."""
    if partial is None:
        return {}
    if isinstance(partial, UserProfile):
        partial = partial.to_dict()
    known = {f.name for f in fields(UserProfile)}
    return {name: _coerce(name, value) for name, value in partial.items() if name in known}


def _pick(name: str, *layers: dict):
    """Return the first usable value for a field across layers."""
    for layer in layers:
        value = layer.get(name)
        if name in NULLISH_FIELDS:
            if value is not None:
                return value
        elif value:
            return value
    return None


def merge_profile(
    stored: PartialProfile = None,
    override: PartialProfile = None,
    defaults: UserProfile = DEFAULT_PROFILE,
) -> UserProfile:
    """Merge an override, a stored profile and defaults into one profile.

    Override fields win when present, then stored fields, then defaults.
    Values are coerced to their field types first; unusable values count as
    absent. Empty strings, empty lists and zero amounts also count as absent,
    while flags and years in Canada only fall through when they are None.

    Args:
        stored: Profile derived from saved wizard answers (or None)
        override: Partial profile supplied for this request (or None)
        defaults: Fallback values

    Returns:
        A complete UserProfile
    """
    layers = (_as_dict(override), _as_dict(stored), defaults.to_dict())
    values = {}
    for f in fields(UserProfile):
        values[f.name] = _pick(f.name, *layers)

    values["industries"] = list(values["industries"] or [])
    values["is_newcomer"] = bool(values["is_newcomer"])
    values["is_side_hustle"] = bool(values["is_side_hustle"])
    values["funding_needed"] = values["funding_needed"] or 0
    values["experience_level"] = normalize_experience_level(values["experience_level"])

    profile = UserProfile(**values)
    logger.debug(f"Merged profile: {profile}")
    return profile


def profile_from_wizard(wizard_data: Optional[dict]) -> dict:
    """Translate saved wizard answers into a partial profile.

    Wizard answers use the front-end's camelCase keys. Profiles built this way
    always describe an idea-stage business.
    """
    if not wizard_data:
        return {}

    return {
        "province": to_text(wizard_data.get("province")),
        "age": to_int(wizard_data.get("age"), "age"),
        "is_newcomer": to_bool(wizard_data.get("isNewcomer")) or False,
        "years_in_canada": to_int(wizard_data.get("yearsInCanada"), "yearsInCanada"),
        "industries": to_list(wizard_data.get("industries")),
        "business_stage": "idea",
        "funding_needed": to_int(wizard_data.get("budgetMax"), "budgetMax"),
        "is_side_hustle": to_bool(wizard_data.get("isSideHustle")) or False,
        "experience_level": normalize_experience_level(wizard_data.get("experienceLevel")),
    }
