"""Compliance dimension: how closely the card follows the A2A card format.

Weighting:
    - Core fields: 60 points, split evenly across the 9 core fields
    - Skills quality: 20 points
    - Format compliance: 15 points (five 3-point checks)
    - Data quality: 5 points

Compliance depends only on the card, never on network results.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from cardcheck.models.constants import (
    COMPLIANCE_REQUIRED_FIELDS,
    KNOWN_PROTOCOL_VERSIONS,
    MAX_DESCRIPTION_LENGTH,
    MAX_NAME_LENGTH,
    MAX_URL_LENGTH,
)
from cardcheck.models.enums import ComplianceRating, TransportProtocol
from cardcheck.models.scores import (
    ComplianceBreakdown,
    ComplianceScore,
    CoreFieldsCategory,
    DataQualityCategory,
    FormatCategory,
    SkillsQualityCategory,
)
from cardcheck.utils.semver import is_semver
from cardcheck.utils.urls import is_https_url, is_ssrf_risk
from cardcheck.validators.schema import is_mime_type

CORE_FIELDS_POINTS = 60
SKILLS_BASE_POINTS = 5
SKILLS_REQUIRED_FIELDS_POINTS = 10
SKILLS_TAGS_POINTS = 5
SKILL_MISSING_FIELDS_PENALTY = 2
SKILL_MISSING_TAGS_PENALTY = 1
FORMAT_CHECK_POINTS = 3


def compliance_rating(total: float) -> ComplianceRating:
    if total == 100:
        return ComplianceRating.PERFECT
    if total >= 90:
        return ComplianceRating.EXCELLENT
    if total >= 75:
        return ComplianceRating.GOOD
    if total >= 60:
        return ComplianceRating.FAIR
    return ComplianceRating.POOR


def _is_present(value: Any) -> bool:
    if value is None or value == "":
        return False
    if isinstance(value, (list, tuple)) and not value:
        return False
    return True


def _skills(card: Mapping[str, Any]) -> list[Any]:
    skills = card.get("skills")
    return skills if isinstance(skills, list) else []


def _non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and bool(value)


def evaluate_core_fields(card: Mapping[str, Any]) -> CoreFieldsCategory:
    present = [name for name in COMPLIANCE_REQUIRED_FIELDS if _is_present(card.get(name))]
    missing = [name for name in COMPLIANCE_REQUIRED_FIELDS if name not in present]
    score = len(present) / len(COMPLIANCE_REQUIRED_FIELDS) * CORE_FIELDS_POINTS
    return CoreFieldsCategory(score=round(score, 2), present=present, missing=missing)


def evaluate_skills_quality(card: Mapping[str, Any]) -> SkillsQualityCategory:
    """Score the skills list.

    The base points for having skills are a floor: per-skill penalties of
    the required-fields check and the tags check are each clamped so the
    category never drops below the base already earned.
    """
    skills = _skills(card)
    has_skills = bool(skills)
    base = SKILLS_BASE_POINTS if has_skills else 0
    score = base

    incomplete = [
        skill
        for skill in skills
        if not isinstance(skill, Mapping)
        or not all(_non_empty_str(skill.get(name)) for name in ("id", "name", "description"))
    ]
    all_have_required_fields = has_skills and not incomplete
    if all_have_required_fields:
        score += SKILLS_REQUIRED_FIELDS_POINTS
    elif has_skills:
        score = max(base, score - SKILL_MISSING_FIELDS_PENALTY * len(incomplete))

    untagged = [
        skill
        for skill in skills
        if not isinstance(skill, Mapping)
        or not isinstance(skill.get("tags"), list)
        or not skill["tags"]
    ]
    all_have_tags = has_skills and not untagged
    if all_have_tags:
        score += SKILLS_TAGS_POINTS
    elif has_skills:
        score = max(base, score - SKILL_MISSING_TAGS_PENALTY * len(untagged))

    return SkillsQualityCategory(
        score=max(0, score),
        skill_count=len(skills),
        has_skills=has_skills,
        all_have_required_fields=all_have_required_fields,
        all_have_tags=all_have_tags,
    )


def _valid_transports(card: Mapping[str, Any]) -> bool:
    preferred = card.get("preferredTransport")
    if preferred is not None and TransportProtocol.parse(preferred) is None:
        return False
    interfaces = card.get("additionalInterfaces")
    if interfaces is None:
        return True
    if not isinstance(interfaces, list):
        return False
    for interface in interfaces:
        if not isinstance(interface, Mapping):
            return False
        transport = interface.get("transport")
        if transport is not None and TransportProtocol.parse(transport) is None:
            return False
    return True


def _valid_mime_types(card: Mapping[str, Any]) -> bool:
    for name in ("defaultInputModes", "defaultOutputModes"):
        modes = card.get(name)
        if modes is None:
            continue
        if not isinstance(modes, list) or not all(is_mime_type(mode) for mode in modes):
            return False
    return True


def evaluate_format(card: Mapping[str, Any]) -> FormatCategory:
    checks = {
        "valid_semver": is_semver(card.get("version")),
        "valid_protocol_version": card.get("protocolVersion") in KNOWN_PROTOCOL_VERSIONS,
        "valid_url": is_https_url(card.get("url")),
        "valid_transports": _valid_transports(card),
        "valid_mime_types": _valid_mime_types(card),
    }
    failed = sum(1 for passed in checks.values() if not passed)
    score = FORMAT_CHECK_POINTS * len(checks) - FORMAT_CHECK_POINTS * failed
    return FormatCategory(score=max(0, score), **checks)


def card_urls(card: Mapping[str, Any]) -> list[str]:
    """Every URL string the card declares, in a stable order."""
    urls: list[str] = []
    for name in ("url", "iconUrl", "documentationUrl", "termsOfServiceUrl", "privacyPolicyUrl"):
        if _non_empty_str(card.get(name)):
            urls.append(card[name])
    provider = card.get("provider")
    if isinstance(provider, Mapping) and _non_empty_str(provider.get("url")):
        urls.append(provider["url"])
    interfaces = card.get("additionalInterfaces")
    if isinstance(interfaces, list):
        for interface in interfaces:
            if isinstance(interface, Mapping) and _non_empty_str(interface.get("url")):
                urls.append(interface["url"])
    return urls


def _no_duplicate_skill_ids(card: Mapping[str, Any]) -> bool:
    ids = [
        skill["id"]
        for skill in _skills(card)
        if isinstance(skill, Mapping) and _non_empty_str(skill.get("id"))
    ]
    return len(ids) == len(set(ids))


def _field_lengths_valid(card: Mapping[str, Any]) -> bool:
    name = card.get("name")
    if isinstance(name, str) and len(name) > MAX_NAME_LENGTH:
        return False
    description = card.get("description")
    if isinstance(description, str) and len(description) > MAX_DESCRIPTION_LENGTH:
        return False
    return all(len(url) <= MAX_URL_LENGTH for url in card_urls(card))


def evaluate_data_quality(card: Mapping[str, Any]) -> DataQualityCategory:
    no_duplicate_skill_ids = _no_duplicate_skill_ids(card)
    field_lengths_valid = _field_lengths_valid(card)
    no_ssrf_risk = not any(is_ssrf_risk(url) for url in card_urls(card))

    score = 5
    if not no_duplicate_skill_ids:
        score -= 2
    if not field_lengths_valid:
        score -= 2
    if not no_ssrf_risk:
        score -= 1
    return DataQualityCategory(
        score=max(0, score),
        no_duplicate_skill_ids=no_duplicate_skill_ids,
        field_lengths_valid=field_lengths_valid,
        no_ssrf_risk=no_ssrf_risk,
    )


def _collect_issues(breakdown: ComplianceBreakdown) -> list[str]:
    issues: list[str] = []
    if breakdown.core_fields.missing:
        issues.append(f"Missing required fields: {', '.join(breakdown.core_fields.missing)}")

    skills = breakdown.skills_quality
    if not skills.has_skills:
        issues.append("No skills defined")
    else:
        if not skills.all_have_required_fields:
            issues.append("Some skills missing required fields (id, name, description)")
        if not skills.all_have_tags:
            issues.append("Some skills missing tags")

    fmt = breakdown.format_compliance
    if not fmt.valid_semver:
        issues.append("Invalid semver version format")
    if not fmt.valid_protocol_version:
        issues.append("Invalid or unsupported protocolVersion")
    if not fmt.valid_url:
        issues.append("Invalid URL format (an https URL is required)")
    if not fmt.valid_transports:
        issues.append("Invalid transport protocol specified")
    if not fmt.valid_mime_types:
        issues.append("Invalid MIME types in input/output modes")

    data = breakdown.data_quality
    if not data.no_duplicate_skill_ids:
        issues.append("Duplicate skill IDs detected")
    if not data.field_lengths_valid:
        issues.append("Some fields exceed reasonable length limits")
    if not data.no_ssrf_risk:
        issues.append("URLs contain localhost or private IP addresses")
    return issues


def calculate_compliance_score(card: Mapping[str, Any]) -> ComplianceScore:
    """Score a card's compliance (0-100).

    Example:
        >>> calculate_compliance_score(build_agent_card()).total
        100.0
    """
    breakdown = ComplianceBreakdown(
        core_fields=evaluate_core_fields(card),
        skills_quality=evaluate_skills_quality(card),
        format_compliance=evaluate_format(card),
        data_quality=evaluate_data_quality(card),
    )
    total = (
        breakdown.core_fields.score
        + breakdown.skills_quality.score
        + breakdown.format_compliance.score
        + breakdown.data_quality.score
    )
    total = min(100.0, max(0.0, round(total, 2)))
    return ComplianceScore(
        total=total,
        rating=compliance_rating(total).value,
        breakdown=breakdown,
        issues=_collect_issues(breakdown),
    )
