"""Schema validators for Gemini JSON outputs.

Kept intentionally lightweight (no pydantic): every validator returns
`(ok, errors)` so callers can print the full list of problems.
"""

from __future__ import annotations

from typing import Any, List, Tuple

from listing_types import PRICING_TIERS, VOLUMES

KEYWORD_COUNT = 13
MATERIAL_COUNT = 13
PRICING_COUNT = 3
CHECKLIST_COUNT = 6
ATTRIBUTE_RANGE = (5, 8)
COLOR_RANGE = (5, 7)
STORE_SECTION_RANGE = (5, 7)


def _is_str(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _is_str_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(x, str) for x in value)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _check_count(errors: List[str], key: str, value: list, low: int, high: int) -> None:
    if not low <= len(value) <= high:
        expected = f"exactly {low}" if low == high else f"{low}-{high}"
        errors.append(f"'{key}' must have {expected} items (got {len(value)})")


def validate_keyword(obj: Any) -> Tuple[bool, List[str]]:
    errors: List[str] = []
    if not isinstance(obj, dict):
        return False, ["not an object"]

    if not _is_str(obj.get("keyword")):
        errors.append("missing/invalid 'keyword'")
    if obj.get("volume") not in VOLUMES:
        errors.append(f"'volume' must be one of {', '.join(VOLUMES)}")
    if not isinstance(obj.get("reason"), str):
        errors.append("missing/invalid 'reason'")

    return len(errors) == 0, errors


def validate_pricing(obj: Any) -> Tuple[bool, List[str]]:
    errors: List[str] = []
    if not isinstance(obj, dict):
        return False, ["not an object"]

    if obj.get("tier") not in PRICING_TIERS:
        errors.append(f"'tier' must be one of {', '.join(PRICING_TIERS)}")
    if not _is_number(obj.get("price")):
        errors.append("'price' must be a number")
    if obj.get("currency") != "USD":
        errors.append("'currency' must be 'USD'")
    if not isinstance(obj.get("reason"), str):
        errors.append("missing/invalid 'reason'")

    return len(errors) == 0, errors


def validate_listing(obj: Any) -> Tuple[bool, List[str]]:
    errors: List[str] = []
    if not isinstance(obj, dict):
        return False, ["not an object"]

    for key in ["title", "description", "category"]:
        if not _is_str(obj.get(key)):
            errors.append(f"missing/invalid '{key}'")

    keywords = obj.get("keywords")
    if not isinstance(keywords, list):
        errors.append("'keywords' must be a list")
    else:
        _check_count(errors, "keywords", keywords, KEYWORD_COUNT, KEYWORD_COUNT)
        for i, item in enumerate(keywords):
            ok, kw_errors = validate_keyword(item)
            if not ok:
                errors.extend(f"keywords[{i}]: {e}" for e in kw_errors)

    for key, (low, high) in [
        ("materials", (MATERIAL_COUNT, MATERIAL_COUNT)),
        ("colors", COLOR_RANGE),
        ("storeSections", STORE_SECTION_RANGE),
    ]:
        value = obj.get(key)
        if not _is_str_list(value):
            errors.append(f"'{key}' must be a list of strings")
        else:
            _check_count(errors, key, value, low, high)

    attributes = obj.get("attributes")
    if not isinstance(attributes, dict):
        errors.append("'attributes' must be an object")
    else:
        if not all(isinstance(k, str) and isinstance(v, str) for k, v in attributes.items()):
            errors.append("'attributes' values must be strings")
        _check_count(errors, "attributes", list(attributes), *ATTRIBUTE_RANGE)

    pricing = obj.get("pricingSuggestions")
    if not isinstance(pricing, list):
        errors.append("'pricingSuggestions' must be a list")
    else:
        _check_count(errors, "pricingSuggestions", pricing, PRICING_COUNT, PRICING_COUNT)
        for i, item in enumerate(pricing):
            ok, p_errors = validate_pricing(item)
            if not ok:
                errors.extend(f"pricingSuggestions[{i}]: {e}" for e in p_errors)
        tiers = sorted(p.get("tier") for p in pricing if isinstance(p, dict) and p.get("tier") in PRICING_TIERS)
        if len(pricing) == PRICING_COUNT and tiers != sorted(PRICING_TIERS):
            errors.append("'pricingSuggestions' must contain one Budget, Standard and Premium tier")

    checklist = obj.get("checklist")
    if not isinstance(checklist, list):
        errors.append("'checklist' must be a list")
    else:
        _check_count(errors, "checklist", checklist, CHECKLIST_COUNT, CHECKLIST_COUNT)
        for i, item in enumerate(checklist):
            if not isinstance(item, dict) or not _is_str(item.get("element")) or not _is_str(item.get("instruction")):
                errors.append(f"checklist[{i}] needs string 'element' and 'instruction'")

    return len(errors) == 0, errors


def validate_string_list(obj: Any) -> Tuple[bool, List[str]]:
    if not isinstance(obj, list):
        return False, ["not an array"]
    if not all(isinstance(x, str) for x in obj):
        return False, ["array items must be strings"]
    return True, []
