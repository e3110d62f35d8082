"""Tolerant numeric/text extraction from provider property bags."""

from __future__ import annotations

import math
import os
import re
from typing import Any, Dict, List, Mapping, Optional, Sequence

import yaml


_ALIASES_CACHE: Optional[Dict[str, Any]] = None
_ALIASES_PATH = os.path.join(os.path.dirname(__file__), "property_aliases.yaml")


def load_alias_table() -> Dict[str, Any]:
    global _ALIASES_CACHE
    if _ALIASES_CACHE is not None:
        return _ALIASES_CACHE

    with open(_ALIASES_PATH, "r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    _ALIASES_CACHE = data
    return data


def alias_table_version() -> int:
    return int(load_alias_table().get("version", 0))


def aliases_for(group: str) -> List[str]:
    aliases = load_alias_table().get("aliases", {})
    if group not in aliases:
        raise KeyError(f"Unknown property alias group: {group}")
    return [str(item) for item in aliases[group]]


def to_number(value: Any) -> Optional[float]:
    """Parse ``value`` as a finite float, or return None.

    Numeric strings may use a comma as decimal separator; only the first comma
    is converted, so strings with thousands separators ("1.234,56") are rejected.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return None
        return number if math.isfinite(number) else None
    text = str(value).strip().replace(",", ".", 1)
    if not text or "_" in text:
        return None
    try:
        number = float(text)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def pick_number(props: Optional[Mapping[str, Any]], key_aliases: Sequence[str]) -> Optional[float]:
    if not props:
        return None
    for key in key_aliases:
        number = to_number(props.get(key))
        if number is not None:
            return number
    return None


def pick_text(props: Optional[Mapping[str, Any]], key_aliases: Sequence[str]) -> Optional[str]:
    if not props:
        return None
    for key in key_aliases:
        value = props.get(key)
        if value is None or isinstance(value, (dict, list)):
            continue
        text = str(value).strip()
        if text:
            return text
    return None


def normalize_digits(value: Any) -> str:
    if value is None:
        return ""
    return re.sub(r"\D", "", str(value))


def pick_population(props: Optional[Mapping[str, Any]]) -> Optional[float]:
    return pick_number(props, aliases_for("population"))


def pick_income(props: Optional[Mapping[str, Any]]) -> Optional[float]:
    return pick_number(props, aliases_for("income"))
