from __future__ import annotations

import math
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from geosignals.shared.models import ChoroplethBreak
from geosignals.shared.numbers import aliases_for, pick_number, to_number


DEFAULT_PALETTE = ["#f7fcf0", "#ccebc5", "#7bccc4", "#2b8cbe", "#084081"]


def build_quantile_breaks(
    values: Iterable[Optional[float]],
    palette: Sequence[str] = DEFAULT_PALETTE,
) -> List[ChoroplethBreak]:
    """Quantile bands, one per palette color.

    Adjacent bands may share a boundary value; lookups take the first match.
    """
    finite = sorted(
        number for number in (to_number(value) for value in values) if number is not None
    )
    if not finite or not palette:
        return []

    steps = len(palette)
    last = len(finite) - 1
    breaks: List[ChoroplethBreak] = []
    for i, color in enumerate(palette):
        start_idx = math.floor(i / steps * last)
        end_idx = math.floor((i + 1) / steps * last)
        breaks.append(ChoroplethBreak(min=finite[start_idx], max=finite[end_idx], color=color))
    return breaks


def get_color_for_value(
    value: Optional[float],
    breaks: Sequence[ChoroplethBreak],
    fallback: str,
) -> str:
    if value is None or not breaks:
        return fallback
    for band in breaks:
        if band.min <= value <= band.max:
            return band.color
    return breaks[-1].color


def extract_choropleth_value(props: Optional[Mapping[str, Any]]) -> Optional[float]:
    return pick_number(props, aliases_for("choropleth_value"))


def format_number_br(value: float) -> str:
    """Format with pt-BR separators: 1234567.5 -> "1.234.567,5"."""
    if float(value).is_integer():
        text = f"{int(value):,}"
    else:
        text = f"{value:,.3f}".rstrip("0")
    return text.replace(",", "_").replace(".", ",").replace("_", ".")
