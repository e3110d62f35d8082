from __future__ import annotations

from typing import Dict, Optional

from geosignals.shared.models import Briefing
from geosignals.shared.utils import clamp


OPERATIONAL_WEIGHTS: Dict[str, float] = {
    "Digital": 1.15,
    "ClientVisit": 1.05,
    "Itinerant": 1.1,
    "Shopping": 1.0,
    "Fixed": 0.95,
    "Investor": 0.9,
}

MARKET_WEIGHTS: Dict[str, float] = {
    "Popular": 1.15,
    "CostBenefit": 1.05,
    "Premium": 0.9,
    "Luxury": 0.8,
}

OBJECTIVE_WEIGHTS: Dict[str, float] = {
    "DominateRegion": 1.1,
    "SellMore": 1.0,
    "FindSpot": 0.95,
    "ValidateIdea": 0.85,
}

# Bounds for the compounded briefing multiplier.
BRIEFING_WEIGHT_MIN = 0.6
BRIEFING_WEIGHT_MAX = 1.6

FLOW_FIND_SPOT_BOOST = 1.15
FLOW_DIGITAL_DAMPEN = 0.7


def _lookup(table: Dict[str, float], key: Optional[str]) -> float:
    if not key:
        return 1.0
    return table.get(str(key), 1.0)


def operational_weight(model: Optional[str]) -> float:
    return _lookup(OPERATIONAL_WEIGHTS, model)


def market_weight(positioning: Optional[str]) -> float:
    return _lookup(MARKET_WEIGHTS, positioning)


def objective_weight(objective: Optional[str]) -> float:
    return _lookup(OBJECTIVE_WEIGHTS, objective)


def briefing_weight(briefing: Briefing) -> float:
    raw = (
        operational_weight(briefing.operational_model)
        * market_weight(briefing.market_positioning)
        * objective_weight(briefing.objective)
    )
    return clamp(raw, BRIEFING_WEIGHT_MIN, BRIEFING_WEIGHT_MAX)


def flow_weight(briefing: Briefing) -> float:
    """Multiplier applied to synthetic flow intensities.

    Digital operations care less about foot traffic; FindSpot briefings care more.
    """
    weight = 1.0
    if briefing.objective == "FindSpot":
        weight *= FLOW_FIND_SPOT_BOOST
    if briefing.operational_model == "Digital":
        weight *= FLOW_DIGITAL_DAMPEN
    return weight
