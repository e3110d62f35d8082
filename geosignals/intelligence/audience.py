from __future__ import annotations

from typing import Optional

from geosignals.intelligence.weighting import briefing_weight
from geosignals.shared.models import Briefing
from geosignals.shared.utils import build_seed, clamp, seeded_jitter


AUDIENCE_JITTER_MIN = 0.85
AUDIENCE_JITTER_MAX = 1.15

AGE_SHARE_PER_RANGE = 0.12
AGE_SHARE_MIN = 0.12
AGE_SHARE_MAX = 0.6
AGE_SHARE_DEFAULT = 0.35

MIXED_GENDERS = {"", "mixed", "all"}


def gender_factor(briefing: Briefing) -> float:
    # A single-gender target keeps roughly half of the population.
    gender = (briefing.target_gender or "").strip().lower()
    return 1.0 if gender in MIXED_GENDERS else 0.5


def age_factor(briefing: Briefing) -> float:
    count = len([age for age in briefing.target_age if age])
    if count == 0:
        return AGE_SHARE_DEFAULT
    return clamp(count * AGE_SHARE_PER_RANGE, AGE_SHARE_MIN, AGE_SHARE_MAX)


def audience_seed(polygon_id: str, briefing: Briefing) -> str:
    return build_seed("audience", polygon_id, briefing.product_description, briefing.objective)


def estimate_audience(
    population: Optional[float],
    briefing: Briefing,
    seed_key: str,
) -> Optional[int]:
    """Estimate the target audience living in an area of ``population`` people.

    Returns None when there is no population to scale from. The result depends
    only on its inputs: the jitter factor is derived from ``seed_key``.
    """
    if population is None or population <= 0:
        return None
    jitter = seeded_jitter(seed_key, AUDIENCE_JITTER_MIN, AUDIENCE_JITTER_MAX)
    estimate = (
        population
        * gender_factor(briefing)
        * age_factor(briefing)
        * briefing_weight(briefing)
        * jitter
    )
    return int(round(estimate))
