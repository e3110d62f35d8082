"""Jurisdiction codes (UF, IBGE municipality id) for briefings and features."""

from __future__ import annotations

import unicodedata
from typing import Any, Dict, Mapping, NamedTuple, Optional, Set

from geosignals.shared.models import Briefing
from geosignals.shared.numbers import aliases_for, normalize_digits


UF_CODES: Dict[str, str] = {
    "RO": "11", "AC": "12", "AM": "13", "RR": "14", "PA": "15", "AP": "16", "TO": "17",
    "MA": "21", "PI": "22", "CE": "23", "RN": "24", "PB": "25", "PE": "26", "AL": "27",
    "SE": "28", "BA": "29",
    "MG": "31", "ES": "32", "RJ": "33", "SP": "35",
    "PR": "41", "SC": "42", "RS": "43",
    "MS": "50", "MT": "51", "GO": "52", "DF": "53",
}

MUNICIPIO_ID_LENGTH = 7
UF_CODE_LENGTH = 2


class KnownCity(NamedTuple):
    municipio_id: str
    lat: float
    lng: float


KNOWN_CITIES: Dict[str, KnownCity] = {
    "sao paulo": KnownCity("3550308", -23.5505, -46.6333),
    "rio de janeiro": KnownCity("3304557", -22.9068, -43.1729),
    "curitiba": KnownCity("4106902", -25.4284, -49.2733),
    "belo horizonte": KnownCity("3106200", -19.9167, -43.9345),
    "porto alegre": KnownCity("4314902", -30.0346, -51.2177),
    "brasilia": KnownCity("5300108", -15.7939, -47.8828),
}


def _fold(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return " ".join(stripped.lower().split())


def resolve_known_city(city: Optional[str]) -> Optional[KnownCity]:
    if not city:
        return None
    name = _fold(city.split(",")[0])
    return KNOWN_CITIES.get(name)


def uf_code(value: Any) -> Optional[str]:
    """Two-digit IBGE state code from an abbreviation or any numeric code."""
    if value is None:
        return None
    text = str(value).strip().upper()
    if text in UF_CODES:
        return UF_CODES[text]
    digits = normalize_digits(text)
    if len(digits) >= UF_CODE_LENGTH:
        return digits[:UF_CODE_LENGTH]
    return None


def briefing_municipio_id(briefing: Briefing) -> Optional[str]:
    digits = normalize_digits(briefing.geography.municipio_id)
    if len(digits) >= MUNICIPIO_ID_LENGTH:
        return digits[:MUNICIPIO_ID_LENGTH]
    known = resolve_known_city(briefing.geography.city)
    return known.municipio_id if known else None


def briefing_state_codes(briefing: Briefing) -> Set[str]:
    codes: Set[str] = set()
    for state in briefing.geography.state:
        code = uf_code(state)
        if code:
            codes.add(code)
    municipio_id = briefing_municipio_id(briefing)
    if municipio_id:
        codes.add(municipio_id[:UF_CODE_LENGTH])
    return codes


def feature_state_code(props: Optional[Mapping[str, Any]]) -> Optional[str]:
    if not props:
        return None
    for key in aliases_for("state_code"):
        code = uf_code(props.get(key))
        if code:
            return code
    return None


def feature_municipality_code(props: Optional[Mapping[str, Any]]) -> Optional[str]:
    # Sector codes start with the 7-digit municipality code.
    if not props:
        return None
    for key in aliases_for("municipality_code"):
        digits = normalize_digits(props.get(key))
        if len(digits) >= MUNICIPIO_ID_LENGTH:
            return digits[:MUNICIPIO_ID_LENGTH]
    return None
