"""
Metric Derivation Module

Per-record derived metrics that make forests of different size comparable:
productivity in millions of raw units, area in km², productivity per km²,
a short display name and a region label. Derivation is row-local; no record
depends on any other.
"""

import re
from typing import Any, Dict, Mapping

import pandas as pd

from .exceptions import InvalidArea
from .record_loader import AREA_ACRES, COMMON_NAME, FOREST_ID, PRODUCTIVITY_SUM, RAW_COLUMNS, REGION, YEAR
from .regions import region_label

# Unit conversions
PRODUCTIVITY_SCALE = 1_000_000
ACRES_PER_KM2 = 247

PRODUCTIVITY_SCALED = 'productivity_scaled'
AREA_KM2 = 'area_km2'
PRODUCTIVITY_PER_KM2 = 'productivity_per_km2'
SHORT_NAME = 'short_name'
REGION_LABEL = 'region_label'

ENRICHED_COLUMNS = RAW_COLUMNS + [
    PRODUCTIVITY_SCALED, AREA_KM2, PRODUCTIVITY_PER_KM2, SHORT_NAME, REGION_LABEL
]

_NATIONAL_FOREST = re.compile(r'National Forests?')
_AND_WORD = re.compile(r'\band\b')
_WHITESPACE = re.compile(r'\s+')


def _clean_name_once(name: str) -> str:
    name = _NATIONAL_FOREST.sub('', name)
    name = _AND_WORD.sub('&', name)
    name = _WHITESPACE.sub(' ', name)
    return name.strip()


def clean_forest_name(name: str) -> str:
    """
    Shorten a forest's common name for display.

    Removes "National Forest"/"National Forests", replaces the word "and"
    with "&", collapses runs of whitespace and trims the ends. The steps are
    repeated until the name stops changing, so cleaning a cleaned name is a
    no-op.

    Args:
        name: Common name as exported, e.g. "Shasta-Trinity National Forest"

    Returns:
        str: Short name, e.g. "Shasta-Trinity"

    Examples:
        >>> clean_forest_name("Caribou-Targhee National Forest")
        'Caribou-Targhee'
        >>> clean_forest_name("Medicine Bow-Routt National Forests and Thunder Basin")
        'Medicine Bow-Routt & Thunder Basin'
    """
    previous = str(name)
    cleaned = _clean_name_once(previous)
    # every change shortens the string or swaps a whitespace char for a space
    while cleaned != previous:
        previous, cleaned = cleaned, _clean_name_once(cleaned)
    return cleaned


def find_invalid_areas(frame: pd.DataFrame) -> pd.Series:
    """Boolean mask of rows whose area does not convert to a positive km² figure."""
    return ~(frame[AREA_ACRES] / ACRES_PER_KM2 > 0)


def derive_record_metrics(record: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Derive the normalized metrics of a single raw record.

    Args:
        record: Raw record keyed by the loader's column names

    Returns:
        dict: The raw fields plus the derived fields

    Raises:
        InvalidArea: If the area is not strictly positive
    """
    area_acres = float(record[AREA_ACRES])
    area_km2 = area_acres / ACRES_PER_KM2
    if not area_km2 > 0:
        raise InvalidArea(record[FOREST_ID], record[YEAR], area_acres)

    productivity_scaled = float(record[PRODUCTIVITY_SUM]) / PRODUCTIVITY_SCALE

    enriched = dict(record)
    enriched.update({
        PRODUCTIVITY_SCALED: productivity_scaled,
        AREA_KM2: area_km2,
        PRODUCTIVITY_PER_KM2: productivity_scaled / area_km2,
        SHORT_NAME: clean_forest_name(record[COMMON_NAME]),
        REGION_LABEL: region_label(record[REGION]),
    })
    return enriched


def derive_metrics(frame: pd.DataFrame) -> pd.DataFrame:
    """
    Derive normalized metrics for every raw record in a frame.

    Vectorized equivalent of derive_record_metrics. The input frame is not
    modified.

    Args:
        frame: Raw records (RAW_COLUMNS)

    Returns:
        pd.DataFrame: Enriched records (ENRICHED_COLUMNS)

    Raises:
        InvalidArea: For the first record whose area is not strictly positive
    """
    invalid = find_invalid_areas(frame)
    if invalid.any():
        offender = frame[invalid].iloc[0]
        raise InvalidArea(offender[FOREST_ID], offender[YEAR], offender[AREA_ACRES])

    enriched = frame.copy()
    enriched[PRODUCTIVITY_SCALED] = enriched[PRODUCTIVITY_SUM] / PRODUCTIVITY_SCALE
    enriched[AREA_KM2] = enriched[AREA_ACRES] / ACRES_PER_KM2
    enriched[PRODUCTIVITY_PER_KM2] = enriched[PRODUCTIVITY_SCALED] / enriched[AREA_KM2]
    enriched[SHORT_NAME] = enriched[COMMON_NAME].map(clean_forest_name).astype(object)
    enriched[REGION_LABEL] = enriched[REGION].map(region_label).astype(object)

    return enriched[ENRICHED_COLUMNS]
