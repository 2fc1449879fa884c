"""
Longitudinal Analysis Module

Groups enriched records by forest and annotates each forest's year-ordered
series with change metrics:

- change_from_prior / change_from_prior_pct: against the previous sample year
- change_from_baseline / change_from_baseline_pct: against the series' first year
- final_change_pct: the last year's baseline change, repeated on every row
- is_last_in_series: True on the most recent row only

Each series is sorted and scanned here; callers never need to pre-sort.
Percentages are fractions (0.36 == 36%). A ratio whose denominator is zero
is left undefined (NaN), except that a single-record series always has a
baseline change of 0.
"""

from typing import Sequence

import numpy as np
import pandas as pd

from shared_utils import get_logger

from .exceptions import DuplicateYearInSeries, MissingSourceData
from .metric_derivation import ENRICHED_COLUMNS, PRODUCTIVITY_SCALED
from .record_loader import FOREST_ID, YEAR

logger = get_logger('longitudinal_analysis')

CHANGE_FROM_PRIOR = 'change_from_prior'
CHANGE_FROM_PRIOR_PCT = 'change_from_prior_pct'
CHANGE_FROM_BASELINE = 'change_from_baseline'
CHANGE_FROM_BASELINE_PCT = 'change_from_baseline_pct'
FINAL_CHANGE_PCT = 'final_change_pct'
IS_LAST_IN_SERIES = 'is_last_in_series'

CHANGE_COLUMNS = [
    CHANGE_FROM_PRIOR,
    CHANGE_FROM_PRIOR_PCT,
    CHANGE_FROM_BASELINE,
    CHANGE_FROM_BASELINE_PCT,
    FINAL_CHANGE_PCT,
]

ANNOTATED_COLUMNS = ENRICHED_COLUMNS + CHANGE_COLUMNS + [IS_LAST_IN_SERIES]


def _ratio(numerator: pd.Series, denominator: pd.Series) -> pd.Series:
    return numerator / denominator.where(denominator != 0)


def annotate_series(series: pd.DataFrame) -> pd.DataFrame:
    """
    Annotate one forest's records with change metrics.

    Args:
        series: Enriched records of a single forest, in any order

    Returns:
        pd.DataFrame: The records sorted by year with change columns added

    Raises:
        DuplicateYearInSeries: If a year appears more than once
        ValueError: If the frame is empty or holds more than one forest
    """
    if series.empty:
        raise ValueError("Cannot annotate an empty forest series")

    forest_ids = series[FOREST_ID].unique()
    if len(forest_ids) != 1:
        raise ValueError(f"A forest series must hold exactly one forest, got {sorted(forest_ids)}")
    forest_id = forest_ids[0]

    ordered = series.sort_values(YEAR, kind='mergesort').reset_index(drop=True)

    duplicated = ordered[YEAR].duplicated()
    if duplicated.any():
        raise DuplicateYearInSeries(forest_id, int(ordered.loc[duplicated, YEAR].iloc[0]))

    values = ordered[PRODUCTIVITY_SCALED]
    prior = values.shift(1)
    baseline = pd.Series(values.iloc[0], index=values.index)

    annotated = ordered.copy()
    annotated[CHANGE_FROM_PRIOR] = values - prior
    annotated[CHANGE_FROM_PRIOR_PCT] = _ratio(annotated[CHANGE_FROM_PRIOR], prior)
    annotated[CHANGE_FROM_BASELINE] = values - baseline
    annotated[CHANGE_FROM_BASELINE_PCT] = _ratio(annotated[CHANGE_FROM_BASELINE], baseline)
    if len(annotated) == 1:
        # a lone record is its own baseline, even at zero productivity
        annotated[CHANGE_FROM_BASELINE_PCT] = 0.0
    annotated[FINAL_CHANGE_PCT] = annotated[CHANGE_FROM_BASELINE_PCT].iloc[-1]
    annotated[IS_LAST_IN_SERIES] = np.arange(len(annotated)) == len(annotated) - 1

    return annotated


def annotate_changes(frame: pd.DataFrame) -> pd.DataFrame:
    """
    Annotate every forest series in a frame of enriched records.

    Forests are emitted in ascending id order, each series in ascending year
    order. A defect in any series aborts the whole aggregation.

    Args:
        frame: Enriched records for all forests and years, in any order

    Returns:
        pd.DataFrame: Change-annotated records (ANNOTATED_COLUMNS)
    """
    if frame.empty:
        return pd.DataFrame(columns=ANNOTATED_COLUMNS)

    annotated = [annotate_series(series) for _, series in frame.groupby(FOREST_ID, sort=True)]
    result = pd.concat(annotated, ignore_index=True)

    logger.info(f"Annotated {len(annotated)} forest series ({len(result)} records)")
    return result[ANNOTATED_COLUMNS]


def check_series_completeness(frame: pd.DataFrame, years: Sequence[int]) -> None:
    """
    Require every forest to have a record for every configured sample year.

    Args:
        frame: Records with forest id and year columns
        years: Configured sample years

    Raises:
        MissingSourceData: For the lowest forest id lacking one or more years
    """
    expected = set(int(y) for y in years)
    incomplete = {}
    for forest_id, forest_years in frame.groupby(FOREST_ID, sort=True)[YEAR]:
        missing = sorted(expected - set(int(y) for y in forest_years))
        if missing:
            incomplete[forest_id] = missing

    if incomplete:
        logger.error(f"{len(incomplete)} forest(s) are missing sample years")
        forest_id, missing = next(iter(incomplete.items()))
        raise MissingSourceData(missing, forest_id=int(forest_id))
