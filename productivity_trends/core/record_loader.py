"""
Record Loader Module

Reads one tabular export per configured sample year and normalizes it into a
typed row-set tagged with its sample year. Header names are matched
case-insensitively against the configured column mapping; every row is
validated before it enters the pipeline.

Each year is loaded by a pure function of the year, and the per-year frames
are concatenated explicitly in ascending year order.
"""

import concurrent.futures
import math
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Union

import numpy as np
import pandas as pd
from tqdm import tqdm

from shared_utils import get_logger

from .exceptions import MalformedRecord, MissingSourceData
from .regions import Region

logger = get_logger('record_loader')

# Normalized column names of a loaded row-set
FOREST_ID = 'cnid'
COMMON_NAME = 'common_name'
REGION = 'region'
PRODUCTIVITY_SUM = 'productivity_sum'
AREA_ACRES = 'area_acres'
YEAR = 'year'

RAW_COLUMNS = [FOREST_ID, COMMON_NAME, REGION, PRODUCTIVITY_SUM, AREA_ACRES, YEAR]

# Logical field -> upstream export column (matched case-insensitively)
DEFAULT_COLUMN_MAP = {
    'forest_id': 'cnid',
    'common_name': 'commonname',
    'region': 'region',
    'productivity_sum': 'sum',
    'area_acres': 'gis_acres',
}

_FIELD_TO_COLUMN = {
    'forest_id': FOREST_ID,
    'common_name': COMMON_NAME,
    'region': REGION,
    'productivity_sum': PRODUCTIVITY_SUM,
    'area_acres': AREA_ACRES,
}

MALFORMED_POLICIES = ('raise', 'skip')

SourceResolver = Callable[[int], Union[str, Path]]


def build_sample_years(start: int, end: int, step: int) -> List[int]:
    """
    Build the configured sequence of sample years.

    Args:
        start: First sample year (baseline)
        end: Last sample year (inclusive)
        step: Years between samples

    Returns:
        list: Ascending sample years

    Examples:
        >>> build_sample_years(1986, 2021, 5)
        [1986, 1991, 1996, 2001, 2006, 2011, 2016, 2021]
    """
    if step <= 0:
        raise ValueError(f"Sample year step must be positive, got {step}")
    if end < start:
        raise ValueError(f"Sample year range is empty: {start}..{end}")
    return list(range(int(start), int(end) + 1, int(step)))


def validate_sample_years(years: Sequence[int]) -> List[int]:
    """
    Check that sample years are non-empty, strictly ascending and evenly spaced.

    Returns:
        list: The years as plain ints

    Raises:
        ValueError: If the sequence violates any of the above
    """
    years = [int(y) for y in years]
    if not years:
        raise ValueError("At least one sample year must be configured")

    steps = {later - earlier for earlier, later in zip(years, years[1:])}
    if any(step <= 0 for step in steps):
        raise ValueError(f"Sample years must be strictly ascending: {years}")
    if len(steps) > 1:
        raise ValueError(f"Sample years must have a uniform step: {years}")
    return years


def build_source_resolver(input_dir: Union[str, Path], file_pattern: str) -> SourceResolver:
    """
    Create a resolver mapping a sample year to its export file.

    Args:
        input_dir: Directory holding the per-year exports
        file_pattern: File name pattern with a '{year}' placeholder

    Returns:
        callable: year -> Path
    """
    if '{year}' not in file_pattern:
        raise ValueError(f"File pattern must contain '{{year}}': {file_pattern}")
    input_dir = Path(input_dir)

    def resolve(year: int) -> Path:
        return input_dir / file_pattern.format(year=year)

    return resolve


def _match_columns(frame: pd.DataFrame, column_map: Dict[str, str], source: str) -> Dict[str, str]:
    """Map each logical field to the frame's actual header, ignoring case."""
    headers = {}
    for column in frame.columns:
        headers.setdefault(str(column).strip().lower(), column)

    matched = {}
    missing = []
    for field in _FIELD_TO_COLUMN:
        expected = column_map.get(field, DEFAULT_COLUMN_MAP[field])
        actual = headers.get(expected.strip().lower())
        if actual is None:
            missing.append(expected)
        else:
            matched[field] = actual

    if missing:
        raise MalformedRecord(source, None, f"missing required column(s): {missing}")
    return matched


def _parse_number(value, field: str) -> float:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        raise ValueError(f"missing value for '{field}'")
    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise ValueError(f"missing value for '{field}'")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"non-numeric value for '{field}': {value!r}")
    if not np.isfinite(number):
        raise ValueError(f"non-finite value for '{field}': {value!r}")
    return number


def _parse_integer(value, field: str) -> int:
    number = _parse_number(value, field)
    if not number.is_integer():
        raise ValueError(f"non-integer value for '{field}': {value!r}")
    return int(number)


def _parse_name(value) -> str:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        raise ValueError("missing value for 'common_name'")
    name = str(value).strip()
    if not name:
        raise ValueError("missing value for 'common_name'")
    return name


def parse_row(row: Dict[str, object], year: int) -> Dict[str, object]:
    """
    Validate and type one source row.

    Args:
        row: Mapping of logical field name to raw cell value
        year: Sample year the row belongs to

    Returns:
        dict: Typed raw record keyed by normalized column names

    Raises:
        ValueError: Describing the first invalid field
    """
    region_number = _parse_integer(row['region'], 'region')
    try:
        Region.from_number(region_number)
    except ValueError as e:
        raise ValueError(f"invalid value for 'region': {e}")

    return {
        FOREST_ID: _parse_integer(row['forest_id'], 'forest_id'),
        COMMON_NAME: _parse_name(row['common_name']),
        REGION: region_number,
        PRODUCTIVITY_SUM: _parse_number(row['productivity_sum'], 'productivity_sum'),
        AREA_ACRES: _parse_number(row['area_acres'], 'area_acres'),
        YEAR: int(year),
    }


def normalize_year_frame(
    frame: pd.DataFrame,
    year: int,
    source: str,
    column_map: Optional[Dict[str, str]] = None,
    malformed: str = 'raise'
) -> pd.DataFrame:
    """
    Normalize one year's export into the raw record schema.

    Args:
        frame: DataFrame as read from the export
        year: Sample year of the export
        source: Source identifier used in error messages
        column_map: Logical field -> export column name
        malformed: 'raise' to fail on the first bad row, 'skip' to drop bad rows with a warning

    Returns:
        pd.DataFrame: Rows with columns RAW_COLUMNS

    Raises:
        MalformedRecord: If a required column is absent, or a row is invalid under 'raise'
    """
    if malformed not in MALFORMED_POLICIES:
        raise ValueError(f"Unknown malformed record policy '{malformed}', expected one of {MALFORMED_POLICIES}")

    column_map = {**DEFAULT_COLUMN_MAP, **(column_map or {})}
    matched = _match_columns(frame, column_map, source)

    records = []
    skipped = 0
    for row_number, values in enumerate(frame[list(matched.values())].itertuples(index=False, name=None), start=1):
        row = dict(zip(matched.keys(), values))
        try:
            records.append(parse_row(row, year))
        except ValueError as e:
            if malformed == 'raise':
                raise MalformedRecord(source, row_number, str(e)) from e
            skipped += 1
            logger.warning(f"Skipping malformed record in {source}, row {row_number}: {e}")

    if skipped:
        logger.warning(f"Skipped {skipped} malformed record(s) in {source}")

    result = pd.DataFrame.from_records(records, columns=RAW_COLUMNS)
    return result.astype({
        FOREST_ID: 'int64',
        REGION: 'int64',
        PRODUCTIVITY_SUM: 'float64',
        AREA_ACRES: 'float64',
        YEAR: 'int64',
    })


def load_year_records(
    year: int,
    resolver: SourceResolver,
    column_map: Optional[Dict[str, str]] = None,
    malformed: str = 'raise'
) -> pd.DataFrame:
    """
    Load the raw records of a single sample year.

    Args:
        year: Sample year to load
        resolver: Callable mapping the year to its export file
        column_map: Logical field -> export column name
        malformed: Malformed row policy ('raise' or 'skip')

    Returns:
        pd.DataFrame: Raw records tagged with the year

    Raises:
        MissingSourceData: If the export is absent or cannot be parsed as a table
        MalformedRecord: If the export lacks required columns or holds invalid rows
    """
    path = Path(resolver(year))
    source = str(path)

    if not path.is_file():
        raise MissingSourceData(year, source, reason="file not found")

    try:
        frame = pd.read_csv(path)
    except (pd.errors.EmptyDataError, pd.errors.ParserError, UnicodeDecodeError, OSError) as e:
        raise MissingSourceData(year, source, reason=f"unreadable ({e})") from e

    records = normalize_year_frame(frame, year, source, column_map, malformed)
    logger.info(f"Loaded {len(records)} forest records for {year} from {path.name}")
    return records


def load_all_years(
    years: Sequence[int],
    resolver: SourceResolver,
    column_map: Optional[Dict[str, str]] = None,
    malformed: str = 'raise',
    max_workers: int = 1
) -> pd.DataFrame:
    """
    Load every configured sample year and concatenate the results.

    Per-year loads are independent and may run on a thread pool; the frames
    are always concatenated in ascending year order. Any failure aborts the
    whole load.

    Args:
        years: Configured sample years
        resolver: Callable mapping a year to its export file
        column_map: Logical field -> export column name
        malformed: Malformed row policy ('raise' or 'skip')
        max_workers: Number of loader threads (1 = sequential)

    Returns:
        pd.DataFrame: Raw records for all years
    """
    years = validate_sample_years(years)

    def load(year: int) -> pd.DataFrame:
        return load_year_records(year, resolver, column_map, malformed)

    if max_workers and max_workers > 1:
        logger.info(f"Loading {len(years)} sample years with {max_workers} workers")
        with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
            frames = list(tqdm(
                executor.map(load, years),
                total=len(years),
                desc="Loading sample years"
            ))
    else:
        frames = [load(year) for year in tqdm(years, desc="Loading sample years")]

    by_year = sorted(zip(years, frames), key=lambda pair: pair[0])
    combined = pd.concat([frame for _, frame in by_year], ignore_index=True)
    logger.info(f"Loaded {len(combined)} records across {len(years)} sample years")
    return combined
