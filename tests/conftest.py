from __future__ import annotations

import sys
from pathlib import Path

import pandas as pd
import pytest

# Ensure we can import the components without installing the package
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from productivity_trends.core.record_loader import RAW_COLUMNS  # noqa: E402

# Upstream exports use upper-case headers; the loader must not care
EXPORT_HEADER = ['CNID', 'COMMONNAME', 'REGION', 'SUM', 'GIS_ACRES']


@pytest.fixture
def export_dir(tmp_path):
    directory = tmp_path / "exports"
    directory.mkdir()
    return directory


@pytest.fixture
def write_export(export_dir):
    """Write one year's export: rows are (cnid, name, region, sum, acres)."""
    def _write(year, rows, columns=EXPORT_HEADER, directory=None):
        path = (directory or export_dir) / f"forest_gpp_{year}.csv"
        pd.DataFrame(rows, columns=columns).to_csv(path, index=False)
        return path
    return _write


@pytest.fixture
def make_config(export_dir, tmp_path):
    def _make(years, **analysis):
        return {
            'data': {
                'input_dir': str(export_dir),
                'file_pattern': 'forest_gpp_{year}.csv',
            },
            'sample_years': {'years': list(years)},
            'columns': {
                'forest_id': 'cnid',
                'common_name': 'commonname',
                'region': 'region',
                'productivity_sum': 'sum',
                'area_acres': 'gis_acres',
            },
            'analysis': {
                'require_complete_series': analysis.get('require_complete_series', True),
                'malformed_records': analysis.get('malformed_records', 'raise'),
                'invalid_areas': analysis.get('invalid_areas', 'raise'),
            },
            'processing': {'max_workers': analysis.get('max_workers', 1)},
            'output': {
                'output_dir': str(tmp_path / "results"),
                'filename_prefix': 'trends',
                'save_results': True,
            },
            'logging': {'level': 'WARNING', 'component_name': 'productivity_trends'},
        }
    return _make


@pytest.fixture
def raw_frame():
    """Build a raw record frame: rows are (cnid, name, region, sum, acres, year)."""
    def _build(rows):
        frame = pd.DataFrame(rows, columns=RAW_COLUMNS)
        return frame.astype({
            'cnid': 'int64', 'region': 'int64', 'productivity_sum': 'float64',
            'area_acres': 'float64', 'year': 'int64',
        })
    return _build
