from __future__ import annotations

import pandas as pd
import pytest

from productivity_trends.core.exceptions import MalformedRecord, MissingSourceData
from productivity_trends.core import record_loader as rl


def _resolver(export_dir):
    return rl.build_source_resolver(export_dir, 'forest_gpp_{year}.csv')


def test_build_sample_years_default_sequence():
    assert rl.build_sample_years(1986, 2021, 5) == [1986, 1991, 1996, 2001, 2006, 2011, 2016, 2021]


@pytest.mark.parametrize("years", [[], [1991, 1986], [1986, 1986], [1986, 1991, 2001]])
def test_validate_sample_years_rejects_bad_sequences(years):
    with pytest.raises(ValueError):
        rl.validate_sample_years(years)


def test_resolver_requires_year_placeholder(tmp_path):
    with pytest.raises(ValueError):
        rl.build_source_resolver(tmp_path, 'forest_gpp.csv')


def test_headers_are_matched_case_insensitively(export_dir, write_export):
    write_export(1986, [(1, "Alpha National Forest", 5, 10_000_000, 2_470_000)],
                 columns=['cNiD', 'CommonName', 'REGION', 'Sum', 'gis_ACRES'])

    records = rl.load_year_records(1986, _resolver(export_dir))

    assert list(records.columns) == rl.RAW_COLUMNS
    row = records.iloc[0]
    assert row['cnid'] == 1
    assert row['common_name'] == "Alpha National Forest"
    assert row['region'] == 5
    assert row['productivity_sum'] == 10_000_000
    assert row['area_acres'] == 2_470_000
    assert row['year'] == 1986
    assert records['cnid'].dtype == 'int64'
    assert records['area_acres'].dtype == 'float64'


def test_extra_columns_are_ignored(export_dir, write_export):
    write_export(1986, [(1, "Alpha", 5, 1.0, 2.0, 'x')],
                 columns=['CNID', 'COMMONNAME', 'REGION', 'SUM', 'GIS_ACRES', 'SYSTEM:INDEX'])

    records = rl.load_year_records(1986, _resolver(export_dir))

    assert list(records.columns) == rl.RAW_COLUMNS


def test_missing_file_names_the_year(export_dir):
    with pytest.raises(MissingSourceData) as excinfo:
        rl.load_year_records(1991, _resolver(export_dir))

    assert excinfo.value.year == 1991
    assert "1991" in str(excinfo.value)


def test_empty_file_is_unreadable_source(export_dir):
    (export_dir / "forest_gpp_1986.csv").write_text("")

    with pytest.raises(MissingSourceData) as excinfo:
        rl.load_year_records(1986, _resolver(export_dir))

    assert excinfo.value.year == 1986


def test_missing_required_column(export_dir, write_export):
    write_export(1986, [(1, "Alpha", 5, 1.0)], columns=['CNID', 'COMMONNAME', 'REGION', 'SUM'])

    with pytest.raises(MalformedRecord) as excinfo:
        rl.load_year_records(1986, _resolver(export_dir))

    assert excinfo.value.row is None
    assert "gis_acres" in str(excinfo.value)


def test_decimal_comma_is_not_silently_reinterpreted(export_dir):
    (export_dir / "forest_gpp_1986.csv").write_text(
        'CNID,COMMONNAME,REGION,SUM,GIS_ACRES\n1,Alpha,5,"1,5",247\n'
    )

    with pytest.raises(MalformedRecord) as excinfo:
        rl.load_year_records(1986, _resolver(export_dir))

    assert excinfo.value.row == 1
    assert "productivity_sum" in str(excinfo.value)


def test_non_numeric_value_names_source_and_row(export_dir, write_export):
    path = write_export(1986, [
        (1, "Alpha", 5, 1_000_000, 247),
        (2, "Beta", 5, "n/a", 247),
    ])

    with pytest.raises(MalformedRecord) as excinfo:
        rl.load_year_records(1986, _resolver(export_dir))

    assert excinfo.value.row == 2
    assert excinfo.value.source == str(path)
    assert "productivity_sum" in str(excinfo.value)


@pytest.mark.parametrize("bad_row", [
    (None, "Alpha", 5, 1.0, 247),
    (1, None, 5, 1.0, 247),
    (1, "Alpha", 7, 1.0, 247),
    (1.5, "Alpha", 5, 1.0, 247),
    (1, "Alpha", 5, 1.0, None),
])
def test_invalid_rows_are_malformed(export_dir, write_export, bad_row):
    write_export(1986, [bad_row])

    with pytest.raises(MalformedRecord):
        rl.load_year_records(1986, _resolver(export_dir))


def test_skip_policy_drops_bad_rows(export_dir, write_export):
    write_export(1986, [
        (1, "Alpha", 5, 1_000_000, 247),
        (2, "Beta", 5, "n/a", 247),
        (3, "Gamma", 1, 2_000_000, 494),
    ])

    records = rl.load_year_records(1986, _resolver(export_dir), malformed='skip')

    assert list(records['cnid']) == [1, 3]


def test_unknown_policy_is_rejected():
    frame = pd.DataFrame({'cnid': [1]})
    with pytest.raises(ValueError):
        rl.normalize_year_frame(frame, 1986, 'memory', malformed='ignore')


def test_custom_column_map(export_dir, write_export):
    write_export(1986, [(1, "Alpha", 5, 1.0, 2.0)],
                 columns=['forest', 'name', 'usfs_region', 'gpp_total', 'acres'])
    column_map = {
        'forest_id': 'FOREST', 'common_name': 'Name', 'region': 'usfs_region',
        'productivity_sum': 'gpp_total', 'area_acres': 'acres',
    }

    records = rl.load_year_records(1986, _resolver(export_dir), column_map=column_map)

    assert records.iloc[0]['cnid'] == 1


def test_load_all_years_concatenates_in_year_order(export_dir, write_export):
    for year in (1986, 1991, 1996):
        write_export(year, [(2, "Beta", 1, year * 1000, 247), (1, "Alpha", 5, year, 247)])

    sequential = rl.load_all_years([1986, 1991, 1996], _resolver(export_dir))
    threaded = rl.load_all_years([1986, 1991, 1996], _resolver(export_dir), max_workers=3)

    assert list(sequential['year']) == [1986, 1986, 1991, 1991, 1996, 1996]
    pd.testing.assert_frame_equal(sequential, threaded)


def test_load_all_years_fails_on_any_missing_year(export_dir, write_export):
    write_export(1986, [(1, "Alpha", 5, 1.0, 247)])
    write_export(1996, [(1, "Alpha", 5, 1.0, 247)])

    with pytest.raises(MissingSourceData) as excinfo:
        rl.load_all_years([1986, 1991, 1996], _resolver(export_dir), max_workers=2)

    assert excinfo.value.year == 1991
