from __future__ import annotations

import pytest

from productivity_trends.core.exceptions import InvalidArea
from productivity_trends.core import metric_derivation as md

NAMES = [
    "Shasta-Trinity National Forest",
    "Medicine Bow-Routt National Forests and Thunder Basin",
    "Humboldt-Toiyabe National Forest",
    "Lake Tahoe Basin Mgt Unit",
    "Highland and Sandia",
    "  Lake\tTahoe   Basin  ",
    "National  Forest",
    "NationalNational Forest Forest",
    "National Forests",
    "and and and",
    "",
    "   ",
    "Rio Grande National Forestand",
]


def test_clean_forest_name_examples():
    assert md.clean_forest_name("Shasta-Trinity National Forest") == "Shasta-Trinity"
    assert md.clean_forest_name("Medicine Bow-Routt National Forests and Thunder Basin") == \
        "Medicine Bow-Routt & Thunder Basin"
    assert md.clean_forest_name("Highland and Sandia") == "Highland & Sandia"
    assert md.clean_forest_name("  Lake\tTahoe   Basin  ") == "Lake Tahoe Basin"


@pytest.mark.parametrize("name", NAMES)
def test_clean_forest_name_is_idempotent(name):
    once = md.clean_forest_name(name)
    assert md.clean_forest_name(once) == once


def test_word_and_only():
    # 'and' inside another word stays
    assert md.clean_forest_name("Sandia Grand") == "Sandia Grand"


@pytest.mark.parametrize("total, acres", [
    (10_000_000, 2_470_000),
    (13_600_000, 2_470_000),
    (123_456.789, 1),
    (0, 1_000_000.5),
    (98_765_432_100, 3_141_592),
])
def test_unit_conversions(total, acres):
    record = {
        'cnid': 7, 'common_name': "Alpha National Forest", 'region': 3,
        'productivity_sum': total, 'area_acres': acres, 'year': 2001,
    }

    enriched = md.derive_record_metrics(record)

    assert enriched['productivity_scaled'] == pytest.approx(total / 1e6, rel=1e-9)
    assert enriched['area_km2'] == pytest.approx(acres / 247, rel=1e-9)
    assert enriched['productivity_per_km2'] == pytest.approx((total / 1e6) / (acres / 247), rel=1e-9)
    assert enriched['short_name'] == "Alpha"
    assert enriched['region_label'] == "R3"
    assert enriched['year'] == 2001


@pytest.mark.parametrize("acres", [0, -5, float('nan')])
def test_non_positive_area_is_rejected(acres):
    record = {
        'cnid': 7, 'common_name': "Alpha", 'region': 3,
        'productivity_sum': 1.0, 'area_acres': acres, 'year': 2001,
    }

    with pytest.raises(InvalidArea) as excinfo:
        md.derive_record_metrics(record)

    assert excinfo.value.forest_id == 7
    assert excinfo.value.year == 2001


def test_derive_metrics_matches_record_function(raw_frame):
    raw = raw_frame([
        (1, "Alpha National Forest", 5, 10_000_000, 2_470_000, 1986),
        (2, "Beta and Gamma National Forests", 1, 5_500_000, 741_000, 1986),
    ])

    enriched = md.derive_metrics(raw)

    assert list(enriched.columns) == md.ENRICHED_COLUMNS
    for (_, row), record in zip(enriched.iterrows(), raw.to_dict(orient='records')):
        expected = md.derive_record_metrics(record)
        for column in (md.PRODUCTIVITY_SCALED, md.AREA_KM2, md.PRODUCTIVITY_PER_KM2):
            assert row[column] == pytest.approx(expected[column], rel=1e-9)
        assert row[md.SHORT_NAME] == expected[md.SHORT_NAME]
        assert row[md.REGION_LABEL] == expected[md.REGION_LABEL]

    assert list(enriched[md.SHORT_NAME]) == ["Alpha", "Beta & Gamma"]


def test_derive_metrics_does_not_modify_input(raw_frame):
    raw = raw_frame([(1, "Alpha", 5, 1.0, 247, 1986)])
    before = raw.copy()

    md.derive_metrics(raw)

    assert raw.equals(before)


def test_derive_metrics_reports_first_invalid_area(raw_frame):
    raw = raw_frame([
        (1, "Alpha", 5, 1.0, 247, 1986),
        (2, "Beta", 5, 1.0, 0, 1991),
    ])

    with pytest.raises(InvalidArea) as excinfo:
        md.derive_metrics(raw)

    assert excinfo.value.forest_id == 2
    assert excinfo.value.year == 1991
