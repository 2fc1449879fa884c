"""
Core processing modules for forest productivity trends.

Modules:
    exceptions: Data-quality error taxonomy
    regions: USFS region enumeration and display labels
    record_loader: Per-year export loading and schema normalization
    metric_derivation: Per-record normalized metrics
    longitudinal_analysis: Per-forest year-over-year and baseline change
    result_table: Read-only table of change-annotated records
    productivity_pipeline: End-to-end pipeline orchestrator
"""

from .exceptions import (
    ProductivityDataError,
    MissingSourceData,
    MalformedRecord,
    InvalidArea,
    DuplicateYearInSeries
)
from .regions import Region, region_label
from .record_loader import (
    build_sample_years,
    build_source_resolver,
    load_year_records,
    load_all_years
)
from .metric_derivation import clean_forest_name, derive_record_metrics, derive_metrics
from .longitudinal_analysis import annotate_series, annotate_changes, check_series_completeness
from .result_table import ResultTable
from .productivity_pipeline import ForestProductivityPipeline

__all__ = [
    "ProductivityDataError",
    "MissingSourceData",
    "MalformedRecord",
    "InvalidArea",
    "DuplicateYearInSeries",
    "Region",
    "region_label",
    "build_sample_years",
    "build_source_resolver",
    "load_year_records",
    "load_all_years",
    "clean_forest_name",
    "derive_record_metrics",
    "derive_metrics",
    "annotate_series",
    "annotate_changes",
    "check_series_completeness",
    "ResultTable",
    "ForestProductivityPipeline"
]
