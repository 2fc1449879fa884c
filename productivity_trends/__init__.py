"""
Forest Productivity Trends Component

Turns per-year, per-forest gross primary productivity (GPP) exports into
comparable metrics and longitudinal change statistics:

- Per-year export loading with case-insensitive header matching
- Unit-normalized productivity, area and productivity per km²
- Year-over-year and cumulative-from-baseline change per forest
- Read-only Result Table with filters and region summaries

Components:
    core/: Core processing modules
    scripts/: Executable entry points
    config.yaml: Component configuration
"""

from .core.productivity_pipeline import ForestProductivityPipeline
from .core.result_table import ResultTable
from .core.exceptions import (
    ProductivityDataError,
    MissingSourceData,
    MalformedRecord,
    InvalidArea,
    DuplicateYearInSeries
)

__version__ = "1.0.0"
__component__ = "productivity_trends"

__all__ = [
    "ForestProductivityPipeline",
    "ResultTable",
    "ProductivityDataError",
    "MissingSourceData",
    "MalformedRecord",
    "InvalidArea",
    "DuplicateYearInSeries"
]
