"""
Central Data Paths - Constants

Centralized path management for the Forest Productivity Trends repository.
All components should import paths from this module instead of defining their own.

Usage:
    from shared_utils.central_data_paths_constants import GPP_EXPORTS_DIR

    input_files = sorted(GPP_EXPORTS_DIR.glob("*.csv"))
"""

from pathlib import Path

# Root directories
DATA_ROOT = Path("data")

RAW_DIR = DATA_ROOT / "raw"
RESULTS_DIR = DATA_ROOT / "results"

# Per-year forest productivity exports from the geospatial provider
GPP_EXPORTS_DIR = RAW_DIR / "gpp_exports"

# Analysis outputs
PRODUCTIVITY_TRENDS_DIR = RESULTS_DIR / "productivity_trends"
