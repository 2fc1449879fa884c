"""
Forest Productivity Trends Pipeline

Orchestrates the full batch run:
1. Load one productivity export per configured sample year
2. Derive per-area metrics for every forest record
3. Annotate each forest's series with year-over-year and baseline change
4. Assemble the Result Table, optionally saving it as CSV

Any data-quality failure aborts the run; no partial table is produced.
"""

import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pandas as pd

from shared_utils import (
    ensure_directory, get_config_value, load_config, log_pipeline_end,
    log_pipeline_start, log_section, resolve_path, setup_logging, validate_config
)
from shared_utils.central_data_paths_constants import GPP_EXPORTS_DIR, PRODUCTIVITY_TRENDS_DIR

from .exceptions import InvalidArea, ProductivityDataError
from .longitudinal_analysis import annotate_changes, check_series_completeness
from .metric_derivation import derive_metrics, find_invalid_areas
from .record_loader import (
    AREA_ACRES, DEFAULT_COLUMN_MAP, FOREST_ID, MALFORMED_POLICIES, YEAR,
    build_sample_years, build_source_resolver, load_all_years, validate_sample_years
)
from .result_table import ResultTable

PIPELINE_NAME = "Forest Productivity Trends"
REQUIRED_SECTIONS = ['data', 'sample_years', 'columns']
INVALID_AREA_POLICIES = ('raise', 'skip')


def resolve_sample_years(config: Dict[str, Any]) -> List[int]:
    """
    Read the configured sample years.

    Accepts either an explicit ``years`` list or a ``start``/``end``/``step``
    range under the ``sample_years`` section.
    """
    section = config.get('sample_years') or {}
    if isinstance(section, list):
        return validate_sample_years(section)
    if section.get('years'):
        return validate_sample_years(section['years'])
    try:
        years = build_sample_years(section['start'], section['end'], section.get('step', 5))
    except KeyError as e:
        raise ValueError(f"sample_years needs either 'years' or 'start'/'end', missing {e}")
    return validate_sample_years(years)


class ForestProductivityPipeline:
    """
    Batch pipeline producing change-annotated forest productivity records.

    Configuration may be given as a path to a YAML file or as an already
    loaded dictionary; with neither, the component's config.yaml is used.
    """

    def __init__(self, config: Optional[Union[str, Path, Dict]] = None):
        """
        Initialize the pipeline.

        Args:
            config: Configuration dictionary or path to config file
        """
        if isinstance(config, dict):
            self.config = config
        else:
            self.config = load_config(config, component_name="productivity_trends")

        validate_config(self.config, REQUIRED_SECTIONS)

        self.logger = setup_logging(
            level=get_config_value(self.config, 'logging.level', 'INFO'),
            component_name=get_config_value(self.config, 'logging.component_name', 'productivity_trends'),
            log_file=get_config_value(self.config, 'logging.log_file')
        )

        self.years = resolve_sample_years(self.config)
        self.column_map = {**DEFAULT_COLUMN_MAP, **(self.config.get('columns') or {})}
        self.input_dir = resolve_path(get_config_value(self.config, 'data.input_dir', GPP_EXPORTS_DIR))
        self.file_pattern = get_config_value(self.config, 'data.file_pattern', 'forest_gpp_{year}.csv')
        self.output_dir = Path(get_config_value(self.config, 'output.output_dir', PRODUCTIVITY_TRENDS_DIR))

        self.require_complete_series = bool(get_config_value(self.config, 'analysis.require_complete_series', True))
        self.malformed_records = get_config_value(self.config, 'analysis.malformed_records', 'raise')
        self.invalid_areas = get_config_value(self.config, 'analysis.invalid_areas', 'raise')
        self.max_workers = int(get_config_value(self.config, 'processing.max_workers', 1))

        if self.malformed_records not in MALFORMED_POLICIES:
            raise ValueError(f"analysis.malformed_records must be one of {MALFORMED_POLICIES}")
        if self.invalid_areas not in INVALID_AREA_POLICIES:
            raise ValueError(f"analysis.invalid_areas must be one of {INVALID_AREA_POLICIES}")

        self.resolver = build_source_resolver(self.input_dir, self.file_pattern)

        self.logger.info("ForestProductivityPipeline initialized")
        self.logger.info(f"Sample years: {self.years}")
        self.logger.info(f"Input directory: {self.input_dir}")

    def run(self) -> ResultTable:
        """
        Run the complete pipeline.

        Returns:
            ResultTable: Change-annotated records for every forest and year

        Raises:
            ProductivityDataError: On any input data failure
        """
        start_time = time.time()
        log_pipeline_start(self.logger, PIPELINE_NAME, self.config)

        try:
            log_section(self.logger, "Loading Sample Years")
            raw = load_all_years(
                self.years,
                self.resolver,
                column_map=self.column_map,
                malformed=self.malformed_records,
                max_workers=self.max_workers
            )

            log_section(self.logger, "Deriving Metrics")
            raw = self._apply_invalid_area_policy(raw)
            enriched = derive_metrics(raw)
            self.logger.info(f"Derived metrics for {len(enriched)} records")

            log_section(self.logger, "Longitudinal Analysis")
            if self.require_complete_series:
                check_series_completeness(enriched, self.years)
            annotated = annotate_changes(enriched)

            table = ResultTable(annotated)

        except ProductivityDataError as e:
            self.logger.error(f"Pipeline failed: {e}")
            log_pipeline_end(self.logger, PIPELINE_NAME, success=False, elapsed_time=time.time() - start_time)
            raise

        log_pipeline_end(self.logger, PIPELINE_NAME, success=True, elapsed_time=time.time() - start_time)
        return table

    def _apply_invalid_area_policy(self, raw: pd.DataFrame) -> pd.DataFrame:
        """Drop non-positive areas under the 'skip' policy; 'raise' leaves them for derive_metrics."""
        if self.invalid_areas == 'raise':
            return raw

        invalid = find_invalid_areas(raw)
        for _, row in raw[invalid].iterrows():
            self.logger.warning(f"Dropping record: {InvalidArea(row[FOREST_ID], row[YEAR], row[AREA_ACRES])}")
        if invalid.any():
            self.logger.warning(f"Dropped {int(invalid.sum())} record(s) with invalid area")
        return raw[~invalid].reset_index(drop=True)

    # ==================== RESULTS ====================

    def save_results(self, table: ResultTable) -> Path:
        """
        Save the Result Table as a timestamped CSV file.

        Args:
            table: Result table to save

        Returns:
            Path to the output file
        """
        output_dir = ensure_directory(self.output_dir)
        prefix = get_config_value(self.config, 'output.filename_prefix', 'forest_productivity_trends')
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")

        output_file = table.to_csv(output_dir / f"{prefix}_{timestamp}.csv")
        self.logger.info(f"Results saved to: {output_file}")
        return output_file

    def print_summary(self, table: ResultTable) -> None:
        """
        Log a summary of the productivity trends.

        Args:
            table: Result table to summarize
        """
        if len(table) == 0:
            self.logger.warning("No results to summarize")
            return

        summary = table.summary()

        self.logger.info(f"\nForest Productivity Change {summary['first_year']}-{summary['last_year']}:")
        self.logger.info(f"  Forests analysed: {summary['n_forests']}")
        self.logger.info(f"  Records: {summary['n_records']}")
        self.logger.info(f"  Mean change from baseline: {summary['mean_final_change_pct']:.1%}")
        self.logger.info(f"  Improved: {summary['n_improved']}, declined: {summary['n_declined']}, "
                         f"unchanged: {summary['n_unchanged']}")

        if summary['largest_gain']:
            gain = summary['largest_gain']
            self.logger.info(f"  Largest gain: {gain['short_name']} ({gain['final_change_pct']:+.1%})")
        if summary['largest_loss']:
            loss = summary['largest_loss']
            self.logger.info(f"  Largest loss: {loss['short_name']} ({loss['final_change_pct']:+.1%})")

        region_df = table.region_summary().copy()
        region_df['mean_final_change_pct'] = region_df['mean_final_change_pct'].astype(float).round(4)
        self.logger.info("\nBy region:\n" + region_df.to_string())
