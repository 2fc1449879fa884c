"""
Result Table Module

Read-only container for the change-annotated records produced by the
pipeline. All queries return new tables or plain values; the underlying
frame is never handed out without copying.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pandas as pd

from .longitudinal_analysis import ANNOTATED_COLUMNS, CHANGE_COLUMNS, FINAL_CHANGE_PCT, IS_LAST_IN_SERIES
from .metric_derivation import REGION_LABEL, SHORT_NAME
from .record_loader import FOREST_ID, REGION, YEAR
from .regions import Region

CHANGE_SIGNS = ('positive', 'negative', 'zero')


class ResultTable:
    """
    Immutable, queryable sequence of change-annotated forest records.

    Rows are ordered by forest id, then year.
    """

    def __init__(self, frame: pd.DataFrame):
        missing = [column for column in ANNOTATED_COLUMNS if column not in frame.columns]
        if missing:
            raise ValueError(f"Result frame is missing columns: {missing}")

        self._frame = (
            frame[ANNOTATED_COLUMNS]
            .sort_values([FOREST_ID, YEAR], kind='mergesort')
            .reset_index(drop=True)
            .copy()
        )

    def __len__(self) -> int:
        return len(self._frame)

    def __iter__(self):
        return iter(self.records())

    def __repr__(self) -> str:
        return f"ResultTable(forests={self._frame[FOREST_ID].nunique()}, records={len(self)})"

    @property
    def years(self) -> List[int]:
        return sorted(int(y) for y in self._frame[YEAR].unique())

    @property
    def forest_ids(self) -> List[int]:
        return sorted(int(f) for f in self._frame[FOREST_ID].unique())

    def to_frame(self) -> pd.DataFrame:
        """Return a copy of the records as a DataFrame."""
        return self._frame.copy()

    def records(self) -> List[Dict[str, Any]]:
        """Return the records as a list of dicts."""
        return self._frame.to_dict(orient='records')

    def _select(self, mask) -> "ResultTable":
        return ResultTable(self._frame[mask])

    # ==================== FILTERS ====================

    def for_year(self, year: int) -> "ResultTable":
        return self._select(self._frame[YEAR] == int(year))

    def for_region(self, region: Union[Region, int, str]) -> "ResultTable":
        """
        Records of one USFS region.

        Args:
            region: Region member, region number, or display label such as 'R5'
        """
        if isinstance(region, str) and region.strip().upper().startswith('R'):
            region = region.strip()[1:]
        if not isinstance(region, Region):
            region = Region.from_number(region)
        return self._select(self._frame[REGION] == region.value)

    def with_change_sign(self, field: str = FINAL_CHANGE_PCT, sign: str = 'positive') -> "ResultTable":
        """
        Records whose change field has the given sign.

        Undefined values (e.g. the prior-year change of a baseline row) match
        no sign.

        Args:
            field: One of the change columns
            sign: 'positive', 'negative' or 'zero'
        """
        if field not in CHANGE_COLUMNS:
            raise ValueError(f"Unknown change field '{field}', expected one of {CHANGE_COLUMNS}")
        if sign not in CHANGE_SIGNS:
            raise ValueError(f"Unknown sign '{sign}', expected one of {CHANGE_SIGNS}")

        values = self._frame[field]
        if sign == 'positive':
            mask = values > 0
        elif sign == 'negative':
            mask = values < 0
        else:
            mask = values == 0
        return self._select(mask)

    def latest(self) -> "ResultTable":
        """The most recent record of every forest."""
        return self._select(self._frame[IS_LAST_IN_SERIES].astype(bool))

    def forest_series(self, forest_id: int) -> "ResultTable":
        return self._select(self._frame[FOREST_ID] == int(forest_id))

    def ranked_by_final_change(self, ascending: bool = False) -> pd.DataFrame:
        """One row per forest, ordered by final change (ties by forest id)."""
        latest = self.latest().to_frame()
        return latest.sort_values(
            [FINAL_CHANGE_PCT, FOREST_ID],
            ascending=[ascending, True],
            kind='mergesort',
            na_position='last'
        ).reset_index(drop=True)

    # ==================== SUMMARIES ====================

    def mean_final_change(self) -> float:
        """Mean of final_change_pct across forests (each forest counted once)."""
        values = self.latest().to_frame()[FINAL_CHANGE_PCT]
        if values.dropna().empty:
            return float('nan')
        return float(values.mean())

    def region_summary(self) -> pd.DataFrame:
        """
        Per-region counts of improved, declined and unchanged forests.

        Returns:
            pd.DataFrame: Indexed by region label with columns n_forests,
            n_improved, n_declined, n_unchanged, mean_final_change_pct
        """
        latest = self.latest().to_frame()
        columns = ['n_forests', 'n_improved', 'n_declined', 'n_unchanged', 'mean_final_change_pct']
        if latest.empty:
            return pd.DataFrame(columns=columns).rename_axis(REGION_LABEL)

        latest['_region_order'] = latest[REGION]
        change = latest[FINAL_CHANGE_PCT]
        latest['_improved'] = change > 0
        latest['_declined'] = change < 0
        latest['_unchanged'] = change == 0

        summary = latest.groupby(['_region_order', REGION_LABEL]).agg(
            n_forests=(FOREST_ID, 'nunique'),
            n_improved=('_improved', 'sum'),
            n_declined=('_declined', 'sum'),
            n_unchanged=('_unchanged', 'sum'),
            mean_final_change_pct=(FINAL_CHANGE_PCT, 'mean'),
        )
        summary = summary.reset_index(level='_region_order', drop=True)
        return summary[columns].astype({
            'n_forests': 'int64', 'n_improved': 'int64', 'n_declined': 'int64', 'n_unchanged': 'int64'
        })

    def summary(self) -> Dict[str, Any]:
        """Headline statistics for narrative reporting."""
        latest = self.latest().to_frame()
        change = latest[FINAL_CHANGE_PCT]
        years = self.years

        def describe(row: Optional[pd.Series]) -> Optional[Dict[str, Any]]:
            if row is None:
                return None
            return {
                'forest_id': int(row[FOREST_ID]),
                'short_name': row[SHORT_NAME],
                'final_change_pct': float(row[FINAL_CHANGE_PCT]),
            }

        ranked = self.ranked_by_final_change(ascending=False).dropna(subset=[FINAL_CHANGE_PCT])
        largest_gain = ranked.iloc[0] if not ranked.empty and ranked.iloc[0][FINAL_CHANGE_PCT] > 0 else None
        largest_loss = ranked.iloc[-1] if not ranked.empty and ranked.iloc[-1][FINAL_CHANGE_PCT] < 0 else None

        return {
            'n_forests': int(latest[FOREST_ID].nunique()),
            'n_records': len(self),
            'first_year': years[0] if years else None,
            'last_year': years[-1] if years else None,
            'mean_final_change_pct': self.mean_final_change(),
            'n_improved': int((change > 0).sum()),
            'n_declined': int((change < 0).sum()),
            'n_unchanged': int((change == 0).sum()),
            'largest_gain': describe(largest_gain),
            'largest_loss': describe(largest_loss),
        }

    # ==================== EXPORT ====================

    def to_csv(self, path: Union[str, Path]) -> Path:
        """Write every record and field to a delimited text file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self._frame.to_csv(path, index=False)
        return path
