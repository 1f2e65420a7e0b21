# ========================
# timeusage/pipeline/summarization.py
# ========================

"""
Summarization Module

Projects every respondent onto three categorical attributes (working status,
sex, age) and three activity totals in hours (primary needs, work, other).
Respondents outside the labor force classification are dropped.
"""

import logging
from typing import Dict, List, Sequence

import numpy as np
import pandas as pd

from .exceptions import SchemaError
from .models import (
    WORKING, SEX, AGE, PRIMARY_NEEDS, WORK, OTHER, REPORT_COLUMNS, TimeUsageRow,
)
from ..utils.numeric import round_half_up

logger = logging.getLogger(__name__)

EMPLOYMENT_COLUMN = "telfs"
SEX_COLUMN = "tesex"
AGE_COLUMN = "teage"
CONTROL_COLUMNS = [EMPLOYMENT_COLUMN, SEX_COLUMN, AGE_COLUMN]

# telfs: 1-2 employed, 3-4 unemployed, 5 not in labor force. Only telfs == 5
# is meant to be excluded, but the filter drops every code above 4.
MAX_ELIGIBLE_EMPLOYMENT_CODE = 4

MINUTES_PER_HOUR = 60


class TimeUsageSummarizer:
    """
    Builds the per-respondent summary table from the typed survey frame.
    Keeps running counts of processed and dropped respondents.
    """

    def __init__(self):
        """Initialize the summarizer."""
        self.records_processed = 0
        self.records_dropped = 0
        logger.info("TimeUsageSummarizer initialized")

    def summarize(self,
                  primary_needs_columns: Sequence[str],
                  work_columns: Sequence[str],
                  other_columns: Sequence[str],
                  df: pd.DataFrame) -> pd.DataFrame:
        """
        Sum each activity group into hours and derive the demographic labels.

        The resulting DataFrame has the columns:
        - working: "working" if 1 <= telfs < 3, "not working" otherwise
        - sex: "male" if tesex == 1, "female" otherwise
        - age: "young" if 15 <= teage <= 22, "active" if 23 <= teage <= 55,
          "elder" otherwise
        - primaryNeeds: sum of the primary needs columns, in hours (unrounded)
        - work: sum of the work columns, in whole hours
        - other: sum of the other columns, in whole hours

        Args:
            primary_needs_columns: Columns with time spent on primary needs
            work_columns: Columns with time spent working
            other_columns: Columns with time spent on other activities
            df: Typed survey DataFrame

        Returns:
            pd.DataFrame: One row per eligible respondent
        """
        self._check_columns(df, CONTROL_COLUMNS, "control")
        for name, columns in (("primary needs", primary_needs_columns),
                              ("work", work_columns),
                              ("other", other_columns)):
            self._check_columns(df, columns, name)

        telfs = df[EMPLOYMENT_COLUMN]
        tesex = df[SEX_COLUMN]
        teage = df[AGE_COLUMN]

        summary = pd.DataFrame({
            WORKING: np.where((telfs >= 1) & (telfs < 3), "working", "not working"),
            SEX: np.where(tesex == 1, "male", "female"),
            AGE: np.select(
                [teage.between(15, 22), teage.between(23, 55)],
                ["young", "active"],
                default="elder",
            ),
            PRIMARY_NEEDS: self._hours(df, primary_needs_columns),
            WORK: round_half_up(self._hours(df, work_columns)),
            OTHER: round_half_up(self._hours(df, other_columns)),
        }, index=df.index)

        eligible = telfs <= MAX_ELIGIBLE_EMPLOYMENT_CODE
        summary = summary.loc[eligible, REPORT_COLUMNS].reset_index(drop=True)

        dropped = int((~eligible).sum())
        self.records_processed += len(df)
        self.records_dropped += dropped
        logger.info(f"Summarized {len(summary)}/{len(df)} respondents ({dropped} outside the labor force)")
        return summary

    @staticmethod
    def _hours(df: pd.DataFrame, columns: Sequence[str]) -> pd.Series:
        # A missing minute value makes the whole total missing
        minutes = df[list(columns)].sum(axis=1, skipna=False).astype("float64")
        return minutes / MINUTES_PER_HOUR

    @staticmethod
    def _check_columns(df: pd.DataFrame, columns: Sequence[str], kind: str) -> None:
        missing = [c for c in columns if c not in df.columns]
        if missing:
            logger.error(f"Missing {kind} columns: {missing}")
            raise SchemaError(f"Missing {kind} columns: {missing}", column=missing[0])

    def get_statistics(self) -> Dict[str, float]:
        """Get summary statistics."""
        kept = self.records_processed - self.records_dropped
        return {
            'records_processed': self.records_processed,
            'records_dropped': self.records_dropped,
            'records_kept': kept,
            'eligibility_rate': kept / self.records_processed * 100 if self.records_processed > 0 else 0
        }


def time_usage_summary(primary_needs_columns, work_columns, other_columns, df):
    """Summarize ``df`` with a fresh :class:`TimeUsageSummarizer`."""
    return TimeUsageSummarizer().summarize(primary_needs_columns, work_columns, other_columns, df)


def summary_rows(summary_df: pd.DataFrame) -> List[TimeUsageRow]:
    """Convert a summary (or grouped) DataFrame into typed rows."""
    return [
        TimeUsageRow(
            working=row[0],
            sex=row[1],
            age=row[2],
            primary_needs=float(row[3]),
            work=float(row[4]),
            other=float(row[5]),
        )
        for row in summary_df[REPORT_COLUMNS].itertuples(index=False, name=None)
    ]
