# ========================
# timeusage/pipeline/transformation.py
# ========================

"""
Data Transformation Module

Averages the summarised activity hours per (working status, sex, age) group.
The same result can be computed three ways: with pandas (default), with a
plain SQL query run by duckdb, or over typed TimeUsageRow records.
"""

import itertools
import logging
import math
import warnings
from collections import defaultdict
from typing import Any, Dict, Iterable, List

import duckdb
import pandas as pd

from .exceptions import EmptyGroupWarning
from .summarization import summary_rows
from .models import (
    GROUP_KEY, HOUR_COLUMNS, REPORT_COLUMNS,
    WORKING_LABELS, SEX_LABELS, AGE_LABELS, TimeUsageRow,
)
from ..utils.numeric import round_average

logger = logging.getLogger(__name__)

GROUPING_METHODS = ("dataframe", "sql", "typed")
ROUND_DECIMALS = 1


class TimeUsageAggregator:
    """
    Computes the average daily hours spent on each activity group, grouped by
    working status, sex and age, rounded to one decimal.
    """

    def __init__(self, method: str = "dataframe", view_name: str = "summed"):
        """
        Initialize the aggregator.

        Args:
            method (str): One of "dataframe", "sql" or "typed"
            view_name (str): Name of the SQL view used by the "sql" method
        """
        if method not in GROUPING_METHODS:
            raise ValueError(f"Unknown grouping method '{method}', expected one of {GROUPING_METHODS}")
        self.method = method
        self.view_name = view_name
        self.records_processed = 0
        self.groups = 0
        self.missing_groups: List[tuple] = []
        logger.info(f"TimeUsageAggregator initialized with method={method}")

    def group_average(self, summary_df: pd.DataFrame) -> pd.DataFrame:
        """
        Group the summary table and average each activity total.

        Args:
            summary_df (pd.DataFrame): Output of the summarization stage

        Returns:
            pd.DataFrame: One row per non-empty group, sorted by group key
        """
        if self.method == "sql":
            grouped = time_usage_grouped_sql(summary_df, self.view_name)
        elif self.method == "typed":
            rows = time_usage_grouped_typed(summary_rows(summary_df))
            grouped = _rows_to_frame(rows)
        else:
            grouped = time_usage_grouped(summary_df)

        self.records_processed += len(summary_df)
        self.groups = len(grouped)
        self.missing_groups = _warn_missing_groups(grouped)
        logger.info(f"Aggregation complete. {len(summary_df)} respondents in {len(grouped)} groups")
        return grouped

    def get_aggregation_summary(self) -> Dict[str, Any]:
        """Get a summary of the aggregation."""
        return {
            'method': self.method,
            'records_processed': self.records_processed,
            'groups': self.groups,
            'missing_groups': [list(key) for key in self.missing_groups],
        }


def time_usage_grouped(summed: pd.DataFrame) -> pd.DataFrame:
    """
    Average daily hours per (working, sex, age), rounded to one decimal and
    sorted by working status, sex and age.
    """
    grouped = (
        summed
        .groupby(GROUP_KEY, sort=False)[HOUR_COLUMNS]
        .mean()
        .reset_index()
    )
    for column in HOUR_COLUMNS:
        grouped[column] = round_average(grouped[column], ROUND_DECIMALS)

    return (
        grouped[REPORT_COLUMNS]
        .sort_values(GROUP_KEY, kind="mergesort")
        .reset_index(drop=True)
    )


def time_usage_grouped_sql_query(view_name: str) -> str:
    """
    Returns:
        str: SQL query averaging the hour totals per group, in key order

    The averages are left unrounded; :func:`time_usage_grouped_sql` rounds
    them with the same step as the other groupers so the results are
    identical.
    """
    return f"""
        SELECT working, sex, age,
        AVG("primaryNeeds") AS "primaryNeeds",
        AVG("work") AS "work",
        AVG("other") AS "other"
        FROM {view_name}
        GROUP BY working, sex, age
        ORDER BY working, sex, age
    """


def time_usage_grouped_sql(summed: pd.DataFrame, view_name: str = "summed") -> pd.DataFrame:
    """Same as :func:`time_usage_grouped`, but using a plain SQL query instead."""
    con = duckdb.connect()
    try:
        con.register(view_name, summed)
        grouped = con.execute(time_usage_grouped_sql_query(view_name)).df()
    finally:
        con.close()

    for column in HOUR_COLUMNS:
        grouped[column] = round_average(grouped[column].astype("float64"), ROUND_DECIMALS)
    return grouped[REPORT_COLUMNS].reset_index(drop=True)


def time_usage_grouped_typed(summed: Iterable[TimeUsageRow]) -> List[TimeUsageRow]:
    """
    Same as :func:`time_usage_grouped`, over typed rows.

    The input holds one row per respondent, the result one row per group.
    """
    totals = defaultdict(lambda: {'primary_needs': [], 'work': [], 'other': []})
    for row in summed:
        values = totals[row.key]
        values['primary_needs'].append(row.primary_needs)
        values['work'].append(row.work)
        values['other'].append(row.other)

    return [
        TimeUsageRow(
            *key,
            primary_needs=_rounded_mean(values['primary_needs']),
            work=_rounded_mean(values['work']),
            other=_rounded_mean(values['other']),
        )
        for key, values in sorted(totals.items())
    ]


def _rounded_mean(values: List[float]) -> float:
    # Missing totals are ignored, like AVG in SQL
    present = [v for v in values if not math.isnan(v)]
    if not present:
        return math.nan
    return float(round_average(math.fsum(present) / len(present), ROUND_DECIMALS))


def _rows_to_frame(rows: List[TimeUsageRow]) -> pd.DataFrame:
    return pd.DataFrame([row.to_dict() for row in rows], columns=REPORT_COLUMNS)


def _warn_missing_groups(grouped: pd.DataFrame) -> List[tuple]:
    present = set(grouped[GROUP_KEY].itertuples(index=False, name=None))
    missing = [key for key in itertools.product(WORKING_LABELS, SEX_LABELS, AGE_LABELS)
               if key not in present]
    if missing:
        warnings.warn(
            f"{len(missing)} demographic groups have no eligible respondents: {sorted(missing)}",
            EmptyGroupWarning,
            stacklevel=3,
        )
    return sorted(missing)
