# ========================
# timeusage/pipeline/storage.py
# ========================

"""
Data Storage Module

Renders the grouped report and saves it, with a run summary and a data
dictionary, to the output directory.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict

import pandas as pd

from .models import REPORT_COLUMNS

logger = logging.getLogger(__name__)

REPORT_FILE = "time_usage_by_group.csv"
SUMMARY_FILE = "run_summary.json"
DICTIONARY_FILE = "DATA_DICTIONARY.md"


class ReportWriter:
    """
    Writes the grouped time usage report to various output formats.
    """

    def __init__(self, output_dir: str = "data/processed"):
        """
        Initialize the report writer.

        Args:
            output_dir (str): Directory to save output files
        """
        self.output_dir = Path(output_dir)
        logger.info(f"ReportWriter initialized with output directory: {self.output_dir}")

    @staticmethod
    def render(grouped: pd.DataFrame) -> str:
        """Render the grouped report as a plain-text table."""
        if grouped.empty:
            return "(no eligible respondents)"
        return grouped[REPORT_COLUMNS].to_string(index=False, float_format=lambda v: f"{v:.1f}")

    def save_all(self, grouped: pd.DataFrame, run_summary: Dict[str, Any]) -> Dict[str, str]:
        """
        Save the report, the run summary and the data dictionary.

        Args:
            grouped (pd.DataFrame): Output of the grouping stage
            run_summary (dict): Processing statistics of the run

        Returns:
            dict: Mapping of output type to saved file path
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)
        saved_files = {}

        try:
            saved_files['report'] = self.save_report(grouped)
            saved_files['summary'] = self.save_summary(run_summary)
            saved_files['data_dictionary'] = self.create_data_dictionary()
        except OSError as e:
            logger.error(f"Error saving report: {e}")
            raise

        logger.info(f"All data saved successfully to {len(saved_files)} files")
        return saved_files

    def save_report(self, grouped: pd.DataFrame) -> str:
        """Save the grouped report as CSV."""
        file_path = self.output_dir / REPORT_FILE
        grouped[REPORT_COLUMNS].to_csv(file_path, index=False)
        logger.info(f"Saved {len(grouped)} groups to {file_path}")
        return str(file_path)

    def save_summary(self, run_summary: Dict[str, Any]) -> str:
        """Save the run summary as JSON."""
        file_path = self.output_dir / SUMMARY_FILE

        with open(file_path, 'w', encoding='utf-8') as f:
            json.dump(run_summary, f, indent=2, ensure_ascii=False, default=str)

        logger.info(f"Summary saved to {file_path}")
        return str(file_path)

    def create_data_dictionary(self) -> str:
        """Create a data dictionary explaining the output files."""
        file_path = self.output_dir / DICTIONARY_FILE

        content = f"""# Data Dictionary

This document describes the files written by the time usage pipeline.

## Files Overview

### 1. {REPORT_FILE}
Average daily hours per activity group, for each combination of working
status, sex and age. Sorted by working, sex, age.

| Column | Type | Description |
|--------|------|-------------|
| working | string | "working" (telfs 1-2) or "not working" |
| sex | string | "male" (tesex = 1) or "female" |
| age | string | "young" (15-22), "active" (23-55) or "elder" |
| primaryNeeds | float | Average hours on sleeping, eating, personal care (1 decimal) |
| work | float | Average hours working, from whole-hour respondent totals (1 decimal) |
| other | float | Average hours on other activities, from whole-hour respondent totals (1 decimal) |

### 2. {SUMMARY_FILE}
Statistics about the run: row counts, classified columns, respondents dropped
by the labor force filter, grouping method and timings.

## Data Quality Notes

- Respondents with telfs above 4 (not in labor force) are excluded
- Activity columns matching no group are ignored
- Demographic groups without respondents are absent from the report
"""

        with open(file_path, 'w', encoding='utf-8') as f:
            f.write(content)

        logger.info(f"Data dictionary created at {file_path}")
        return str(file_path)
