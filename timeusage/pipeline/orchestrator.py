# ========================
# timeusage/pipeline/orchestrator.py
# ========================

"""
Pipeline Orchestrator Module

Main orchestrator class that runs the stages in sequence: read the survey,
classify its columns, summarize respondents, average per group, save the
report.
"""

import logging
from pathlib import Path
from typing import Optional

import pandas as pd

from .ingestion import SurveyReader
from .classification import classify
from .summarization import TimeUsageSummarizer
from .transformation import TimeUsageAggregator
from .storage import ReportWriter
from ..utils.performance_monitor import monitor_performance
from ..utils.config import Config

logger = logging.getLogger(__name__)


class TimeUsagePipeline:
    """
    Orchestrates the time usage pipeline.
    Coordinates reading, classifying, summarizing, grouping and saving data.
    """

    def __init__(self,
                 input_file: str,
                 output_dir: str,
                 chunk_size: Optional[int] = None,
                 method: Optional[str] = None,
                 config: Optional[Config] = None):
        """
        Initialize the pipeline.

        Args:
            input_file (str): Path to the survey CSV file
            output_dir (str): Directory for output files
            chunk_size (int): Rows per read chunk; None or 0 reads the whole file
            method (str): Grouping method, "dataframe", "sql" or "typed"
            config (Config): Configuration object
        """
        self.config = config or Config()
        self.input_file = str(input_file)
        self.output_dir = str(output_dir)
        self.chunk_size = chunk_size if chunk_size is not None else self.config.DEFAULT_CHUNK_SIZE
        self.method = method or self.config.GROUPING_METHOD

        # Initialize pipeline components
        self.reader = SurveyReader(self.input_file, id_column=self.config.ID_COLUMN)
        self.summarizer = TimeUsageSummarizer()
        self.aggregator = TimeUsageAggregator(method=self.method)
        self.writer = ReportWriter(self.output_dir)

        self.grouped: Optional[pd.DataFrame] = None

        logger.info("TimeUsagePipeline initialized:")
        logger.info(f"  Input: {self.input_file}")
        logger.info(f"  Output: {self.output_dir}")
        logger.info(f"  Chunk size: {self.chunk_size or 'whole file'}")
        logger.info(f"  Grouping method: {self.method}")

    def run(self) -> dict:
        """
        Execute the complete pipeline from start to finish.

        Returns:
            dict: Summary of processing results and saved files
        """
        logger.info(f"Starting time usage pipeline for '{self.input_file}'...")

        with monitor_performance("TimeUsagePipeline") as monitor:
            columns, survey = self.reader.read(chunk_size=self.chunk_size or None)
            monitor.update_progress(len(survey))
            monitor.add_checkpoint('load', {'rows': len(survey), 'columns': len(columns)})

            classified = classify(columns)
            monitor.add_checkpoint('classify')

            summary = self.summarizer.summarize(
                classified.primary_needs, classified.work, classified.other, survey
            )
            monitor.add_checkpoint('summarize', {'rows': len(summary)})

            self.grouped = self.aggregator.group_average(summary)
            monitor.add_checkpoint('group', {'groups': len(self.grouped)})

        run_summary = {
            'input_file': self.input_file,
            'rows_read': len(survey),
            'columns_read': len(columns),
            'classified_columns': {
                'primary_needs': len(classified.primary_needs),
                'work': len(classified.work),
                'other': len(classified.other),
            },
            'summary_stats': self.summarizer.get_statistics(),
            'aggregation_stats': self.aggregator.get_aggregation_summary(),
            'performance': {
                'total_processing_time_seconds': monitor.end_time - monitor.start_time,
                'peak_memory_usage_mb': monitor.peak_memory_mb,
            },
        }
        saved_files = self.writer.save_all(self.grouped, run_summary)

        results = {
            'pipeline_status': 'completed',
            'input_file': self.input_file,
            'output_directory': self.output_dir,
            'saved_files': saved_files,
            'processing_stats': run_summary,
            'report': self._report_records(),
        }

        logger.info("Pipeline finished successfully.")
        self._log_final_summary(results)

        return results

    def _report_records(self) -> list:
        # Groups whose totals are all missing hold NaN, which is not valid JSON
        report = self.grouped.astype(object).where(self.grouped.notna(), None)
        return report.to_dict(orient='records')

    def render_report(self) -> str:
        """Render the last grouped report as a text table."""
        if self.grouped is None:
            raise RuntimeError("Pipeline has not been run yet")
        return self.writer.render(self.grouped)

    def _log_final_summary(self, results: dict) -> None:
        """Log final pipeline summary."""
        logger.info("=" * 60)
        logger.info("PIPELINE EXECUTION SUMMARY")
        logger.info("=" * 60)

        stats = results['processing_stats']
        summary_stats = stats['summary_stats']

        logger.info(f"Input file: {results['input_file']}")
        logger.info(f"Respondents read: {stats['rows_read']:,}")
        logger.info(f"Eligible respondents: {summary_stats['records_kept']:,} "
                    f"({summary_stats['eligibility_rate']:.1f}%)")
        logger.info(f"Groups reported: {stats['aggregation_stats']['groups']}")
        logger.info(f"Output directory: {results['output_directory']}")

        for output_type, file_path in results['saved_files'].items():
            logger.info(f"  - {output_type}: {file_path}")

        logger.info("=" * 60)

    def validate_input(self) -> bool:
        """
        Validate input file exists and is readable.

        Returns:
            bool: True if input is valid
        """
        input_path = Path(self.input_file)
        if not input_path.exists():
            logger.error(f"Input file does not exist: {self.input_file}")
            return False

        if not input_path.is_file():
            logger.error(f"Input path is not a file: {self.input_file}")
            return False

        try:
            with open(self.input_file, 'r', encoding='utf-8') as f:
                f.readline()
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Cannot read input file: {e}")
            return False

        logger.info(f"Input validation passed: {self.input_file}")
        return True

    def estimate_processing_time(self) -> dict:
        """
        Estimate processing time based on file size.

        Returns:
            dict: Processing time estimates
        """
        try:
            file_size = Path(self.input_file).stat().st_size
        except OSError as e:
            logger.warning(f"Could not estimate processing time: {e}")
            return {}

        # An atussum row is roughly 1.7 KB (about 450 columns)
        estimated_rows = file_size // 1700
        base_rate = 20000

        return {
            'file_size_mb': file_size / (1024 * 1024),
            'estimated_rows': estimated_rows,
            'estimated_processing_time_seconds': estimated_rows / base_rate,
        }
