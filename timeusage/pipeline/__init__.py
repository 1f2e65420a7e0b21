# ========================
# timeusage/pipeline/__init__.py
# ========================

"""
Time Usage Pipeline Package

This package contains the stages of the time usage pipeline:
- ingestion: survey CSV reading and column casting
- classification: activity column grouping by code prefix
- summarization: per-respondent labels and hour totals
- transformation: per-group averages (pandas, SQL or typed)
- storage: report rendering and output files
- orchestrator: pipeline coordination
"""

from .exceptions import TimeUsageError, LoadError, SchemaError, EmptyGroupWarning
from .models import TimeUsageRow
from .ingestion import SurveyReader, read_survey
from .classification import ClassifiedColumns, classify
from .summarization import TimeUsageSummarizer, time_usage_summary, summary_rows
from .transformation import (
    TimeUsageAggregator,
    time_usage_grouped,
    time_usage_grouped_sql,
    time_usage_grouped_typed,
)
from .storage import ReportWriter
from .orchestrator import TimeUsagePipeline

__all__ = [
    'TimeUsageError',
    'LoadError',
    'SchemaError',
    'EmptyGroupWarning',
    'TimeUsageRow',
    'SurveyReader',
    'read_survey',
    'ClassifiedColumns',
    'classify',
    'TimeUsageSummarizer',
    'time_usage_summary',
    'summary_rows',
    'TimeUsageAggregator',
    'time_usage_grouped',
    'time_usage_grouped_sql',
    'time_usage_grouped_typed',
    'ReportWriter',
    'TimeUsagePipeline'
]
