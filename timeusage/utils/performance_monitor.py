# ========================
# timeusage/utils/performance_monitor.py
# ========================

"""
Performance Monitoring Utilities

Tracks wall time, memory and per-stage checkpoints of a pipeline run.
"""

import os
import time
import logging
from contextlib import contextmanager
from typing import Dict, Any, Optional

import psutil

logger = logging.getLogger(__name__)


class PerformanceMonitor:
    """
    Performance monitoring utility for the pipeline.
    Tracks memory usage, processing time, and throughput.
    """

    def __init__(self, name: str = "Pipeline"):
        """
        Initialize performance monitor.

        Args:
            name (str): Name for this monitoring session
        """
        self.name = name
        self.start_time = None
        self.end_time = None
        self.peak_memory_mb = 0.0
        self.records_processed = 0
        self.checkpoints = []
        self._process = psutil.Process(os.getpid())

        logger.debug(f"PerformanceMonitor initialized: {name}")

    def start_monitoring(self) -> None:
        """Start performance monitoring."""
        self.start_time = time.time()
        self.peak_memory_mb = self._get_memory_usage_mb()

        logger.info(f"{self.name} - Performance monitoring started")
        logger.info(f"Initial memory usage: {self.peak_memory_mb:.2f} MB")

    def update_progress(self, records: int) -> None:
        """
        Record processed rows.

        Args:
            records (int): Number of rows processed since the last update
        """
        self.records_processed += records
        self.peak_memory_mb = max(self.peak_memory_mb, self._get_memory_usage_mb())

    def add_checkpoint(self, name: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        """
        Add a performance checkpoint, typically at the end of a stage.

        Args:
            name (str): Checkpoint name
            metadata (dict): Optional metadata to store
        """
        memory_mb = self._get_memory_usage_mb()
        self.peak_memory_mb = max(self.peak_memory_mb, memory_mb)
        checkpoint = {
            'name': name,
            'elapsed_seconds': time.time() - self.start_time if self.start_time else 0.0,
            'memory_mb': memory_mb,
            'records_processed': self.records_processed,
            'metadata': metadata or {}
        }
        self.checkpoints.append(checkpoint)
        logger.debug(f"Checkpoint '{name}': {checkpoint}")

    def stop_monitoring(self) -> Dict[str, Any]:
        """
        Stop monitoring and return performance summary.

        Returns:
            dict: Performance statistics
        """
        self.end_time = time.time()
        total_time = self.end_time - self.start_time if self.start_time else 0
        throughput = self.records_processed / total_time if total_time > 0 else 0

        summary = {
            'name': self.name,
            'total_processing_time_seconds': total_time,
            'records_processed': self.records_processed,
            'average_throughput_records_per_second': throughput,
            'peak_memory_usage_mb': self.peak_memory_mb,
            'checkpoints': self.checkpoints
        }

        self._log_summary(summary)
        return summary

    def _log_summary(self, summary: Dict[str, Any]) -> None:
        logger.info(
            f"{summary['name']} - {summary['records_processed']:,} records in "
            f"{summary['total_processing_time_seconds']:.2f}s "
            f"({summary['average_throughput_records_per_second']:.0f} records/sec), "
            f"peak memory {summary['peak_memory_usage_mb']:.2f} MB"
        )
        for checkpoint in summary['checkpoints']:
            logger.info(f"  {checkpoint['name']}: {checkpoint['elapsed_seconds']:.2f}s")

    def _get_memory_usage_mb(self) -> float:
        """Get current resident memory in MB."""
        return self._process.memory_info().rss / (1024 * 1024)


@contextmanager
def monitor_performance(name: str = "Pipeline"):
    """
    Context manager for easy performance monitoring.

    Args:
        name (str): Name for this monitoring session

    Yields:
        PerformanceMonitor: Monitor instance
    """
    monitor = PerformanceMonitor(name)
    monitor.start_monitoring()
    try:
        yield monitor
    finally:
        monitor.stop_monitoring()


def get_system_stats() -> Dict[str, Any]:
    """Get current system resource statistics."""
    memory = psutil.virtual_memory()
    return {
        'cpu_count': psutil.cpu_count(),
        'memory_total_gb': memory.total / (1024 ** 3),
        'memory_available_gb': memory.available / (1024 ** 3),
        'memory_used_percent': memory.percent,
    }
