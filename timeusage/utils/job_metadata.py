# ========================
# timeusage/utils/job_metadata.py
# ========================

"""
Job Metadata Management

Handles persistent storage and discovery of pipeline job metadata for the
API server.
"""

import json
import logging
import uuid
from datetime import datetime
from pathlib import Path
from typing import Dict, Any

logger = logging.getLogger(__name__)

OUTPUT_FILE_TYPES = {
    'time_usage_by_group.csv': 'report',
    'run_summary.json': 'summary',
    'DATA_DICTIONARY.md': 'data_dictionary',
}


class JobMetadataManager:
    """Manages persistent job metadata storage."""

    def __init__(self, metadata_file: str = "data/job_metadata.json"):
        self.metadata_file = Path(metadata_file)
        self.metadata_file.parent.mkdir(parents=True, exist_ok=True)

    def save_job_metadata(self, job_status_dict: Dict[str, Dict[str, Any]]) -> None:
        """Save all job metadata to persistent storage."""
        try:
            with open(self.metadata_file, 'w') as f:
                json.dump(job_status_dict, f, indent=2, default=str)
            logger.debug(f"Saved job metadata for {len(job_status_dict)} jobs")
        except OSError as e:
            logger.error(f"Failed to save job metadata: {e}")

    def load_job_metadata(self) -> Dict[str, Dict[str, Any]]:
        """Load job metadata from persistent storage."""
        if not self.metadata_file.exists():
            return {}
        try:
            with open(self.metadata_file, 'r') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to load job metadata: {e}")
            return {}
        logger.info(f"Loaded metadata for {len(data)} persisted jobs")
        return data

    def discover_existing_jobs(self, processed_dir: str = "data/processed") -> Dict[str, Dict[str, Any]]:
        """Discover completed jobs from per-job output directories."""
        discovered_jobs = {}
        processed_path = Path(processed_dir)

        if not processed_path.exists():
            return discovered_jobs

        for job_dir in processed_path.iterdir():
            if not (job_dir.is_dir() and self._is_valid_uuid(job_dir.name)):
                continue

            summary_file = job_dir / "run_summary.json"
            if not summary_file.exists():
                continue

            job_id = job_dir.name
            completed_at = datetime.fromtimestamp(summary_file.stat().st_mtime).isoformat()

            try:
                with open(summary_file, 'r') as f:
                    summary_data = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                logger.warning(f"Could not read summary for job {job_id}: {e}")
                continue

            discovered_jobs[job_id] = {
                'job_id': job_id,
                'filename': Path(summary_data.get('input_file', 'unknown_file.csv')).name,
                'status': 'completed',
                'created_at': completed_at,
                'completed_at': completed_at,
                'input_file': summary_data.get('input_file'),
                'output_dir': str(job_dir),
                'type': 'discovered',
                'results': {
                    'processing_stats': summary_data,
                    'saved_files': self._get_saved_files(job_dir),
                },
            }

        if discovered_jobs:
            logger.info(f"Discovered {len(discovered_jobs)} existing jobs from data directories")

        return discovered_jobs

    def _is_valid_uuid(self, uuid_string: str) -> bool:
        """Check if string is a valid UUID."""
        try:
            uuid.UUID(uuid_string)
            return True
        except ValueError:
            return False

    def _get_saved_files(self, job_dir: Path) -> Dict[str, str]:
        """Get dictionary of saved files for a job."""
        return {
            file_type: str(job_dir / filename)
            for filename, file_type in OUTPUT_FILE_TYPES.items()
            if (job_dir / filename).exists()
        }
