# ========================
# timeusage/utils/config.py
# ========================

"""
Configuration Management

Centralized configuration for the time usage pipeline with environment support.
"""

import json
import os
from pathlib import Path
from typing import Dict, Any, Optional


class Config:
    """
    Configuration class for the time usage pipeline.
    Supports environment variables and default values.
    """

    def __init__(self, config_dict: Optional[Dict[str, Any]] = None):
        """
        Initialize configuration.

        Args:
            config_dict (dict): Optional configuration overrides
        """
        # File Paths
        self.DEFAULT_INPUT_FILE = os.getenv('TIMEUSAGE_INPUT_FILE', 'data/raw/atussum.csv')
        self.DEFAULT_OUTPUT_DIR = os.getenv('TIMEUSAGE_OUTPUT_DIR', 'data/processed')
        self.UPLOAD_DIR = os.getenv('TIMEUSAGE_UPLOAD_DIR', 'data/uploaded')

        # Data Processing Configuration (0 reads the whole file at once)
        self.DEFAULT_CHUNK_SIZE = int(os.getenv('TIMEUSAGE_CHUNK_SIZE', '0'))
        self.GROUPING_METHOD = os.getenv('TIMEUSAGE_GROUPING_METHOD', 'dataframe')
        self.ID_COLUMN = os.getenv('TIMEUSAGE_ID_COLUMN', 'tucaseid')

        # Data Generation Settings
        self.GENERATE_SAMPLE_IF_MISSING = os.getenv('GENERATE_SAMPLE_IF_MISSING', 'true').lower() == 'true'
        self.DEFAULT_SAMPLE_ROWS = int(os.getenv('SAMPLE_ROWS', '10000'))

        # API Settings
        self.API_PORT = int(os.getenv('API_PORT', '8000'))

        # Logging Configuration
        self.LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
        self.LOG_FILE = os.getenv('LOG_FILE', 'pipeline.log')
        self.LOG_DIR = os.getenv('LOG_DIR', 'logs')

        # Override with provided config
        if config_dict:
            self._update_from_dict(config_dict)

    def _update_from_dict(self, config_dict: Dict[str, Any]) -> None:
        """Update configuration from dictionary."""
        for key, value in config_dict.items():
            if hasattr(self, key.upper()):
                setattr(self, key.upper(), value)

    def get_data_paths(self) -> Dict[str, Path]:
        """Get all configured data paths as Path objects."""
        return {
            'input_file': Path(self.DEFAULT_INPUT_FILE),
            'output_dir': Path(self.DEFAULT_OUTPUT_DIR),
            'upload_dir': Path(self.UPLOAD_DIR),
            'raw_data_dir': Path(self.DEFAULT_INPUT_FILE).parent,
            'logs_dir': Path(self.LOG_DIR)
        }

    def ensure_directories(self) -> None:
        """Create necessary directories if they don't exist."""
        paths = self.get_data_paths()
        for path_name, path in paths.items():
            if path_name.endswith('_dir'):
                path.mkdir(parents=True, exist_ok=True)

    def validate_config(self) -> Dict[str, bool]:
        """
        Validate configuration values.

        Returns:
            dict: Validation results for each setting
        """
        validations = {}

        validations['chunk_size'] = self.DEFAULT_CHUNK_SIZE >= 0
        validations['sample_rows'] = self.DEFAULT_SAMPLE_ROWS > 0
        validations['grouping_method'] = self.GROUPING_METHOD in ('dataframe', 'sql', 'typed')
        validations['id_column'] = bool(self.ID_COLUMN)
        validations['api_port'] = 1000 <= self.API_PORT <= 65535

        valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        validations['log_level'] = self.LOG_LEVEL.upper() in valid_log_levels

        return validations

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            attr: getattr(self, attr)
            for attr in dir(self)
            if not attr.startswith('_') and not callable(getattr(self, attr))
        }

    def save_to_file(self, file_path: str) -> None:
        """Save configuration to JSON file."""
        with open(file_path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2, default=str)

    @classmethod
    def load_from_file(cls, file_path: str) -> 'Config':
        """Load configuration from JSON file."""
        with open(file_path, 'r') as f:
            config_dict = json.load(f)
        return cls(config_dict)

    def __str__(self) -> str:
        """String representation of configuration."""
        lines = ["Configuration Settings:"]
        config_dict = self.to_dict()
        for key, value in sorted(config_dict.items()):
            lines.append(f"  {key}: {value}")
        return "\n".join(lines)
