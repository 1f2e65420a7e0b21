# ========================
# timeusage/utils/data_generator.py
# ========================

"""
Data Generation Utilities

Writes synthetic survey files shaped like the ATUS activity summary
(atussum.csv): one row per respondent, demographic codes, and the minutes
spent on each activity code during the diary day.
"""

import csv
import random
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 1440

# Activity codes written by the generator, by intended group
PRIMARY_NEEDS_CODES = ["t010101", "t010102", "t010201", "t030101", "t110101", "t180101", "t180382"]
WORK_CODES = ["t050101", "t050102", "t050201", "t180501", "t180502"]
OTHER_CODES = [
    "t020101", "t020201", "t040101", "t060101", "t070101", "t080101", "t090101",
    "t100101", "t120101", "t120303", "t130101", "t140101", "t150101", "t160101",
    "t180201", "t181201",
]
# Data codes that belong to no activity group
UNCLASSIFIED_CODES = ["t500101", "t509989"]

DEMOGRAPHIC_COLUMNS = ["tucaseid", "gemetsta", "tudiaryday", "teage", "telfs", "tesex", "tuyear"]


class DataGenerator:
    """
    Generates reproducible synthetic survey datasets.
    """

    def __init__(self, seed: Optional[int] = None):
        """
        Initialize data generator.

        Args:
            seed (int): Random seed for reproducible data generation
        """
        self._random = random.Random(seed)
        self.activity_columns = PRIMARY_NEEDS_CODES + WORK_CODES + OTHER_CODES + UNCLASSIFIED_CODES
        logger.info(f"DataGenerator initialized with seed: {seed}")

    @property
    def header(self) -> List[str]:
        return DEMOGRAPHIC_COLUMNS + self.activity_columns

    def generate_dataset(self, file_path: str, num_rows: int, year: int = 2003) -> Dict[str, Any]:
        """
        Generate a survey file.

        Args:
            file_path (str): Output CSV file path
            num_rows (int): Number of respondents to generate
            year (int): Survey year written to tuyear and the case ids

        Returns:
            dict: Generation statistics
        """
        logger.info(f"Generating {num_rows:,} respondents...")

        stats = {
            'total_rows': num_rows,
            'columns': len(self.header),
            'employment_codes': {},
        }

        Path(file_path).parent.mkdir(parents=True, exist_ok=True)

        with open(file_path, 'w', newline='', encoding='utf-8') as f:
            writer = csv.writer(f)
            writer.writerow(self.header)

            for i in range(num_rows):
                record = self._generate_single_record(i, year)
                writer.writerow(record)

                telfs = record[4]
                stats['employment_codes'][telfs] = stats['employment_codes'].get(telfs, 0) + 1

                if (i + 1) % 10000 == 0:
                    logger.debug(f"Generated {i + 1:,} records")

        logger.info(f"Dataset generated: {file_path}")
        logger.info(f"Employment code breakdown: {stats['employment_codes']}")
        return stats

    def _generate_single_record(self, index: int, year: int) -> List[Any]:
        """Generate one respondent row in header order."""
        rnd = self._random

        case_id = f"{year}{index + 1:010d}"
        age = rnd.randint(15, 85)
        telfs = rnd.choices([1, 2, 3, 4, 5], weights=[55, 5, 4, 3, 33])[0]
        sex = rnd.choice([1, 2])

        minutes = dict.fromkeys(self.activity_columns, 0)
        budget = MINUTES_PER_DAY

        # Sleep first, then work for the employed on weekdays
        minutes["t010101"] = rnd.randint(360, 600)
        budget -= minutes["t010101"]

        if telfs <= 2 and rnd.random() < 0.7:
            worked = min(budget, rnd.randint(240, 600))
            minutes["t050101"] = worked
            commute = min(budget - worked, rnd.randint(0, 90))
            minutes["t180501"] = commute
            budget -= worked + commute

        for code in PRIMARY_NEEDS_CODES[1:]:
            spent = min(budget, rnd.choice([0, 0, 15, 30, 45, 60]))
            minutes[code] += spent
            budget -= spent

        # Whatever is left goes to a few leisure activities
        while budget > 0:
            code = rnd.choice(OTHER_CODES)
            spent = min(budget, rnd.randint(10, 180))
            minutes[code] += spent
            budget -= spent

        return [
            case_id,
            rnd.choice([1, 2, 3]),
            rnd.randint(1, 7),
            age,
            telfs,
            sex,
            year,
        ] + [minutes[code] for code in self.activity_columns]
