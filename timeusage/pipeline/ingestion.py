# ========================
# timeusage/pipeline/ingestion.py
# ========================

"""
Data Ingestion Module

Reads the survey CSV into a typed DataFrame. The identifier column is kept
as text and every other column is cast to float, so the downstream stages can
do plain arithmetic on the activity minutes.
"""

import logging
from typing import Iterator, List, Optional, Tuple

import pandas as pd

from .exceptions import LoadError, SchemaError

logger = logging.getLogger(__name__)

ID_COLUMN = "tucaseid"


class SurveyReader:
    """
    Reads a time-use survey CSV, whole or in chunks, and casts its columns.
    Large survey extracts can be streamed chunk by chunk to keep memory flat.
    """

    def __init__(self, file_path, id_column: str = ID_COLUMN):
        """
        Initialize the survey reader.

        Args:
            file_path (str): Path to the CSV file to read
            id_column (str): Name of the respondent identifier column
        """
        self.file_path = str(file_path)
        self.id_column = id_column
        self.header: List[str] = []
        logger.info(f"Initialized SurveyReader for file: {self.file_path}")

    def read_header(self) -> List[str]:
        """
        Read and validate the header row only.

        The raw row is read without header parsing so that blank and repeated
        names are seen as they are in the file.

        Returns:
            list[str]: Column names in file order
        """
        raw = self._read_csv(header=None, nrows=1, dtype=str)
        columns = ["" if pd.isna(name) else str(name) for name in raw.iloc[0]]

        blank = [i for i, name in enumerate(columns) if not name.strip()]
        if blank:
            logger.error(f"Blank column names at positions {blank}")
            raise LoadError(f"Malformed header in '{self.file_path}': blank column names at positions {blank}",
                            path=self.file_path)

        duplicated = sorted({name for name in columns if columns.count(name) > 1})
        if duplicated:
            logger.error(f"Duplicate column names: {duplicated}")
            raise LoadError(f"Malformed header in '{self.file_path}': duplicate column names {duplicated}",
                            path=self.file_path)

        if self.id_column not in columns:
            raise SchemaError(f"Identifier column '{self.id_column}' not found in '{self.file_path}'",
                              column=self.id_column)

        self.header = columns
        logger.info(f"CSV header: {len(columns)} columns")
        return columns

    def read_in_chunks(self, chunk_size: int) -> Iterator[pd.DataFrame]:
        """
        A generator that yields typed DataFrames of at most ``chunk_size`` rows.

        Args:
            chunk_size (int): The number of rows to yield per chunk.

        Yields:
            pd.DataFrame: A typed chunk of respondent rows.
        """
        self.read_header()
        row_count = 0

        with self._read_csv(chunksize=chunk_size) as reader:
            for chunk in self._guarded(reader):
                row_count += len(chunk)
                logger.debug(f"Yielding chunk with {len(chunk)} rows")
                yield self._cast_columns(chunk)

        logger.info(f"Total rows read: {row_count}")

    def read(self, chunk_size: Optional[int] = None) -> Tuple[List[str], pd.DataFrame]:
        """
        Read the whole file.

        Args:
            chunk_size (int): Optional chunk size; chunks are concatenated

        Returns:
            tuple: (column names in file order, typed DataFrame)
        """
        columns = self.read_header()

        if chunk_size:
            chunks = list(self.read_in_chunks(chunk_size))
            if chunks:
                df = pd.concat(chunks, ignore_index=True)
            else:
                df = self._cast_columns(self._read_csv(nrows=0))
        else:
            df = self._cast_columns(self._read_csv())
            logger.info(f"Total rows read: {len(df)}")

        return columns, df[columns]

    def _read_csv(self, **kwargs):
        kwargs.setdefault("dtype", {self.id_column: str})
        try:
            return pd.read_csv(self.file_path, **kwargs)
        except FileNotFoundError as e:
            logger.error(f"File '{self.file_path}' was not found")
            raise LoadError(f"File '{self.file_path}' was not found", path=self.file_path) from e
        except pd.errors.EmptyDataError as e:
            logger.error(f"File '{self.file_path}' is empty")
            raise LoadError(f"File '{self.file_path}' is empty", path=self.file_path) from e
        except (pd.errors.ParserError, UnicodeDecodeError, OSError) as e:
            logger.error(f"Error reading CSV file: {e}")
            raise LoadError(f"Cannot read '{self.file_path}': {e}", path=self.file_path) from e

    def _guarded(self, reader):
        # Parse errors in chunked mode surface while iterating, not on open.
        try:
            yield from reader
        except (pd.errors.ParserError, UnicodeDecodeError) as e:
            logger.error(f"Error reading CSV file: {e}")
            raise LoadError(f"Cannot read '{self.file_path}': {e}", path=self.file_path) from e

    def _cast_columns(self, df: pd.DataFrame) -> pd.DataFrame:
        """Cast the identifier to text and every other column to float."""
        typed = {}
        for column in df.columns:
            if column == self.id_column:
                typed[column] = df[column].astype(object)
                continue
            try:
                typed[column] = pd.to_numeric(df[column], errors="raise").astype("float64")
            except (ValueError, TypeError) as e:
                logger.error(f"Column '{column}' cannot be cast to numeric: {e}")
                raise SchemaError(f"Column '{column}' cannot be cast to numeric: {e}",
                                  column=column) from e
        return pd.DataFrame(typed, index=df.index)


def read_survey(path, id_column: str = ID_COLUMN, chunk_size: Optional[int] = None):
    """Read a survey file and return ``(columns, DataFrame)``."""
    return SurveyReader(path, id_column=id_column).read(chunk_size=chunk_size)
