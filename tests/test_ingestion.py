# ========================
# tests/test_ingestion.py
# ========================

import unittest
import tempfile
import os
import sys
import csv

import pandas as pd
from pandas.testing import assert_frame_equal

# Add the project root to Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from timeusage.pipeline.exceptions import LoadError, SchemaError
from timeusage.pipeline.ingestion import SurveyReader, read_survey


class TestSurveyIngestion(unittest.TestCase):
    """Test the survey ingestion module."""

    HEADER = ['tucaseid', 'teage', 'telfs', 'tesex', 't010101', 't050101', 't120101']
    ROWS = [
        ['20030100013280', '60', '2', '1', '870', '0', '300'],
        ['20030100013344', '41', '1', '2', '540', '480', '120'],
        ['20030100013352', '26', '5', '2', '600', '0', '420'],
        ['20030100013848', '36', '1', '2', '510', '420', '60'],
        ['20030100014165', '17', '4', '1', '720', '0', '360'],
    ]

    def _write_csv(self, rows):
        with tempfile.NamedTemporaryFile(mode='w', suffix='.csv', delete=False, newline='') as f:
            writer = csv.writer(f)
            writer.writerows(rows)
            path = f.name
        self.addCleanup(os.unlink, path)
        return path

    def test_read_casts_columns(self):
        """The identifier stays text and every other column becomes float."""
        path = self._write_csv([self.HEADER] + self.ROWS)

        columns, df = read_survey(path)

        self.assertEqual(columns, self.HEADER)
        self.assertEqual(list(df.columns), self.HEADER)
        self.assertEqual(len(df), len(self.ROWS))
        self.assertEqual(df['tucaseid'].dtype, object)
        self.assertEqual(df['tucaseid'].iloc[0], '20030100013280')
        for column in self.HEADER[1:]:
            self.assertEqual(df[column].dtype, 'float64', column)
        self.assertEqual(df['t050101'].iloc[1], 480.0)

    def test_chunked_read_matches_whole_read(self):
        """Reading in chunks gives the same frame as a single read."""
        path = self._write_csv([self.HEADER] + self.ROWS)
        reader = SurveyReader(path)

        chunks = list(reader.read_in_chunks(chunk_size=2))
        self.assertEqual([len(c) for c in chunks], [2, 2, 1])

        _, whole = reader.read()
        _, chunked = reader.read(chunk_size=2)
        assert_frame_equal(whole, chunked)

    def test_header_only_file(self):
        """A file with a header and no rows gives an empty typed frame."""
        path = self._write_csv([self.HEADER])

        columns, df = SurveyReader(path).read()

        self.assertEqual(columns, self.HEADER)
        self.assertTrue(df.empty)
        self.assertEqual(df['t010101'].dtype, 'float64')

    def test_file_not_found(self):
        """A missing file is a load error."""
        reader = SurveyReader("non_existent_file.csv")

        with self.assertRaises(LoadError) as ctx:
            reader.read()
        self.assertEqual(ctx.exception.path, "non_existent_file.csv")

    def test_empty_file(self):
        """A completely empty file is a load error."""
        path = self._write_csv([])

        with self.assertRaises(LoadError):
            SurveyReader(path).read()

    def test_blank_column_name(self):
        """A header with an empty column name is malformed."""
        path = self._write_csv([[''] + self.HEADER[1:]] + self.ROWS)

        with self.assertRaises(LoadError) as ctx:
            SurveyReader(path).read()
        self.assertEqual(ctx.exception.path, path)

    def test_duplicate_column_name(self):
        """A repeated column name is malformed rather than silently renamed."""
        header = self.HEADER + ['t010101']
        rows = [row + ['30'] for row in self.ROWS]
        path = self._write_csv([header] + rows)

        with self.assertRaises(LoadError) as ctx:
            SurveyReader(path).read_header()
        self.assertIn('t010101', str(ctx.exception))

    def test_missing_identifier_column(self):
        """The identifier column is required."""
        path = self._write_csv([self.HEADER[1:]] + [row[1:] for row in self.ROWS])

        with self.assertRaises(SchemaError) as ctx:
            SurveyReader(path).read()
        self.assertEqual(ctx.exception.column, 'tucaseid')

    def test_non_numeric_column(self):
        """A column that cannot be cast to float is a schema error."""
        rows = [list(row) for row in self.ROWS]
        rows[2][4] = 'ten hours'
        path = self._write_csv([self.HEADER] + rows)

        with self.assertRaises(SchemaError) as ctx:
            SurveyReader(path).read()
        self.assertEqual(ctx.exception.column, 't010101')

    def test_custom_identifier_column(self):
        """The identifier column name is configurable."""
        header = ['caseid'] + self.HEADER[1:]
        path = self._write_csv([header] + self.ROWS)

        _, df = SurveyReader(path, id_column='caseid').read()
        self.assertEqual(df['caseid'].iloc[-1], '20030100014165')
        self.assertIsInstance(df, pd.DataFrame)


if __name__ == '__main__':
    unittest.main()
