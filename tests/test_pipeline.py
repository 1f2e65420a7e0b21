# ========================
# tests/test_pipeline.py
# ========================

import unittest
import sys
import os
import csv
import json
import tempfile
import warnings

import pandas as pd
from pandas.testing import assert_frame_equal

# Add the project root to Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from timeusage.pipeline.classification import classify, is_primary_needs, is_working, is_other
from timeusage.pipeline.exceptions import SchemaError, LoadError, EmptyGroupWarning
from timeusage.pipeline.models import REPORT_COLUMNS
from timeusage.pipeline.orchestrator import TimeUsagePipeline
from timeusage.pipeline.summarization import TimeUsageSummarizer, summary_rows
from timeusage.utils.data_generator import DataGenerator


def survey_frame(rows):
    """Build a typed survey frame from (telfs, tesex, teage, primary, work, other) minutes."""
    return pd.DataFrame({
        'tucaseid': [f"2003{i:010d}" for i in range(len(rows))],
        'telfs': [float(r[0]) for r in rows],
        'tesex': [float(r[1]) for r in rows],
        'teage': [float(r[2]) for r in rows],
        't010101': [float(r[3]) for r in rows],
        't050101': [float(r[4]) for r in rows],
        't120101': [float(r[5]) for r in rows],
    })


class TestColumnClassification(unittest.TestCase):

    COLUMNS = [
        'tucaseid', 'gemetsta', 'teage', 'telfs', 'tesex',
        't010101', 't030101', 't110101', 't180101', 't180382',
        't050101', 't050403', 't180501', 't180589',
        't020101', 't040101', 't120101', 't160101', 't180201', 't181201',
        't170101', 't500101',
    ]

    def test_classified_groups(self):
        """Columns land in the expected group, in header order."""
        classified = classify(self.COLUMNS)

        self.assertEqual(classified.primary_needs, ('t010101', 't030101', 't110101', 't180101', 't180382'))
        self.assertEqual(classified.work, ('t050101', 't050403', 't180501', 't180589'))
        self.assertEqual(classified.other, ('t020101', 't040101', 't120101', 't160101', 't180201', 't181201'))

    def test_groups_are_disjoint(self):
        """A column belongs to at most one group."""
        primary_needs, work, other = classify(self.COLUMNS)

        self.assertFalse(set(primary_needs) & set(work))
        self.assertFalse(set(primary_needs) & set(other))
        self.assertFalse(set(work) & set(other))

    def test_travel_prefixes(self):
        """t1801 and t1803 are primary needs even though t18 is an other prefix."""
        self.assertTrue(is_primary_needs('t180101'))
        self.assertTrue(is_primary_needs('t180301'))
        self.assertFalse(is_other('t180101'))
        self.assertFalse(is_other('t180301'))
        self.assertTrue(is_working('t180501'))
        self.assertTrue(is_other('t180201'))

    def test_unmatched_columns_are_dropped(self):
        """Identifier, demographics and unknown codes are in no group."""
        classified = classify(self.COLUMNS)
        grouped = set(classified.primary_needs) | set(classified.work) | set(classified.other)

        for column in ['tucaseid', 'gemetsta', 'teage', 'telfs', 'tesex', 't170101', 't500101']:
            self.assertNotIn(column, grouped)

    def test_empty_catalog(self):
        self.assertEqual(classify([]), ((), (), ()))


class TestTimeUsageSummarizer(unittest.TestCase):

    def setUp(self):
        self.summarizer = TimeUsageSummarizer()

    def _summarize(self, rows):
        return self.summarizer.summarize(['t010101'], ['t050101'], ['t120101'], survey_frame(rows))

    def test_summary_columns(self):
        summary = self._summarize([(1, 1, 30, 600, 480, 300)])
        self.assertEqual(list(summary.columns), REPORT_COLUMNS)

    def test_hours_conversion(self):
        """primaryNeeds stays unrounded; work and other are whole hours, ties away from zero."""
        summary = self._summarize([
            (1, 1, 30, 120, 125, 150),
            (1, 1, 30, 130, 89, 30),
        ])

        self.assertEqual(summary['primaryNeeds'].tolist()[0], 2.0)
        self.assertAlmostEqual(summary['primaryNeeds'].tolist()[1], 130 / 60)
        self.assertEqual(summary['work'].tolist(), [2.0, 1.0])
        self.assertEqual(summary['other'].tolist(), [3.0, 1.0])

    def test_bucket_sums_several_columns(self):
        df = survey_frame([(1, 2, 40, 300, 240, 60)])
        df['t010102'] = [300.0]
        df['t180501'] = [45.0]

        summary = self.summarizer.summarize(['t010101', 't010102'], ['t050101', 't180501'], ['t120101'], df)

        self.assertEqual(summary['primaryNeeds'].iloc[0], 10.0)
        self.assertEqual(summary['work'].iloc[0], 5.0)  # 285 minutes = 4.75 hours

    def test_working_status(self):
        """telfs 1-2 is working, 3-4 is not working, above 4 is excluded."""
        summary = self._summarize([
            (1, 1, 30, 0, 0, 0),
            (2, 1, 30, 0, 0, 0),
            (3, 1, 30, 0, 0, 0),
            (4, 1, 30, 0, 0, 0),
            (5, 1, 30, 0, 0, 0),
        ])

        self.assertEqual(summary['working'].tolist(), ['working', 'working', 'not working', 'not working'])

    def test_eligibility_filter(self):
        """A row is kept iff its employment code is at most 4."""
        summary = self._summarize([
            (5, 1, 30, 60, 0, 0),
            (1, 1, 30, 120, 0, 0),
            (6, 2, 30, 180, 0, 0),
            (4, 2, 30, 240, 0, 0),
        ])

        self.assertEqual(summary['primaryNeeds'].tolist(), [2.0, 4.0])
        stats = self.summarizer.get_statistics()
        self.assertEqual(stats['records_processed'], 4)
        self.assertEqual(stats['records_dropped'], 2)
        self.assertEqual(stats['records_kept'], 2)
        self.assertEqual(stats['eligibility_rate'], 50.0)

    def test_sex_labels(self):
        summary = self._summarize([(1, 1, 30, 0, 0, 0), (1, 2, 30, 0, 0, 0), (1, 3, 30, 0, 0, 0)])
        self.assertEqual(summary['sex'].tolist(), ['male', 'female', 'female'])

    def test_age_boundaries(self):
        ages = [14, 15, 22, 23, 55, 56, 80]
        summary = self._summarize([(1, 1, age, 0, 0, 0) for age in ages])
        self.assertEqual(summary['age'].tolist(), ['elder', 'young', 'young', 'active', 'active', 'elder', 'elder'])

    def test_missing_control_column(self):
        df = survey_frame([(1, 1, 30, 0, 0, 0)]).drop(columns=['teage'])

        with self.assertRaises(SchemaError) as ctx:
            self.summarizer.summarize(['t010101'], ['t050101'], ['t120101'], df)
        self.assertEqual(ctx.exception.column, 'teage')

    def test_missing_activity_column(self):
        with self.assertRaises(SchemaError):
            self.summarizer.summarize(['t010101', 't019999'], ['t050101'], ['t120101'],
                                      survey_frame([(1, 1, 30, 0, 0, 0)]))

    def test_empty_bucket_sums_to_zero(self):
        summary = self.summarizer.summarize(['t010101'], [], ['t120101'],
                                            survey_frame([(1, 1, 30, 60, 600, 60)]))
        self.assertEqual(summary['work'].iloc[0], 0.0)

    def test_summary_rows(self):
        rows = summary_rows(self._summarize([(1, 1, 30, 600, 480, 300)]))

        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0].key, ('working', 'male', 'active'))
        self.assertEqual((rows[0].primary_needs, rows[0].work, rows[0].other), (10.0, 8.0, 5.0))


class TestTimeUsagePipeline(unittest.TestCase):
    """End-to-end runs over CSV files."""

    HEADER = ['tucaseid', 'teage', 'telfs', 'tesex', 't010101', 't110101', 't050101', 't180501',
              't120101', 't180201', 't500101']

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.output_dir = os.path.join(self.tmp.name, 'out')

    def _write_survey(self, rows):
        path = os.path.join(self.tmp.name, 'atussum.csv')
        with open(path, 'w', newline='') as f:
            writer = csv.writer(f)
            writer.writerow(self.HEADER)
            writer.writerows(rows)
        return path

    def _scenario_file(self):
        return self._write_survey([
            # Two working active men and one respondent outside the labor force
            ['20030100000001', 30, 1, 1, 540, 60, 450, 30, 240, 60, 15],
            ['20030100000002', 40, 1, 1, 420, 60, 400, 20, 360, 60, 0],
            ['20030100000003', 35, 5, 1, 900, 60, 0, 0, 480, 0, 0],
        ])

    def _run(self, input_file, method='dataframe', chunk_size=None):
        pipeline = TimeUsagePipeline(input_file, self.output_dir, chunk_size=chunk_size, method=method)
        with warnings.catch_warnings():
            warnings.simplefilter('ignore', EmptyGroupWarning)
            results = pipeline.run()
        return pipeline, results

    def test_end_to_end_scenario(self):
        """Two working active men average to 9.0 / 7.5 / 6.0 hours."""
        pipeline, results = self._run(self._scenario_file())

        self.assertEqual(results['pipeline_status'], 'completed')
        self.assertEqual(results['report'], [{
            'working': 'working', 'sex': 'male', 'age': 'active',
            'primaryNeeds': 9.0, 'work': 7.5, 'other': 6.0,
        }])

        stats = results['processing_stats']
        self.assertEqual(stats['rows_read'], 3)
        self.assertEqual(stats['classified_columns'], {'primary_needs': 2, 'work': 2, 'other': 2})
        self.assertEqual(stats['summary_stats']['records_dropped'], 1)
        self.assertIn('working', pipeline.render_report())

    def test_methods_agree(self):
        """The dataframe, SQL and typed groupings produce the same report."""
        input_file = self._scenario_file()

        reports = [self._run(input_file, method=method)[1]['report'] for method in ('dataframe', 'sql', 'typed')]

        self.assertEqual(reports[0], reports[1])
        self.assertEqual(reports[0], reports[2])

    def test_saved_files(self):
        _, results = self._run(self._scenario_file(), chunk_size=2)
        saved = results['saved_files']

        self.assertEqual(set(saved), {'report', 'summary', 'data_dictionary'})
        for path in saved.values():
            self.assertTrue(os.path.exists(path), path)

        report = pd.read_csv(saved['report'])
        self.assertEqual(list(report.columns), REPORT_COLUMNS)
        self.assertEqual(report['work'].tolist(), [7.5])

        with open(saved['summary']) as f:
            summary = json.load(f)
        self.assertEqual(summary['rows_read'], 3)
        self.assertEqual(summary['aggregation_stats']['groups'], 1)
        self.assertEqual(len(summary['aggregation_stats']['missing_groups']), 11)

    def test_load_error_writes_nothing(self):
        pipeline = TimeUsagePipeline(os.path.join(self.tmp.name, 'missing.csv'), self.output_dir)

        self.assertFalse(pipeline.validate_input())
        with self.assertRaises(LoadError):
            pipeline.run()
        self.assertFalse(os.path.exists(self.output_dir))

    def test_unknown_method(self):
        with self.assertRaises(ValueError):
            TimeUsagePipeline(self._scenario_file(), self.output_dir, method='spark')

    def test_render_before_run(self):
        pipeline = TimeUsagePipeline(self._scenario_file(), self.output_dir)
        with self.assertRaises(RuntimeError):
            pipeline.render_report()

    def test_generated_survey(self):
        """A synthetic survey runs through every method with consistent results."""
        input_file = os.path.join(self.tmp.name, 'synthetic.csv')
        stats = DataGenerator(seed=7).generate_dataset(input_file, num_rows=300)
        self.assertEqual(stats['total_rows'], 300)

        frames = {}
        for method in ('dataframe', 'sql', 'typed'):
            pipeline, _ = self._run(input_file, method=method)
            frames[method] = pipeline.grouped

        dataframe = frames['dataframe']
        keys = list(dataframe[['working', 'sex', 'age']].itertuples(index=False, name=None))
        self.assertEqual(keys, sorted(keys))

        for method in ('sql', 'typed'):
            assert_frame_equal(frames[method], dataframe, check_dtype=False, check_exact=True)

    def test_all_missing_totals_report_none(self):
        """A group whose totals are all missing is reported with None, not NaN."""
        input_file = self._write_survey([
            ['20030100000001', 30, 1, 1, '', 60, 450, 30, 240, 60, 0],
        ])

        _, results = self._run(input_file)
        row = results['report'][0]

        self.assertIsNone(row['primaryNeeds'])
        self.assertEqual(row['work'], 8.0)
        json.dumps(results['report'], allow_nan=False)


if __name__ == '__main__':
    unittest.main()
