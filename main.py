#!/usr/bin/env python3
# ========================
# main.py
# ========================

"""
Main Entry Point for the Time Usage Pipeline

Reads an ATUS activity summary file, averages the daily hours spent on
primary needs, work and other activities per working status, sex and age,
and prints the resulting table.
"""

import sys
import argparse
import logging

from timeusage.pipeline import TimeUsagePipeline
from timeusage.pipeline.transformation import GROUPING_METHODS
from timeusage.utils import Config, setup_logging, DataGenerator


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Average daily time use by working status, sex and age.")
    parser.add_argument("input_file", nargs="?", help="Survey CSV file (defaults to TIMEUSAGE_INPUT_FILE)")
    parser.add_argument("--output-dir", help="Directory for the report files")
    parser.add_argument("--method", choices=GROUPING_METHODS, help="Grouping implementation")
    parser.add_argument("--chunk-size", type=int, help="Rows per read chunk (0 reads the whole file)")
    parser.add_argument("--generate-sample", action="store_true",
                        help="Write a synthetic survey to the input path before running")
    return parser.parse_args(argv)


def main(argv=None):
    """Main execution function."""
    args = parse_args(argv)
    config = Config()

    setup_logging(
        log_level=config.LOG_LEVEL,
        log_file=config.LOG_FILE,
        log_dir=config.LOG_DIR
    )

    logger = logging.getLogger(__name__)
    logger.info("=" * 60)
    logger.info("TIME USAGE PIPELINE - MAIN EXECUTION")
    logger.info("=" * 60)

    input_file = args.input_file or config.DEFAULT_INPUT_FILE
    output_dir = args.output_dir or config.DEFAULT_OUTPUT_DIR

    try:
        pipeline = TimeUsagePipeline(
            input_file=input_file,
            output_dir=output_dir,
            chunk_size=args.chunk_size,
            method=args.method,
            config=config
        )

        if args.generate_sample or (not pipeline.validate_input() and config.GENERATE_SAMPLE_IF_MISSING):
            logger.info(f"Generating sample survey at {input_file}...")
            DataGenerator(seed=42).generate_dataset(input_file, num_rows=config.DEFAULT_SAMPLE_ROWS)

        estimates = pipeline.estimate_processing_time()
        if estimates:
            logger.info(f"Processing estimates: {estimates}")

        pipeline.run()
        print(pipeline.render_report())
        return 0

    except Exception as e:
        logger.error(f"Pipeline execution failed: {e}", exc_info=True)
        return 1


if __name__ == '__main__':
    sys.exit(main())
