"""
Seed job: load a SIVEP-Gripe extract (or synthetic cases) and precompute metrics.

Usage:
    # Import the configured CSV extract (SRAG_CSV_PATH, default data/srag_sample.csv)
    srag-seed

    # Import a raw DATASUS extract
    srag-seed --csv INFLUD24.csv --encoding latin-1

    # No CSV available: generate 5000 reproducible sample cases
    srag-seed --csv missing.csv --sample-count 5000 --seed 42
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import config
from srag_dp.adapters import orm
from srag_dp.domain.commands import CalculateMetricSnapshots, ImportCases, SeedSampleCases
from srag_dp.service_layer import messagebus
from srag_dp.service_layer.unit_of_work import SqlAlchemyUnitOfWork

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed the SRAG case store and metric snapshots")
    parser.add_argument("--csv", default=config.get_seed_csv_path(), help="Semicolon-delimited SIVEP-Gripe extract")
    parser.add_argument("--encoding", default="utf-8", help="CSV file encoding (DATASUS extracts are latin-1)")
    parser.add_argument("--batch-size", type=int, default=config.get_import_batch_size())
    parser.add_argument("--sample-count", type=int, default=1000, help="Synthetic cases when the CSV is absent")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for synthetic cases")
    parser.add_argument("--period", default="monthly", help="Granularity label of the metric snapshots")
    parser.add_argument("--database-url", default=config.get_postgres_uri())
    return parser.parse_args(argv)


def seed_database(args: argparse.Namespace) -> None:
    engine = create_engine(args.database_url)
    try:
        orm.metadata.create_all(engine)
        orm.start_mappers()
        uow = SqlAlchemyUnitOfWork(session_factory=sessionmaker(bind=engine))

        if Path(args.csv).exists():
            summary = messagebus.handle(
                ImportCases(csv_path=args.csv, batch_size=args.batch_size, encoding=args.encoding),
                uow,
            )
        else:
            logger.warning(f"CSV {args.csv} not found. Creating sample data...")
            summary = messagebus.handle(
                SeedSampleCases(count=args.sample_count, seed=args.seed, batch_size=args.batch_size),
                uow,
            )

        logger.info(f"Cases stored: {summary.inserted} new of {summary.total_rows} rows")
        messagebus.handle(CalculateMetricSnapshots(period=args.period), uow)
    finally:
        engine.dispose()


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(
        level=config.get_log_level(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    args = parse_args(argv)

    logger.info("Starting database seeding...")
    try:
        seed_database(args)
    except Exception as e:
        logger.error(f"Error seeding database: {e}")
        return 1

    logger.info("Database seeding completed successfully")
    return 0


if __name__ == "__main__":
    sys.exit(main())
