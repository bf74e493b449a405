"""End-to-end tests of the seed job against a SQLite file database"""
import shutil

from sqlalchemy import create_engine, text

from srag_dp.entrypoints import seed


def database_url(tmp_path):
    return f"sqlite:///{tmp_path / 'srag.db'}"


def count(url, table):
    engine = create_engine(url)
    try:
        with engine.connect() as connection:
            return connection.execute(text(f"SELECT COUNT(*) FROM {table}")).scalar()
    finally:
        engine.dispose()


def test_seed_imports_csv_and_calculates_snapshots(tmp_path, sample_csv_path):
    url = database_url(tmp_path)
    csv_path = tmp_path / "srag_sample.csv"
    shutil.copy(sample_csv_path, csv_path)

    assert seed.main(["--csv", str(csv_path), "--database-url", url]) == 0

    assert count(url, "srag_cases") == 5
    assert count(url, "dashboard_metrics") == 4


def test_seed_twice_does_not_duplicate(tmp_path, sample_csv_path):
    url = database_url(tmp_path)

    seed.main(["--csv", sample_csv_path, "--database-url", url])
    assert seed.main(["--csv", sample_csv_path, "--database-url", url]) == 0

    assert count(url, "srag_cases") == 5
    assert count(url, "dashboard_metrics") == 4


def test_seed_generates_sample_data_without_csv(tmp_path):
    url = database_url(tmp_path)

    exit_code = seed.main([
        "--csv", str(tmp_path / "missing.csv"),
        "--sample-count", "250",
        "--seed", "3",
        "--database-url", url,
    ])

    assert exit_code == 0
    assert 0 < count(url, "srag_cases") <= 250
    assert count(url, "dashboard_metrics") == 4


def test_seed_failure_returns_non_zero(tmp_path):
    broken = tmp_path / "broken.csv"
    broken.write_text("NOTHING;USEFUL\n1;2\n", encoding="utf-8")

    assert seed.main(["--csv", str(broken), "--database-url", database_url(tmp_path)]) == 1
