"""Configuration settings for the SRAG data product."""

import os


def get_postgres_uri():
    """Get PostgreSQL connection URI from environment variables."""
    database_url = os.environ.get("DATABASE_URL")
    if database_url:
        return database_url
    host = os.environ.get("DB_HOST", "localhost")
    port = os.environ.get("DB_PORT", 5433 if host == "localhost" else 5432)
    password = os.environ.get("DB_PASSWORD", "srag_pass")
    user = os.environ.get("DB_USER", "srag_user")
    db_name = os.environ.get("DB_NAME", "srag_db")
    return f"postgresql://{user}:{password}@{host}:{port}/{db_name}"


def get_api_host_and_port():
    """Get the address the dashboard API binds to from environment variables."""
    host = os.environ.get("API_HOST", "0.0.0.0")
    port = int(os.environ.get("API_PORT", "8000"))
    return dict(host=host, port=port)


def get_seed_csv_path():
    """Path of the SIVEP-Gripe extract loaded by the seed job."""
    return os.environ.get("SRAG_CSV_PATH", os.path.join("data", "srag_sample.csv"))


def get_import_batch_size():
    """Number of case rows inserted per transaction during import."""
    return int(os.environ.get("IMPORT_BATCH_SIZE", "1000"))


def get_log_level():
    return os.environ.get("LOG_LEVEL", "INFO").upper()
