import logging
import os
from datetime import date, datetime, timezone

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Default to local SQLite, but allow override (e.g. Postgres)
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///fintrack.db")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Exports go to S3 when a bucket is configured, otherwise to EXPORT_DIR
S3_BUCKET = os.getenv("S3_BUCKET")
AWS_REGION = os.getenv("AWS_REGION", "us-east-1")
EXPORT_DIR = os.getenv("EXPORT_DIR", "fintrack_exports")


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def utc_today() -> date:
    """
    The calendar date the outer surfaces hand to the engine.

    ``FINTRACK_TODAY`` (YYYY-MM-DD) pins it, which is handy for demos.
    """
    pinned = os.getenv("FINTRACK_TODAY")
    if pinned:
        return date.fromisoformat(pinned)
    return datetime.now(timezone.utc).date()
