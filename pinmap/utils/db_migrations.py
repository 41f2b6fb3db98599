import logging

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

LOCATION_DESCRIPTOR_COLUMNS = ("city", "state", "country")

INDEX_STATEMENTS = (
    "CREATE INDEX IF NOT EXISTS idx_users_email ON users (email)",
    "CREATE INDEX IF NOT EXISTS idx_location_updates_user_id ON location_updates (user_id)",
    "CREATE INDEX IF NOT EXISTS idx_location_updates_timestamp ON location_updates (timestamp)",
)


def ensure_location_descriptor_columns(engine: Engine) -> None:
    """Add city/state/country to databases created before they existed."""
    inspector = inspect(engine)
    tables = set(inspector.get_table_names())
    for table in ("users", "location_updates"):
        if table not in tables:
            continue
        columns = {column["name"] for column in inspector.get_columns(table)}
        missing = [column for column in LOCATION_DESCRIPTOR_COLUMNS if column not in columns]
        if not missing:
            continue
        with engine.begin() as connection:
            for column in missing:
                connection.execute(text(f"ALTER TABLE {table} ADD COLUMN {column} VARCHAR(100)"))
                logger.info("Applied migration: added %s.%s", table, column)


def ensure_lookup_indexes(engine: Engine) -> None:
    inspector = inspect(engine)
    tables = set(inspector.get_table_names())
    if not {"users", "location_updates"} <= tables:
        return
    with engine.begin() as connection:
        for statement in INDEX_STATEMENTS:
            connection.execute(text(statement))


def run_migrations(engine: Engine) -> None:
    ensure_location_descriptor_columns(engine)
    ensure_lookup_indexes(engine)
