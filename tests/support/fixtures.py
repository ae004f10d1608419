"""
YAML fixtures.

Each ``<table>.yml`` in the fixtures directory maps row labels to column
values. Rows get a stable id derived from their label, so tests can find
them again with ``fixture_id("label")``.
"""
import hashlib
from pathlib import Path

import yaml
from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.base import Base
from tests.support import FIXTURES_DIR


def fixture_id(label: str) -> str:
    return hashlib.sha1(label.encode()).hexdigest()[:26].upper()


async def load_fixtures(db: AsyncSession, directory: Path = FIXTURES_DIR) -> dict[str, int]:
    """Insert every fixture file's rows and return the row count per table."""
    counts = {}
    for path in sorted(Path(directory).glob("*.yml")):
        table = Base.metadata.tables.get(path.stem)
        if table is None:
            raise ValueError(f"Fixture file {path.name} does not match any table")

        rows = yaml.safe_load(path.read_text()) or {}
        records = []
        for label, values in rows.items():
            record = dict(values or {})
            if "id" in table.c:
                record.setdefault("id", fixture_id(label))
            records.append(record)

        if records:
            await db.execute(insert(table), records)
        counts[table.name] = len(records)
    await db.flush()
    return counts
