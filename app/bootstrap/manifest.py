"""
Declarative manifest of the schema the application expects.

Tables and indexes come from the ORM models (Base.metadata). This module
adds what the models cannot say on their own: which columns may be
missing from older deployments, which legacy constraints must be
replaced, and which tables carry tenant-scoped rows to adopt.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import Index, Table

from app.models import Base
from app.models.page import PAGE_STATUS_CHECK

WIKI_REFERENCE = "INTEGER REFERENCES wikis(id) ON DELETE CASCADE"


@dataclass(frozen=True)
class ColumnInjection:
    """A column added after the table first shipped."""

    table: str
    column: str
    definition: str

    @property
    def label(self) -> str:
        return f"Inject {self.column} {self.table}"

    def ddl(self) -> str:
        return (
            f"ALTER TABLE {self.table} "
            f"ADD COLUMN IF NOT EXISTS {self.column} {self.definition}"
        )


@dataclass(frozen=True)
class ConstraintMigration:
    """
    A constraint the final schema requires.

    `legacy_constraints` and `stale_indexes` list every name an older
    deployment may have used for the uniqueness this constraint replaces.
    """

    table: str
    name: str
    definition: str
    legacy_constraints: tuple[str, ...] = ()
    stale_indexes: tuple[str, ...] = ()

    def ddl(self) -> str:
        return f"ALTER TABLE {self.table} ADD CONSTRAINT {self.name} {self.definition}"


@dataclass(frozen=True)
class OrphanBackfill:
    """A tenant-scoped table whose NULL wiki_id rows go to the default wiki."""

    table: str
    unique_key: str | None = None

    def update_sql(self) -> str:
        if self.unique_key is None:
            return (
                f"UPDATE {self.table} SET wiki_id = :wiki_id "
                f"WHERE wiki_id IS NULL"
            )
        # Only adopt rows that cannot collide on (wiki_id, unique_key):
        # the key is free in the default wiki and the row is the oldest
        # orphan holding it.
        key = self.unique_key
        return (
            f"UPDATE {self.table} AS o SET wiki_id = :wiki_id "
            f"WHERE o.wiki_id IS NULL AND ("
            f"o.{key} IS NULL OR ("
            f"NOT EXISTS (SELECT 1 FROM {self.table} s "
            f"WHERE s.wiki_id = :wiki_id AND s.{key} = o.{key}) "
            f"AND o.id = (SELECT min(d.id) FROM {self.table} d "
            f"WHERE d.wiki_id IS NULL AND d.{key} = o.{key})))"
        )

    def count_sql(self) -> str:
        return f"SELECT count(*) FROM {self.table} WHERE wiki_id IS NULL"


COLUMN_INJECTIONS: tuple[ColumnInjection, ...] = (
    ColumnInjection("users", "role", "TEXT DEFAULT 'user'"),
    ColumnInjection("topics", "wiki_id", WIKI_REFERENCE),
    ColumnInjection("topics", "icon", "TEXT DEFAULT 'ph-hash'"),
    ColumnInjection("topics", "color", "TEXT DEFAULT '#6366f1'"),
    ColumnInjection("topics", "description", "TEXT"),
    ColumnInjection("topics", "parent_id", "INTEGER REFERENCES topics(id)"),
    ColumnInjection("pages", "wiki_id", WIKI_REFERENCE),
    ColumnInjection("pages", "topic_id", "INTEGER REFERENCES topics(id)"),
    ColumnInjection("pages", "category", "TEXT"),
    ColumnInjection("pages", "status", "TEXT DEFAULT 'draft'"),
    ColumnInjection("pages", "is_verified", "BOOLEAN DEFAULT false"),
    ColumnInjection("pages", "allow_comments", "BOOLEAN DEFAULT true"),
    ColumnInjection("pages", "updated_at", "TIMESTAMP DEFAULT CURRENT_TIMESTAMP"),
    ColumnInjection("activity_log", "wiki_id", WIKI_REFERENCE),
    ColumnInjection("activity_log", "metadata", "JSONB"),
    ColumnInjection("comments", "wiki_id", WIKI_REFERENCE),
    ColumnInjection("comments", "attachment_name", "TEXT"),
    ColumnInjection("comments", "attachment_url", "TEXT"),
    ColumnInjection("notifications", "page_id", "INTEGER REFERENCES pages(id) ON DELETE CASCADE"),
    ColumnInjection("notifications", "is_read", "BOOLEAN DEFAULT false"),
)

CONSTRAINT_MIGRATIONS: tuple[ConstraintMigration, ...] = (
    ConstraintMigration(
        table="topics",
        name="uq_topics_wiki_name",
        definition="UNIQUE (wiki_id, name)",
        legacy_constraints=("topics_name_key", "topics_name_unique", "unique_topic_name"),
        stale_indexes=("topics_name_key", "idx_topics_name", "topics_name_idx"),
    ),
    ConstraintMigration(
        table="pages",
        name="uq_pages_wiki_slug",
        definition="UNIQUE (wiki_id, slug)",
        legacy_constraints=("pages_slug_key", "pages_slug_unique", "unique_page_slug"),
        stale_indexes=("pages_slug_key", "idx_pages_slug", "pages_slug_idx"),
    ),
    # NOT VALID: legacy rows are not re-checked, new writes are
    ConstraintMigration(
        table="pages",
        name="ck_pages_status",
        definition=f"CHECK ({PAGE_STATUS_CHECK}) NOT VALID",
    ),
)

ORPHAN_BACKFILLS: tuple[OrphanBackfill, ...] = (
    OrphanBackfill("topics", unique_key="name"),
    OrphanBackfill("pages", unique_key="slug"),
    OrphanBackfill("activity_log"),
    OrphanBackfill("comments"),
)


INJECTED_TABLES: frozenset[str] = frozenset(i.table for i in COLUMN_INJECTIONS)


def expected_tables() -> list[Table]:
    """Model tables in foreign-key dependency order."""
    return list(Base.metadata.sorted_tables)


def model_indexes(table: Table) -> list[Index]:
    return sorted(table.indexes, key=lambda ix: ix.name or "")
