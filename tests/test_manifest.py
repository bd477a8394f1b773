"""
Consistency checks between the bootstrap manifest and the ORM models.
"""

from app.bootstrap.manifest import (
    COLUMN_INJECTIONS,
    CONSTRAINT_MIGRATIONS,
    INJECTED_TABLES,
    ORPHAN_BACKFILLS,
    OrphanBackfill,
    expected_tables,
)
from app.models import Base


def _tables():
    return Base.metadata.tables


def test_expected_tables_cover_the_data_model():
    names = {t.name for t in expected_tables()}
    assert names == {
        "wikis",
        "users",
        "topics",
        "pages",
        "page_revisions",
        "activity_log",
        "comments",
        "comment_reactions",
        "notifications",
        "user_favorites",
        "user_topics",
        "user_favorite_topics",
        "session",
    }


def test_tables_ordered_by_dependency():
    order = [t.name for t in expected_tables()]
    assert order.index("wikis") < order.index("topics") < order.index("pages")
    assert order.index("users") < order.index("pages")
    for dependent in ("comments", "page_revisions", "user_favorites", "notifications"):
        assert order.index("pages") < order.index(dependent)
    assert order.index("comments") < order.index("comment_reactions")


def test_every_injected_column_exists_on_its_model():
    for injection in COLUMN_INJECTIONS:
        table = _tables()[injection.table]
        assert injection.column in table.c, injection.label


def test_injected_defaults_match_model_server_defaults():
    for injection in COLUMN_INJECTIONS:
        column = _tables()[injection.table].c[injection.column]
        if column.server_default is not None:
            default = str(column.server_default.arg.text)
            assert f"DEFAULT {default}" in injection.definition, injection.label


def test_injected_columns_are_nullable_or_defaulted():
    for injection in COLUMN_INJECTIONS:
        assert "NOT NULL" not in injection.definition, injection.label


def test_constraint_migrations_name_model_constraints():
    for migration in CONSTRAINT_MIGRATIONS:
        names = {c.name for c in _tables()[migration.table].constraints}
        assert migration.name in names
        assert migration.name not in migration.legacy_constraints


def test_composite_uniqueness_is_wiki_scoped():
    unique = [m for m in CONSTRAINT_MIGRATIONS if m.definition.startswith("UNIQUE")]
    assert {m.table for m in unique} == {"topics", "pages"}
    for migration in unique:
        assert "wiki_id" in migration.definition
        assert migration.legacy_constraints


def test_backfilled_tables_have_wiki_id():
    for backfill in ORPHAN_BACKFILLS:
        assert "wiki_id" in _tables()[backfill.table].c


def test_keyed_backfill_avoids_collisions():
    sql = OrphanBackfill("pages", unique_key="slug").update_sql()
    assert "NOT EXISTS" in sql
    assert "min(d.id)" in sql
    assert ":wiki_id" in sql


def test_plain_backfill_updates_every_orphan():
    sql = OrphanBackfill("comments").update_sql()
    assert sql == "UPDATE comments SET wiki_id = :wiki_id WHERE wiki_id IS NULL"


def test_session_and_revision_tables_never_gain_columns():
    assert "session" not in INJECTED_TABLES
    assert "page_revisions" not in INJECTED_TABLES
    assert {"topics", "pages"} <= INJECTED_TABLES
