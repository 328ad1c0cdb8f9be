import importlib.util
from pathlib import Path

from alembic.migration import MigrationContext
from alembic.operations import Operations
from sqlalchemy import create_engine, inspect

from train_ops.database import Base
from train_ops import models  # noqa: F401  registers tables on Base

MIGRATION = Path(__file__).resolve().parents[1] / "db" / "migrations" / "001_initial_schema.py"


def load_migration():
    spec = importlib.util.spec_from_file_location("initial_schema", MIGRATION)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def run(engine, step):
    with engine.begin() as connection:
        context = MigrationContext.configure(connection)
        with Operations.context(context):
            step()


def test_initial_schema_matches_models(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'migrated.db'}")
    migration = load_migration()

    run(engine, migration.upgrade)

    inspector = inspect(engine)
    assert set(inspector.get_table_names()) == set(Base.metadata.tables)
    for name, table in Base.metadata.tables.items():
        migrated = {column["name"] for column in inspector.get_columns(name)}
        assert migrated == {column.name for column in table.columns}

    run(engine, migration.downgrade)
    assert inspect(engine).get_table_names() == []
    engine.dispose()
