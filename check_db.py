from sqlalchemy import inspect

from fileshare.core.config import get_settings
from fileshare.db.session import build_engine

settings = get_settings()
engine = build_engine(settings.sqlalchemy_database_uri)
try:
    inspector = inspect(engine)
    tables = inspector.get_table_names()
    print(f"Tables: {tables}")

    for table in ("files", "download_attempts"):
        if table in tables:
            cols = [c["name"] for c in inspector.get_columns(table)]
            print(f"{table} columns: {cols}")
            indexes = [i["name"] for i in inspector.get_indexes(table)]
            print(f"{table} indexes: {indexes}")
        else:
            print(f"{table} is missing, run run_upgrade.py")
finally:
    engine.dispose()
