from __future__ import annotations

import sys

from sqlalchemy import inspect

from turismo.db.session import engine


def show_structure() -> None:
    inspector = inspect(engine)
    tables = inspector.get_table_names()
    print(f"Database: {engine.url.render_as_string(hide_password=True)}\nTables: {tables}\n")

    for table in tables:
        print(f"--- Table: {table} ---")
        for col in inspector.get_columns(table):
            print(f"  --> {col['name']} ({col['type']})")


if __name__ == "__main__":
    show_structure()
    sys.exit(0)
