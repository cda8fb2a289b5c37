"""
Migration: enforce one progress row per (user, module).

- module_progress: delete duplicate (user_id, module_id) rows, keeping the earliest.
- module_progress: add unique index uq_module_progress_user_module.
"""

import sqlite3
import os


def run_migration():
    db_path = os.getenv("DATABASE_URL", "sqlite:///./lms.db").replace("sqlite:///", "")
    conn = None
    try:
        conn = sqlite3.connect(db_path)
        cursor = conn.cursor()

        cursor.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name='module_progress'"
        )
        if not cursor.fetchone():
            print("module_progress table not found. Skipping.")
            return

        cursor.execute(
            """
            DELETE FROM module_progress
            WHERE rowid NOT IN (
                SELECT MIN(rowid) FROM module_progress GROUP BY user_id, module_id
            )
            """
        )
        print(f"module_progress: removed {cursor.rowcount} duplicate rows")

        cursor.execute(
            "CREATE UNIQUE INDEX IF NOT EXISTS uq_module_progress_user_module "
            "ON module_progress (user_id, module_id)"
        )
        print("module_progress: unique index on (user_id, module_id) ensured")

        conn.commit()
        print("✓ Migration add_module_progress_unique completed successfully!")

    except sqlite3.Error as e:
        print(f"Error during migration: {e}")
        if conn:
            conn.rollback()
    finally:
        if conn:
            conn.close()


if __name__ == "__main__":
    run_migration()
