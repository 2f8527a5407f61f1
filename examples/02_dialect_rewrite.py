"""
Example 02: Dialect Rewriting

This example shows how SQLite-flavoured statements are rewritten before they
are sent to PostgreSQL, and how placeholders are translated for psycopg.
"""

from meudads_db import rewrite
from meudads_db.core.params import bind_positional

STATEMENTS = [
    "CREATE TABLE IF NOT EXISTS roles (id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT)",
    "INSERT OR IGNORE INTO user_roles (user_id, role_id) VALUES (?, ?)",
    "INSERT OR REPLACE INTO sync_config_data (key, value) VALUES (?, ?)",
    "UPDATE users SET last_login_at = datetime('now') WHERE id = ?",
    "DELETE FROM user_sessions WHERE created_at < datetime('now', '-7 days')",
    "ALTER TABLE users ADD COLUMN password_reset_required BOOLEAN DEFAULT 0",
]


def main():
    print("=== SQLite → PostgreSQL ===\n")
    for sql in STATEMENTS:
        print(f"   {sql}")
        print(f"-> {rewrite(sql)}\n")

    print("=== Placeholder translation ===\n")
    sql, params = bind_positional(
        "UPDATE users SET name = ?2 WHERE id = ?1", (42, "Ana"), "format"
    )
    print(f"   {sql}  {params}")


if __name__ == "__main__":
    main()
