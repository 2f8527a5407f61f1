"""
Example 01: Prepared Statements

This example runs handler-style queries through prepare/bind/first/all/run
against a throwaway SQLite file.
"""

import asyncio
import tempfile
from pathlib import Path

from meudads_db import AdapterHandle, ConnectionConfig, StatementExecutor


async def main():
    db_path = Path(tempfile.mkdtemp()) / "edge.db"
    db = StatementExecutor(AdapterHandle(ConnectionConfig.from_url(f"sqlite:///{db_path}")))

    await db.execute("""
        CREATE TABLE users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            email TEXT UNIQUE NOT NULL,
            name TEXT NOT NULL,
            is_active BOOLEAN DEFAULT 1
        )
    """)

    print("=== Prepared Statements ===\n")

    print("1. run():")
    insert = db.prepare("INSERT INTO users (email, name) VALUES (?, ?)")
    for email, name in [("ana@meudads.com.br", "Ana"), ("bia@meudads.com.br", "Bia")]:
        result = await insert.bind(email, name).run()
        print(f"   inserted id={result.meta.last_row_id} changes={result.meta.changes}")
    print()

    print("2. first():")
    lookup = db.prepare("SELECT * FROM users WHERE email = ?")
    user = await lookup.bind("ana@meudads.com.br").first()
    print(f"   {user}\n")

    print("3. all() with numbered placeholders:")
    users = await db.prepare(
        "SELECT name FROM users WHERE is_active = ?2 AND email LIKE ?1"
    ).bind("%@meudads.com.br", 1).all()
    print(f"   {[u['name'] for u in users]}\n")

    print("4. run() matching nothing:")
    result = await db.prepare("UPDATE users SET name = ? WHERE id = ?").bind("X", 999).run()
    print(f"   success={result.success} changes={result.meta.changes}\n")

    await db.close()
    db_path.unlink()


if __name__ == "__main__":
    asyncio.run(main())
