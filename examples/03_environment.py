"""
Example 03: Environment Factory

This example builds the request environment twice: once with a reachable
database and once with no database but emergency access switched on.
"""

import asyncio

from meudads_db import Settings, create_environment, validate_database_connection


async def main():
    print("=== Real database ===\n")
    settings = Settings(_env_file=None, database_url="sqlite://", jwt_secret="dev-secret")
    env = await create_environment(settings)
    await validate_database_connection(env)
    print(f"   mode: {env.mode.value}")
    row = await env.db.prepare("SELECT 1 AS test").first()
    print(f"   probe row: {row}\n")
    await env.close()

    print("=== Emergency fallback ===\n")
    settings = Settings(_env_file=None, database_url=None, emergency_access=True)
    env = await create_environment(settings)
    print(f"   mode: {env.mode.value}")
    admin = await env.db.prepare("SELECT * FROM users WHERE email = ?").bind(
        "admin@meudads.com.br"
    ).first()
    print(f"   admin lookup: {admin['name'] if admin else None}")
    other = await env.db.prepare("SELECT * FROM users WHERE email = ?").bind(
        "someone@example.com"
    ).first()
    print(f"   other lookup: {other}")


if __name__ == "__main__":
    asyncio.run(main())
