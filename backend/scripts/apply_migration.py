"""Apply a SQL migration from ``backend/migrations`` through the asyncpg pool.

Usage: python scripts/apply_migration.py 0001_core.sql
"""

import asyncio
import sys
from pathlib import Path

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from app.infra.postgres import close_pool, get_pool

MIGRATIONS_DIR = BACKEND_ROOT / "migrations"


async def apply_migration(filename: str) -> bool:
    migration_path = MIGRATIONS_DIR / filename
    if not migration_path.exists():
        print(f"Migration file not found: {migration_path}")
        return False

    print(f"Applying migration: {filename}")
    sql = migration_path.read_text(encoding="utf-8")
    pool = await get_pool()
    try:
        async with pool.acquire() as conn:
            async with conn.transaction():
                await conn.execute(sql)
    finally:
        await close_pool()
    print("Migration applied successfully.")
    return True


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python scripts/apply_migration.py <migration_filename>")
        sys.exit(1)

    if sys.platform == "win32":
        asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())
    ok = asyncio.run(apply_migration(sys.argv[1]))
    sys.exit(0 if ok else 1)
