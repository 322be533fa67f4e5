#!/usr/bin/env python3
"""
Automatic database initialization script.
Runs migrations on every configured shard and fills the subdomain pool on first startup.
"""

import os
import subprocess
import sys
import time
import logging

from sqlalchemy import text, inspect

from pwb.core.database import available_shards, get_engine, session_scope
from pwb.models.client_theme import ClientTheme
from pwb.services.subdomain_pool import SubdomainGenerator, pool_stats

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

REQUIRED_TABLES = ['websites', 'users', 'subdomains', 'props', 'messages']

DEFAULT_CLIENT_THEMES = [
    {
        'name': 'amsterdam',
        'friendly_name': 'Amsterdam Modern',
        'description': 'Clean layout with large listing photos',
        'default_config': {'primary_color': '#FF6B35', 'secondary_color': '#004E89', 'font_heading': 'Inter'},
    },
    {
        'name': 'athens',
        'friendly_name': 'Athens Classic',
        'description': 'Serif headings and a warm palette',
        'default_config': {'primary_color': '#1E3A5F', 'secondary_color': '#C9A227', 'font_heading': 'Playfair Display'},
    },
]


def wait_for_db(shard, max_retries=30):
    """Wait for a shard database to be ready."""
    logger.info(f"Waiting for shard '{shard}' to be ready...")
    engine = get_engine(shard)

    for i in range(max_retries):
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            logger.info(f"✓ Shard '{shard}' is ready")
            return True
        except Exception as e:
            if i < max_retries - 1:
                logger.info(f"Shard '{shard}' not ready yet, waiting... ({i+1}/{max_retries})")
                time.sleep(2)
            else:
                logger.error(f"Shard '{shard}' not ready after {max_retries} attempts: {e}")
                return False

    return False


def check_tables_exist(shard):
    tables = inspect(get_engine(shard)).get_table_names()
    missing_tables = [t for t in REQUIRED_TABLES if t not in tables]
    if missing_tables:
        logger.info(f"Shard '{shard}' missing tables: {missing_tables}")
        return False
    logger.info(f"✓ Shard '{shard}' has all required tables ({len(tables)} total)")
    return True


def run_migrations(shard):
    """Run Alembic migrations against one shard."""
    logger.info(f"Running migrations on shard '{shard}'...")

    result = subprocess.run(
        ["alembic", "-x", f"shard={shard}", "upgrade", "head"],
        cwd=os.path.join(os.path.dirname(__file__), ".."),
        capture_output=True,
        text=True,
        timeout=120
    )

    if result.returncode == 0:
        logger.info(f"✓ Migrations completed on shard '{shard}'")
        logger.debug(result.stdout)
        return True

    logger.error(f"Migration failed on shard '{shard}': {result.stderr}")
    return False


def seed_client_themes():
    """Register the bundled client themes if they are missing."""
    with session_scope() as db:
        created = 0
        for attrs in DEFAULT_CLIENT_THEMES:
            if db.query(ClientTheme).filter(ClientTheme.name == attrs['name']).first():
                continue
            db.add(ClientTheme(**attrs))
            created += 1
        db.commit()
    logger.info(f"✓ Client themes ready ({created} created)")


def ensure_subdomain_pool():
    minimum = int(os.getenv("SUBDOMAIN_POOL_MINIMUM", "100"))
    with session_scope() as db:
        created = SubdomainGenerator(db).ensure_pool_minimum(minimum)
        stats = pool_stats(db)
    logger.info(f"✓ Subdomain pool: {stats['available']} available ({created} created)")


def main():
    """Main initialization function."""
    logger.info("=" * 60)
    logger.info("DATABASE INITIALIZATION")
    logger.info("=" * 60)

    for shard in available_shards():
        if not wait_for_db(shard):
            logger.error(f"Failed to connect to shard '{shard}'")
            sys.exit(1)

        if not check_tables_exist(shard):
            logger.info("Tables missing, running migrations...")
        if not run_migrations(shard):
            sys.exit(1)

    seed_client_themes()
    ensure_subdomain_pool()

    logger.info("=" * 60)
    logger.info("DATABASE INITIALIZATION COMPLETE")
    logger.info("=" * 60)


if __name__ == "__main__":
    main()
