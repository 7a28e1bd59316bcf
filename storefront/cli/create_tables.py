# storefront/cli/create_tables.py
import asyncio

import click

from storefront.core.config import get_settings
from storefront.core.logging_config import configure_logging
from storefront.database import Database


@click.command()
@click.option("--drop", is_flag=True, help="Drop existing tables first (destroys all data)")
@click.option("--echo", is_flag=True, help="Log the emitted SQL")
def create_tables(drop, echo):
    """Create all database tables directly using SQLAlchemy"""
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)

    async def _create_tables():
        database = Database(settings.DATABASE_URL, echo=echo).open()
        try:
            if drop:
                await database.drop_all()
                click.echo("Dropped existing tables")
            await database.create_all()
        finally:
            await database.close()
        click.echo("All tables created successfully!")

    asyncio.run(_create_tables())


if __name__ == "__main__":
    create_tables()
