# storefront/cli/seed_products.py
import asyncio
import json
import logging
from datetime import datetime
from typing import Any, Dict, List

import click
from pydantic import ValidationError as PydanticValidationError

from storefront.core.config import get_settings
from storefront.core.enums import InventoryReason
from storefront.core.logging_config import configure_logging
from storefront.database import Database
from storefront.schemas.product import ProductCreate, ProductUpdate
from storefront.services.inventory_service import InventoryService
from storefront.services.product_service import ProductService

logger = logging.getLogger(__name__)


@click.command()
@click.argument("seed_file", type=click.Path(exists=True, dir_okay=False))
def seed_products(seed_file):
    """Upsert products from a JSON list. Stock changes are written to the ledger."""
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)

    with open(seed_file, "r") as f:
        entries = json.load(f)
    if not isinstance(entries, list):
        raise click.BadParameter("seed file must contain a JSON list of products")

    start_time = datetime.now()
    logger.info(f"Seeding {len(entries)} products from {seed_file}")

    async def _seed():
        database = Database.from_settings(settings).open()
        try:
            return await run_seed(database, entries)
        finally:
            await database.close()

    stats = asyncio.run(_seed())

    click.echo("\nSeed completed!")
    click.echo(f"Total entries: {stats['total']}")
    click.echo(f"Created: {stats['created']}")
    click.echo(f"Updated: {stats['updated']}")
    click.echo(f"Errors: {stats['errors']}")
    logger.info(f"Completed seed in {datetime.now() - start_time}")


async def run_seed(database: Database, entries: List[Dict[str, Any]]) -> Dict[str, int]:
    """
    Create missing products and update existing ones by id. New products get
    an 'initial' ledger entry; changed stock on existing products is applied as
    a 'set' adjustment.
    """
    stats = {"total": len(entries), "created": 0, "updated": 0, "errors": 0}
    inventory_service = InventoryService(database)

    for position, entry in enumerate(entries):
        try:
            data = ProductCreate.model_validate(entry)
        except PydanticValidationError as e:
            logger.error(f"Skipping entry {position}: {e.error_count()} validation errors")
            stats["errors"] += 1
            continue

        restock = False
        async with database.session() as session:
            product_service = ProductService(session)
            if data.id and await product_service.product_exists(data.id):
                update = ProductUpdate(
                    name=data.name,
                    description=data.description,
                    price=data.price,
                    is_active=data.is_active,
                    metadata=data.metadata,
                    image_url=data.image_url,
                )
                product = await product_service.update_product(data.id, update)
                restock = product.stock_qty != data.stock_qty
                stats["updated"] += 1
            else:
                await product_service.create_product(data)
                stats["created"] += 1

        if restock:
            await inventory_service.adjust_stock(
                data.id,
                quantity=data.stock_qty,
                reason=InventoryReason.SET,
                meta={"source": "seed"},
            )

    return stats


if __name__ == "__main__":
    seed_products()
