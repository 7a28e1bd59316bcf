"""
Purpose: The central service for managing the catalog Product entity.

Standard CRUD operations:
- List products (public storefront view or the full admin view)
- Create a product, recording its opening stock in the inventory ledger
- Patch product fields (only those present in the request)
- Delete a product that no order references

Stock is not writable here apart from the opening stock on create; later
stock changes go through InventoryService, which takes the row lock and writes
a ledger entry.
"""

import logging
import random
import re
from typing import List

from sqlalchemy import exists, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.enums import InventoryReason
from storefront.core.exceptions import (
    CatalogProductNotFoundError,
    ProductAlreadyExistsError,
    ProductInUseError,
)
from storefront.models import InventoryEvent, OrderLine, Product
from storefront.schemas.product import ProductCreate, ProductRead, ProductUpdate

logger = logging.getLogger(__name__)

ID_GENERATION_ATTEMPTS = 5


def slugify(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", (name or "").strip().lower()).strip("-")
    return slug or "prod"


def generate_product_id(name: str) -> str:
    """Slug of the name plus a 4-digit suffix, e.g. 'sour-straws-4821'."""
    return f"{slugify(name)}-{random.randint(1000, 9999)}"


class ProductService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def product_exists(self, product_id: str) -> bool:
        """Check if a product id is already taken."""
        return bool(await self.db.scalar(select(exists().where(Product.id == product_id))))

    async def list_products(
        self,
        include_inactive: bool = False,
        hide_out_of_stock: bool = False,
    ) -> List[ProductRead]:
        """
        Storefront listing: active products ordered by name.
        Admin listing (include_inactive=True): every product, newest first.
        """
        stmt = select(Product)
        if include_inactive:
            stmt = stmt.order_by(Product.created_at.desc(), Product.id)
        else:
            stmt = stmt.where(Product.is_active.is_(True)).order_by(Product.name, Product.id)
        if hide_out_of_stock:
            stmt = stmt.where(Product.stock_qty > 0)

        result = await self.db.execute(stmt)
        return [ProductRead.model_validate(p) for p in result.scalars().all()]

    async def _get(self, product_id: str, **options) -> Product:
        product = await self.db.get(Product, product_id, **options)
        if product is None:
            raise CatalogProductNotFoundError(product_id)
        return product

    async def get_product(self, product_id: str) -> ProductRead:
        """
        Retrieves a product by ID.

        Raises:
            CatalogProductNotFoundError: If product not found
        """
        return ProductRead.model_validate(await self._get(product_id))

    async def create_product(self, product_data: ProductCreate) -> ProductRead:
        """
        Creates a product. Opening stock is written to the ledger as an
        'initial' entry in the same transaction.

        Raises:
            ProductAlreadyExistsError: If the supplied id is taken
        """
        if product_data.id:
            product_id = product_data.id
            if await self.product_exists(product_id):
                raise ProductAlreadyExistsError(f"Product id '{product_id}' already exists")
        else:
            product_id = await self._free_generated_id(product_data.name)

        product = Product(
            id=product_id,
            name=product_data.name,
            description=product_data.description,
            price=product_data.price,
            stock_qty=product_data.stock_qty,
            is_active=product_data.is_active,
            meta=product_data.metadata,
            image_url=product_data.image_url,
        )
        if product_data.stock_qty:
            product.inventory_events.append(
                InventoryEvent(delta=product_data.stock_qty, reason=InventoryReason.INITIAL.value)
            )

        try:
            self.db.add(product)
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise ProductAlreadyExistsError(f"Product id '{product_id}' already exists") from e
        except Exception:
            await self.db.rollback()
            raise

        logger.info("Created product %s with opening stock %s", product_id, product_data.stock_qty)
        return ProductRead.model_validate(product)

    async def _free_generated_id(self, name: str) -> str:
        for _ in range(ID_GENERATION_ATTEMPTS):
            candidate = generate_product_id(name)
            if not await self.product_exists(candidate):
                return candidate
        raise ProductAlreadyExistsError(f"Could not generate a free id for '{name}'")

    async def update_product(self, product_id: str, update: ProductUpdate) -> ProductRead:
        """
        Apply the fields present in ``update``. stock_qty and stock_meta are
        ignored here; callers route them to InventoryService.adjust_stock.
        """
        product = await self._get(product_id)
        changes = update.changes()
        changes.pop("stock_qty", None)
        changes.pop("stock_meta", None)
        if not changes:
            return ProductRead.model_validate(product)

        if "metadata" in changes:
            changes["meta"] = changes.pop("metadata") or {}

        try:
            for key, value in changes.items():
                setattr(product, key, value)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info("Updated product %s: %s", product_id, ", ".join(sorted(changes)))
        await self.db.refresh(product)
        return ProductRead.model_validate(product)

    async def delete_product(self, product_id: str) -> None:
        """
        Delete a product. Its ledger entries are kept, closed at zero by a
        'delete' entry for any stock still on hand.

        Raises:
            CatalogProductNotFoundError: If product not found
            ProductInUseError: If any order line references the product
        """
        product = await self._get(product_id, with_for_update=True, populate_existing=True)

        referenced = await self.db.scalar(select(exists().where(OrderLine.product_id == product_id)))
        if referenced:
            raise ProductInUseError(
                f"Product {product_id} is referenced by orders; deactivate it instead"
            )

        try:
            if product.stock_qty:
                self.db.add(InventoryEvent(
                    product_id=product.id,
                    delta=-product.stock_qty,
                    reason=InventoryReason.DELETE.value,
                ))
            await self.db.delete(product)
            await self.db.commit()
        except IntegrityError as e:
            # An order referencing the product landed between the check and the delete
            await self.db.rollback()
            raise ProductInUseError(f"Product {product_id} is referenced by orders") from e
        except Exception:
            await self.db.rollback()
            raise

        logger.info("Deleted product %s", product_id)
