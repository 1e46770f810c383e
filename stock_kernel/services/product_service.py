"""
ProductService -- minimal catalogue writes needed by the stock core.

Responsibility:
    Create products and upsert them by SKU (bulk import). Full catalogue
    management lives outside this repository.

Architecture position:
    Kernel > Services. Flushes, never commits.
"""

from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from stock_kernel.domain.categories import ProductKind
from stock_kernel.domain.dtos import ProductInfo
from stock_kernel.logging_config import get_logger
from stock_kernel.models.product import Product
from stock_kernel.services.base import BaseService

logger = get_logger("services.product")


@dataclass(frozen=True)
class ProductUpsert:
    """
    Product fields written by an upsert.

    On update a None price leaves the stored price unchanged; photo_url is
    always written, so a row without a photo clears the stored one.
    """

    sku: str
    name: str
    kind: ProductKind
    price_general: int | None = None
    price_discounted: int | None = None
    photo_url: str | None = None
    unit_of_measure: str = "unidad"


class ProductService(BaseService[Product]):

    def __init__(self, session: Session):
        super().__init__(session)

    def create_product(
        self,
        *,
        name: str,
        kind: ProductKind,
        actor_id: UUID,
        sku: str | None = None,
        price_general: int = 0,
        price_discounted: int = 0,
        photo_url: str | None = None,
        unit_of_measure: str = "unidad",
    ) -> ProductInfo:
        """
        Raises:
            DuplicateRecordError: If the SKU already exists.
        """
        product = Product(
            sku=sku,
            name=name,
            kind=kind,
            price_general=price_general,
            price_discounted=price_discounted,
            photo_url=photo_url,
            unit_of_measure=unit_of_measure,
            created_by_id=actor_id,
        )
        self.session.add(product)
        self._flush_unique("Product")
        logger.info(
            "product_created",
            extra={"product_id": str(product.id), "sku": sku, "kind": kind.value},
        )
        return product.to_dto()

    def find_by_sku(self, sku: str) -> Product | None:
        return self.session.execute(
            select(Product).where(Product.sku == sku)
        ).scalar_one_or_none()

    def upsert_by_sku(self, data: ProductUpsert, actor_id: UUID) -> tuple[Product, bool]:
        """
        Insert or update the product with ``data.sku``.

        Returns:
            (product, created) where created is True for a new row.
        """
        product = self.find_by_sku(data.sku)
        created = product is None
        if created:
            product = Product(
                sku=data.sku,
                name=data.name,
                kind=data.kind,
                unit_of_measure=data.unit_of_measure,
                price_general=data.price_general or 0,
                price_discounted=data.price_discounted or 0,
                photo_url=data.photo_url,
                created_by_id=actor_id,
            )
            self.session.add(product)
        else:
            product.name = data.name
            product.kind = data.kind
            if data.price_general is not None:
                product.price_general = data.price_general
            if data.price_discounted is not None:
                product.price_discounted = data.price_discounted
            product.photo_url = data.photo_url
            product.updated_by_id = actor_id
        self._flush_unique("Product")
        return product, created
