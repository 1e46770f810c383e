"""
Module: stock_kernel.models.product
Responsibility: ORM persistence for catalogue products. Only the fields the
    stock core needs are modelled: identity (sku, name), category and the
    price columns the bulk import writes.
Architecture position: Kernel > Models. May import from db/base.py and the
    domain enums.

Invariants enforced:
    - sku is unique when present (uq_product_sku).
    - kind is one of ProductKind; only Producto tracks stock.

Failure modes:
    - IntegrityError on duplicate sku, translated to DuplicateRecordError by
      the services.
"""

from typing import TYPE_CHECKING

from sqlalchemy import Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stock_kernel.db.base import TrackedBase
from stock_kernel.domain.categories import ProductKind
from stock_kernel.domain.dtos import ProductInfo

if TYPE_CHECKING:
    from stock_kernel.models.inventory import InventoryRecord


class Product(TrackedBase):
    """
    Catalogue product.

    Contract:
        A product has at most one inventory record, and only when its kind
        tracks stock. Deleting the product deletes its inventory record.
    """

    __tablename__ = "products"

    __table_args__ = (
        UniqueConstraint("sku", name="uq_product_sku"),
        Index("idx_product_kind", "kind"),
        Index("idx_product_name", "name"),
    )

    sku: Mapped[str | None] = mapped_column(String(64), nullable=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    kind: Mapped[ProductKind] = mapped_column(
        String(20),
        nullable=False,
        default=ProductKind.PRODUCT,
    )

    unit_of_measure: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        default="unidad",
    )

    price_general: Mapped[int] = mapped_column(nullable=False, default=0)

    price_discounted: Mapped[int] = mapped_column(nullable=False, default=0)

    photo_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)

    inventory: Mapped["InventoryRecord | None"] = relationship(
        back_populates="product",
        cascade="all, delete-orphan",
        uselist=False,
    )

    @property
    def product_kind(self) -> ProductKind:
        return ProductKind(self.kind)

    @property
    def tracks_stock(self) -> bool:
        return self.product_kind.tracks_stock

    def to_dto(self) -> ProductInfo:
        return ProductInfo(
            id=self.id,
            name=self.name,
            kind=ProductKind(self.kind),
            sku=self.sku,
            unit_of_measure=self.unit_of_measure,
            price_general=self.price_general,
            price_discounted=self.price_discounted,
            photo_url=self.photo_url,
        )

    def __repr__(self) -> str:
        return f"<Product {self.sku}: {self.name} ({ProductKind(self.kind).value})>"
