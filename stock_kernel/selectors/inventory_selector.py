"""
Module: stock_kernel.selectors.inventory_selector
Responsibility: Read access to inventory records with their product,
    active alert, rule, movement history and recent alerts.
Architecture position: Kernel > Selectors. Read-only.
"""

from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.orm import selectinload

from stock_kernel.domain.dtos import InventoryDetail, InventoryInfo
from stock_kernel.models.inventory import InventoryRecord
from stock_kernel.models.product import Product
from stock_kernel.models.stock_alert import StockAlert
from stock_kernel.models.stock_movement import StockMovement
from stock_kernel.selectors.base import BaseSelector

RECENT_ALERTS_LIMIT = 50


class InventorySelector(BaseSelector[InventoryRecord]):

    def list_inventories(
        self,
        product_id: UUID | None = None,
        query: str | None = None,
    ) -> list[InventoryInfo]:
        """
        Records ordered by product name, optionally filtered by product or by
        a case-insensitive match on product name, SKU or inventory code.
        """
        stmt = (
            select(InventoryRecord)
            .join(InventoryRecord.product)
            .options(
                selectinload(InventoryRecord.product),
                selectinload(InventoryRecord.alerts),
                selectinload(InventoryRecord.critical_rule),
            )
            .order_by(Product.name.asc())
        )
        if product_id is not None:
            stmt = stmt.where(InventoryRecord.product_id == product_id)
        if query and query.strip():
            pattern = f"%{query.strip().lower()}%"
            stmt = stmt.where(
                or_(
                    Product.name.ilike(pattern),
                    Product.sku.ilike(pattern),
                    InventoryRecord.code.ilike(pattern),
                )
            )
        records = self.session.execute(stmt).scalars().all()
        return [record.to_dto(with_relations=True) for record in records]

    def get_inventory(self, inventory_id: UUID) -> InventoryDetail | None:
        record = self.session.get(InventoryRecord, inventory_id)
        if record is None:
            return None

        movements = self.session.execute(
            select(StockMovement)
            .where(StockMovement.inventory_id == inventory_id)
            .order_by(StockMovement.created_at.desc())
        ).scalars().all()
        alerts = self.session.execute(
            select(StockAlert)
            .where(StockAlert.inventory_id == inventory_id)
            .order_by(StockAlert.opened_at.desc())
            .limit(RECENT_ALERTS_LIMIT)
        ).scalars().all()

        return InventoryDetail(
            inventory=record.to_dto(with_relations=True),
            movements=tuple(m.to_dto() for m in movements),
            alerts=tuple(a.to_dto() for a in alerts),
        )
