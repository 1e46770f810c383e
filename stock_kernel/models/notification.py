"""
Module: stock_kernel.models.notification
Responsibility: Append-only in-app notification rows, polled by the UI.
Architecture position: Kernel > Models.

The core only inserts. Delivery, read tracking and retention belong to the
consumer.
"""

from uuid import UUID

from sqlalchemy import Boolean, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from stock_kernel.db.base import TrackedBase, UUIDString


class Notification(TrackedBase):
    __tablename__ = "notifications"

    __table_args__ = (
        Index("idx_notification_reference", "reference_table", "reference_id"),
        Index("idx_notification_unread", "is_read"),
    )

    kind: Mapped[str] = mapped_column(String(50), nullable=False)

    reference_table: Mapped[str] = mapped_column(String(50), nullable=False)

    reference_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    title: Mapped[str] = mapped_column(String(255), nullable=False)

    detail: Mapped[str | None] = mapped_column(Text, nullable=True)

    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return f"<Notification {self.kind}: {self.title}>"
