from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Integer,
    String,
    DateTime,
    ForeignKey,
    CheckConstraint,
    Index,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, TimestampMixin

STATUS_PENDING = "pending"
STATUS_PAID = "paid"
STATUS_FAILED = "failed"
STATUS_REFUNDED = "refunded"
STATUS_CHOICES = (STATUS_PENDING, STATUS_PAID, STATUS_FAILED, STATUS_REFUNDED)

# destino -> estados de origem permitidos
ALLOWED_TRANSITIONS: dict[str, tuple[str, ...]] = {
    STATUS_PAID: (STATUS_PENDING,),
    STATUS_FAILED: (STATUS_PENDING,),
    STATUS_REFUNDED: (STATUS_PAID,),
}


class Order(Base, TimestampMixin):
    __tablename__ = "orders"

    __table_args__ = (
        CheckConstraint(
            f"status in {STATUS_CHOICES}",
            name="ck_orders_status_valido",
        ),
        CheckConstraint("total_amount >= 0", name="ck_orders_total_nao_negativo"),
        Index("ix_orders_user_status", "user_id", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )

    # soma de price * quantity no momento da criação (centavos), nunca recalculada
    total_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="EUR")

    status: Mapped[str] = mapped_column(String(16), nullable=False, default=STATUS_PENDING)

    # id do pagamento no provedor (Mollie: "tr_...")
    payment_id: Mapped[str | None] = mapped_column(String(64), nullable=True, unique=True)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    items: Mapped[list["OrderItem"]] = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="OrderItem.id",
    )


class OrderItem(Base):
    __tablename__ = "order_items"
    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_order_items_quantity_positiva"),
        CheckConstraint("price >= 0", name="ck_order_items_price_nao_negativo"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    order_id: Mapped[int] = mapped_column(
        ForeignKey("orders.id", ondelete="CASCADE"), index=True, nullable=False
    )
    # fica NULL se o produto for excluído; o nome continua no snapshot
    product_id: Mapped[int | None] = mapped_column(
        ForeignKey("products.id", ondelete="SET NULL"), index=True, nullable=True
    )
    product_name: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    # preço unitário congelado na compra (centavos)
    price: Mapped[int] = mapped_column(Integer, nullable=False)

    order: Mapped[Order] = relationship("Order", back_populates="items")
