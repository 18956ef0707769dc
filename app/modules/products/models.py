# app/modules/products/models.py
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Integer, Boolean, Text, CheckConstraint
from app.db.base import Base, TimestampMixin

PRODUCT_TYPES = ("course", "ebook", "review")
REVIEW_CATEGORIES = ("microfoon", "webcam", "accessoires")


class Product(Base, TimestampMixin):
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint(f"type in {PRODUCT_TYPES}", name="ck_products_type_valido"),
        CheckConstraint("price >= 0", name="ck_products_price_nao_negativo"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    name: Mapped[str] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    short_description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    price: Mapped[int] = mapped_column(Integer, nullable=False)  # centavos
    type: Mapped[str] = mapped_column(String(20), index=True)
    # só faz sentido para type == "review"
    category: Mapped[str | None] = mapped_column(String(30), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    featured: Mapped[bool] = mapped_column(Boolean, default=False)
    coming_soon: Mapped[bool] = mapped_column(Boolean, default=False)
    sales: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # metadados de curso/ebook
    duration: Mapped[str | None] = mapped_column(String(50), nullable=True)
    level: Mapped[str | None] = mapped_column(String(50), nullable=True)
    students: Mapped[int | None] = mapped_column(Integer, nullable=True)
    lessons: Mapped[int | None] = mapped_column(Integer, nullable=True)

    image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    image_public_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    # link de afiliado (reviews)
    external_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
