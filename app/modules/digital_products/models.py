from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Integer,
    BigInteger,
    String,
    DateTime,
    ForeignKey,
    UniqueConstraint,
    CheckConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, TimestampMixin

FILE_TYPES = ("pdf", "video", "audio", "zip", "doc", "docx")


class DigitalProduct(Base, TimestampMixin):
    __tablename__ = "digital_products"
    __table_args__ = (
        CheckConstraint(f"file_type in {FILE_TYPES}", name="ck_digital_products_file_type"),
        CheckConstraint(
            "download_limit IS NULL OR download_limit >= 1",
            name="ck_digital_products_limit_positivo",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    product_id: Mapped[int] = mapped_column(
        ForeignKey("products.id", ondelete="CASCADE"), index=True, nullable=False
    )

    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_type: Mapped[str] = mapped_column(String(10), nullable=False)
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)  # bytes
    file_url: Mapped[str] = mapped_column(String(1000), nullable=False)

    # máximo de downloads por usuário (None = ilimitado)
    download_limit: Mapped[int | None] = mapped_column(Integer, nullable=True)
    # depois disso ninguém baixa mais
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class UserDownload(Base):
    __tablename__ = "user_downloads"
    __table_args__ = (
        UniqueConstraint("user_id", "digital_product_id", name="uq_user_downloads_user_dp"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    digital_product_id: Mapped[int] = mapped_column(
        ForeignKey("digital_products.id", ondelete="CASCADE"), index=True, nullable=False
    )
    download_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_downloaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
