from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, TimestampMixin

STATUS_PENDING = "pending"
STATUS_CONFIRMED = "confirmed"
SUBSCRIPTION_STATUSES = (STATUS_PENDING, STATUS_CONFIRMED)


class NewsletterSubscription(Base, TimestampMixin):
    __tablename__ = "newsletter_subscriptions"
    __table_args__ = (
        CheckConstraint(f"status in {SUBSCRIPTION_STATUSES}", name="ck_newsletter_status_valido"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    # gravado em minúsculas; alvo do ON CONFLICT
    email: Mapped[str] = mapped_column(String(200), nullable=False, unique=True, index=True)
    name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    consent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=STATUS_PENDING)
    confirmation_token: Mapped[str | None] = mapped_column(String(64), nullable=True, unique=True)
    confirmed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
