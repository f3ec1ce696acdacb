"""
Order model - one row per Eventbrite order, keyed by the Eventbrite order id.
Upserted on every order.placed / order.updated / order.refunded delivery.
"""
import uuid
from datetime import datetime
from typing import Optional
from sqlalchemy import String, DateTime
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column
from crawlsync.database import Base


class Order(Base):
    __tablename__ = "orders"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    order_id: Mapped[Optional[str]] = mapped_column(String(64), unique=True)
    event_id: Mapped[Optional[str]] = mapped_column(String(64), index=True)

    # Buyer
    first_name: Mapped[Optional[str]] = mapped_column(String(255))
    last_name: Mapped[Optional[str]] = mapped_column(String(255))
    email: Mapped[Optional[str]] = mapped_column(String(255))

    gross: Mapped[Optional[str]] = mapped_column(String(32))  # "123.45", major units
    created_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    def __repr__(self) -> str:
        return f"<Order {self.order_id} event={self.event_id}>"
