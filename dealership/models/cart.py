# dealership/models/cart.py
import uuid
from datetime import datetime

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Enum, DateTime, func, Integer, ForeignKey, UniqueConstraint, CheckConstraint

from dealership.db.session import Base
from dealership.db.types import GUID, utcnow
from dealership.domain.enums import ItemType


class Cart(Base):
    """Carrito persistente, uno por usuario."""

    __tablename__ = "carts"

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=uuid.uuid4, nullable=False)
    user_id: Mapped[uuid.UUID] = mapped_column(
        GUID(), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False
    )

    items: Mapped[list["CartItem"]] = relationship(
        "CartItem",
        back_populates="cart",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
        order_by="CartItem.added_at",
    )


class CartItem(Base):
    """Línea de carrito; el precio se consulta en vivo contra el catálogo."""

    __tablename__ = "cart_items"
    __table_args__ = (
        UniqueConstraint("cart_id", "item_type", "item_id", name="uq_cart_items_cart_item"),
        CheckConstraint("quantity >= 1", name="ck_cart_items_quantity_positive"),
    )

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=uuid.uuid4, nullable=False)
    cart_id: Mapped[uuid.UUID] = mapped_column(GUID(), ForeignKey("carts.id", ondelete="CASCADE"), nullable=False)
    item_type: Mapped[ItemType] = mapped_column(Enum(ItemType), nullable=False)
    # Car.id o CarPart.id según item_type
    item_id: Mapped[uuid.UUID] = mapped_column(GUID(), nullable=False, index=True)

    quantity: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    added_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

    cart = relationship("Cart", back_populates="items")
