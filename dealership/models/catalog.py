# dealership/models/catalog.py
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import (
    String,
    Boolean,
    Numeric,
    ForeignKey,
    DateTime,
    func,
    Integer,
    Text,
    Enum,
    CheckConstraint,
    Index,
)

from dealership.core.config import settings
from dealership.db.session import Base
from dealership.db.types import GUID, utcnow
from dealership.domain.enums import CategoryType, FuelType, Transmission


# --- Clasificación ---
class Brand(Base):
    __tablename__ = "brands"

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    slug: Mapped[str] = mapped_column(String(120), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    logo_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

    cars = relationship("Car", back_populates="brand")
    car_parts = relationship("CarPart", back_populates="brand")


class Category(Base):
    __tablename__ = "categories"

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String(120), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    category_type: Mapped[CategoryType] = mapped_column(Enum(CategoryType), nullable=False, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

    cars = relationship("Car", back_populates="category")
    car_parts = relationship("CarPart", back_populates="category")


# --- Vehículos ---
class Car(Base):
    __tablename__ = "cars"
    __table_args__ = (
        CheckConstraint("price > 0", name="ck_cars_price_positive"),
        CheckConstraint("stock_quantity >= 0", name="ck_cars_stock_non_negative"),
        CheckConstraint("year BETWEEN 1900 AND 2030", name="ck_cars_year_range"),
        Index("ix_cars_available_stock", "is_available", "stock_quantity"),
    )

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=uuid.uuid4)
    brand_id: Mapped[uuid.UUID] = mapped_column(
        GUID(), ForeignKey("brands.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    category_id: Mapped[uuid.UUID] = mapped_column(
        GUID(), ForeignKey("categories.id", ondelete="RESTRICT"), nullable=False, index=True
    )

    model: Mapped[str] = mapped_column(String(100), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    color: Mapped[str | None] = mapped_column(String(50), nullable=True)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    mileage: Mapped[int | None] = mapped_column(Integer, nullable=True)
    fuel_type: Mapped[FuelType | None] = mapped_column(Enum(FuelType), nullable=True)
    transmission: Mapped[Transmission | None] = mapped_column(Enum(Transmission), nullable=True)
    engine_capacity: Mapped[str | None] = mapped_column(String(20), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    features: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str | None] = mapped_column(String(512), nullable=True)

    stock_quantity: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    is_available: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=utcnow, nullable=True)

    brand = relationship(Brand, back_populates="cars", lazy="joined")
    category = relationship(Category, back_populates="cars", lazy="joined")

    @property
    def display_name(self) -> str:
        brand_name = self.brand.name if self.brand else ""
        return f"{brand_name} {self.model} ({self.year})".strip()

    @property
    def in_stock(self) -> bool:
        return self.stock_quantity > 0

    @property
    def is_low_stock(self) -> bool:
        return 0 < self.stock_quantity <= settings.LOW_STOCK_THRESHOLD_CARS

    @property
    def is_purchasable(self) -> bool:
        return self.is_available and self.stock_quantity > 0


# --- Repuestos ---
class CarPart(Base):
    __tablename__ = "car_parts"
    __table_args__ = (
        CheckConstraint("price > 0", name="ck_car_parts_price_positive"),
        CheckConstraint("stock_quantity >= 0", name="ck_car_parts_stock_non_negative"),
        Index("ix_car_parts_available_stock", "is_available", "stock_quantity"),
    )

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=uuid.uuid4)
    brand_id: Mapped[uuid.UUID] = mapped_column(
        GUID(), ForeignKey("brands.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    category_id: Mapped[uuid.UUID] = mapped_column(
        GUID(), ForeignKey("categories.id", ondelete="RESTRICT"), nullable=False, index=True
    )

    part_name: Mapped[str] = mapped_column(String(100), nullable=False)
    part_number: Mapped[str | None] = mapped_column(String(50), unique=True, nullable=True)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    compatibility: Mapped[str | None] = mapped_column(String(500), nullable=True)
    image_url: Mapped[str | None] = mapped_column(String(512), nullable=True)

    stock_quantity: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_available: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=utcnow, nullable=True)

    brand = relationship(Brand, back_populates="car_parts", lazy="joined")
    category = relationship(Category, back_populates="car_parts", lazy="joined")

    @property
    def display_name(self) -> str:
        brand_name = self.brand.name if self.brand else ""
        return f"{brand_name} {self.part_name}".strip()

    @property
    def in_stock(self) -> bool:
        return self.stock_quantity > 0

    @property
    def is_low_stock(self) -> bool:
        return 0 < self.stock_quantity <= settings.LOW_STOCK_THRESHOLD_PARTS

    @property
    def is_purchasable(self) -> bool:
        return self.is_available and self.stock_quantity > 0
