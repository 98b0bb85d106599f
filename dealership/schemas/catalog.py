# dealership/schemas/catalog.py
from datetime import datetime
from decimal import Decimal
from typing import List
from uuid import UUID

from pydantic import BaseModel, Field, ConfigDict, field_validator

from dealership.domain.enums import CategoryType, FuelType, Transmission

# ---------- Brand ----------
class BrandBase(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    slug: str | None = Field(None, min_length=2, max_length=120)
    description: str | None = Field(None, max_length=500)
    logo_url: str | None = Field(None, max_length=512)
    is_active: bool = True


class BrandCreate(BrandBase):
    pass


class BrandUpdate(BaseModel):
    name: str | None = Field(None, min_length=2, max_length=100)
    slug: str | None = Field(None, min_length=2, max_length=120)
    description: str | None = Field(None, max_length=500)
    logo_url: str | None = Field(None, max_length=512)
    is_active: bool | None = None


class BrandRead(BrandBase):
    id: UUID
    slug: str
    model_config = ConfigDict(from_attributes=True)


class BrandSummary(BaseModel):
    id: UUID
    name: str
    slug: str
    model_config = ConfigDict(from_attributes=True)


class BrandDetail(BrandRead):
    total_cars: int = 0
    available_cars: int = 0
    total_car_parts: int = 0
    available_car_parts: int = 0


# ---------- Category ----------
class CategoryBase(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    slug: str | None = Field(None, min_length=2, max_length=120)
    description: str | None = Field(None, max_length=500)
    category_type: CategoryType
    is_active: bool = True


class CategoryCreate(CategoryBase):
    pass


class CategoryUpdate(BaseModel):
    name: str | None = Field(None, min_length=2, max_length=100)
    slug: str | None = Field(None, min_length=2, max_length=120)
    description: str | None = Field(None, max_length=500)
    category_type: CategoryType | None = None
    is_active: bool | None = None


class CategoryRead(CategoryBase):
    id: UUID
    slug: str
    model_config = ConfigDict(from_attributes=True)


class CategorySummary(BaseModel):
    id: UUID
    name: str
    category_type: CategoryType
    model_config = ConfigDict(from_attributes=True)


# ---------- Car ----------
class CarBase(BaseModel):
    brand_id: UUID
    category_id: UUID
    model: str = Field(..., min_length=1, max_length=100)
    year: int = Field(..., ge=1900, le=2030)
    color: str | None = Field(None, max_length=50)
    price: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    mileage: int | None = Field(None, ge=0)
    fuel_type: FuelType | None = None
    transmission: Transmission | None = None
    engine_capacity: str | None = Field(None, max_length=20)
    description: str | None = None
    features: str | None = None
    image_url: str | None = Field(None, max_length=512)
    stock_quantity: int = Field(1, ge=0)
    is_available: bool = True


class CarCreate(CarBase):
    pass


class CarUpdate(BaseModel):
    brand_id: UUID | None = None
    category_id: UUID | None = None
    model: str | None = Field(None, min_length=1, max_length=100)
    year: int | None = Field(None, ge=1900, le=2030)
    color: str | None = Field(None, max_length=50)
    price: Decimal | None = Field(None, gt=0, max_digits=12, decimal_places=2)
    mileage: int | None = Field(None, ge=0)
    fuel_type: FuelType | None = None
    transmission: Transmission | None = None
    engine_capacity: str | None = Field(None, max_length=20)
    description: str | None = None
    features: str | None = None
    image_url: str | None = Field(None, max_length=512)
    stock_quantity: int | None = Field(None, ge=0)
    is_available: bool | None = None


class CarRead(CarBase):
    id: UUID
    display_name: str
    in_stock: bool
    is_low_stock: bool
    brand: BrandSummary
    category: CategorySummary
    created_at: datetime
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class CarDetail(BaseModel):
    car: CarRead
    related: List[CarRead] = []


class CarFilterOptions(BaseModel):
    brands: List[BrandSummary]
    categories: List[CategorySummary]
    colors: List[str]
    years: List[int]
    fuel_types: List[FuelType]
    transmissions: List[Transmission]
    min_price: Decimal | None = None
    max_price: Decimal | None = None


# ---------- Car part ----------
class CarPartBase(BaseModel):
    brand_id: UUID
    category_id: UUID
    part_name: str = Field(..., min_length=1, max_length=100)
    part_number: str | None = Field(None, max_length=50)
    price: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    description: str | None = None
    compatibility: str | None = Field(None, max_length=500)
    image_url: str | None = Field(None, max_length=512)
    stock_quantity: int = Field(0, ge=0)
    is_available: bool = True

    @field_validator("part_number")
    @classmethod
    def _normalize_part_number(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip().upper()
        return value or None


class CarPartCreate(CarPartBase):
    pass


class CarPartUpdate(BaseModel):
    brand_id: UUID | None = None
    category_id: UUID | None = None
    part_name: str | None = Field(None, min_length=1, max_length=100)
    part_number: str | None = Field(None, max_length=50)
    price: Decimal | None = Field(None, gt=0, max_digits=12, decimal_places=2)
    description: str | None = None
    compatibility: str | None = Field(None, max_length=500)
    image_url: str | None = Field(None, max_length=512)
    stock_quantity: int | None = Field(None, ge=0)
    is_available: bool | None = None

    @field_validator("part_number")
    @classmethod
    def _normalize_part_number(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip().upper()
        return value or None


class CarPartRead(CarPartBase):
    id: UUID
    display_name: str
    in_stock: bool
    is_low_stock: bool
    brand: BrandSummary
    category: CategorySummary
    created_at: datetime
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class CarPartDetail(BaseModel):
    part: CarPartRead
    related: List[CarPartRead] = []


class PriceRange(BaseModel):
    min_price: Decimal | None = None
    max_price: Decimal | None = None


class CompareRequest(BaseModel):
    ids: List[UUID] = Field(..., min_length=2, max_length=4)


# ---------- Inventario (admin) ----------
class StockAdjustment(BaseModel):
    """``delta`` suma o resta stock; ``quantity`` lo fija en un valor absoluto."""

    delta: int | None = None
    quantity: int | None = Field(None, ge=0)


class AvailabilityUpdate(BaseModel):
    is_available: bool
