"""Seed script for populating development brands, categories, cars and car parts."""

from __future__ import annotations

import asyncio
import logging
import sys
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dealership.core.config import settings
from dealership.db.session_async import run_in_transaction
from dealership.domain.enums import CategoryType, FuelType, Transmission
from dealership.models.catalog import Brand, Car, CarPart, Category
from dealership.schemas.catalog import BrandCreate, CarCreate, CarPartCreate, CategoryCreate
from dealership.services import brand_service, car_part_service, car_service, category_service
from dealership.utils.slugify import slugify


@dataclass(frozen=True, slots=True)
class CategorySeed:
    name: str
    category_type: CategoryType
    description: str | None = None


@dataclass(frozen=True, slots=True)
class CarSeed:
    brand: str
    category: str
    model: str
    year: int
    price: Decimal
    color: str
    fuel_type: FuelType
    transmission: Transmission
    stock_quantity: int = 1
    mileage: int | None = None
    engine_capacity: str | None = None


@dataclass(frozen=True, slots=True)
class PartSeed:
    brand: str
    category: str
    part_name: str
    part_number: str
    price: Decimal
    compatibility: str
    stock_quantity: int = 20


BRANDS: tuple[str, ...] = ("Toyota", "Honda", "Nissan", "BMW", "Bosch")

CATEGORIES: tuple[CategorySeed, ...] = (
    CategorySeed("Sedan", CategoryType.car, "Four-door passenger cars"),
    CategorySeed("SUV", CategoryType.car, "Sport utility vehicles"),
    CategorySeed("Hatchback", CategoryType.car),
    CategorySeed("Engine Parts", CategoryType.car_part),
    CategorySeed("Brakes", CategoryType.car_part),
    CategorySeed("Electrical", CategoryType.car_part),
)

CARS: tuple[CarSeed, ...] = (
    CarSeed("Toyota", "Sedan", "Corolla", 2022, Decimal("21500.00"), "White", FuelType.petrol, Transmission.automatic, 3, 12000, "1.8L"),
    CarSeed("Toyota", "SUV", "RAV4 Hybrid", 2023, Decimal("34900.00"), "Silver", FuelType.hybrid, Transmission.automatic, 2, 5000, "2.5L"),
    CarSeed("Honda", "Hatchback", "Fit", 2021, Decimal("15800.00"), "Red", FuelType.petrol, Transmission.manual, 4, 30000, "1.5L"),
    CarSeed("Nissan", "Hatchback", "Leaf", 2022, Decimal("27400.00"), "Blue", FuelType.electric, Transmission.automatic, 1, 8000),
    CarSeed("BMW", "Sedan", "320d", 2020, Decimal("38900.00"), "Black", FuelType.diesel, Transmission.automatic, 1, 42000, "2.0L"),
)

PARTS: tuple[PartSeed, ...] = (
    PartSeed("Bosch", "Brakes", "Front Brake Pads", "BP-1001", Decimal("45.90"), "Toyota Corolla 2018-2023", 40),
    PartSeed("Bosch", "Electrical", "Spark Plug Set", "SP-2040", Decimal("32.50"), "Honda Fit 2015-2022", 60),
    PartSeed("Toyota", "Engine Parts", "Oil Filter", "OF-90915", Decimal("9.99"), "Toyota Corolla 2018-2023", 8),
    PartSeed("Nissan", "Electrical", "12V Auxiliary Battery", "BT-LEAF12", Decimal("129.00"), "Nissan Leaf 2018-2023", 5),
)


async def _ensure_brand(db: AsyncSession, name: str) -> Brand:
    existing = (await db.execute(select(Brand).where(Brand.slug == slugify(name)))).scalars().first()
    if existing:
        return existing
    return await brand_service.create_brand(db, BrandCreate(name=name))


async def _ensure_category(db: AsyncSession, seed: CategorySeed) -> Category:
    existing = (
        await db.execute(
            select(Category).where(Category.name == seed.name, Category.category_type == seed.category_type)
        )
    ).scalars().first()
    if existing:
        return existing
    return await category_service.create_category(
        db,
        CategoryCreate(name=seed.name, category_type=seed.category_type, description=seed.description),
    )


async def _seed_catalog(db: AsyncSession, logger: logging.Logger) -> tuple[int, int]:
    brands = {name: await _ensure_brand(db, name) for name in BRANDS}
    categories = {seed.name: await _ensure_category(db, seed) for seed in CATEGORIES}

    cars_created = 0
    for seed in CARS:
        brand = brands[seed.brand]
        exists = (
            await db.execute(
                select(Car.id).where(Car.brand_id == brand.id, Car.model == seed.model, Car.year == seed.year)
            )
        ).scalar_one_or_none()
        if exists:
            logger.debug("Skipped car %s %s", seed.brand, seed.model)
            continue
        await car_service.create_car(
            db,
            CarCreate(
                brand_id=brand.id,
                category_id=categories[seed.category].id,
                model=seed.model,
                year=seed.year,
                price=seed.price,
                color=seed.color,
                fuel_type=seed.fuel_type,
                transmission=seed.transmission,
                stock_quantity=seed.stock_quantity,
                mileage=seed.mileage,
                engine_capacity=seed.engine_capacity,
            ),
        )
        cars_created += 1

    parts_created = 0
    for seed in PARTS:
        exists = (
            await db.execute(select(CarPart.id).where(CarPart.part_number == seed.part_number))
        ).scalar_one_or_none()
        if exists:
            logger.debug("Skipped part %s", seed.part_number)
            continue
        await car_part_service.create_part(
            db,
            CarPartCreate(
                brand_id=brands[seed.brand].id,
                category_id=categories[seed.category].id,
                part_name=seed.part_name,
                part_number=seed.part_number,
                price=seed.price,
                compatibility=seed.compatibility,
                stock_quantity=seed.stock_quantity,
            ),
        )
        parts_created += 1

    return cars_created, parts_created


async def seed_dev_catalog() -> None:
    """Insert development catalog data; running it twice creates nothing new."""
    logger = logging.getLogger("seed_dev_catalog")
    logger.info("Seeding development catalog into %s", settings.ASYNC_DATABASE_URL)

    cars_created, parts_created = await run_in_transaction(lambda db: _seed_catalog(db, logger))

    logger.info("Seed completed: %s cars and %s car parts created", cars_created, parts_created)


async def main() -> None:
    await seed_dev_catalog()


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
