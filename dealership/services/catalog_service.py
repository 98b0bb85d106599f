"""Storefront-wide search and the home page summary."""

from __future__ import annotations

import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from dealership.domain.enums import SearchScope
from dealership.schemas.catalog import CarPartRead, CarRead
from dealership.schemas.search import HomeSummary, SearchResults
from dealership.services import car_part_service, car_service, cart_service
from dealership.services.car_part_service import CarPartFilters
from dealership.services.car_service import CarFilters
from dealership.services.exceptions import DomainValidationError

SEARCH_RESULT_LIMIT = 50


async def search(db: AsyncSession, term: str, scope: SearchScope = SearchScope.all) -> SearchResults:
    term = (term or "").strip()
    if not term:
        raise DomainValidationError("Search term is required")

    cars, parts = [], []
    if scope in (SearchScope.all, SearchScope.cars):
        found, _ = await car_service.list_cars(
            db, CarFilters(search=term, sort_by="model", descending=False), 1, SEARCH_RESULT_LIMIT
        )
        cars = [CarRead.model_validate(car) for car in found]
    if scope in (SearchScope.all, SearchScope.parts):
        found, _ = await car_part_service.list_parts(
            db, CarPartFilters(search=term, sort_by="name", descending=False), 1, SEARCH_RESULT_LIMIT
        )
        parts = [CarPartRead.model_validate(part) for part in found]

    return SearchResults(
        term=term,
        scope=scope,
        cars=cars,
        car_parts=parts,
        total_results=len(cars) + len(parts),
    )


async def home_summary(db: AsyncSession, user_id: uuid.UUID | None = None) -> HomeSummary:
    return HomeSummary(
        featured_cars=[CarRead.model_validate(c) for c in await car_service.featured_cars(db)],
        featured_car_parts=[CarPartRead.model_validate(p) for p in await car_part_service.featured_parts(db)],
        latest_cars=[CarRead.model_validate(c) for c in await car_service.latest_cars(db)],
        latest_car_parts=[CarPartRead.model_validate(p) for p in await car_part_service.latest_parts(db)],
        available_cars=await car_service.count_available(db),
        available_car_parts=await car_part_service.count_available(db),
        cart_item_count=await cart_service.count_items(db, user_id) if user_id else 0,
    )
