# dealership/schemas/search.py
from typing import List

from pydantic import BaseModel

from dealership.domain.enums import SearchScope
from dealership.schemas.catalog import CarPartRead, CarRead


class SearchResults(BaseModel):
    term: str
    scope: SearchScope
    cars: List[CarRead]
    car_parts: List[CarPartRead]
    total_results: int


class HomeSummary(BaseModel):
    featured_cars: List[CarRead]
    featured_car_parts: List[CarPartRead]
    latest_cars: List[CarRead]
    latest_car_parts: List[CarPartRead]
    available_cars: int
    available_car_parts: int
    cart_item_count: int = 0
