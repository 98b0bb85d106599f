from math import ceil
from typing import Generic, List, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    items: List[T]
    total: int
    page: int
    page_size: int
    pages: int

    @classmethod
    def build(cls, items: list, total: int, page: int, page_size: int) -> "Page[T]":
        pages = ceil(total / page_size) if page_size else 0
        return cls(items=items, total=total, page=page, page_size=page_size, pages=pages)
