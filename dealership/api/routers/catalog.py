from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from dealership.api.deps import get_optional_user
from dealership.db.session_async import get_async_db
from dealership.domain.enums import SearchScope
from dealership.models.user import User
from dealership.schemas.search import HomeSummary, SearchResults
from dealership.services import catalog_service

router = APIRouter(prefix="/catalog", tags=["catalog"])


@router.get("/home", response_model=HomeSummary)
async def home(
    db: AsyncSession = Depends(get_async_db),
    current_user: User | None = Depends(get_optional_user),
):
    return await catalog_service.home_summary(db, current_user.id if current_user else None)


@router.get("/search", response_model=SearchResults)
async def search(
    q: str = Query("", max_length=100, description="Texto a buscar en autos y repuestos"),
    scope: SearchScope = Query(SearchScope.all),
    db: AsyncSession = Depends(get_async_db),
):
    return await catalog_service.search(db, q, scope)
