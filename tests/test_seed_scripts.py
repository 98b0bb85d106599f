import pytest
from sqlalchemy import func, select

from dealership.models.catalog import Brand, Car, CarPart, Category
from dealership.models.user import User
from scripts import seed_dev_catalog, seed_dev_users


@pytest.mark.asyncio
async def test_seed_dev_users_populates_expected_users(async_db_session):
    await seed_dev_users.seed_dev_users()

    total_users = (
        await async_db_session.execute(select(func.count(User.id)))
    ).scalar_one()
    assert total_users == len(seed_dev_users.DEV_USERS)

    admin_seed = next(user for user in seed_dev_users.DEV_USERS if user.is_superuser)
    admin = (
        await async_db_session.execute(select(User).where(User.email == admin_seed.email))
    ).scalar_one()
    assert admin.is_superuser is True


@pytest.mark.asyncio
async def test_seed_dev_users_is_idempotent(async_db_session):
    await seed_dev_users.seed_dev_users()
    await seed_dev_users.seed_dev_users()

    total_users = (
        await async_db_session.execute(select(func.count(User.id)))
    ).scalar_one()
    assert total_users == len(seed_dev_users.DEV_USERS)


@pytest.mark.asyncio
async def test_seed_dev_catalog_populates_catalog(async_db_session):
    await seed_dev_catalog.seed_dev_catalog()

    async def count(model):
        return (await async_db_session.execute(select(func.count(model.id)))).scalar_one()

    assert await count(Brand) == len(seed_dev_catalog.BRANDS)
    assert await count(Category) == len(seed_dev_catalog.CATEGORIES)
    assert await count(Car) == len(seed_dev_catalog.CARS)
    assert await count(CarPart) == len(seed_dev_catalog.PARTS)

    part_numbers = (await async_db_session.execute(select(CarPart.part_number))).scalars().all()
    assert all(number == number.upper() for number in part_numbers)


@pytest.mark.asyncio
async def test_seed_dev_catalog_is_idempotent(async_db_session):
    await seed_dev_catalog.seed_dev_catalog()
    await seed_dev_catalog.seed_dev_catalog()

    total_cars = (await async_db_session.execute(select(func.count(Car.id)))).scalar_one()
    assert total_cars == len(seed_dev_catalog.CARS)
