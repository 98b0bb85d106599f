# dealership/initial_data.py
import logging
from contextlib import asynccontextmanager

from sqlalchemy import func, select, text
from sqlalchemy.ext.asyncio import AsyncSession

from dealership.core.config import settings
from dealership.db.session_async import AsyncSessionLocal
from dealership.models.user import User
from dealership.schemas.user import UserCreate
from dealership.services import user_service

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _advisory_lock(session: AsyncSession):
    """
    Evita carreras en entornos multi-worker (PostgreSQL).
    No hace nada en SQLite/otros dialectos.
    """
    dialect = session.bind.dialect.name if session.bind else "unknown"
    lock_key = 424242001
    got_lock = False
    try:
        if dialect == "postgresql":
            res = await session.execute(text("SELECT pg_try_advisory_lock(:k)"), {"k": lock_key})
            got_lock = bool(res.scalar())
            if not got_lock:
                logger.info("Otro worker ya está inicializando el admin; salto esta instancia.")
                yield False
                return
        yield True
    finally:
        if got_lock:
            await session.execute(text("SELECT pg_advisory_unlock(:k)"), {"k": lock_key})


async def create_initial_admin_user() -> None:
    """
    Crea el admin inicial si hay credenciales en el entorno y no existe ningún admin.
    Si el email ya existe como cliente, lo promueve. Es idempotente.
    """
    if not settings.INITIAL_ADMIN_EMAIL or not settings.INITIAL_ADMIN_PASSWORD:
        logger.info("Skipping admin init: faltan INITIAL_ADMIN_EMAIL o INITIAL_ADMIN_PASSWORD.")
        return

    async with AsyncSessionLocal() as session:
        async with _advisory_lock(session) as proceed:
            if proceed is False:
                return

            admins = await session.scalar(
                select(func.count()).select_from(User).where(User.is_superuser.is_(True))
            )
            if (admins or 0) > 0:
                logger.info("Ya existe al menos un administrador; no se crea otro.")
                return

            existing = await user_service.get_by_email(session, str(settings.INITIAL_ADMIN_EMAIL))
            if existing:
                existing.is_superuser = True
                existing.is_active = True
                await session.commit()
                logger.warning(
                    "Usuario inicial ya existía sin permisos; promovido a administrador.",
                    extra={"user_id": str(existing.id), "email": existing.email},
                )
                return

            user_in = UserCreate(
                email=str(settings.INITIAL_ADMIN_EMAIL),
                password=settings.INITIAL_ADMIN_PASSWORD,
                first_name="System",
                last_name="Administrator",
            )
            user = await user_service.create_user(session, user_in, is_superuser=True)
            await session.commit()
            logger.info(
                "Administrador inicial creado correctamente.",
                extra={"user_id": str(user.id), "email": user.email},
            )
