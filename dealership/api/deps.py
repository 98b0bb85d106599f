# dealership/api/deps.py
from fastapi import Depends, HTTPException, Security, status
from fastapi.security import OAuth2PasswordBearer, SecurityScopes
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dealership.core.config import settings
from dealership.core.security import decode_access_token
from dealership.core.token_blacklist import ensure_not_revoked
from dealership.db.session_async import get_async_db
from dealership.models.user import User
from dealership.schemas.user import TokenPayload


OAUTH_SCOPES = {
    "admin": "Acceso total de administrador.",
    "users:me": "Acceso al perfil del propio usuario.",
    "catalog:write": "Permiso para crear, actualizar y eliminar autos, repuestos, marcas y categorias.",
    "cart:read": "Permiso para leer el carrito de compra.",
    "cart:write": "Permiso para gestionar el carrito de compra.",
    "orders:read": "Permiso para leer ordenes de venta.",
    "orders:write": "Permiso para crear y cancelar ordenes de venta.",
}

CUSTOMER_SCOPES = ["users:me", "cart:read", "cart:write", "orders:read", "orders:write"]
ADMIN_SCOPES = CUSTOMER_SCOPES + ["admin", "catalog:write"]


oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_V1_STR}/auth/login",
    scopes=OAUTH_SCOPES,
)

oauth2_scheme_optional = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_V1_STR}/auth/login",
    scopes=OAUTH_SCOPES,
    auto_error=False,
)


def scopes_for(user: User) -> list[str]:
    """Centraliza la asignación de scopes según el rol del usuario."""
    return list(ADMIN_SCOPES if user.is_superuser else CUSTOMER_SCOPES)


async def _decode_token(token: str) -> tuple[TokenPayload, list[str]]:
    payload = await ensure_not_revoked(decode_access_token(token))
    token_data = TokenPayload(**payload)
    token_scopes: list[str] = payload.get("scopes", []) or []
    return token_data, token_scopes


async def _get_user_by_id(db: AsyncSession, user_id: str | None) -> User | None:
    if not user_id:
        return None
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_current_user(
    security_scopes: SecurityScopes,
    db: AsyncSession = Depends(get_async_db),
    token: str = Depends(oauth2_scheme),
) -> User:
    cred_exc = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": f'Bearer scope="{security_scopes.scope_str}"'},
    )

    try:
        token_data, token_scopes = await _decode_token(token)
    except JWTError:
        raise cred_exc

    if token_data.sub is None:
        raise cred_exc

    user = await _get_user_by_id(db, token_data.sub)
    if user is None:
        raise cred_exc

    if security_scopes.scopes:
        if "admin" not in token_scopes:
            for scope in security_scopes.scopes:
                if scope not in token_scopes:
                    raise HTTPException(
                        status_code=status.HTTP_403_FORBIDDEN,
                        detail="Not enough permissions",
                        headers={"WWW-Authenticate": f'Bearer scope="{security_scopes.scope_str}"'},
                    )
    return user


async def get_optional_user(
    db: AsyncSession = Depends(get_async_db),
    token: str | None = Depends(oauth2_scheme_optional),
) -> User | None:
    if not token:
        return None

    try:
        token_data, _ = await _decode_token(token)
    except JWTError:
        return None

    if token_data.sub is None:
        return None

    user = await _get_user_by_id(db, token_data.sub)
    if user is None or not user.is_active:
        return None
    return user


def get_current_active_user(
    current_user: User = Security(get_current_user, scopes=["users:me"])
) -> User:
    if not current_user.is_active:
        raise HTTPException(status_code=400, detail="Inactive user")
    return current_user


def get_current_customer(
    current_user: User = Security(get_current_user, scopes=["cart:write", "orders:write"])
) -> User:
    if not current_user.is_active:
        raise HTTPException(status_code=400, detail="Inactive user")
    return current_user


def get_current_admin(
    current_user: User = Security(get_current_user, scopes=["admin"])
) -> User:
    if not current_user.is_active:
        raise HTTPException(status_code=400, detail="Inactive user")
    if not current_user.is_superuser:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin only")
    return current_user
