# dealership/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi

from dealership.api.error_handlers import register_exception_handlers
from dealership.api.routers import (
    admin,
    admin_orders,
    auth,
    brands,
    car_parts,
    cars,
    cart,
    catalog,
    categories,
    contact,
    dashboard,
    orders,
    users,
)
from dealership.core.config import settings
from dealership.core.logging import get_logger, setup_logging
from dealership.core.metrics import export_metrics
from dealership.initial_data import create_initial_admin_user
from dealership.middleware import (
    ObservabilityMiddleware,
    PayloadLimitMiddleware,
    SecurityHeadersMiddleware,
)

# --- Models registration (necesario para que Alembic los detecte) ---
import dealership.models  # noqa: F401

logger = get_logger("dealership.main")

# --- Metadatos de la API para la documentación ---
TAGS_METADATA = [
    {"name": "auth", "description": "Registro, login, refresh tokens, logout y recuperación de contraseña."},
    {"name": "users", "description": "Perfil del cliente autenticado."},
    {"name": "admin", "description": "Gestión de usuarios y panel de administración."},
    {"name": "admin-orders", "description": "Gestión de órdenes de venta (administración)."},
    {"name": "brands", "description": "Marcas de autos y repuestos."},
    {"name": "categories", "description": "Categorías de autos y repuestos."},
    {"name": "cars", "description": "Catálogo de autos con filtros y paginación."},
    {"name": "car-parts", "description": "Catálogo de repuestos, compatibilidad y comparación."},
    {"name": "catalog", "description": "Portada y búsqueda global."},
    {"name": "cart", "description": "Carrito de compra del cliente."},
    {"name": "orders", "description": "Checkout, órdenes del cliente y seguimiento."},
    {"name": "dashboard", "description": "Resumen de cuenta del cliente."},
    {"name": "contact", "description": "Formulario de contacto y bandeja de mensajes."},
]


@asynccontextmanager
async def lifespan(_: FastAPI):
    setup_logging()
    await create_initial_admin_user()
    logger.info("Application started", extra={"project": settings.PROJECT_NAME})
    yield


app = FastAPI(
    title=settings.PROJECT_NAME,
    version="1.0.0",
    description=(
        "API de la concesionaria ABC Car Traders.\n\n"
        "- **Auth**: Registro, login con bloqueo por intentos fallidos y refresh tokens.\n"
        "- **Catalog**: Autos y repuestos con búsqueda, filtros y paginación.\n"
        "- **Cart / Orders**: Carrito, checkout con envío e impuestos, seguimiento de órdenes.\n"
        "- **Admin**: CRUD de catálogo, usuarios, órdenes y panel de métricas.\n\n"
        "Usa el botón **Authorize** para probar los endpoints protegidos."
    ),
    openapi_tags=TAGS_METADATA,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    swagger_ui_parameters={
        "persistAuthorization": True,
        "displayRequestDuration": True,
        "tryItOutEnabled": True,
    },
)

# --- Middlewares ---
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(PayloadLimitMiddleware)
app.add_middleware(ObservabilityMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# --- Routers ---
app.include_router(auth.router, prefix=settings.API_V1_STR)
app.include_router(users.router, prefix=settings.API_V1_STR)
app.include_router(admin.router, prefix=settings.API_V1_STR)
app.include_router(admin_orders.router, prefix=settings.API_V1_STR)
app.include_router(brands.router, prefix=settings.API_V1_STR)
app.include_router(categories.router, prefix=settings.API_V1_STR)
app.include_router(cars.router, prefix=settings.API_V1_STR)
app.include_router(car_parts.router, prefix=settings.API_V1_STR)
app.include_router(catalog.router, prefix=settings.API_V1_STR)
app.include_router(cart.router, prefix=settings.API_V1_STR)
app.include_router(orders.router, prefix=settings.API_V1_STR)
app.include_router(dashboard.router, prefix=settings.API_V1_STR)
app.include_router(contact.router, prefix=settings.API_V1_STR)


# --- Configuración personalizada de OpenAPI ---
def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema

    openapi_schema = get_openapi(
        title=app.title,
        version=app.version,
        description=app.description,
        routes=app.routes,
        tags=TAGS_METADATA,
    )

    comps = openapi_schema.setdefault("components", {}).setdefault("securitySchemes", {})
    comps["BearerAuth"] = {
        "type": "http",
        "scheme": "bearer",
        "bearerFormat": "JWT",
        "description": "Pega tu access token aquí. Formato: `Bearer <token>`",
    }
    openapi_schema["security"] = [{"BearerAuth": []}]

    app.openapi_schema = openapi_schema
    return app.openapi_schema


app.openapi = custom_openapi


@app.get("/metrics", include_in_schema=False)
def metrics():
    payload, content_type = export_metrics()
    return Response(content=payload, media_type=content_type)


# --- Endpoint raíz ---
@app.get("/", include_in_schema=False)
def root():
    return {"status": "ok", "docs_url": "/docs", "redoc_url": "/redoc"}
