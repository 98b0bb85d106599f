from . import admin
from . import admin_orders
from . import auth
from . import brands
from . import car_parts
from . import cars
from . import cart
from . import catalog
from . import categories
from . import contact
from . import dashboard
from . import orders
from . import users

__all__ = [
    "admin",
    "admin_orders",
    "auth",
    "brands",
    "car_parts",
    "cars",
    "cart",
    "catalog",
    "categories",
    "contact",
    "dashboard",
    "orders",
    "users",
]
