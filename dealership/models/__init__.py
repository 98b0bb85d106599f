"""ORM models; importing this package registers every table on ``Base.metadata``."""

from dealership.models.user import User
from dealership.models.catalog import Brand, Category, Car, CarPart
from dealership.models.cart import Cart, CartItem
from dealership.models.order import Order, OrderItem
from dealership.models.contact import ContactMessage

__all__ = [
    "User",
    "Brand",
    "Category",
    "Car",
    "CarPart",
    "Cart",
    "CartItem",
    "Order",
    "OrderItem",
    "ContactMessage",
]
