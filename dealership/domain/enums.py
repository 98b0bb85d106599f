# dealership/domain/enums.py
import enum


class UserRole(str, enum.Enum):
    admin = "admin"
    customer = "customer"


class ItemType(str, enum.Enum):
    car = "car"
    car_part = "car_part"


class CategoryType(str, enum.Enum):
    car = "car"
    car_part = "car_part"


class FuelType(str, enum.Enum):
    petrol = "petrol"
    diesel = "diesel"
    electric = "electric"
    hybrid = "hybrid"


class Transmission(str, enum.Enum):
    manual = "manual"
    automatic = "automatic"


class OrderStatus(str, enum.Enum):
    pending = "pending"
    confirmed = "confirmed"
    processing = "processing"
    shipped = "shipped"
    delivered = "delivered"
    cancelled = "cancelled"


class PaymentStatus(str, enum.Enum):
    pending = "pending"
    paid = "paid"
    failed = "failed"
    refunded = "refunded"


class PaymentMethod(str, enum.Enum):
    credit_card = "credit_card"
    debit_card = "debit_card"
    bank_transfer = "bank_transfer"
    cash = "cash"


class SearchScope(str, enum.Enum):
    all = "all"
    cars = "cars"
    parts = "parts"


class CustomerTier(str, enum.Enum):
    platinum = "Platinum"
    gold = "Gold"
    silver = "Silver"
    bronze = "Bronze"
    standard = "Standard"


class MessagePriority(str, enum.Enum):
    high = "High"
    medium = "Medium"
    low = "Low"
