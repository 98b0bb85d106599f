# dealership/services/email_service.py
from __future__ import annotations

from kombu.exceptions import OperationalError

from dealership.core.config import settings
from dealership.core.logging import get_logger
from dealership.models.contact import ContactMessage
from dealership.models.order import Order
from dealership.models.user import User
from dealership.tasks.email import send_email_task

logger = get_logger(__name__)


def _enqueue_email(to_email: str, subject: str, body: str) -> None:
    try:
        send_email_task.apply_async((to_email, subject, body), queue=settings.EMAIL_QUEUE, ignore_result=True)
    except OperationalError:
        logger.exception("Email broker unavailable", extra={"to": to_email, "subject": subject})


def _signature() -> str:
    return f"\n\nThank you for choosing {settings.PROJECT_NAME}.\nSupport: {settings.SUPPORT_EMAIL} | {settings.SUPPORT_PHONE}"


def _order_lines(order: Order) -> str:
    lines = [
        f"  - {item.item_name} x{item.quantity}: {settings.CURRENCY} {item.total_price}"
        for item in order.items
    ]
    return "\n".join(lines)


def send_order_confirmation(order: Order, user: User, tracking_number: str) -> None:
    subject = f"Order Confirmation - {order.order_number}"
    body = (
        f"Dear {user.full_name},\n\n"
        f"Thank you for your order {order.order_number}.\n\n"
        f"Items:\n{_order_lines(order)}\n\n"
        f"Subtotal: {settings.CURRENCY} {order.subtotal_amount}\n"
        f"Shipping: {settings.CURRENCY} {order.shipping_amount}\n"
        f"Tax: {settings.CURRENCY} {order.tax_amount}\n"
        f"Total: {settings.CURRENCY} {order.total_amount}\n\n"
        f"Payment method: {order.payment_method.value.replace('_', ' ').title()}\n"
        f"Shipping to: {order.shipping_address}\n"
        f"Tracking number: {tracking_number}"
        f"{_signature()}"
    )
    _enqueue_email(user.email, subject, body)


def send_order_status_update(order: Order, user: User, note: str | None = None) -> None:
    subject = f"Order {order.order_number} is now {order.status.value.title()}"
    body = (
        f"Dear {user.full_name},\n\n"
        f"The status of your order {order.order_number} changed to {order.status.value.title()}."
    )
    if note:
        body += f"\n\nNote from our team: {note}"
    _enqueue_email(user.email, subject, body + _signature())


def send_password_reset(user: User, token: str) -> None:
    base = settings.FRONTEND_URL or settings.API_BASE_URL
    reset_url = f"{base.rstrip('/')}/reset-password?token={token}"
    subject = f"{settings.PROJECT_NAME} - Password reset"
    body = (
        f"Hello {user.first_name},\n\n"
        f"Use the link below to choose a new password. It expires in "
        f"{settings.PASSWORD_RESET_TOKEN_EXPIRE_MINUTES} minutes.\n{reset_url}\n\n"
        "If you did not request this, you can ignore this message."
    )
    _enqueue_email(user.email, subject, body)


def send_contact_acknowledgement(message: ContactMessage) -> None:
    subject = f"We received your message: {message.subject}"
    body = (
        f"Dear {message.name},\n\n"
        "Thank you for contacting us. Our team will get back to you within 24 hours."
        f"{_signature()}"
    )
    _enqueue_email(message.email, subject, body)


def send_contact_notification(message: ContactMessage) -> None:
    subject = f"New contact message: {message.subject}"
    body = (
        f"From: {message.name} <{message.email}>\n"
        f"Subject: {message.subject}\n\n"
        f"{message.message}"
    )
    _enqueue_email(settings.SUPPORT_EMAIL, subject, body)
