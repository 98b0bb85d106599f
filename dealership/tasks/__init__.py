"""Celery task definitions package."""

from dealership.tasks import email  # noqa: F401

__all__ = ["email"]
