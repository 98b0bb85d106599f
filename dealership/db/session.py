# dealership/db/session.py
"""Declarative base shared by every ORM model.

The application talks to the database through ``session_async``; the sync
driver is only used by Alembic and the test fixtures.
"""
from sqlalchemy.orm import declarative_base

Base = declarative_base()
