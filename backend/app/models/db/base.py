"""Re-export Base for ORM models."""

from app.database import Base

__all__ = ["Base"]
