"""SQLAlchemy 2.0 ORM models for the opportunity aggregator.

Every model must be imported at module level to register with the
``DeclarativeBase`` metadata.
"""

from app.models.db.base import Base  # noqa: F401
from app.models.db.opportunity import Opportunity  # noqa: F401
