"""Database utilities and models."""

from aligned.db.base import Base
from aligned.db import models  # noqa: F401  (imported for side effects)

__all__ = ["Base"]
