from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class RentalStatusPolicy:
    """Defines when a rental is "open" (the vehicle is out) or "closed".

    Semantics (intentionally centralized):
    - A rental is open while return_date is None
    - A rental is closed once return_date is set; it never reopens

    The rule engine and the repositories both go through this policy so the
    Python check and the SQL filter cannot drift apart.
    """

    def is_open(self, *, return_date: datetime | None) -> bool:
        return return_date is None

    def is_closed(self, *, return_date: datetime | None) -> bool:
        return return_date is not None

    def sqlalchemy_open_predicate(self, *, return_col):
        """Build a SQLAlchemy predicate matching open rentals."""
        return return_col.is_(None)

    def sqlalchemy_closed_predicate(self, *, return_col):
        """Build a SQLAlchemy predicate matching closed rentals."""
        return return_col.isnot(None)


RENTAL_STATUS = RentalStatusPolicy()
