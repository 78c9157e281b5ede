from app.db.models.role import Role
from app.db.models.user import User
from app.db.models.car import Car
from app.db.models.rental import Rental

__all__ = ["Role", "User", "Car", "Rental"]
