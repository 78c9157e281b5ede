from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, func, text
from sqlalchemy.orm import relationship

from app.db.base import Base


class Rental(Base):
    __tablename__ = "rentals"
    __table_args__ = (
        # At most one open rental (return_date IS NULL) per car.
        Index(
            "uq_rentals_open_car",
            "car_id",
            unique=True,
            sqlite_where=text("return_date IS NULL"),
            postgresql_where=text("return_date IS NULL"),
        ),
    )

    # id doubles as the creation sequence: the car's latest rental has the highest id.
    id = Column(Integer, primary_key=True, index=True)
    car_id = Column(Integer, ForeignKey("cars.id"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    rent_date = Column(DateTime(timezone=True), nullable=False)
    return_date = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    car = relationship("Car", backref="rentals")
    customer = relationship("User", backref="rentals")
