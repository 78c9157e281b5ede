from sqlalchemy import Column, Integer, Numeric, String

from app.db.base import Base


class Car(Base):
    __tablename__ = "cars"

    id = Column(Integer, primary_key=True, index=True)
    brand = Column(String(100), nullable=False)
    model = Column(String(100), nullable=False)
    model_year = Column(Integer, nullable=False)
    daily_price = Column(Numeric(10, 2), nullable=False)
    description = Column(String(500), nullable=True)
