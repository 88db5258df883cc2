from sqlalchemy import Column, String, Float
from core.base import Base


class StopModel(Base):
    """SQLAlchemy model for a transit stop."""

    __tablename__ = "transit_stops"

    id = Column(String(100), primary_key=True)
    name = Column(String(255), nullable=False)
    lat = Column(Float, nullable=False)
    lon = Column(Float, nullable=False)
    code = Column(String(50), nullable=True)
