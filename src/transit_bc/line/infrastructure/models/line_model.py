from sqlalchemy import Column, String, Float, Integer, ForeignKey, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from core.base import Base


class LineModel(Base):
    """SQLAlchemy model for a transit line (route)."""

    __tablename__ = "transit_lines"

    id = Column(String(100), primary_key=True)
    name = Column(String(255), nullable=False)
    short_name = Column(String(50), nullable=True)
    mode = Column(String(20), nullable=False, default="bus")  # bus, train, ferry
    fare = Column(Float, nullable=True)  # Flat fare per boarding
    color = Column(String(9), nullable=True)  # Hex color with '#'

    stops = relationship(
        "LineStopModel",
        back_populates="line",
        order_by="LineStopModel.sequence",
        cascade="all, delete-orphan",
    )


class LineStopModel(Base):
    """SQLAlchemy model for the ordered stop sequence of a line."""

    __tablename__ = "transit_line_stops"

    id = Column(Integer, primary_key=True)
    line_id = Column(String(100), ForeignKey("transit_lines.id"), nullable=False)
    stop_id = Column(String(100), ForeignKey("transit_stops.id"), nullable=False)
    sequence = Column(Integer, nullable=False)

    line = relationship("LineModel", back_populates="stops")

    # Each position in a line holds exactly one stop
    __table_args__ = (
        UniqueConstraint('line_id', 'sequence', name='uq_line_stop_sequence'),
        Index('idx_line_sequence', 'line_id', 'sequence'),
    )
