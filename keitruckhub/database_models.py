from sqlalchemy import Column, Integer, String, TEXT

from .database import Base


class VehicleModelRecord(Base):
    __tablename__ = "vehicle_models"
    # Human-readable key ("suzuki", "hijet", ...); the primary key enforces uniqueness
    id = Column(String(100), primary_key=True)
    name = Column(String(255), nullable=False)
    year = Column(Integer, nullable=False)
    description = Column(TEXT, nullable=False, default="")
    image_url = Column(String(500), nullable=False, default="")
