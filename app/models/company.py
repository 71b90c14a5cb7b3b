from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base

class Company(Base):
    __tablename__ = "companies"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, index=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    cycles = relationship("AppraisalCycle", back_populates="company", cascade="all, delete-orphan")
    calibration_sessions = relationship("CalibrationSession", back_populates="company", cascade="all, delete-orphan")
