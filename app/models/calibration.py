from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base


class CalibrationSession(Base):
    __tablename__ = "calibration_sessions"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    cycle_id = Column(Integer, ForeignKey("appraisal_cycles.id"), nullable=True)
    name = Column(String, nullable=False)
    held_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    company = relationship("Company", back_populates="calibration_sessions")
    adjustments = relationship("CalibrationAdjustment", back_populates="session", cascade="all, delete-orphan")


class CalibrationAdjustment(Base):
    """Produced by the external calibration process; read-only to the engine."""
    __tablename__ = "calibration_adjustments"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(Integer, ForeignKey("calibration_sessions.id"), nullable=False, index=True)
    employee_id = Column(Integer, nullable=False, index=True)
    original_score = Column(Float, nullable=False)
    adjusted_score = Column(Float, nullable=True)  # NULL means the score was kept
    reason = Column(String, nullable=True)

    session = relationship("CalibrationSession", back_populates="adjustments")


class ManagerCalibrationAlignment(Base):
    __tablename__ = "manager_calibration_alignment"
    __table_args__ = (
        UniqueConstraint("manager_id", "session_id", name="uq_alignment_manager_session"),
    )

    id = Column(Integer, primary_key=True, index=True)
    manager_id = Column(Integer, nullable=False, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    session_id = Column(Integer, ForeignKey("calibration_sessions.id"), nullable=False)
    employees_reviewed = Column(Integer, default=0)
    scores_unchanged = Column(Integer, default=0)
    scores_increased = Column(Integer, default=0)
    scores_decreased = Column(Integer, default=0)
    avg_adjustment = Column(Float, default=0)
    max_adjustment = Column(Float, default=0)
    adjustment_rate = Column(Float, default=0)
    alignment_score = Column(Float, nullable=False)
    drift_pattern = Column(String, nullable=False)  # aligned, variable, consistently_low, consistently_high
    training_recommended = Column(Boolean, default=False)
    calculated_at = Column(DateTime, nullable=False)
