"""
Appraisal records read by the capability engine.

These tables are owned by the appraisal workflow; the engine only reads them.
"""
from sqlalchemy import Column, Integer, String, Date, DateTime, Float, Text, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base
import enum


class ParticipantStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class CommentType(str, enum.Enum):
    GOAL = "goal"
    COMPETENCY = "competency"
    GENERAL = "general"


class AppraisalCycle(Base):
    __tablename__ = "appraisal_cycles"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    evaluation_deadline = Column(DateTime, nullable=True)  # Falls back to end_date
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    company = relationship("Company", back_populates="cycles")
    participants = relationship("AppraisalParticipant", back_populates="cycle", cascade="all, delete-orphan")


class AppraisalParticipant(Base):
    """One evaluator/employee pairing inside a cycle (a review assignment)."""
    __tablename__ = "appraisal_participants"

    id = Column(Integer, primary_key=True, index=True)
    cycle_id = Column(Integer, ForeignKey("appraisal_cycles.id"), nullable=False, index=True)
    employee_id = Column(Integer, nullable=False, index=True)
    manager_id = Column(Integer, nullable=True, index=True)
    status = Column(String, default=ParticipantStatus.PENDING.value)  # String for SQLite portability
    manager_submitted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    cycle = relationship("AppraisalCycle", back_populates="participants")
    rating_submissions = relationship("GoalRatingSubmission", back_populates="participant", cascade="all, delete-orphan")


class GoalRatingSubmission(Base):
    __tablename__ = "goal_rating_submissions"

    id = Column(Integer, primary_key=True, index=True)
    participant_id = Column(Integer, ForeignKey("appraisal_participants.id"), nullable=False, index=True)
    manager_score = Column(Float, nullable=True)
    manager_comment = Column(Text, nullable=True)
    comment_type = Column(String, default=CommentType.GOAL.value)
    submitted_at = Column(DateTime(timezone=True), server_default=func.now())

    participant = relationship("AppraisalParticipant", back_populates="rating_submissions")
