from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, JSON, ForeignKey
from sqlalchemy.sql import func
from app.database import Base

class AIExplainabilityRecord(Base):
    """Append-only audit trail of every analyzer invocation."""
    __tablename__ = "ai_explainability_records"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    manager_id = Column(Integer, nullable=True, index=True)
    insight_type = Column(String, nullable=False, index=True)
    model_version = Column(String, nullable=False)
    confidence_score = Column(Float, nullable=False)
    source_data_summary = Column(JSON)
    limitations = Column(JSON)
    human_review_required = Column(Boolean, default=False, nullable=False)
    request_id = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
