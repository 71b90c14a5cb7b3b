# Models package
# Importing modules here ensures they are registered with SQLAlchemy Base
from . import company, appraisal, calibration, manager_capability, explainability

# Explicit class exports for cleaner imports
from .company import Company
from .appraisal import AppraisalCycle, AppraisalParticipant, GoalRatingSubmission, ParticipantStatus, CommentType
from .calibration import CalibrationSession, CalibrationAdjustment, ManagerCalibrationAlignment
from .manager_capability import ManagerCommentAnalysis, ManagerCapabilityMetric, ManagerHRFlag
from .explainability import AIExplainabilityRecord

__all__ = [
    "Company",
    "AppraisalCycle",
    "AppraisalParticipant",
    "GoalRatingSubmission",
    "ParticipantStatus",
    "CommentType",
    "CalibrationSession",
    "CalibrationAdjustment",
    "ManagerCalibrationAlignment",
    "ManagerCommentAnalysis",
    "ManagerCapabilityMetric",
    "ManagerHRFlag",
    "AIExplainabilityRecord",
]
