from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from app.core.config import settings
from app.core.logging import request_id_var
from app.models.explainability import AIExplainabilityRecord
from app.services.base import BaseService

LIMITATIONS = [
    "Rule-based analysis may not capture nuanced communication patterns",
    "Historical trend analysis requires multiple cycles of data",
    "Score thresholds are configurable and may need calibration per organization",
]

HUMAN_REVIEW_ACTIONS = {"generate_hr_flags"}


class ExplainabilityService(BaseService):
    """
    Append-only audit trail justifying every automated scoring or flagging decision.
    Records are never updated or deleted here.
    """

    def record(
        self,
        action: str,
        confidence: float,
        manager_id: Optional[int] = None,
        inputs: Optional[Dict[str, Any]] = None,
        result: Optional[Dict[str, Any]] = None,
    ) -> Optional[AIExplainabilityRecord]:
        summary = {
            "action": action,
            "manager_id": manager_id,
            **(inputs or {}),
            "result_summary": sorted(result.keys()) if result else [],
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        try:
            entry = AIExplainabilityRecord(
                company_id=self.org_id,
                manager_id=manager_id,
                insight_type=f"manager_capability_{action}",
                model_version=settings.analyzer.model_version,
                confidence_score=confidence,
                source_data_summary=summary,
                limitations=list(LIMITATIONS),
                human_review_required=action in HUMAN_REVIEW_ACTIONS,
                request_id=request_id_var.get() or None,
            )
            self.db.add(entry)
            self.commit()
            return entry
        except Exception as e:
            # The analysis already succeeded; a lost audit entry must not turn it into a failure
            self.log_error(f"FAILED TO WRITE EXPLAINABILITY RECORD for {action}: {e}", exc_info=True)
            return None

    def list_records(self, manager_id: Optional[int] = None, limit: int = 100) -> List[AIExplainabilityRecord]:
        query = self.db.query(AIExplainabilityRecord).filter(AIExplainabilityRecord.company_id == self.org_id)
        if manager_id is not None:
            query = query.filter(AIExplainabilityRecord.manager_id == manager_id)
        return query.order_by(AIExplainabilityRecord.id.desc()).limit(limit).all()
