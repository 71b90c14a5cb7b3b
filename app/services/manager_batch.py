from typing import List, Optional

from app.core.scoring_rules import CapabilityRules, DEFAULT_RULES
from app.models.appraisal import AppraisalCycle, AppraisalParticipant
from app.schemas.manager_capability import BatchAnalysisReport, BatchManagerResult
from app.services.base import BaseService
from app.services.hr_flags import HRFlagService


class ManagerBatchService(BaseService):
    """
    Runs HR flag generation for every manager in a company.
    A failing manager is rolled back and reported; the rest of the batch continues.
    """

    def __init__(self, db, org_id: Optional[int] = None, rules: CapabilityRules = DEFAULT_RULES):
        super().__init__(db, org_id)
        self.rules = rules
        self.flags = HRFlagService(db, org_id, rules)

    def managers(self, cycle_id: Optional[int] = None) -> List[int]:
        query = self.db.query(AppraisalParticipant.manager_id).join(
            AppraisalCycle, AppraisalParticipant.cycle_id == AppraisalCycle.id
        ).filter(
            AppraisalCycle.company_id == self.org_id,
            AppraisalParticipant.manager_id.isnot(None),
        )
        if cycle_id is not None:
            query = query.filter(AppraisalParticipant.cycle_id == cycle_id)
        return [manager_id for (manager_id,) in query.distinct().order_by(AppraisalParticipant.manager_id).all()]

    def run(self, cycle_id: Optional[int] = None) -> BatchAnalysisReport:
        manager_ids = self.managers(cycle_id)
        self.log_info(f"Batch analyzing {len(manager_ids)} managers for company {self.org_id} (cycle {cycle_id})")

        results: List[BatchManagerResult] = []
        for manager_id in manager_ids:
            try:
                report = self.flags.generate(manager_id, cycle_id)
            except Exception as e:
                self.db.rollback()
                self.log_error(f"Error analyzing manager {manager_id}: {e}", exc_info=True)
                results.append(BatchManagerResult(manager_id=manager_id, success=False, error=str(e)))
                continue
            results.append(BatchManagerResult(
                manager_id=manager_id,
                success=True,
                flags=report.flags,
                new_flags_created=report.new_flags_created,
                scorecard=report.scorecard,
            ))

        analyzed = sum(1 for r in results if r.success)
        self.log_info(f"Batch complete for company {self.org_id}: {analyzed} analyzed, {len(results) - analyzed} failed")
        return BatchAnalysisReport(
            total_managers=len(manager_ids),
            analyzed=analyzed,
            failed=len(results) - analyzed,
            results=results,
        )
