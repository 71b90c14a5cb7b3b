"""
Rule-based quality scoring for manager review comments.

Scores are deterministic keyword heuristics, not a language model; every
analysis carries the same fixed confidence.
"""
import re
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from app.core.config import settings
from app.core.numbers import round_half_up
from app.core.scoring_rules import CapabilityRules, DEFAULT_RULES
from app.models.appraisal import AppraisalCycle, AppraisalParticipant, CommentType, GoalRatingSubmission
from app.models.manager_capability import ManagerCommentAnalysis
from app.schemas.manager_capability import (
    CommentAnalysis,
    CommentBatchAnalysis,
    CommentIssue,
    CommentQualityAverages,
    SubmissionCommentAnalysis,
)
from app.services.base import BaseService

SENTENCE_SPLIT = re.compile(r"[.!?]+")

# (issue type, description, improvement suggestion)
TOO_SHORT = (
    "too_short",
    "Comment is too brief to provide meaningful feedback",
    "Consider adding more specific details and examples",
)
NO_EVIDENCE = (
    "no_evidence",
    "Comment lacks reference to specific achievements or outcomes",
    "Include references to specific results or measurable outcomes",
)
NOT_DEVELOPMENTAL = (
    "not_developmental",
    "Comment does not include forward-looking guidance",
    "Add recommendations for future development or areas to focus on",
)
UNBALANCED = (
    "unbalanced",
    "Feedback may not include both strengths and development areas",
    "Ensure feedback includes both recognition of strengths and constructive development areas",
)


def _contains_any(text: str, keywords: Sequence[str]) -> bool:
    return any(keyword in text for keyword in keywords)


def _clamp(score: float) -> float:
    return min(100.0, max(0.0, score))


def depth_score(word_count: int, sentence_count: int, evidence: bool, examples: bool) -> float:
    score = min(40.0, word_count / 100 * 40)
    score += 20 if sentence_count > 2 else sentence_count * 10
    score += 20 if evidence else 0
    score += 20 if examples else 0
    return _clamp(score)


def specificity_score(comment: str, examples: bool, evidence: bool, rules: CapabilityRules = DEFAULT_RULES) -> float:
    is_generic = _contains_any(comment.lower(), rules.lexicon.generic_phrases)
    score = 20.0 if is_generic and len(comment) < rules.comments.generic_max_chars else 50.0
    score += 25 if examples else 0
    score += 25 if evidence else 0
    return _clamp(score)


def actionability_score(comment: str, forward_looking: bool, rules: CapabilityRules = DEFAULT_RULES) -> float:
    lowered = comment.lower()
    score = 60.0 if forward_looking else 20.0
    action_verb_count = sum(1 for verb in rules.lexicon.action_verbs if verb in lowered)
    score += min(40, action_verb_count * 15)
    return _clamp(score)


def analyze_comment(comment: str, rules: CapabilityRules = DEFAULT_RULES) -> CommentAnalysis:
    """Score a single free-text comment on depth, specificity and actionability."""
    lexicon = rules.lexicon
    scoring = rules.comments
    lowered = comment.lower()

    word_count = len(comment.split())
    sentence_count = len([s for s in SENTENCE_SPLIT.split(comment) if s.strip()])

    evidence_present = _contains_any(lowered, lexicon.evidence)
    examples_present = _contains_any(lowered, lexicon.examples)
    forward_looking = _contains_any(lowered, lexicon.forward_looking)
    balanced_feedback = _contains_any(lowered, lexicon.positive) and _contains_any(lowered, lexicon.development)

    length = min(100.0, word_count / 50 * 100)
    depth = depth_score(word_count, sentence_count, evidence_present, examples_present)
    specificity = specificity_score(comment, examples_present, evidence_present, rules)
    actionability = actionability_score(comment, forward_looking, rules)
    overall = _clamp(
        length * scoring.length_weight
        + depth * scoring.depth_weight
        + specificity * scoring.specificity_weight
        + actionability * scoring.actionability_weight
    )

    detected = []
    if word_count < scoring.too_short_words:
        detected.append(TOO_SHORT)
    if not evidence_present:
        detected.append(NO_EVIDENCE)
    if not forward_looking:
        detected.append(NOT_DEVELOPMENTAL)
    if not balanced_feedback and word_count > scoring.unbalanced_min_words:
        detected.append(UNBALANCED)

    return CommentAnalysis(
        word_count=word_count,
        sentence_count=sentence_count,
        depth_score=round_half_up(depth),
        specificity_score=round_half_up(specificity),
        actionability_score=round_half_up(actionability),
        overall_score=round_half_up(overall),
        evidence_present=evidence_present,
        examples_present=examples_present,
        forward_looking=forward_looking,
        balanced_feedback=balanced_feedback,
        issues=[CommentIssue(type=issue_type, description=description) for issue_type, description, _ in detected],
        suggestions=[suggestion for _, _, suggestion in detected],
        confidence=scoring.confidence,
    )


def average_scores(analyses: Sequence[CommentAnalysis]) -> Optional[CommentQualityAverages]:
    """Arithmetic mean of each sub-score across a batch; None when the batch is empty."""
    if not analyses:
        return None
    count = len(analyses)
    return CommentQualityAverages(
        avg_depth_score=sum(a.depth_score for a in analyses) / count,
        avg_specificity_score=sum(a.specificity_score for a in analyses) / count,
        avg_actionability_score=sum(a.actionability_score for a in analyses) / count,
        avg_overall_score=sum(a.overall_score for a in analyses) / count,
        avg_word_count=sum(a.word_count for a in analyses) / count,
        total_comments=count,
        comments_with_evidence=sum(1 for a in analyses if a.evidence_present),
        comments_with_examples=sum(1 for a in analyses if a.examples_present),
    )


class CommentQualityService(BaseService):
    """Analyzes one comment (optionally persisting it) or every comment a manager wrote."""

    def __init__(self, db, org_id: Optional[int] = None, rules: CapabilityRules = DEFAULT_RULES):
        super().__init__(db, org_id)
        self.rules = rules

    def analyze_single(
        self,
        manager_id: int,
        comment: str,
        participant_id: Optional[int] = None,
        comment_type: CommentType = CommentType.GENERAL,
    ) -> CommentAnalysis:
        analysis = analyze_comment(comment, self.rules)
        if participant_id is not None:
            self._store_analysis(manager_id, participant_id, comment, CommentType(comment_type).value, analysis)
        return analysis

    def analyze_batch(self, manager_id: int, cycle_id: Optional[int] = None) -> CommentBatchAnalysis:
        self.log_info(f"Analyzing comment quality for manager {manager_id} (cycle {cycle_id})")
        query = self.db.query(GoalRatingSubmission.id, GoalRatingSubmission.manager_comment).join(
            AppraisalParticipant, GoalRatingSubmission.participant_id == AppraisalParticipant.id
        ).join(
            AppraisalCycle, AppraisalParticipant.cycle_id == AppraisalCycle.id
        ).filter(
            AppraisalParticipant.manager_id == manager_id,
            AppraisalCycle.company_id == self.org_id,
            GoalRatingSubmission.manager_comment.isnot(None),
        )
        if cycle_id is not None:
            query = query.filter(AppraisalParticipant.cycle_id == cycle_id)

        analyses: List[SubmissionCommentAnalysis] = []
        for submission_id, text in query.order_by(GoalRatingSubmission.id).all():
            if not text or not text.strip():
                continue
            analysis = analyze_comment(text, self.rules)
            analyses.append(SubmissionCommentAnalysis(submission_id=submission_id, **analysis.model_dump()))

        return CommentBatchAnalysis(batch_analysis=analyses, average_scores=average_scores(analyses))

    def _store_analysis(
        self,
        manager_id: int,
        participant_id: int,
        comment: str,
        comment_type: str,
        analysis: CommentAnalysis,
    ) -> ManagerCommentAnalysis:
        record = self.db.query(ManagerCommentAnalysis).filter(
            ManagerCommentAnalysis.participant_id == participant_id,
            ManagerCommentAnalysis.comment_type == comment_type,
        ).first()
        if record is None:
            record = ManagerCommentAnalysis(participant_id=participant_id, comment_type=comment_type)
            self.db.add(record)

        record.manager_id = manager_id
        record.company_id = self.org_id
        record.comment_text = comment
        record.comment_length = len(comment)
        record.word_count = analysis.word_count
        record.depth_score = analysis.depth_score
        record.specificity_score = analysis.specificity_score
        record.actionability_score = analysis.actionability_score
        record.overall_quality_score = analysis.overall_score
        record.evidence_present = analysis.evidence_present
        record.examples_present = analysis.examples_present
        record.forward_looking = analysis.forward_looking
        record.balanced_feedback = analysis.balanced_feedback
        record.issues_detected = [issue.model_dump() for issue in analysis.issues]
        record.improvement_suggestions = list(analysis.suggestions)
        record.ai_model_used = settings.analyzer.model_version
        record.ai_confidence_score = analysis.confidence
        record.analyzed_at = datetime.now(timezone.utc).replace(tzinfo=None)

        self.commit()
        self.log_info(f"Stored comment analysis for participant {participant_id} ({comment_type})")
        return record
