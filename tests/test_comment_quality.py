import pytest

from app.models.appraisal import CommentType
from app.models.manager_capability import ManagerCommentAnalysis
from app.services.comment_quality import CommentQualityService, analyze_comment, average_scores

RICH_COMMENT = (
    "Delivered the payments project on time and reduced errors by 20%. "
    "For example, the Q3 rollout went smoothly. "
    "Going forward, focus on mentoring and develop stronger planning habits. "
    "Great work overall, with an opportunity to improve documentation."
)

def _issue_types(analysis):
    return [issue.type for issue in analysis.issues]

def test_short_praise_is_flagged():
    """Test a four-word compliment scores low and lists the expected issues."""
    analysis = analyze_comment("Great job this quarter.")
    assert analysis.word_count == 4
    assert analysis.sentence_count == 1
    assert analysis.depth_score == pytest.approx(11.6)
    assert analysis.specificity_score == 50
    assert analysis.actionability_score == 20
    assert analysis.overall_score == pytest.approx(24.68)
    assert _issue_types(analysis) == ["too_short", "no_evidence", "not_developmental"]
    assert len(analysis.suggestions) == 3
    assert analysis.confidence == 85

def test_generic_phrase_lowers_specificity():
    analysis = analyze_comment("Good job.")
    assert analysis.specificity_score == 20
    assert analysis.overall_score == pytest.approx(14.84)

def test_rich_comment_has_no_issues():
    """Test a specific, balanced, forward-looking comment."""
    analysis = analyze_comment(RICH_COMMENT)
    assert analysis.word_count == 37
    assert analysis.sentence_count == 4
    assert analysis.evidence_present
    assert analysis.examples_present
    assert analysis.forward_looking
    assert analysis.balanced_feedback
    assert analysis.issues == []
    assert analysis.specificity_score == 100
    assert analysis.actionability_score == 100
    assert analysis.overall_score == pytest.approx(88.54)

def test_long_one_sided_comment_is_unbalanced():
    comment = (
        "The quarterly report was excellent and the team appreciated the clarity of the charts "
        "and the summary that was shared with leadership at the end."
    )
    analysis = analyze_comment(comment)
    assert analysis.word_count == 25
    assert "unbalanced" in _issue_types(analysis)

def test_empty_comment_scores_zero_length():
    analysis = analyze_comment("")
    assert analysis.word_count == 0
    assert analysis.sentence_count == 0
    assert "too_short" in _issue_types(analysis)

def test_average_scores_of_empty_batch_is_none():
    assert average_scores([]) is None

def test_average_scores():
    analyses = [analyze_comment("Good job."), analyze_comment(RICH_COMMENT)]
    averages = average_scores(analyses)
    assert averages.total_comments == 2
    assert averages.avg_word_count == pytest.approx(19.5)
    assert averages.avg_overall_score == pytest.approx((14.84 + 88.54) / 2)
    assert averages.comments_with_evidence == 1
    assert averages.comments_with_examples == 1

def test_single_analysis_upserts_by_participant_and_type(db_session, company, make_cycle, add_review):
    """Test re-analyzing the same participant comment updates one stored row."""
    cycle = make_cycle()
    participant = add_review(cycle, manager_id=1, employee_id=10)
    service = CommentQualityService(db_session, company.id)

    service.analyze_single(1, "Good job.", participant_id=participant.id, comment_type=CommentType.GOAL)
    service.analyze_single(1, RICH_COMMENT, participant_id=participant.id, comment_type=CommentType.GOAL)

    rows = db_session.query(ManagerCommentAnalysis).filter(
        ManagerCommentAnalysis.participant_id == participant.id
    ).all()
    assert len(rows) == 1
    assert rows[0].comment_text == RICH_COMMENT
    assert rows[0].overall_quality_score == pytest.approx(88.54)
    assert rows[0].issues_detected == []
    assert rows[0].ai_model_used == "rule-based-v1"

def test_single_analysis_keeps_types_separate(db_session, company, make_cycle, add_review):
    cycle = make_cycle()
    participant = add_review(cycle, manager_id=1, employee_id=10)
    service = CommentQualityService(db_session, company.id)

    service.analyze_single(1, "Good job.", participant_id=participant.id, comment_type=CommentType.GOAL)
    service.analyze_single(1, "Good job.", participant_id=participant.id, comment_type=CommentType.COMPETENCY)

    assert db_session.query(ManagerCommentAnalysis).count() == 2

def test_single_analysis_without_participant_is_not_stored(db_session, company):
    CommentQualityService(db_session, company.id).analyze_single(1, "Good job.")
    assert db_session.query(ManagerCommentAnalysis).count() == 0

def test_batch_skips_blank_comments_and_other_cycles(db_session, company, make_cycle, add_review):
    """Test the batch reads only non-empty comments from the requested cycle."""
    cycle = make_cycle()
    other_cycle = make_cycle(name="2023 Annual")
    add_review(cycle, manager_id=1, employee_id=10, score=3, comment="Good job.")
    add_review(cycle, manager_id=1, employee_id=11, score=4, comment=RICH_COMMENT)
    add_review(cycle, manager_id=1, employee_id=12, score=4, comment="   ")
    add_review(cycle, manager_id=1, employee_id=13, score=4)
    add_review(other_cycle, manager_id=1, employee_id=14, score=2, comment="Great job this quarter.")

    result = CommentQualityService(db_session, company.id).analyze_batch(1, cycle.id)
    assert len(result.batch_analysis) == 2
    assert result.average_scores.total_comments == 2
    assert [a.word_count for a in result.batch_analysis] == [2, 37]

def test_batch_with_no_comments(db_session, company, make_cycle):
    result = CommentQualityService(db_session, company.id).analyze_batch(1, make_cycle().id)
    assert result.batch_analysis == []
    assert result.average_scores is None

def test_keyword_stuffed_comment_stays_within_bounds():
    """Test repeating every scoring keyword cannot push a score past 100."""
    stuffed = (
        "Should could recommend suggest consider focus develop improve achieved "
        "for example going forward great opportunity. "
    ) * 20
    analysis = analyze_comment(stuffed)
    assert analysis.word_count == 300
    for score in (analysis.depth_score, analysis.specificity_score,
                  analysis.actionability_score, analysis.overall_score):
        assert 0 <= score <= 100
