from datetime import date, datetime, timedelta

from app.database import SessionLocal, init_db
from app.models.appraisal import AppraisalCycle, AppraisalParticipant, GoalRatingSubmission, ParticipantStatus
from app.models.calibration import CalibrationAdjustment, CalibrationSession
from app.models.company import Company

DEMO_COMPANY = "Demo Company"

# manager_id -> list of (employee_id, score, comment, days submitted before deadline)
DEMO_REVIEWS = {
    101: [
        (1001, 4.0, "Delivered the billing migration project ahead of plan and reduced incidents by 30%. "
                    "Going forward the focus should be on mentoring the two new engineers.", 5),
        (1002, 3.0, "Met most goals this cycle. For example, completed the API audit. "
                    "Consider taking ownership of on-call improvements next quarter.", 4),
        (1003, 2.0, "Struggled with deadlines during the Q3 release. Next cycle the plan is to work on "
                    "breaking down tasks and raising blockers earlier.", 6),
    ],
    102: [
        (1004, 5.0, "Great job.", -3),
        (1005, 5.0, "Well done, keep it up.", -2),
        (1006, 5.0, "Good job this quarter.", 1),
    ],
}

# employee_id -> calibrated score (None keeps the original)
DEMO_CALIBRATION = {1001: None, 1002: None, 1003: None, 1004: 4.0, 1005: 4.0, 1006: None}


def seed():
    init_db()
    db = SessionLocal()
    try:
        company = db.query(Company).filter(Company.name == DEMO_COMPANY).first()
        if company:
            print(f"{DEMO_COMPANY} already exists (id={company.id}); nothing to do")
            return

        company = Company(name=DEMO_COMPANY)
        db.add(company)
        db.flush()

        deadline = datetime(2024, 12, 20, 17, 0)
        cycle = AppraisalCycle(
            company_id=company.id,
            name="H2 2024",
            start_date=date(2024, 7, 1),
            end_date=date(2024, 12, 31),
            evaluation_deadline=deadline,
        )
        db.add(cycle)
        db.flush()

        session = CalibrationSession(company_id=company.id, cycle_id=cycle.id, name="H2 2024 Calibration")
        db.add(session)
        db.flush()

        for manager_id, reviews in DEMO_REVIEWS.items():
            for employee_id, score, comment, days_early in reviews:
                participant = AppraisalParticipant(
                    cycle_id=cycle.id,
                    employee_id=employee_id,
                    manager_id=manager_id,
                    status=ParticipantStatus.COMPLETED.value,
                    manager_submitted_at=deadline - timedelta(days=days_early),
                )
                db.add(participant)
                db.flush()
                db.add(GoalRatingSubmission(
                    participant_id=participant.id,
                    manager_score=score,
                    manager_comment=comment,
                ))
                db.add(CalibrationAdjustment(
                    session_id=session.id,
                    employee_id=employee_id,
                    original_score=score,
                    adjusted_score=DEMO_CALIBRATION[employee_id],
                ))

        db.commit()
        print(f"Seeded {DEMO_COMPANY} (id={company.id}), cycle {cycle.id}, calibration session {session.id}")
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed()
