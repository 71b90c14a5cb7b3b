"""
Run HR flag generation for every manager in a company.

    python -m scripts.run_manager_batch --company-id 1 --cycle-id 3
"""
import argparse
import json
import sys

from app.core.config import settings
from app.core.logging import setup_logging
from app.database import SessionLocal, init_db
from app.schemas.analyzer import BatchAnalyzeRequest
from app.services.capability_analyzer import CapabilityAnalyzerService


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Batch manager capability analysis")
    parser.add_argument("--company-id", type=int, required=True)
    parser.add_argument("--cycle-id", type=int, default=None)
    args = parser.parse_args(argv)

    setup_logging(settings.log_level, service=settings.app_name, environment=settings.environment)
    init_db()

    db = SessionLocal()
    try:
        request = BatchAnalyzeRequest(
            action="batch_analyze_managers",
            company_id=args.company_id,
            cycle_id=args.cycle_id,
        )
        response = CapabilityAnalyzerService(db, args.company_id).run(request)
    finally:
        db.close()

    print(json.dumps(response.to_dict(), indent=2))
    return 0 if response.success else 1


if __name__ == "__main__":
    sys.exit(main())
