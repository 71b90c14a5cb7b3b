import logging
from typing import Optional
from sqlalchemy.orm import Session


class BaseService:
    """
    Shared plumbing for domain services: the DB session, the company scope
    and a module-named logger.
    """

    def __init__(self, db: Session, org_id: Optional[int] = None):
        self.db = db
        self.org_id = org_id
        self._logger = logging.getLogger(self.__class__.__module__)

    def log_info(self, message: str, **extra):
        self._logger.info(message, extra={"company_id": self.org_id, **extra})

    def log_warning(self, message: str, **extra):
        self._logger.warning(message, extra={"company_id": self.org_id, **extra})

    def log_error(self, message: str, exc_info: bool = False, **extra):
        self._logger.error(message, exc_info=exc_info, extra={"company_id": self.org_id, **extra})

    def commit(self):
        """Commit the current unit of work, rolling back on failure."""
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
