from typing import Any, Dict, Optional

class AppException(Exception):
    def __init__(
        self,
        message: str,
        status_code: int = 400,
        error_code: str = "BUSINESS_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details
        super().__init__(self.message)

class DataStoreError(AppException):
    """Raised when the record store cannot be read or written."""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=503,
            error_code="DATA_STORE_ERROR",
            details=details
        )

class RecordNotFoundError(AppException):
    def __init__(self, entity: str, entity_id: int):
        super().__init__(
            message=f"{entity} {entity_id} not found",
            status_code=404,
            error_code="NOT_FOUND",
            details={"entity": entity, "id": entity_id}
        )

class FlagAlreadyResolvedError(AppException):
    def __init__(self, flag_id: int):
        super().__init__(
            message=f"HR flag {flag_id} is already resolved",
            status_code=400,
            error_code="FLAG_ALREADY_RESOLVED"
        )
