"""
Result envelope returned by every service operation.

Services never raise into the transport layer; they report success or
failure through an ``OperationResult``.  Routers branch only on
``successful`` and map the rest onto the HTTP response.
"""
from typing import Any

from pydantic import BaseModel

BAD_REQUEST = "BAD REQUEST"
NOT_FOUND = "NOT FOUND"
SYSTEM_ERROR = "SYSTEM ERROR"


class OperationResult(BaseModel):
    status_code: int
    error_title: str | None = None
    error_message: str | None = None
    result: Any = None

    @property
    def successful(self) -> bool:
        return self.error_title is None and self.error_message is None

    @classmethod
    def ok(cls, status_code: int = 200, result: Any = None) -> "OperationResult":
        return cls(status_code=status_code, result=result)

    @classmethod
    def bad_request(cls, message: str) -> "OperationResult":
        return cls(status_code=400, error_title=BAD_REQUEST, error_message=message)

    @classmethod
    def not_found(cls, message: str) -> "OperationResult":
        return cls(status_code=404, error_title=NOT_FOUND, error_message=message)

    @classmethod
    def system_error(cls, message: str) -> "OperationResult":
        return cls(status_code=500, error_title=SYSTEM_ERROR, error_message=message)
