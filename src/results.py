"""
Tagged results for bridge operations
Separates "found nothing" from "could not be attempted" from "transport fault"
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class ResultStatus(Enum):
    """Outcome category of a bridge operation"""
    OK = "ok"
    NOT_FOUND = "not_found"
    PRECONDITION_FAILED = "precondition_failed"
    TRANSPORT_FAULT = "transport_fault"


@dataclass
class OperationResult:
    """Result of one bridge operation"""
    status: ResultStatus
    value: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == ResultStatus.OK

    @classmethod
    def success(cls, value: Any) -> "OperationResult":
        return cls(ResultStatus.OK, value)

    @classmethod
    def not_found(cls, error: Optional[str] = None) -> "OperationResult":
        return cls(ResultStatus.NOT_FOUND, None, error)

    @classmethod
    def precondition_failed(cls, error: str) -> "OperationResult":
        return cls(ResultStatus.PRECONDITION_FAILED, None, error)

    @classmethod
    def transport_fault(cls, error: str) -> "OperationResult":
        return cls(ResultStatus.TRANSPORT_FAULT, None, error)
