# inbound_desk/api/problem.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, TypedDict

from fastapi import HTTPException


class ProblemDetail(TypedDict, total=False):
    type: str  # validation | state
    path: str
    reason: str


@dataclass(frozen=True)
class Problem:
    error_code: str
    message: str
    http_status: int
    context: Optional[Dict[str, Any]] = None
    details: Optional[List[ProblemDetail]] = None
    trace_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "error_code": self.error_code,
            "message": self.message,
            "http_status": int(self.http_status),
        }
        if self.context:
            out["context"] = self.context
        if self.details:
            out["details"] = self.details
        if self.trace_id:
            out["trace_id"] = self.trace_id
        return out


def make_problem(
    *,
    status_code: int,
    error_code: str,
    message: str,
    context: Optional[Dict[str, Any]] = None,
    details: Optional[Sequence[ProblemDetail]] = None,
    trace_id: Optional[str] = None,
) -> Dict[str, Any]:
    p = Problem(
        error_code=str(error_code),
        message=str(message),
        http_status=int(status_code),
        context=context,
        details=list(details) if details else None,
        trace_id=trace_id,
    )
    return p.to_dict()


def raise_problem(*, status_code: int, error_code: str, message: str, context: Optional[Dict[str, Any]] = None) -> None:
    raise HTTPException(
        status_code=int(status_code),
        detail=make_problem(status_code=int(status_code), error_code=error_code, message=message, context=context),
    )


def raise_404(error_code: str, message: str, *, context: Optional[Dict[str, Any]] = None) -> None:
    raise_problem(status_code=404, error_code=error_code, message=message, context=context)


def raise_422(error_code: str, message: str) -> None:
    raise_problem(status_code=422, error_code=error_code, message=message)


def raise_502(error_code: str, message: str, *, context: Optional[Dict[str, Any]] = None) -> None:
    raise_problem(status_code=502, error_code=error_code, message=message, context=context)
