# inbound_desk/http_problem_handlers.py
from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, List

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from inbound_desk.api.problem import make_problem
from inbound_desk.clients.base import DataApiError
from inbound_desk.services.workflow_errors import RecordNotFound, WorkflowError

logger = logging.getLogger("inbound_desk")


def _new_trace_id() -> str:
    return f"t_{uuid.uuid4().hex[:12]}"


def _ctx(req: Request) -> Dict[str, Any]:
    return {"path": getattr(req.url, "path", ""), "method": req.method}


def _problem_from_http_exc(req: Request, exc: HTTPException) -> Dict[str, Any]:
    """
    HTTPException.detail → Problem.

    - already a Problem: fill in http_status / trace_id / context
    - list: validation details
    - anything else: a plain state error carrying str(detail)
    """
    status_code = int(exc.status_code)
    trace_id = _new_trace_id()
    ctx = _ctx(req)
    d = exc.detail

    if isinstance(d, dict) and "error_code" in d and "message" in d:
        out = dict(d)
        out.setdefault("http_status", status_code)
        out.setdefault("trace_id", trace_id)
        if isinstance(out.get("context"), dict):
            merged = dict(ctx)
            merged.update(out["context"])
            out["context"] = merged
        else:
            out["context"] = ctx
        return out

    if isinstance(d, list):
        details: List[Dict[str, Any]] = []
        for i, e in enumerate(d):
            reason = str(e.get("msg") or e.get("type") or "invalid") if isinstance(e, dict) else str(e)
            details.append({"type": "validation", "path": f"validation[{i}]", "reason": reason})
        return make_problem(
            status_code=status_code,
            error_code="request_validation_error",
            message="Invalid request",
            context=ctx,
            details=details,
            trace_id=trace_id,
        )

    msg = str(d) if d is not None else "Request rejected"
    return make_problem(
        status_code=status_code,
        error_code="http_error",
        message=msg,
        context=ctx,
        details=[{"type": "state", "reason": msg}],
        trace_id=trace_id,
    )


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(Exception)
    async def _unhandled_exc(req: Request, exc: Exception):
        trace_id = _new_trace_id()
        logger.exception("UNHANDLED_EXC[%s]: %s", trace_id, exc)
        content = make_problem(
            status_code=500,
            error_code="internal_error",
            message="Internal error, please retry",
            context=_ctx(req),
            trace_id=trace_id,
        )
        return JSONResponse(status_code=500, content=content)

    @app.exception_handler(RequestValidationError)
    async def _validation_exc(req: Request, exc: RequestValidationError):
        details: List[Dict[str, Any]] = []
        for i, e in enumerate(exc.errors()):
            if not isinstance(e, dict):
                continue
            loc = ".".join(str(p) for p in e.get("loc") or ()) or f"validation[{i}]"
            details.append({"type": "validation", "path": loc, "reason": str(e.get("msg") or e.get("type") or "invalid")})
        content = make_problem(
            status_code=422,
            error_code="request_validation_error",
            message="Invalid request",
            context=_ctx(req),
            details=details,
            trace_id=_new_trace_id(),
        )
        return JSONResponse(status_code=422, content=content)

    @app.exception_handler(HTTPException)
    async def _http_exc(req: Request, exc: HTTPException):
        content = _problem_from_http_exc(req, exc)
        return JSONResponse(status_code=int(exc.status_code), content=content)

    @app.exception_handler(WorkflowError)
    async def _workflow_exc(req: Request, exc: WorkflowError):
        ctx = _ctx(req)
        ctx.update(exc.context)
        content = make_problem(
            status_code=exc.http_status,
            error_code=exc.code,
            message=exc.message,
            context=ctx,
            trace_id=_new_trace_id(),
        )
        return JSONResponse(status_code=exc.http_status, content=content)

    @app.exception_handler(DataApiError)
    async def _data_api_exc(req: Request, exc: DataApiError):
        trace_id = _new_trace_id()
        logger.error("DATA_API_ERROR[%s] %s: %s", trace_id, exc.op, exc.message)
        ctx = _ctx(req)
        ctx.update({"op": exc.op, "upstream_status": exc.status_code})
        content = make_problem(
            status_code=502,
            error_code="data_api_error",
            message=exc.message,
            context=ctx,
            trace_id=trace_id,
        )
        return JSONResponse(status_code=502, content=content)

    @app.exception_handler(RecordNotFound)
    async def _not_found_exc(req: Request, exc: RecordNotFound):
        msg = str(exc.args[0]) if exc.args else "Not found"
        content = make_problem(
            status_code=404,
            error_code="not_found",
            message=msg,
            context=_ctx(req),
            trace_id=_new_trace_id(),
        )
        return JSONResponse(status_code=404, content=content)
