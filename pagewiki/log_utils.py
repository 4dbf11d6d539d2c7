import json
import logging
import time
import uuid
from contextvars import ContextVar
from starlette.requests import Request
from starlette.responses import Response

_request_id: ContextVar[str] = ContextVar("pagewiki_request_id", default="-")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(req_id)s] %(message)s"


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.req_id = _request_id.get()
        return True


def setup_logging():
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, RequestIdFilter) for f in handler.filters):
            handler.addFilter(RequestIdFilter())


async def inject_request_id(request: Request, call_next):
    req_id = request.headers.get("X-Request-Id") or str(uuid.uuid4())
    token = _request_id.set(req_id)
    request.state.req_id = req_id
    started = time.perf_counter()
    try:
        response: Response = await call_next(request)
    finally:
        _request_id.reset(token)
    response.headers["X-Request-Id"] = req_id
    logging.getLogger("pagewiki.access").info(json.dumps({
        "msg": "request",
        "req_id": req_id,
        "method": request.method,
        "path": request.url.path,
        "status": response.status_code,
        "duration_ms": round((time.perf_counter() - started) * 1000, 1),
    }))
    return response
