import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

TRACE_HEADER = "X-Trace-ID"


def resolve_trace_id(request: Request) -> str:
    incoming = (request.headers.get(TRACE_HEADER) or "").strip()
    return incoming or str(uuid.uuid4())


class TraceIdMiddleware(BaseHTTPMiddleware):
    """Tag every request with a trace id that error bodies and logs repeat."""

    async def dispatch(self, request: Request, call_next):
        trace_id = resolve_trace_id(request)
        request.state.trace_id = trace_id
        response: Response = await call_next(request)
        response.headers[TRACE_HEADER] = trace_id
        return response
