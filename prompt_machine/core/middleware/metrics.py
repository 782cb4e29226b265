from starlette.middleware.base import BaseHTTPMiddleware

from prompt_machine.core.metrics import http_requests_total, normalize_path


class MetricsMiddleware(BaseHTTPMiddleware):
    """Record HTTP request counts (Prometheus-style), keyed by normalized path."""

    async def dispatch(self, request, call_next):
        response = await call_next(request)
        _record_request_metric(request, response)
        return response


def _record_request_metric(request, response) -> None:
    try:
        http_requests_total.inc(labels={
            "method": request.method.upper(),
            "path": normalize_path(request.url.path),
            "status": str(getattr(response, "status_code", None) or 0),
        })
    except Exception:
        # Do not fail the request on metrics errors
        return
