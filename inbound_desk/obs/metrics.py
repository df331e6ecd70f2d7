# inbound_desk/obs/metrics.py
import time

from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware

http_requests_total = Counter("http_requests_total", "HTTP requests", ["method", "path", "code"])
http_request_duration = Histogram(
    "http_request_duration_seconds", "HTTP request duration seconds", ["method", "path"]
)

# outbound calls to the warehouse data API
data_api_calls_total = Counter(
    "data_api_calls_total", "Data API calls", ["op", "outcome"]
)

# receiving workflow
receive_submissions_total = Counter(
    "receive_submissions_total", "Receive modal submissions", ["mode", "outcome"]
)
status_transitions_total = Counter(
    "status_transitions_total", "Inbound order status transitions", ["to_status", "kind"]
)
putaway_confirm_total = Counter("putaway_confirm_total", "Put-away confirmations", ["outcome"])

# scanners (audit trail volume, success vs error)
scan_events_total = Counter("scan_events_total", "Scan events logged", ["stage", "result"])


class PrometheusMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - start
        http_requests_total.labels(
            request.method, request.url.path, str(response.status_code)
        ).inc()
        http_request_duration.labels(request.method, request.url.path).observe(elapsed)
        return response
