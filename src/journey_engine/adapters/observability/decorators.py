import time
from functools import wraps

from prometheus_client import Counter, Histogram

HTTP_LATENCY = Histogram(
    "journey_api_request_seconds",
    "Latência das views da API",
    ["view"],
)
HTTP_ERRORS = Counter(
    "journey_api_errors_total",
    "Exceções levantadas pelas views da API",
    ["view", "error"],
)


def track_http(view_name: str):
    """Mede latência e conta exceções de uma action de ViewSet."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(self, request, *args, **kwargs):
            start = time.perf_counter()
            try:
                return fn(self, request, *args, **kwargs)
            except Exception as exc:
                HTTP_ERRORS.labels(view_name, type(exc).__name__).inc()
                raise
            finally:
                HTTP_LATENCY.labels(view_name).observe(time.perf_counter() - start)
        return wrapper
    return decorator
