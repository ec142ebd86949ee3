"""Prometheus metrics for the notes client.

All metric objects are defined here so they can be imported from any module.
"""

from prometheus_client import Counter, Histogram

# ---------------------------------------------------------------------------
# HTTP request metrics
# ---------------------------------------------------------------------------

HTTP_REQUESTS = Counter(
    "notes_client_requests_total",
    "Total HTTP requests issued to the notes API",
    ["method", "outcome"],  # outcome: success, aborted or an ErrorKind value
)

HTTP_DURATION = Histogram(
    "notes_client_request_duration_seconds",
    "Notes API request duration in seconds",
    ["method"],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

# ---------------------------------------------------------------------------
# Session metrics
# ---------------------------------------------------------------------------

SESSION_EVENTS = Counter(
    "notes_client_session_events_total",
    "Session lifecycle events",
    ["event", "status"],  # login, register, refresh, userinfo, change_password, logout
)
