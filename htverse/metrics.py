# htverse/metrics.py
from prometheus_client import Counter, Histogram, CollectorRegistry

# Dedicated registry to avoid duplicate-collector errors on reload / multiple imports
REGISTRY = CollectorRegistry(auto_describe=True)

REGISTRATIONS = Counter(
    "hackathon_registrations_total",
    "Register/unregister attempts by outcome",
    ["action", "outcome"],
    registry=REGISTRY,
)

STATUS_REFRESHES = Counter(
    "hackathon_status_refresh_total",
    "Best-effort write-backs of derived hackathon status",
    ["outcome"],
    registry=REGISTRY,
)

STORE_LATENCY = Histogram(
    "store_operation_seconds",
    "Latency of document store operations in seconds",
    ["operation"],
    registry=REGISTRY,
)
