from prometheus_client import Counter, Histogram

# Low-cardinality labels only: operation name and outcome, never bucket or key
OPERATIONS = Counter(
    "storage_operations_total",
    "Total object storage calls",
    ["operation", "outcome"],
)

LATENCY = Histogram(
    "storage_operation_duration_seconds",
    "Object storage call latency in seconds",
    ["operation"],
)
