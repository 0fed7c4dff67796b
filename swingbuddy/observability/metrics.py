"""Prometheus metrics for the conversation-state engine."""

from prometheus_client import Counter, Histogram, start_http_server

# Cache tier
STATE_CACHE_HITS = Counter(
    "swingbuddy_state_cache_hits_total",
    "State reads served by the cache tier",
)

STATE_CACHE_MISSES = Counter(
    "swingbuddy_state_cache_misses_total",
    "State reads that fell through to the durable store",
)

STATE_CACHE_ERRORS = Counter(
    "swingbuddy_state_cache_errors_total",
    "Cache tier failures absorbed by the state facade",
    labelnames=["operation"],
)

# Scenario engine
SCENARIO_OUTCOMES = Counter(
    "swingbuddy_scenario_outcomes_total",
    "Outcomes returned by the scenario manager",
    labelnames=["outcome"],
)

ADVANCE_LATENCY = Histogram(
    "swingbuddy_advance_latency_seconds",
    "Latency of a single advance call, lock wait included",
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)

TERMINAL_ACTION_FAILURES = Counter(
    "swingbuddy_terminal_action_failures_total",
    "Terminal actions that failed; state was retained for retry",
    labelnames=["scenario"],
)

CORRUPT_STATES = Counter(
    "swingbuddy_corrupt_states_total",
    "Stored states naming an unknown scenario or step",
)

# Hygiene
SWEPT_STATES = Counter(
    "swingbuddy_swept_states_total",
    "Expired durable rows removed by the sweeper",
)


def setup_metrics(port: int) -> None:
    """Expose the default registry over HTTP on the given port."""
    start_http_server(port)
