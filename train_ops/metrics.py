from prometheus_client import Counter, Histogram, Gauge, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Metrics
REQUEST_COUNT = Counter('http_requests_total', 'Total HTTP requests', ['method', 'endpoint', 'status'])
REQUEST_DURATION = Histogram('http_request_duration_seconds', 'HTTP request duration')
TRAIN_ACTIONS = Counter('train_actions_total', 'Controller actions applied to trains', ['action', 'outcome'])
SUGGESTIONS_GENERATED = Counter('suggestions_generated_total', 'Suggestions produced', ['priority'])
ACTIVE_TRAINS = Gauge('active_trains_total', 'Number of active trains')
DELAYED_TRAINS = Gauge('delayed_trains_total', 'Number of delayed trains')


def record_request_metrics(method: str, endpoint: str, status_code: int, duration: float):
    """Record request metrics"""
    REQUEST_COUNT.labels(method=method, endpoint=endpoint, status=str(status_code)).inc()
    REQUEST_DURATION.observe(duration)


def record_train_action(action: str, outcome: str):
    TRAIN_ACTIONS.labels(action=action, outcome=outcome).inc()


def record_suggestions(suggestions):
    for suggestion in suggestions:
        SUGGESTIONS_GENERATED.labels(priority=suggestion.priority.value).inc()


def update_train_metrics(active_count: int, delayed_count: int):
    """Update train-related metrics"""
    ACTIVE_TRAINS.set(active_count)
    DELAYED_TRAINS.set(delayed_count)


def get_metrics():
    """Return Prometheus metrics"""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
