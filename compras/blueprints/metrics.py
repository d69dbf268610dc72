"""
Prometheus metrics: API traffic per blueprint endpoint plus procurement
counters (documents created, bulk upload rows). Served at /metrics,
which is not authenticated.
"""
import os
import time

from flask import Blueprint, Response, request, g
from prometheus_client import Counter, Histogram, CollectorRegistry, REGISTRY, CONTENT_TYPE_LATEST
from prometheus_client import generate_latest, multiprocess

metrics_bp = Blueprint('metrics', __name__)

# Gunicorn workers write to PROMETHEUS_MULTIPROC_DIR; metrics then register nowhere
# and are collected from the directory at scrape time.
if os.environ.get('PROMETHEUS_MULTIPROC_DIR'):
    scrape_registry = CollectorRegistry()
    multiprocess.MultiProcessCollector(scrape_registry)
    _register_in = None
else:
    scrape_registry = REGISTRY
    _register_in = REGISTRY

api_requests_total = Counter(
    'compras_api_requests_total',
    'API requests by endpoint and response status',
    ['method', 'endpoint', 'http_status'],
    registry=_register_in
)

api_request_seconds = Histogram(
    'compras_api_request_seconds',
    'API request latency',
    ['endpoint'],
    registry=_register_in,
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 10.0)
)

documents_created_total = Counter(
    'compras_documents_created_total',
    'Quote requests and purchase orders created',
    ['document_type'],
    registry=_register_in
)

bulk_upload_rows_total = Counter(
    'compras_bulk_upload_rows_total',
    'Rows processed by bulk upload',
    ['upload_type', 'result'],
    registry=_register_in
)


def setup_metrics_instrumentation(app):

    @app.before_request
    def start_request_timer():
        g.request_started_at = time.perf_counter()

    @app.after_request
    def record_request(response):
        started_at = g.pop('request_started_at', None)
        if started_at is not None:
            endpoint = request.endpoint or 'unknown'
            api_request_seconds.labels(endpoint=endpoint).observe(time.perf_counter() - started_at)
            api_requests_total.labels(
                method=request.method,
                endpoint=endpoint,
                http_status=response.status_code
            ).inc()
        return response


@metrics_bp.route('/metrics')
def metrics():
    return Response(generate_latest(scrape_registry), mimetype=CONTENT_TYPE_LATEST)
