from __future__ import annotations

from fastapi import APIRouter, Response

from tokenbound.runtime.metrics import format_prometheus, metrics_enabled

router = APIRouter()

PROMETHEUS_CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"


@router.get("/metrics")
def metrics() -> Response:
    """Process counters in Prometheus text format, each prefixed `tokenbound_`.

    Counters: tx_committed, tx_reverted, account_execute,
    account_execute_rejected, accounts_created, http_requests, http_errors.
    Gauges: contracts_deployed, uptime_ms.

    Off unless TOKENBOUND_METRICS_ENABLED is truthy; the route then answers 404
    so scrapers cannot tell it apart from an unknown path.
    """
    if not metrics_enabled():
        return Response(status_code=404, content="not_found\n", media_type="text/plain")
    return Response(content=format_prometheus(), media_type=PROMETHEUS_CONTENT_TYPE)
