from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.salecalc.core.error_catalog import ErrorCatalog, fail
from app.salecalc.core.errors import setup_exception_handlers
from app.salecalc.core.metrics import metrics


def test_app_error_increments_rejection_metric():
    metrics.reset()
    app = FastAPI()
    setup_exception_handlers(app)

    @app.get("/not-eligible")
    def not_eligible():
        raise fail(ErrorCatalog.RETURN_NOT_ELIGIBLE, "Sale is already refunded")

    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.get("/not-eligible")

    assert response.status_code == 409
    payload = response.json()
    assert payload["code"] == "RETURN_NOT_ELIGIBLE"
    assert payload["details"] == {"messages": ["Sale is already refunded"]}

    snapshot = metrics.render()
    content = snapshot.content.decode("utf-8")
    if metrics.enabled:
        assert 'validation_rejections_total{code="RETURN_NOT_ELIGIBLE"} 1.0' in content
    else:
        assert "metrics_disabled" in content


def test_unhandled_error_returns_internal_error():
    app = FastAPI()
    setup_exception_handlers(app)

    @app.get("/boom")
    def boom():
        raise RuntimeError("boom")

    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.get("/boom")

    assert response.status_code == 500
    payload = response.json()
    assert payload["code"] == "INTERNAL_ERROR"
    assert payload["details"] == {"type": "RuntimeError"}


def test_metrics_endpoint_exposes_http_and_rejection_counters(client):
    client.post(
        "/salecalc/sales/totals",
        json={"line_items": [], "discount": {"kind": "amount", "value": "-1"}, "vat_included": True},
    )

    response = client.get("/salecalc/ops/metrics")

    assert response.status_code == 200
    if metrics.enabled:
        assert "http_requests_total" in response.text
        assert 'validation_rejections_total{code="INVALID_DISCOUNT"}' in response.text
