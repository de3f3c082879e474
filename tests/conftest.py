import importlib

import pytest
from fastapi.testclient import TestClient

from app.salecalc.core.metrics import metrics


def _setup_app():
    import app.main as main

    importlib.reload(main)
    return main.create_app()


@pytest.fixture(autouse=True)
def reset_metrics():
    metrics.reset()
    yield


@pytest.fixture()
def client():
    app = _setup_app()
    with TestClient(app) as client:
        yield client
