"""Tests for the translation of domain errors into HTTP responses."""

import json
import logging
from pathlib import Path
import sys

from fastapi.testclient import TestClient

sys.path.append(str(Path(__file__).resolve().parents[1]))
from fieldsurvey.core.logging import JsonFormatter, RequestIDFilter, request_id_ctx  # noqa: E402
from fieldsurvey.domain.producteur import Producteur  # noqa: E402
from fieldsurvey.main import create_app  # noqa: E402

app = create_app()


@app.post("/producteurs")
async def create_producteur(payload: dict) -> dict:
    return Producteur.from_api_data(payload).to_plain_object()


client = TestClient(app)


def test_validation_error_becomes_422():
    response = client.post("/producteurs", json={"nom": "Koffi", "prenoms": "Jean", "superficieTotale": -3})
    assert response.status_code == 422
    error = response.json()["error"]
    assert error["name"] == "ValidationError"
    assert error["code"] == "VALIDATION_ERROR"
    assert error["field"] == "superficieTotale"
    assert error["value"] == -3


def test_valid_payload_is_projected():
    response = client.post("/producteurs", json={"_id": "p-1", "nom": "Koffi", "prenoms": "Jean"})
    assert response.status_code == 200
    body = response.json()
    assert body["id"] == "p-1"
    assert body["nomComplet"] == "Jean Koffi"


def test_validation_error_is_logged(caplog):
    with caplog.at_level(logging.WARNING, logger="fieldsurvey.api.errors"):
        client.post("/producteurs", json={"nom": "", "prenoms": "Jean"})
    record = next(r for r in caplog.records if r.name == "fieldsurvey.api.errors")
    assert record.error_code == "VALIDATION_ERROR"
    assert record.field == "nom"


def test_json_formatter_includes_request_id_and_extras():
    record = logging.LogRecord("fieldsurvey.test", logging.INFO, __file__, 1, "bonjour", (), None)
    record.field = "nom"
    token = request_id_ctx.set("req-1")
    try:
        RequestIDFilter().filter(record)
    finally:
        request_id_ctx.reset(token)
    data = json.loads(JsonFormatter().format(record))
    assert data == {
        "level": "INFO",
        "logger": "fieldsurvey.test",
        "message": "bonjour",
        "request_id": "req-1",
        "field": "nom",
    }
