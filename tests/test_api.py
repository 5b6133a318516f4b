import io
import os

import pytest

import api
from table_recovery.exceptions import DocumentError, ScoreThresholdError
from table_recovery.table import Table


class FakePipeline:
    def __init__(self, config, result=None, error=None):
        self.config = config
        self.result = result or []
        self.error = error
        self.paths = []

    def extract(self, path):
        self.paths.append(path)
        if self.error:
            raise self.error
        return self.result


@pytest.fixture
def client():
    api.app.config["TESTING"] = True
    with api.app.test_client() as c:
        yield c


def use_pipeline(monkeypatch, **kwargs):
    created = []

    def factory(config):
        pipeline = FakePipeline(config, **kwargs)
        created.append(pipeline)
        return pipeline

    monkeypatch.setattr(api, "create_pipeline", factory)
    return created


def upload(client, **fields):
    data = {"file": (io.BytesIO(b"%PDF-1.4"), "statement.pdf")}
    data.update(fields)
    return client.post("/api/tables/extract", data=data, content_type="multipart/form-data")


def test_healthcheck(client):
    response = client.get("/api/tables/extract")
    assert response.status_code == 200
    assert response.get_json() == {"status": "ok"}


def test_extract_returns_csv_tables(client, monkeypatch):
    created = use_pipeline(monkeypatch, result=[Table([["a", "b"], ["c", ""]])])
    response = upload(client, mode="stream", pages="1-2", sep=";")

    assert response.status_code == 200
    body = response.get_json()
    assert body["status"] == "ok"
    assert body["filename"] == "statement.pdf"
    assert body["tables"] == ["a;b\nc;"]
    assert body["params"]["mode"] == "stream"
    assert body["params"]["pages"] == "1,2"
    assert body["params"]["dpi"] == 300.0
    assert body["params"]["ocr_dpi"] == 450.0
    config = created[0].config
    assert config.mode == "stream"
    assert config.csv_separator == ";"


def test_temp_upload_is_removed(client, monkeypatch):
    created = use_pipeline(monkeypatch)
    upload(client)
    assert created[0].paths
    assert not os.path.exists(created[0].paths[0])


def test_missing_file(client):
    response = client.post("/api/tables/extract", data={}, content_type="multipart/form-data")
    assert response.status_code == 400


@pytest.mark.parametrize("fields", [{"pages": "x-y"}, {"mode": "camelot"}, {"dpi": "high"}, {"sep": "::"}])
def test_invalid_parameters(client, monkeypatch, fields):
    use_pipeline(monkeypatch)
    assert upload(client, **fields).status_code == 400


def test_unreadable_pdf(client, monkeypatch):
    use_pipeline(monkeypatch, error=DocumentError("broken"))
    assert upload(client).status_code == 400


def test_score_threshold(client, monkeypatch):
    use_pipeline(monkeypatch, error=ScoreThresholdError(2, 0.31, 0.5))
    response = upload(client, min_score="0.5")
    assert response.status_code == 422
    body = response.get_json()
    assert body["page"] == 2
    assert body["min_score"] == 0.5


def test_unexpected_failure(client, monkeypatch):
    use_pipeline(monkeypatch, error=RuntimeError("boom"))
    response = upload(client)
    assert response.status_code == 500
    assert response.get_json()["error"] == "boom"


def test_dpi_field_sets_both_resolutions(client, monkeypatch):
    created = use_pipeline(monkeypatch)
    response = upload(client, dpi="200")
    assert response.status_code == 200
    assert (created[0].config.render_dpi, created[0].config.ocr_dpi) == (200.0, 200.0)
