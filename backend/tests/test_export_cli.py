"""Tests for the export CLI script."""

import json
import sys

import pytest
from fastapi.testclient import TestClient

import export_document as cli
from iea43wizard.api import app

from test_helpers import authoring_document, minimal_document


class TestExportCLI:
    """Test cases for the export CLI script."""

    def setup_method(self):
        self.client = TestClient(app)

    def _run(self, monkeypatch, *args):
        monkeypatch.setattr(sys, "argv", ["export_document.py", *args])
        with pytest.raises(SystemExit) as excinfo:
            cli.main()
            raise SystemExit(0)
        return excinfo.value.code

    def _write_doc(self, tmp_path, doc):
        path = tmp_path / "doc.json"
        path.write_text(json.dumps(doc), encoding="utf-8")
        return path

    def _route_to_app(self, monkeypatch):
        def fake_post(url, json=None, headers=None):
            assert url == "http://localhost:8000/export"
            return self.client.post("/export", json=json, headers=headers)

        monkeypatch.setattr(cli.requests, "post", fake_post)

    def test_offline_export(self, tmp_path, monkeypatch, capsys):
        doc_path = self._write_doc(tmp_path, authoring_document())
        out_path = tmp_path / "out" / "station.json"

        code = self._run(monkeypatch, "--doc", str(doc_path), "--out", str(out_path), "--offline")

        assert code == 0
        exported = json.loads(out_path.read_text(encoding="utf-8"))
        assert exported["author"] == "Jane Analyst"
        assert "startDate" not in exported
        assert "Export saved to:" in capsys.readouterr().out

    def test_offline_blocked(self, tmp_path, monkeypatch, capsys):
        doc = minimal_document()
        del doc["author"]
        doc_path = self._write_doc(tmp_path, doc)
        out_path = tmp_path / "station.json"

        code = self._run(monkeypatch, "--doc", str(doc_path), "--out", str(out_path), "--offline")

        assert code == 2
        assert not out_path.exists()
        err = capsys.readouterr().err
        assert "[required] author: " in err
        assert "[schema] required: Missing required field: author" in err

    def test_remote_export(self, tmp_path, monkeypatch):
        self._route_to_app(monkeypatch)
        doc_path = self._write_doc(tmp_path, minimal_document())
        out_path = tmp_path / "station.json"

        code = self._run(monkeypatch, "--doc", str(doc_path), "--out", str(out_path))

        assert code == 0
        assert json.loads(out_path.read_text(encoding="utf-8"))["organisation"] == "Example Wind Ltd"

    def test_remote_blocked(self, tmp_path, monkeypatch, capsys):
        self._route_to_app(monkeypatch)
        doc = minimal_document()
        doc["measurement_location"][0]["measurement_station_type_id"] = "tower"
        doc_path = self._write_doc(tmp_path, doc)
        out_path = tmp_path / "station.json"

        code = self._run(monkeypatch, "--doc", str(doc_path), "--out", str(out_path))

        assert code == 2
        assert not out_path.exists()
        assert "measurement_location.0.measurement_station_type_id" in capsys.readouterr().err

    def test_unreadable_document(self, tmp_path, monkeypatch, capsys):
        doc_path = tmp_path / "doc.json"
        doc_path.write_text("{not json", encoding="utf-8")

        code = self._run(monkeypatch, "--doc", str(doc_path), "--out", str(tmp_path / "x.json"), "--offline")

        assert code == 1
        assert capsys.readouterr().err.startswith("Error: ")

    def test_missing_args(self, monkeypatch):
        assert self._run(monkeypatch, "--out", "station.json") == 2
