import argparse
import json
from types import SimpleNamespace

import httpx
import pytest

from app.modules.flashcards import cli
from tests.conftest import completion_response, make_source_text, proposals_content


def _patch_client(monkeypatch, make_client, handler):
    captured = {}

    def _from_settings(cfg):
        captured["cfg"] = cfg
        return make_client(httpx.MockTransport(handler), default_model=cfg.model)

    monkeypatch.setattr(cli, "OpenRouterClient", SimpleNamespace(from_settings=_from_settings))
    return captured


def test_load_source_requires_exactly_one_input(tmp_path):
    with pytest.raises(SystemExit):
        cli._load_source(argparse.Namespace(text=None, source_file=None))
    with pytest.raises(SystemExit):
        cli._load_source(argparse.Namespace(text="x", source_file="y.txt"))

    path = tmp_path / "notes.txt"
    path.write_text("Mitochondria", encoding="utf-8")
    assert cli._load_source(argparse.Namespace(text=None, source_file=str(path))) == "Mitochondria"


def test_generate_prints_proposals(monkeypatch, make_client, capsys):
    captured = _patch_client(
        monkeypatch, make_client, lambda r: completion_response(proposals_content(3))
    )

    code = cli.main(
        ["generate", "--text", make_source_text(1200), "--model", "openai/gpt-4o-mini"]
    )

    assert code == 0
    assert captured["cfg"].model == "openai/gpt-4o-mini"
    out = json.loads(capsys.readouterr().out)
    assert len(out["proposals"]) == 3
    assert len(out["source_text_hash"]) == 64
    assert out["duration_ms"] > 0


def test_generate_reports_failure(monkeypatch, make_client, capsys):
    _patch_client(monkeypatch, make_client, lambda r: httpx.Response(401))

    code = cli.main(["generate", "--text", make_source_text(1200)])

    assert code == 1
    out = json.loads(capsys.readouterr().out)
    assert out["error"]["code"] == "AUTHENTICATION_ERROR"
    assert out["error"]["message"] == "Invalid or expired API key"


def test_generate_rejects_short_text(monkeypatch, make_client):
    _patch_client(monkeypatch, make_client, lambda r: completion_response(proposals_content()))

    with pytest.raises(SystemExit):
        cli.main(["generate", "--text", "too short"])
