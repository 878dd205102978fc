from __future__ import annotations

import json
import sys

import main as cli
from sources import StaticTrendSource


def _invoke(monkeypatch, *argv: str) -> None:
    monkeypatch.setattr(sys, "argv", ["trend-video", *argv])
    cli.main()


def test_captions_command_prints_srt(monkeypatch, capsys):
    _invoke(monkeypatch, "captions", "--script", "one two three four five six", "--duration", "6")
    out = capsys.readouterr().out
    assert out.startswith("1\n00:00:00,000 --> 00:00:02,000\none two\n")
    assert "3\n00:00:04,000 --> 00:00:06,000\nfive six" in out


def test_captions_command_reads_script_file(monkeypatch, capsys, tmp_path):
    script = tmp_path / "script.txt"
    script.write_text("alpha beta\ngamma delta", encoding="utf-8")
    _invoke(monkeypatch, "captions", "--script-file", str(script), "--duration", "4")
    assert "alpha beta" in capsys.readouterr().out


def test_trends_command_emits_json(monkeypatch, capsys):
    monkeypatch.setattr(cli, "build_sources", lambda settings: [StaticTrendSource()])
    _invoke(monkeypatch, "trends", "--json", "--categories", "finance", "--min-signal", "0")
    trends = json.loads(capsys.readouterr().out)
    assert [trend["keyword"] for trend in trends] == ["cryptocurrency ETF news", "sustainable investing trends"]


def test_run_command_prints_response(monkeypatch, capsys, make_pipeline):
    pipeline = make_pipeline()
    monkeypatch.setattr(cli, "build_pipeline", lambda settings: pipeline)
    _invoke(monkeypatch, "run", "--duration", "15", "--category", "finance", "--audience", "professionals")
    body = json.loads(capsys.readouterr().out)
    assert body["success"] is True
    assert body["artifact"]["voice_id"] == "Matthew"
