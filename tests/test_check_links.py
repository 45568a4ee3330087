import json
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import check_links


@pytest.fixture
def content_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.delenv("CONTENT_BACKEND", raising=False)
    (tmp_path / "casinos.json").write_text(
        json.dumps([{"slug": "golden-spin", "name": "Golden Spin", "countries": ["AU", "XX"]}, {"name": "no slug"}]),
        encoding="utf-8",
    )
    (tmp_path / "countries.json").write_text(json.dumps([{"code": "AU", "name": "Australia"}]), encoding="utf-8")
    guides = tmp_path / "guides"
    guides.mkdir()
    (guides / "intro.json").write_text(
        json.dumps({"slug": "intro", "title": "Intro", "relatedCasinos": ["ghost"]}), encoding="utf-8"
    )
    (guides / "broken.json").write_text("{", encoding="utf-8")
    return tmp_path


def test_text_report(content_dir: Path, capsys: pytest.CaptureFixture) -> None:
    assert check_links.main(["--data-dir", str(content_dir)]) == 0
    out = capsys.readouterr().out
    assert "[invalid] casino casinos.json[1]" in out
    assert "[unreadable] guide broken.json" in out
    assert "[link] casino golden-spin: unknown countries XX" in out
    assert "[link] guide intro: unknown casinos ghost" in out
    assert "4 problem(s) found" in out


def test_strict_json_report(content_dir: Path, capsys: pytest.CaptureFixture) -> None:
    assert check_links.main(["--data-dir", str(content_dir), "--strict", "--json"]) == 1
    report = json.loads(capsys.readouterr().out)
    assert len(report["dropped"]["casino"]) == 1
    assert report["dropped"]["country"] == []
    assert {r["key"] for r in report["links"]} == {"golden-spin", "intro"}


def test_clean_content_passes_strict(capsys: pytest.CaptureFixture, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("CONTENT_BACKEND", raising=False)
    assert check_links.main(["--data-dir", str(ROOT / "data"), "--strict"]) == 0
    assert "0 problem(s) found" in capsys.readouterr().out


def test_missing_source(tmp_path: Path, capsys: pytest.CaptureFixture, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("CONTENT_BACKEND", raising=False)
    assert check_links.main(["--data-dir", str(tmp_path)]) == 2
    assert capsys.readouterr().err.startswith("error:")
