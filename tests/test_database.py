import json
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

TESTS_ROOT = ROOT / "tests"
if str(TESTS_ROOT) not in sys.path:
    sys.path.insert(0, str(TESTS_ROOT))

import database
from database import JsonDirectorySource, JsonFileSource, MemorySource, MongoSource, file_source, get_sources
from errors import SourceUnavailable
from fake_mongo import FakeDatabase, FakeObjectId


def _write(path: Path, payload) -> Path:
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_file_source_labels_items_by_index(tmp_path: Path) -> None:
    path = _write(tmp_path / "casinos.json", [{"slug": "a"}, None])
    read = JsonFileSource(path).read("casino")
    assert read.items == [("casinos.json[0]", {"slug": "a"}), ("casinos.json[1]", None)]
    assert read.diagnostics == []


def test_file_source_with_non_array_top_level(tmp_path: Path) -> None:
    path = _write(tmp_path / "casinos.json", {"slug": "a"})
    read = JsonFileSource(path).read("casino")
    assert read.items == []
    assert [d.kind for d in read.diagnostics] == ["unreadable"]


def test_file_source_missing_or_broken_file_raises(tmp_path: Path) -> None:
    with pytest.raises(SourceUnavailable):
        JsonFileSource(tmp_path / "missing.json").read("casino")

    broken = tmp_path / "broken.json"
    broken.write_text("[{", encoding="utf-8")
    with pytest.raises(SourceUnavailable):
        JsonFileSource(broken).read("casino")

    deep = tmp_path / "deep.json"
    deep.write_text("[" * 200000 + "]" * 200000, encoding="utf-8")
    with pytest.raises(SourceUnavailable):
        JsonFileSource(deep).read("casino")


def test_directory_source_skips_unreadable_files(tmp_path: Path) -> None:
    _write(tmp_path / "b-casino.json", {"slug": "b-casino", "name": "B"})
    _write(tmp_path / "a-casino.json", {"slug": "a-casino", "name": "A"})
    (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")
    (tmp_path / "deep.json").write_text("[" * 200000 + "]" * 200000, encoding="utf-8")
    (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")

    read = JsonDirectorySource(tmp_path).read("casino")

    assert [origin for origin, _ in read.items] == ["a-casino.json", "b-casino.json"]
    assert [(d.origin, d.kind) for d in read.diagnostics] == [
        ("broken.json", "unreadable"),
        ("deep.json", "unreadable"),
    ]


def test_directory_source_missing_directory_raises(tmp_path: Path) -> None:
    with pytest.raises(SourceUnavailable):
        JsonDirectorySource(tmp_path / "nope").read("casino")


def test_memory_source() -> None:
    read = MemorySource([{"slug": "a"}]).read("guide")
    assert read.items == [("memory[0]", {"slug": "a"})]

    read = MemorySource({"slug": "a"}).read("guide")
    assert read.items == []
    assert read.diagnostics[0].kind == "unreadable"


def test_mongo_source_maps_object_id() -> None:
    db = FakeDatabase(
        {
            "casinos": [
                {"_id": FakeObjectId("66aa"), "slug": "golden-spin", "name": "Golden Spin"},
                {"_id": FakeObjectId("66bb"), "id": "c-2", "slug": "reef", "name": "Reef"},
            ]
        }
    )
    read = MongoSource("casinos", database=db).read("casino")

    assert read.items == [
        ("casinos:66aa", {"id": "66aa", "slug": "golden-spin", "name": "Golden Spin"}),
        ("casinos:c-2", {"id": "c-2", "slug": "reef", "name": "Reef"}),
    ]
    assert db["casinos"].find_calls == [{}]


def test_mongo_source_without_database(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(database, "db", None)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("DATABASE_NAME", raising=False)
    with pytest.raises(SourceUnavailable):
        MongoSource("casinos").read("casino")


def test_file_source_prefers_aggregate_file(tmp_path: Path) -> None:
    (tmp_path / "guides").mkdir()
    assert isinstance(file_source(tmp_path, "guide"), JsonDirectorySource)

    _write(tmp_path / "guides.json", [])
    assert isinstance(file_source(tmp_path, "guide"), JsonFileSource)

    # neither exists: the aggregate path, which fails on read
    source = file_source(tmp_path, "country")
    assert isinstance(source, JsonFileSource)
    assert source.path == tmp_path / "countries.json"


def test_get_sources_from_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATA_DIR", str(tmp_path))
    monkeypatch.delenv("CONTENT_BACKEND", raising=False)
    sources = get_sources()
    assert set(sources) == {"casino", "country", "guide"}
    assert sources["casino"].path == tmp_path / "casinos.json"

    monkeypatch.setenv("CONTENT_BACKEND", "mongo")
    sources = get_sources()
    assert all(isinstance(s, MongoSource) for s in sources.values())
    assert sources["country"].collection_name == "countries"
