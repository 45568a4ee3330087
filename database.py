"""
Content Sources

Data source handles injected into the catalog. A source only knows how to
produce raw JSON values; normalization happens in the catalog loader.

- JsonFileSource:      one JSON array per collection (data/casinos.json)
- JsonDirectorySource: one JSON object per file (data/casinos/<slug>.json)
- MemorySource:        a list already in memory
- MongoSource:         documents of a MongoDB collection

``read()`` returns a SourceRead: the raw items, each labelled with where it
came from, plus diagnostics for files that could not be read at all.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from dotenv import load_dotenv
from pymongo import MongoClient

from errors import SourceUnavailable
from schemas import Diagnostic

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = "data"
COLLECTIONS = {"casino": "casinos", "country": "countries", "guide": "guides"}

_client: Optional[MongoClient] = None
db = None


@dataclass
class SourceRead:
    items: List[Tuple[str, Any]] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)


def _load_json(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


class JsonFileSource:
    """A single JSON file holding an array of records."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def read(self, entity: str) -> SourceRead:
        try:
            data = _load_json(self.path)
        except (OSError, ValueError, RecursionError) as exc:
            raise SourceUnavailable(f"cannot read {self.path}: {exc}") from exc

        result = SourceRead()
        if not isinstance(data, list):
            result.diagnostics.append(
                Diagnostic(
                    entity=entity,
                    origin=self.path.name,
                    kind="unreadable",
                    reasons=[f"expected a JSON array, got {type(data).__name__}"],
                )
            )
            return result
        result.items = [(f"{self.path.name}[{i}]", raw) for i, raw in enumerate(data)]
        return result

    def __repr__(self) -> str:
        return f"JsonFileSource({str(self.path)!r})"


class JsonDirectorySource:
    """A directory with one JSON object per file, usually ``<slug>.json``."""

    def __init__(self, path: Union[str, Path], pattern: str = "*.json"):
        self.path = Path(path)
        self.pattern = pattern

    def read(self, entity: str) -> SourceRead:
        if not self.path.is_dir():
            raise SourceUnavailable(f"not a directory: {self.path}")
        try:
            files = sorted(self.path.glob(self.pattern))
        except OSError as exc:
            raise SourceUnavailable(f"cannot list {self.path}: {exc}") from exc

        result = SourceRead()
        for path in files:
            if not path.is_file():
                continue
            try:
                raw = _load_json(path)
            except (OSError, ValueError, RecursionError) as exc:
                # one broken file must not take the whole collection down
                logger.debug("Skipping unreadable %s file %s: %s", entity, path, exc)
                result.diagnostics.append(
                    Diagnostic(entity=entity, origin=path.name, kind="unreadable", reasons=[str(exc)])
                )
                continue
            result.items.append((path.name, raw))
        return result

    def __repr__(self) -> str:
        return f"JsonDirectorySource({str(self.path)!r})"


class MemorySource:
    """Raw items held in memory."""

    def __init__(self, items: Any):
        self.items = items

    def read(self, entity: str) -> SourceRead:
        if not isinstance(self.items, list):
            return SourceRead(
                diagnostics=[
                    Diagnostic(
                        entity=entity,
                        origin="memory",
                        kind="unreadable",
                        reasons=[f"expected a list, got {type(self.items).__name__}"],
                    )
                ]
            )
        return SourceRead(items=[(f"memory[{i}]", raw) for i, raw in enumerate(self.items)])


# --------------------------------------------------
# MongoDB

def _connect():
    """Lazy-connect to MongoDB using env vars if not already connected."""
    global _client, db
    if db is not None:
        return db
    database_url = os.getenv("DATABASE_URL")
    database_name = os.getenv("DATABASE_NAME")
    if database_url and database_name:
        _client = MongoClient(database_url)
        db = _client[database_name]
        return db
    return None


def get_db():
    """Get a live db handle or None if env vars are not set."""
    return _connect()


class MongoSource:
    """Documents of one MongoDB collection."""

    def __init__(self, collection_name: str, database=None):
        self.collection_name = collection_name
        self.database = database

    def read(self, entity: str) -> SourceRead:
        database = self.database if self.database is not None else get_db()
        if database is None:
            raise SourceUnavailable("Database not available. Check DATABASE_URL and DATABASE_NAME environment variables.")

        result = SourceRead()
        for doc in database[self.collection_name].find({}):
            if isinstance(doc, dict):
                # shallow copy to avoid mutating the driver's document
                doc = dict(doc)
                object_id = doc.pop("_id", None)
                if object_id is not None and "id" not in doc:
                    doc["id"] = str(object_id)
                origin = f"{self.collection_name}:{doc.get('id', '?')}"
            else:
                origin = f"{self.collection_name}:?"
            result.items.append((origin, doc))
        return result

    def __repr__(self) -> str:
        return f"MongoSource({self.collection_name!r})"


# --------------------------------------------------
# Configuration

def get_data_dir() -> Path:
    return Path(os.getenv("DATA_DIR", DEFAULT_DATA_DIR))


def file_source(data_dir: Union[str, Path], entity: str):
    """Pick the aggregate file if present, else the per-record directory."""
    base = Path(data_dir)
    name = COLLECTIONS[entity]
    aggregate = base / f"{name}.json"
    directory = base / name
    if not aggregate.exists() and directory.is_dir():
        return JsonDirectorySource(directory)
    return JsonFileSource(aggregate)


def get_sources(data_dir: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """Build one source per entity from CONTENT_BACKEND / DATA_DIR."""
    backend = os.getenv("CONTENT_BACKEND", "files").strip().lower()
    if backend not in ("files", "mongo"):
        logger.warning("Unknown CONTENT_BACKEND %r; using files", backend)
        backend = "files"
    if backend == "mongo":
        sources: Dict[str, Any] = {entity: MongoSource(name) for entity, name in COLLECTIONS.items()}
    else:
        base = Path(data_dir) if data_dir is not None else get_data_dir()
        sources = {entity: file_source(base, entity) for entity in COLLECTIONS}
    logger.debug("Content sources (%s): %s", backend, sources)
    return sources
