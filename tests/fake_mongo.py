"""Minimal stand-in for a pymongo database used by the MongoSource tests.

Only ``db[name].find(filter)`` is needed: the catalog never writes.
"""

import copy
from typing import Any, Dict, Iterator, List, Optional


class FakeObjectId:
    def __init__(self, value: str):
        self.value = value

    def __str__(self) -> str:
        return self.value


class FakeCollection:
    def __init__(self, docs: Optional[List[Any]] = None):
        self.docs = list(docs or [])
        self.find_calls: List[Dict[str, Any]] = []

    def find(self, filter_dict: Optional[Dict[str, Any]] = None) -> Iterator[Any]:
        self.find_calls.append(filter_dict or {})
        for doc in self.docs:
            # the driver hands out fresh documents on every query
            yield copy.deepcopy(doc)


class FakeDatabase:
    name = "fake"

    def __init__(self, collections: Optional[Dict[str, List[Any]]] = None):
        self.collections = {name: FakeCollection(docs) for name, docs in (collections or {}).items()}

    def __getitem__(self, name: str) -> FakeCollection:
        return self.collections.setdefault(name, FakeCollection())
