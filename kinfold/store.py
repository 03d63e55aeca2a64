"""Snapshot loaders for the external record store.

The store itself (writes, auth, validation) lives elsewhere; these helpers
only fetch a full snapshot of member records.
"""

from __future__ import annotations

import json
import os
from typing import Any, Dict, Iterator, List, Mapping, Optional

from .http import HTTPClient
from .schemas import Member, RecordError, coerce_members
from .utils import console, logger

FIRESTORE_API = "https://firestore.googleapis.com/v1/projects/{project}/databases/(default)/documents/{collection}"
FIRESTORE_PREFIX = "firestore:"


def _records_from_payload(payload: Any) -> List[Mapping[str, Any]]:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict) and isinstance(payload.get("members"), list):
        return payload["members"]
    raise RecordError("Expected a list of members or an object with a 'members' list")


def load_records(path: str) -> List[Member]:
    """Read a JSON snapshot: either a list or ``{"members": [...]}``."""

    if not os.path.exists(path):
        raise FileNotFoundError(f"Records file not found: {path}")
    with open(path, "r", encoding="utf-8") as fh:
        payload = json.load(fh)
    members = coerce_members(_records_from_payload(payload))
    logger.debug("Loaded %d members from %s", len(members), path)
    return members


def write_records(members: List[Member], path: str) -> str:
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    with open(path, "w", encoding="utf-8") as fh:
        json.dump([member.dict() for member in members], fh, indent=2, ensure_ascii=False)
    return path


def decode_value(value: Mapping[str, Any]) -> Any:
    """Decode one typed Firestore REST field value."""

    if "nullValue" in value:
        return None
    if "stringValue" in value:
        return value["stringValue"]
    if "integerValue" in value:
        return int(value["integerValue"])
    if "doubleValue" in value:
        return float(value["doubleValue"])
    if "booleanValue" in value:
        return bool(value["booleanValue"])
    if "timestampValue" in value:
        return value["timestampValue"]
    if "referenceValue" in value:
        return value["referenceValue"].rsplit("/", 1)[-1]
    if "arrayValue" in value:
        return [decode_value(item) for item in value["arrayValue"].get("values", [])]
    if "mapValue" in value:
        return {k: decode_value(v) for k, v in value["mapValue"].get("fields", {}).items()}
    return None


def decode_document(document: Mapping[str, Any]) -> Dict[str, Any]:
    record = {key: decode_value(val) for key, val in document.get("fields", {}).items()}
    record["id"] = document["name"].rsplit("/", 1)[-1]
    return record


class FirestoreSource:
    """Read-only listing of a Firestore collection over its REST API."""

    def __init__(
        self,
        http: HTTPClient,
        project: str,
        collection: str = "members",
        *,
        api_key: Optional[str] = None,
        page_size: int = 300,
    ) -> None:
        self.http = http
        self.project = project
        self.collection = collection
        self.api_key = api_key
        self.page_size = page_size

    @property
    def url(self) -> str:
        return FIRESTORE_API.format(project=self.project, collection=self.collection)

    def iter_documents(self) -> Iterator[Mapping[str, Any]]:
        token: Optional[str] = None
        while True:
            params: Dict[str, Any] = {"pageSize": self.page_size}
            if token:
                params["pageToken"] = token
            if self.api_key:
                params["key"] = self.api_key
            data = self.http.get_json(self.url, params=params)
            for document in data.get("documents", []):
                yield document
            token = data.get("nextPageToken")
            if not token:
                return

    def fetch(self) -> List[Member]:
        members = coerce_members(decode_document(doc) for doc in self.iter_documents())
        console.log(f"Fetched {len(members)} members from {self.project}/{self.collection}")
        return members


def open_records(source: str, http: HTTPClient | None = None) -> List[Member]:
    """Load from a JSON path or ``firestore:PROJECT[/COLLECTION]``."""

    if source.startswith(FIRESTORE_PREFIX):
        target = source[len(FIRESTORE_PREFIX):]
        project, _, collection = target.partition("/")
        if not project:
            raise ValueError("firestore source needs a project id: firestore:PROJECT[/COLLECTION]")
        firestore = FirestoreSource(
            http or HTTPClient(),
            project,
            collection or "members",
            api_key=os.getenv("KINFOLD_FIRESTORE_API_KEY"),
        )
        return firestore.fetch()
    return load_records(source)


__all__ = [
    "FirestoreSource",
    "decode_document",
    "decode_value",
    "load_records",
    "open_records",
    "write_records",
]
