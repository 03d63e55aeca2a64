import json

import pytest

from kinfold import store
from kinfold.schemas import RecordError, Registry


class DummyHTTP:
    def __init__(self, pages):
        self.pages = list(pages)
        self.calls = []

    def get_json(self, url, params=None, headers=None):
        self.calls.append((url, dict(params or {})))
        return self.pages.pop(0)


def _doc(doc_id, **fields):
    typed = {}
    for key, value in fields.items():
        if value is None:
            typed[key] = {"nullValue": None}
        elif isinstance(value, int):
            typed[key] = {"integerValue": str(value)}
        else:
            typed[key] = {"stringValue": value}
    return {"name": f"projects/demo/databases/(default)/documents/members/{doc_id}", "fields": typed}


def test_load_records_accepts_list_and_wrapped_payloads(tmp_path):
    records = [{"id": "F", "lastName": "Yamada", "firstName": "Taro", "generation": 1, "registry": "tengoku"}]
    plain = tmp_path / "plain.json"
    plain.write_text(json.dumps(records))
    wrapped = tmp_path / "wrapped.json"
    wrapped.write_text(json.dumps({"members": records}))

    for path in (plain, wrapped):
        members = store.load_records(str(path))
        assert [m.id for m in members] == ["F"]
        assert members[0].registry is Registry.DECEASED


def test_load_records_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        store.load_records(str(tmp_path / "missing.json"))
    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps({"people": []}))
    with pytest.raises(RecordError):
        store.load_records(str(bad))


def test_write_records_round_trips_through_loader(tmp_path):
    members = store.coerce_members([{"id": "F", "generation": 1}, {"id": "C", "generation": 2, "parentId": "F"}])
    path = store.write_records(members, str(tmp_path / "nested" / "members.json"))
    loaded = store.load_records(path)
    assert [m.id for m in loaded] == ["F", "C"]
    assert loaded[1].parent_id == "F"


def test_decode_value_handles_nested_types():
    value = {
        "mapValue": {
            "fields": {
                "tags": {"arrayValue": {"values": [{"stringValue": "a"}, {"integerValue": "2"}]}},
                "ref": {"referenceValue": "projects/p/databases/(default)/documents/members/X"},
                "alive": {"booleanValue": True},
            }
        }
    }
    assert store.decode_value(value) == {"tags": ["a", 2], "ref": "X", "alive": True}


def test_firestore_source_follows_page_tokens():
    http = DummyHTTP(
        [
            {"documents": [_doc("F", lastName="Yamada", generation=1)], "nextPageToken": "p2"},
            {"documents": [_doc("C", lastName="Yamada", generation=2, parentId="F", spouseId=None)]},
        ]
    )
    source = store.FirestoreSource(http, "demo", api_key="secret", page_size=1)
    members = source.fetch()
    assert [m.id for m in members] == ["F", "C"]
    assert members[1].parent_id == "F"
    assert members[1].spouse_id is None
    assert len(http.calls) == 2
    assert http.calls[0][1] == {"pageSize": 1, "key": "secret"}
    assert http.calls[1][1]["pageToken"] == "p2"
    assert http.calls[0][0].endswith("/projects/demo/databases/(default)/documents/members")


def test_open_records_dispatches_on_prefix(tmp_path, monkeypatch):
    monkeypatch.setenv("KINFOLD_FIRESTORE_API_KEY", "k")
    http = DummyHTTP([{"documents": [_doc("F", generation=1)]}])
    members = store.open_records("firestore:demo/people", http=http)
    assert [m.id for m in members] == ["F"]
    assert http.calls[0][0].endswith("/documents/people")
    assert http.calls[0][1]["key"] == "k"

    path = tmp_path / "members.json"
    path.write_text(json.dumps([{"id": "F", "generation": 1}]))
    assert [m.id for m in store.open_records(str(path))] == ["F"]

    with pytest.raises(ValueError):
        store.open_records("firestore:")
