from __future__ import annotations

import json

from state.local_store import LocalStateStore
from storage import handler as storage_handler


def test_get_returns_raw_document(tmp_path):
    store = LocalStateStore(tmp_path / "sub-store.json")
    store.write_document({"settings": {"gistToken": "t"}, "subs": [{"name": "a"}]})

    resp = storage_handler.lambda_handler({"httpMethod": "GET"}, None, store=store)

    assert resp["statusCode"] == 200
    assert json.loads(resp["body"]) == {"settings": {"gistToken": "t"}, "subs": [{"name": "a"}]}


def test_post_replaces_document(tmp_path):
    store = LocalStateStore(tmp_path / "sub-store.json")
    store.write_document({"settings": {}, "subs": [{"name": "old"}]})

    body = json.dumps({"settings": {"syncTime": 5}, "collections": []})
    resp = storage_handler.lambda_handler({"httpMethod": "POST", "body": body}, None, store=store)

    assert resp["statusCode"] == 200
    assert resp["body"] == ""
    assert store.read_document() == {"settings": {"syncTime": 5}, "collections": []}


def test_post_rejects_non_object(tmp_path):
    store = LocalStateStore(tmp_path / "sub-store.json")

    resp = storage_handler.lambda_handler({"httpMethod": "POST", "body": "[1, 2]"}, None, store=store)

    assert resp["statusCode"] == 400
    assert json.loads(resp["body"])["error"]["code"] == "INVALID_STORAGE"
    assert not store.path.exists()


def test_unsupported_method(tmp_path):
    store = LocalStateStore(tmp_path / "sub-store.json")

    resp = storage_handler.lambda_handler({"httpMethod": "DELETE"}, None, store=store)

    assert resp["statusCode"] == 405
    assert json.loads(resp["body"])["error"]["code"] == "METHOD_NOT_ALLOWED"


def test_get_with_corrupt_document_fails(tmp_path):
    path = tmp_path / "sub-store.json"
    path.write_text("{oops", encoding="utf-8")

    resp = storage_handler.lambda_handler({"httpMethod": "GET"}, None, store=LocalStateStore(path))

    assert resp["statusCode"] == 500
    assert json.loads(resp["body"])["error"]["code"] == "STORAGE_UNREADABLE"
