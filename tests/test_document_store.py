"""Tests for the Redis-backed appointment detail store"""
import asyncio
import json


def run(coro):
    return asyncio.run(coro)


def test_insert_and_find_one(detail_store, fake_redis):
    run(detail_store.insert_one({"idCitaSql": "7", "estado": "pending"}))

    assert json.loads(fake_redis.data["test:detail:7"]) == {"idCitaSql": "7", "estado": "pending"}
    assert run(detail_store.find_one(7)) == {"idCitaSql": "7", "estado": "pending"}
    assert run(detail_store.find_one("7"))["estado"] == "pending"


def test_find_one_missing_returns_none(detail_store):
    assert run(detail_store.find_one(404)) is None


def test_find_many_keeps_requested_order(detail_store):
    for appointment_id in ("1", "2", "3"):
        run(detail_store.insert_one({"idCitaSql": appointment_id}))

    documents = run(detail_store.find_many(["3", "missing", "1"]))

    assert [d and d["idCitaSql"] for d in documents] == ["3", None, "1"]


def test_update_one_merges_fields(detail_store):
    run(detail_store.insert_one({"idCitaSql": "5", "estado": "pending", "motivo": "Control"}))

    matched = run(detail_store.update_one("5", {"estado": "cancelled"}))

    assert matched is True
    assert run(detail_store.find_one("5")) == {
        "idCitaSql": "5",
        "estado": "cancelled",
        "motivo": "Control",
    }


def test_update_one_without_document_writes_nothing(detail_store, fake_redis):
    matched = run(detail_store.update_one("9", {"estado": "cancelled"}))

    assert matched is False
    assert fake_redis.data == {}


def test_delete_one(detail_store):
    run(detail_store.insert_one({"idCitaSql": "3"}))

    assert run(detail_store.delete_one("3")) is True
    assert run(detail_store.delete_one("3")) is False
    assert run(detail_store.find_one("3")) is None


def test_find_one_with_malformed_json_returns_none(detail_store, fake_redis, caplog):
    fake_redis.data["test:detail:8"] = "{not json"

    assert run(detail_store.find_one("8")) is None
    assert "not valid JSON" in caplog.text
