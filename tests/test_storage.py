"""Tests for the JSON prediction log."""

from __future__ import annotations

import json
import threading
from datetime import UTC, datetime
from pathlib import Path

import pytest

from cancerpredict.errors import PersistenceError
from cancerpredict.ml.policy import Label
from cancerpredict.storage import PredictionRecord, PredictionStore


def _record(label: Label = Label.NON_CANCER) -> PredictionRecord:
    return PredictionRecord(result=label, suggestion="test suggestion")


@pytest.fixture()
def store(tmp_path: Path) -> PredictionStore:
    return PredictionStore(tmp_path / "predictions.json")


class TestPredictionRecord:
    def test_defaults(self) -> None:
        record = _record()
        assert len(record.id) == 36
        assert record.created_at.tzinfo is not None

    def test_serializes_with_camel_case_timestamp(self) -> None:
        record = PredictionRecord(
            id="abc",
            result=Label.CANCER,
            suggestion="s",
            created_at=datetime(2024, 1, 2, 3, 4, 5, tzinfo=UTC),
        )
        assert record.model_dump(mode="json", by_alias=True) == {
            "id": "abc",
            "result": "Cancer",
            "suggestion": "s",
            "createdAt": "2024-01-02T03:04:05Z",
        }


class TestPredictionStore:
    def test_missing_file_reads_empty(self, store: PredictionStore) -> None:
        assert store.read_all() == []

    @pytest.mark.parametrize("content", ["", "   \n"])
    def test_empty_file_reads_empty(self, store: PredictionStore, content: str) -> None:
        store.path.write_text(content)
        assert store.read_all() == []

    def test_append_to_empty_file(self, store: PredictionStore) -> None:
        store.path.write_text("")
        store.append(_record())
        assert len(store.read_all()) == 1

    def test_round_trip_preserves_order(self, store: PredictionStore) -> None:
        written = [_record(Label.CANCER if i % 2 else Label.NON_CANCER) for i in range(5)]
        for record in written:
            store.append(record)

        stored = store.read_all()
        assert stored == written
        assert len({r.id for r in stored}) == 5

    def test_file_is_indented_json_array(self, store: PredictionStore) -> None:
        record = _record(Label.CANCER)
        store.append(record)

        text = store.path.read_text()
        assert text.startswith("[\n  {")
        data = json.loads(text)
        assert data == [record.model_dump(mode="json", by_alias=True)]
        assert "createdAt" in data[0]

    def test_creates_parent_directory(self, tmp_path: Path) -> None:
        store = PredictionStore(tmp_path / "nested" / "dir" / "predictions.json")
        store.append(_record())
        assert store.path.exists()

    def test_no_temp_files_left_behind(self, store: PredictionStore) -> None:
        store.append(_record())
        store.append(_record())
        assert [p.name for p in store.path.parent.iterdir()] == ["predictions.json"]

    def test_corrupt_log_is_not_overwritten(self, store: PredictionStore) -> None:
        store.path.write_text("{not json")

        with pytest.raises(PersistenceError, match="Corrupt"):
            store.append(_record())

        assert store.path.read_text() == "{not json"

    def test_non_array_log_is_rejected(self, store: PredictionStore) -> None:
        store.path.write_text('{"id": "x"}')
        with pytest.raises(PersistenceError):
            store.read_all()

    def test_unreadable_path_raises(self, tmp_path: Path) -> None:
        store = PredictionStore(tmp_path)
        with pytest.raises(PersistenceError, match="Cannot read"):
            store.append(_record())

    def test_concurrent_appends_are_not_lost(self, store: PredictionStore) -> None:
        records = [_record() for _ in range(40)]
        threads = [threading.Thread(target=store.append, args=(r,)) for r in records]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert {r.id for r in store.read_all()} == {r.id for r in records}
