"""Tests for sentinel.persistence and sentinel.observer — JSON file backends."""

import json
import stat

from sentinel.models import EMPTY_SLOT, Identity
from sentinel.observer import JsonObserverStore
from sentinel.persistence import JsonFilePersistence


class TestJsonFilePersistence:
    def test_missing_file_loads_empty(self, tmp_path):
        assert JsonFilePersistence(tmp_path / "none.json").load() == []

    def test_save_then_load(self, tmp_path):
        backend = JsonFilePersistence(tmp_path / "sub" / "ids.json")
        records = [Identity(name="a", tags=["MAIN"]), Identity(name="b", issuer="Acme")]
        backend.save(records)
        loaded = backend.load()
        assert [r.to_dict() for r in loaded] == [r.to_dict() for r in records]

    def test_file_is_private(self, tmp_path):
        path = tmp_path / "ids.json"
        JsonFilePersistence(path).save([Identity(name="a")])
        mode = path.stat().st_mode
        assert mode & stat.S_IRGRP == 0
        assert mode & stat.S_IROTH == 0

    def test_no_temp_files_left(self, tmp_path):
        JsonFilePersistence(tmp_path / "ids.json").save([Identity(name="a")])
        assert [p.name for p in tmp_path.iterdir()] == ["ids.json"]

    def test_old_records_migrated_on_load(self, tmp_path):
        path = tmp_path / "ids.json"
        path.write_text(json.dumps([{"id": "1", "name": "old", "secret": "AAAA"}]))
        (record,) = JsonFilePersistence(path).load()
        assert record.vault == [EMPTY_SLOT] * 10
        assert record.tags == []

    def test_corrupt_file_loads_empty(self, tmp_path, caplog):
        path = tmp_path / "ids.json"
        path.write_text("{not json")
        assert JsonFilePersistence(path).load() == []
        assert "corrupted" in caplog.text

    def test_non_list_file_loads_empty(self, tmp_path):
        path = tmp_path / "ids.json"
        path.write_text('{"identities": []}')
        assert JsonFilePersistence(path).load() == []


class TestJsonObserverStore:
    def test_missing_file(self, tmp_path):
        assert JsonObserverStore(tmp_path / "obs.json").evidence() == []

    def test_restore_then_read(self, tmp_path):
        store = JsonObserverStore(tmp_path / "obs.json")
        store.restore([{"id": "o1", "category": "LOOT_DROPS"}])
        assert store.evidence() == [{"id": "o1", "category": "LOOT_DROPS"}]

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "obs.json"
        path.write_text("][")
        assert JsonObserverStore(path).evidence() == []
