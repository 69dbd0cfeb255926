import json
import os

from cozygarden.storage import FileStore, MemoryStore, check_schema


class TestMemoryStore:
    def test_json_round_trip(self):
        store = MemoryStore()
        store.save_json("k", {"a": 1, "b": [1, 2]})
        assert store.load_json("k") == {"a": 1, "b": [1, 2]}

    def test_missing_and_malformed_values(self):
        store = MemoryStore({"bad": "{oops", "list": "[1, 2]"})
        assert store.load_json("missing") is None
        assert store.load_json("bad") is None
        assert store.load_json("list") is None

    def test_delete(self):
        store = MemoryStore({"k": "{}"})
        store.delete("k")
        store.delete("k")
        assert "k" not in store.keys()


class TestFileStore:
    def test_values_survive_reopen(self, tmp_path):
        store = FileStore(str(tmp_path))
        store.save_json("cozy_garden_save", {"plants": []})

        reopened = FileStore(str(tmp_path))
        assert reopened.load_json("cozy_garden_save") == {"plants": []}
        assert not os.path.exists(store.path + ".tmp")

    def test_creates_missing_directory(self, tmp_path):
        store = FileStore(str(tmp_path / "nested" / "dir"))
        store.set("k", "{}")
        assert os.path.exists(store.path)

    def test_corrupt_file_starts_empty(self, tmp_path):
        path = tmp_path / "cozygarden_state.json"
        path.write_text("not json at all", encoding="utf-8")
        store = FileStore(str(tmp_path))
        assert store.get("cozy_garden_save") is None

    def test_non_string_values_are_ignored(self, tmp_path):
        path = tmp_path / "cozygarden_state.json"
        path.write_text(json.dumps({"good": "{}", "bad": 5}), encoding="utf-8")
        store = FileStore(str(tmp_path))
        assert store.get("good") == "{}"
        assert store.get("bad") is None

    def test_delete_persists(self, tmp_path):
        store = FileStore(str(tmp_path))
        store.set("k", "{}")
        store.delete("k")
        assert FileStore(str(tmp_path)).get("k") is None


def test_check_schema():
    assert check_schema({})
    assert check_schema({"schema_version": 1})
    assert not check_schema({"schema_version": 0})
    assert not check_schema({"schema_version": 2})
    assert not check_schema({"schema_version": "x"})
