import json
from pathlib import Path

from starscene.persistence.gateway import JsonFileStore, MemoryStore, PersistenceGateway, StorageKeys
from starscene.persistence.records import ClickedStar, PersistedState


def _stars(n: int) -> list[ClickedStar]:
    return [ClickedStar(id=1000 + i, x=10.0 * i + 0.5, y=99.25 - i) for i in range(n)]


def test_round_trip_in_memory() -> None:
    gateway = PersistenceGateway(MemoryStore())
    state = PersistedState(has_clicked=True, total_clicks=5, stars=_stars(5))
    assert gateway.save(state)
    assert gateway.load() == state


def test_defaults_when_store_is_empty() -> None:
    assert PersistenceGateway(MemoryStore()).load() == PersistedState()


def test_stored_shape() -> None:
    store = MemoryStore()
    PersistenceGateway(store).save(PersistedState(True, 2, _stars(2)))
    assert store.data["yoga-connection-clicked"] == "true"
    assert store.data["yoga-connection-total"] == "2"
    assert json.loads(store.data["yoga-connection-stars"]) == [
        {"id": 1000, "x": 0.5, "y": 99.25},
        {"id": 1001, "x": 10.5, "y": 98.25},
    ]


def test_malformed_star_list_falls_back_to_defaults() -> None:
    store = MemoryStore({
        "yoga-connection-clicked": "true",
        "yoga-connection-total": "2",
        "yoga-connection-stars": "{not json",
    })
    assert PersistenceGateway(store).load() == PersistedState()


def test_wrongly_shaped_star_list_falls_back() -> None:
    store = MemoryStore({"yoga-connection-stars": json.dumps([{"id": "abc", "x": 1}])})
    assert PersistenceGateway(store).load().stars == []


def test_non_numeric_total_uses_star_count() -> None:
    stars = _stars(2)
    store = MemoryStore({
        "yoga-connection-clicked": "true",
        "yoga-connection-total": "lots",
        "yoga-connection-stars": json.dumps([s.model_dump() for s in stars]),
    })
    loaded = PersistenceGateway(store).load()
    assert loaded.total_clicks == 2
    assert loaded.has_clicked
    assert loaded.stars == stars


def test_star_list_is_authoritative_over_total() -> None:
    store = MemoryStore({
        "yoga-connection-clicked": "true",
        "yoga-connection-total": "7",
        "yoga-connection-stars": json.dumps([s.model_dump() for s in _stars(3)]),
    })
    loaded = PersistenceGateway(store).load()
    assert loaded.total_clicks == 3
    assert loaded.has_clicked


def test_save_failure_returns_false() -> None:
    class FailingStore(MemoryStore):
        def set_many(self, items):
            raise OSError("read-only")

    assert PersistenceGateway(FailingStore()).save(PersistedState(True, 1, _stars(1))) is False


def test_custom_keys() -> None:
    store = MemoryStore()
    keys = StorageKeys(click_flag="f", total_count="t", star_list="s")
    gateway = PersistenceGateway(store, keys)
    gateway.save(PersistedState(True, 1, _stars(1)))
    assert set(store.data) == {"f", "t", "s"}
    assert gateway.load().total_clicks == 1


def test_json_file_store_round_trip(tmp_path: Path) -> None:
    path = tmp_path / "state" / "session.json"
    state = PersistedState(True, 3, _stars(3))
    assert PersistenceGateway(JsonFileStore(path)).save(state)
    assert PersistenceGateway(JsonFileStore(path)).load() == state
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    assert set(data) == {"yoga-connection-clicked", "yoga-connection-total", "yoga-connection-stars"}
    assert [p.name for p in path.parent.iterdir()] == ["session.json"]


def test_json_file_store_keeps_unrelated_keys(tmp_path: Path) -> None:
    path = tmp_path / "session.json"
    path.write_text(json.dumps({"theme": "dark"}), encoding="utf-8")
    PersistenceGateway(JsonFileStore(path)).save(PersistedState(True, 1, _stars(1)))
    assert JsonFileStore(path).get("theme") == "dark"


def test_corrupt_json_file_loads_defaults(tmp_path: Path) -> None:
    path = tmp_path / "session.json"
    path.write_text("garbage", encoding="utf-8")
    gateway = PersistenceGateway(JsonFileStore(path))
    assert gateway.load() == PersistedState()
    assert gateway.save(PersistedState(True, 1, _stars(1)))
    assert gateway.load().total_clicks == 1
