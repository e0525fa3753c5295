from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional, Protocol

from ..core.utils import get_logger
from .records import STAR_LIST_ADAPTER, PersistedState

_log = get_logger()


class KeyValueStore(Protocol):
    """String key/value storage, in the manner of browser local storage."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set_many(self, items: Mapping[str, str]) -> None:
        ...


class MemoryStore:
    def __init__(self, data: Optional[Mapping[str, str]] = None) -> None:
        self.data: Dict[str, str] = dict(data or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set_many(self, items: Mapping[str, str]) -> None:
        self.data.update(items)


class JsonFileStore:
    """Key/value pairs kept as one JSON object on disk.

    Writes go to a temporary file in the same directory and are moved into
    place with :func:`os.replace`, so a multi-key update lands as a unit.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not hold a JSON object")
        return data

    def get(self, key: str) -> Optional[str]:
        value = self._read_all().get(key)
        return None if value is None else str(value)

    def set_many(self, items: Mapping[str, str]) -> None:
        try:
            data = self._read_all()
        except ValueError:
            _log.warning("Replacing unreadable store %s", self.path)
            data = {}
        data.update(items)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp, self.path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise


@dataclass(frozen=True)
class StorageKeys:
    click_flag: str = "yoga-connection-clicked"
    total_count: str = "yoga-connection-total"
    star_list: str = "yoga-connection-stars"


class PersistenceGateway:
    """Loads and saves the click flag, total count and star list.

    Loading never raises: missing or malformed values fall back to defaults.
    The star list is authoritative; a stored total that disagrees with its
    length is replaced by the length. Saving reports failure by returning
    False instead of raising.
    """

    def __init__(self, store: KeyValueStore, keys: Optional[StorageKeys] = None) -> None:
        self.store = store
        self.keys = keys or StorageKeys()

    def _get(self, key: str) -> Optional[str]:
        try:
            return self.store.get(key)
        except (OSError, ValueError) as exc:
            _log.warning("Could not read '%s' from storage: %s", key, exc)
            return None

    def load(self) -> PersistedState:
        flag_raw = self._get(self.keys.click_flag)
        total_raw = self._get(self.keys.total_count)
        stars_raw = self._get(self.keys.star_list)

        stars = []
        if stars_raw is not None:
            try:
                stars = STAR_LIST_ADAPTER.validate_json(stars_raw)
            except ValueError:
                _log.warning("Malformed star list in '%s'; starting empty.", self.keys.star_list)
                stars = []

        total = 0
        if total_raw is not None:
            try:
                total = int(total_raw.strip())
            except ValueError:
                _log.warning("Non-numeric total '%s' in '%s'; using 0.", total_raw, self.keys.total_count)
                total = 0
            if total < 0:
                _log.warning("Negative total %d in '%s'; using 0.", total, self.keys.total_count)
                total = 0

        if total != len(stars):
            _log.warning("Stored total %d disagrees with %d stored stars; using the star count.", total, len(stars))
            total = len(stars)

        has_clicked = flag_raw == "true"
        if has_clicked != (total > 0):
            _log.warning("Stored click flag %r disagrees with %d stored stars.", flag_raw, total)
            has_clicked = total > 0

        return PersistedState(has_clicked=has_clicked, total_clicks=total, stars=list(stars))

    def save(self, state: PersistedState) -> bool:
        try:
            items = {
                self.keys.click_flag: "true" if state.has_clicked else "false",
                self.keys.total_count: str(int(state.total_clicks)),
                self.keys.star_list: STAR_LIST_ADAPTER.dump_json(state.stars).decode("utf-8"),
            }
            self.store.set_many(items)
        except (OSError, TypeError, ValueError) as exc:
            _log.warning("Could not persist session state: %s", exc)
            return False
        return True
