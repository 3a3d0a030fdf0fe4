"""Persistence helpers for reservation engine snapshots."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

from tracking import t


class JsonSnapshotRepository:
    """Read/write JSON snapshots, one backing file per key."""

    def __init__(self, directory: str, *, logger: Any) -> None:
        t('reservations.store.snapshot_repository.JsonSnapshotRepository.__init__')
        self._directory = Path(directory)
        self._logger = logger

    def path_for(self, key: str) -> Path:
        return self._directory / f"{key}.json"

    def load(self, key: str) -> Optional[Any]:
        """Load a snapshot, returning ``None`` when missing or unreadable."""

        t('reservations.store.snapshot_repository.JsonSnapshotRepository.load')
        path = self.path_for(key)
        if not path.exists():
            self._logger.debug("Snapshot %s does not exist at %s", key, path)
            return None
        try:
            with path.open('r', encoding='utf-8') as handle:
                payload = json.load(handle)
        except (OSError, ValueError) as exc:
            self._logger.error("Failed to load snapshot %s from %s: %s", key, path, exc)
            return None
        self._logger.debug("Loaded snapshot %s from %s", key, path)
        return payload

    def save(self, key: str, payload: Any) -> None:
        """Persist a snapshot, ensuring parent directories exist.

        Write errors propagate so the caller can decide how to degrade.
        """

        t('reservations.store.snapshot_repository.JsonSnapshotRepository.save')
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix('.json.tmp')
        with tmp_path.open('w', encoding='utf-8') as handle:
            json.dump(payload, handle, indent=2, ensure_ascii=False)
        tmp_path.replace(path)
        self._logger.debug("Snapshot %s saved to %s", key, path)
