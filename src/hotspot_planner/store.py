"""Tiered on-disk store for snapshots that outlive one process.

Files are grouped by how quickly they go stale:
  - reference/: eBird taxonomy, refreshed weekly
  - live/: finished searches, kept for an hour
  - derived/: itineraries and other exports, never considered fresh

Each file is one JSON object ``{"meta": {...}, "data": ...}``. ``meta`` records
where the payload came from and, for cached tiers, ``valid_until``. Reads
never check expiry; callers decide whether a stale snapshot is still useful
(the taxonomy flow serves it when a refresh fails).
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from datetime import UTC, datetime, timedelta
from pathlib import Path  # noqa: TC003
from typing import Any, TypeVar

from pydantic import BaseModel

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class DataStore:
    """JSON snapshots with metadata envelopes under ``base_dir``."""

    def __init__(self, base_dir: Path) -> None:
        self.base = base_dir
        self.reference = base_dir / "reference"
        self.live = base_dir / "live"
        self.derived = base_dir / "derived"

    # -- writing --------------------------------------------------------------

    def write(
        self,
        path: Path,
        data: Any,
        source: str,
        valid_until: datetime | None = None,
        **params: Any,
    ) -> Path:
        """Store ``data`` at ``path`` and return the absolute file path.

        The envelope goes to a ``.tmp`` sibling first and is renamed over the
        target, so a concurrent reader sees the old file or the new one.

        Args:
            path: Location relative to the base, e.g. ``reference/taxonomy.json``.
            data: JSON-serializable payload.
            source: Upstream the payload came from, e.g. ``"ebird.org"``.
            valid_until: When the snapshot expires. ``None`` for derived output.
            **params: Extra ``meta`` fields such as the search origin.
        """
        target = self._resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)

        meta: dict[str, Any] = {"source": source, "fetched_at": datetime.now(UTC).isoformat()}
        if valid_until is not None:
            meta["valid_until"] = valid_until.isoformat()
        meta.update(params)

        staging = target.with_name(target.name + ".tmp")
        staging.write_text(json.dumps({"meta": meta, "data": data}, indent=2))
        staging.replace(target)
        logger.debug("Wrote %s (source=%s)", target, source)
        return target

    def write_models(
        self,
        path: Path,
        models: Iterable[BaseModel],
        source: str,
        ttl: timedelta | None = None,
        **params: Any,
    ) -> Path:
        """Store a list of pydantic models, expiring ``ttl`` from now."""
        valid_until = datetime.now(UTC) + ttl if ttl is not None else None
        payload = [m.model_dump(mode="json") for m in models]
        return self.write(path, payload, source, valid_until=valid_until, **params)

    # -- reading --------------------------------------------------------------

    def read_raw(self, path: Path) -> dict[str, Any] | None:
        """The whole envelope, or ``None`` if nothing is stored at ``path``."""
        target = self._resolve(path)
        if not target.exists():
            return None
        envelope: dict[str, Any] = json.loads(target.read_text())
        return envelope

    def read(self, path: Path) -> Any:
        """The ``data`` payload, fresh or not. ``None`` when missing."""
        envelope = self.read_raw(path)
        if envelope is None:
            return None
        return envelope.get("data", envelope)

    def read_models(self, path: Path, model: type[M]) -> list[M]:
        """Validate a stored list back into ``model`` instances. Empty when missing."""
        return [model.model_validate(item) for item in self.read(path) or []]

    def file_path(self, path: Path) -> Path | None:
        target = self._resolve(path)
        return target if target.exists() else None

    # -- freshness ------------------------------------------------------------

    def expires_at(self, path: Path) -> datetime | None:
        """``valid_until`` from the envelope, or ``None`` if missing or uncached."""
        envelope = self.read_raw(path)
        if envelope is None:
            return None
        raw = envelope.get("meta", {}).get("valid_until")
        if raw is None:
            return None
        expiry = datetime.fromisoformat(raw)
        return expiry if expiry.tzinfo is not None else expiry.replace(tzinfo=UTC)

    def is_fresh(self, path: Path, now: datetime | None = None) -> bool:
        """True only for a stored file whose ``valid_until`` is still ahead."""
        expiry = self.expires_at(path)
        return expiry is not None and (now or datetime.now(UTC)) < expiry

    def prune(self, directory: Path, now: datetime | None = None) -> list[Path]:
        """Delete expired snapshots directly under ``directory``.

        Files without ``valid_until`` are kept. Returns the removed paths.
        """
        folder = self._resolve(directory)
        if not folder.is_dir():
            return []

        removed: list[Path] = []
        for file in sorted(folder.glob("*.json")):
            relative = file.relative_to(self.base)
            expiry = self.expires_at(relative)
            if expiry is not None and (now or datetime.now(UTC)) >= expiry:
                file.unlink()
                removed.append(file)
        if removed:
            logger.info("Pruned %d expired snapshots from %s", len(removed), directory)
        return removed

    def _resolve(self, path: Path) -> Path:
        target = path if path.is_absolute() else self.base / path
        try:
            target.resolve().relative_to(self.base.resolve())
        except ValueError:
            msg = f"Path escapes store base directory: {path}"
            raise ValueError(msg) from None
        return target
