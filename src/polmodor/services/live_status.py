"""Live status surface synchronisation.

A live status surface mirrors the timer outside the main UI (a status-bar
widget, a lock-screen card). At most one surface is alive at a time: starting
a new one tears the previous one down first.

The concrete backend here writes one JSON file per surface, the format
status-bar tools like eww or waybar poll.
"""

from __future__ import annotations

import asyncio
import json
import os
import uuid
from dataclasses import dataclass, replace
from datetime import datetime
from pathlib import Path
from typing import Protocol

from polmodor.models.timer.session import SessionKind
from polmodor.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class SurfaceState:
    """Content of a live status surface."""

    label: str
    remaining: int
    kind: SessionKind
    started_at: datetime | None
    paused_at: datetime | None
    nominal_duration: int
    locked: bool = False

    @property
    def is_break(self) -> bool:
        return self.kind.is_break

    @property
    def progress(self) -> float:
        if self.nominal_duration <= 0:
            return 0.0
        done = (self.nominal_duration - self.remaining) / self.nominal_duration
        return max(0.0, min(1.0, done))

    def to_dict(self) -> dict:
        mins, secs = divmod(max(0, self.remaining), 60)
        return {
            "label": self.label,
            "remaining": self.remaining,
            "time_display": f"{mins:02d}:{secs:02d}",
            "kind": self.kind.value,
            "title": self.kind.title,
            "icon": self.kind.emoji,
            "is_break": self.is_break,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "paused_at": self.paused_at.isoformat() if self.paused_at else None,
            "is_paused": self.paused_at is not None,
            "nominal_duration": self.nominal_duration,
            "progress": round(self.progress, 4),
            "percent": int(self.progress * 100),
            "locked": self.locked,
        }


class SurfaceBackend(Protocol):
    """Platform side of a live status surface."""

    def is_enabled(self) -> bool: ...

    def request(self, state: SurfaceState) -> str: ...

    def update(self, surface_id: str, state: SurfaceState) -> None: ...

    def end(self, surface_id: str) -> None: ...

    def list_active(self) -> list[str]: ...


class StatusFileBackend:
    """Publishes each surface as ``<id>.json`` inside *directory*."""

    suffix = ".json"

    def __init__(self, directory: Path, enabled: bool = True):
        self.directory = Path(directory)
        self.enabled = enabled

    def is_enabled(self) -> bool:
        return self.enabled

    def _path(self, surface_id: str) -> Path:
        return self.directory / f"{surface_id}{self.suffix}"

    def _write(self, surface_id: str, state: SurfaceState) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(surface_id)
        tmp = path.with_suffix(".tmp")
        payload = {"id": surface_id, **state.to_dict()}
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(payload, f)
            f.write("\n")
        os.replace(tmp, path)

    def request(self, state: SurfaceState) -> str:
        surface_id = uuid.uuid4().hex
        self._write(surface_id, state)
        return surface_id

    def update(self, surface_id: str, state: SurfaceState) -> None:
        if not self._path(surface_id).exists():
            raise FileNotFoundError(f"surface {surface_id} is gone")
        self._write(surface_id, state)

    def end(self, surface_id: str) -> None:
        self._path(surface_id).unlink(missing_ok=True)

    def list_active(self) -> list[str]:
        if not self.directory.exists():
            return []
        return sorted(p.stem for p in self.directory.glob(f"*{self.suffix}"))


class LiveStatusSync:
    """Keeps at most one live status surface in step with the timer.

    All operations are coroutines serialised by one lock, so a teardown
    requested before a start always finishes before it. Backend failures are
    logged and leave the timer without a surface.
    """

    def __init__(
        self,
        backend: SurfaceBackend,
        grace_delay: float = 0.5,
        cleanup_passes: int = 3,
    ):
        self.backend = backend
        self.grace_delay = grace_delay
        self.cleanup_passes = cleanup_passes
        self._surface_id: str | None = None
        self._state: SurfaceState | None = None
        self._lock = asyncio.Lock()

    @property
    def is_active(self) -> bool:
        return self._surface_id is not None

    @property
    def state(self) -> SurfaceState | None:
        return self._state

    async def start_surface(
        self,
        label: str,
        remaining: int,
        kind: SessionKind,
        started_at: datetime | None,
        paused_at: datetime | None,
        nominal_duration: int,
        locked: bool = False,
    ) -> None:
        async with self._lock:
            if not self.backend.is_enabled():
                logger.debug("live status disabled, not starting a surface")
                return

            if self._surface_id is not None:
                self._end_current()
                await asyncio.sleep(self.grace_delay)

            state = SurfaceState(
                label=label,
                remaining=remaining,
                kind=kind,
                started_at=started_at,
                paused_at=paused_at,
                nominal_duration=nominal_duration,
                locked=locked,
            )
            try:
                self._surface_id = self.backend.request(state)
                self._state = state
                logger.info("live status surface started: %s", self._surface_id)
            except Exception:
                self._surface_id = None
                self._state = None
                logger.warning("could not start live status surface", exc_info=True)

    async def update_surface(
        self,
        label: str | None = None,
        remaining: int | None = None,
        kind: SessionKind | None = None,
        started_at: datetime | None = None,
        paused_at: datetime | None = None,
        nominal_duration: int | None = None,
        locked: bool | None = None,
    ) -> None:
        """Merge the given fields into the surface.

        Omitted fields keep their last value, except ``paused_at``, which is
        always replaced (``None`` means running).
        """
        async with self._lock:
            if self._surface_id is None or self._state is None:
                return

            current = self._state
            state = replace(
                current,
                label=current.label if label is None else label,
                remaining=current.remaining if remaining is None else remaining,
                kind=current.kind if kind is None else kind,
                started_at=current.started_at if started_at is None else started_at,
                paused_at=paused_at,
                nominal_duration=(
                    current.nominal_duration
                    if nominal_duration is None
                    else nominal_duration
                ),
                locked=current.locked if locked is None else locked,
            )
            try:
                self.backend.update(self._surface_id, state)
                self._state = state
            except FileNotFoundError:
                logger.info(
                    "live status surface %s vanished, requesting a new one",
                    self._surface_id,
                )
                self._replace_vanished(state)
            except Exception:
                logger.warning(
                    "could not update live status surface %s",
                    self._surface_id,
                    exc_info=True,
                )

    async def end_surface(self) -> None:
        async with self._lock:
            self._end_current()

    async def toggle_pause(
        self, paused: bool, remaining: int, paused_at: datetime | None = None
    ) -> None:
        if paused and paused_at is None:
            paused_at = datetime.now().astimezone()
        await self.update_surface(
            remaining=remaining, paused_at=paused_at if paused else None
        )

    async def toggle_lock(self, locked: bool) -> None:
        paused_at = self._state.paused_at if self._state else None
        await self.update_surface(locked=locked, paused_at=paused_at)

    async def cleanup_orphans(self) -> int:
        """Remove surfaces left behind by earlier processes.

        Runs up to ``cleanup_passes`` passes, since a platform may report a
        surface again right after it was ended. Returns how many were removed.
        """
        removed = 0
        async with self._lock:
            for attempt in range(self.cleanup_passes):
                try:
                    stale = [
                        sid
                        for sid in self.backend.list_active()
                        if sid != self._surface_id
                    ]
                except Exception:
                    logger.warning("could not list live status surfaces", exc_info=True)
                    break
                if not stale:
                    break
                for surface_id in stale:
                    try:
                        self.backend.end(surface_id)
                        removed += 1
                    except Exception:
                        logger.warning(
                            "could not end orphaned surface %s",
                            surface_id,
                            exc_info=True,
                        )
                if attempt + 1 < self.cleanup_passes:
                    await asyncio.sleep(self.grace_delay)
        if removed:
            logger.info("removed %d orphaned live status surface(s)", removed)
        return removed

    def _replace_vanished(self, state: SurfaceState) -> None:
        try:
            self._surface_id = self.backend.request(state)
            self._state = state
            logger.info("live status surface started: %s", self._surface_id)
        except Exception:
            self._surface_id = None
            self._state = None
            logger.warning("could not restart live status surface", exc_info=True)

    def _end_current(self) -> None:
        surface_id = self._surface_id
        self._surface_id = None
        self._state = None
        if surface_id is None:
            return
        try:
            self.backend.end(surface_id)
            logger.info("live status surface ended: %s", surface_id)
        except Exception:
            logger.warning(
                "could not end live status surface %s", surface_id, exc_info=True
            )
