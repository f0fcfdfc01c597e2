"""Token-gated render state for widget display regions.

Each region holds exactly one render state. ``begin`` issues a new token and
every later write must present the latest token for that region, so a slow job
that finishes after a newer one was started cannot overwrite fresher content.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from jobs.errors import ConfigurationFailure

logger = logging.getLogger(__name__)


class RenderState(Enum):
    EMPTY = "empty"
    LOADING = "loading"
    CONTENT = "content"
    ERROR = "error"


@dataclass
class RegionSnapshot:
    name: str
    state: RenderState = RenderState.EMPTY
    content: Any = None
    error: str | None = None
    message: str | None = None  # loading/progress text
    token: int | None = None
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "state": self.state.value,
            "content": self.content,
            "error": self.error,
            "message": self.message,
            "token": self.token,
            "updated_at": self.updated_at.isoformat(),
        }


class ViewStateReconciler:
    def __init__(self):
        self._regions: dict[str, RegionSnapshot] = {}
        self._handles: dict[str, RegionHandle] = {}
        self._tokens = itertools.count(1)

    def register(self, name: str) -> "RegionHandle":
        if name not in self._regions:
            self._regions[name] = RegionSnapshot(name=name)
            self._handles[name] = RegionHandle(self, name)
        return self._handles[name]

    def region(self, name: str) -> "RegionHandle":
        """Resolve a registered region; unknown names are a configuration error."""
        try:
            return self._handles[name]
        except KeyError:
            raise ConfigurationFailure(f"Display region '{name}' is not registered") from None

    def names(self) -> list[str]:
        return sorted(self._regions)

    def begin(self, name: str, message: str | None = None) -> int:
        region = self._get(name)
        token = next(self._tokens)
        region.state = RenderState.LOADING
        region.content = None
        region.error = None
        region.message = message
        region.token = token
        self._touch(region)
        return token

    def is_current(self, name: str, token: int) -> bool:
        return self._get(name).token == token

    def commit(self, name: str, token: int, content: Any) -> bool:
        region = self._get(name)
        if region.token != token:
            logger.debug("Discarding stale result for %s (token %s, latest %s)", name, token, region.token)
            return False
        region.state = RenderState.CONTENT
        region.content = content
        region.error = None
        region.message = None
        self._touch(region)
        return True

    def fail(self, name: str, token: int, error_detail: str) -> bool:
        region = self._get(name)
        if region.token != token:
            logger.debug("Discarding stale failure for %s (token %s, latest %s)", name, token, region.token)
            return False
        region.state = RenderState.ERROR
        region.content = None
        region.error = error_detail
        region.message = None
        self._touch(region)
        return True

    def progress(self, name: str, token: int, message: str) -> bool:
        region = self._get(name)
        if region.token != token or region.state != RenderState.LOADING:
            return False
        region.message = message
        self._touch(region)
        return True

    def reset(self, name: str) -> None:
        """Return the region to empty and invalidate any outstanding token."""
        region = self._get(name)
        region.state = RenderState.EMPTY
        region.content = None
        region.error = None
        region.message = None
        region.token = next(self._tokens)
        self._touch(region)

    def snapshot(self, name: str) -> RegionSnapshot:
        return replace(self._get(name))

    def snapshots(self) -> list[RegionSnapshot]:
        return [replace(self._regions[name]) for name in self.names()]

    def _get(self, name: str) -> RegionSnapshot:
        try:
            return self._regions[name]
        except KeyError:
            raise ConfigurationFailure(f"Display region '{name}' is not registered") from None

    @staticmethod
    def _touch(region: RegionSnapshot) -> None:
        region.updated_at = datetime.now(timezone.utc)


class RegionHandle:
    """A region resolved once at widget construction."""

    def __init__(self, reconciler: ViewStateReconciler, name: str):
        self._reconciler = reconciler
        self.name = name

    def begin(self, message: str | None = None) -> int:
        return self._reconciler.begin(self.name, message)

    def commit(self, token: int, content: Any) -> bool:
        return self._reconciler.commit(self.name, token, content)

    def fail(self, token: int, error_detail: str) -> bool:
        return self._reconciler.fail(self.name, token, error_detail)

    def progress(self, token: int, message: str) -> bool:
        return self._reconciler.progress(self.name, token, message)

    def is_current(self, token: int) -> bool:
        return self._reconciler.is_current(self.name, token)

    def reset(self) -> None:
        self._reconciler.reset(self.name)

    def snapshot(self) -> RegionSnapshot:
        return self._reconciler.snapshot(self.name)

    def __repr__(self) -> str:
        return f"RegionHandle({self.name!r})"
