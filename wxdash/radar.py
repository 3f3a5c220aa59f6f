"""Radar frame listing and the playback sequencer.

The sequencer owns three parallel lists (frames, loaded flags, layer
handles) and a current index. It never touches a real map: everything
visual goes through a ``MapAdapter`` and playback is driven by a ``Timer``,
so the bookkeeping can be exercised without a browser.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional

import requests

from .config import (
    RADAR_BASE_Z_INDEX,
    RADAR_FALLBACK_PATH,
    RADAR_FALLBACK_Z_INDEX,
    RADAR_LISTING_URL,
    RADAR_MIN_STEP_MS,
    RADAR_OPACITY,
    RADAR_PAST_FRAMES,
    RADAR_STEP_MS,
    RADAR_TILE_TEMPLATE,
)
from .upstream import UpstreamError, fetch_json

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Frame:
    time: int  # unix seconds
    path: str

    @classmethod
    def from_upstream(cls, raw: Any) -> Optional["Frame"]:
        if not isinstance(raw, dict) or not raw.get("path"):
            return None
        try:
            return cls(time=int(raw["time"]), path=str(raw["path"]))
        except (KeyError, TypeError, ValueError):
            return None


def tile_url(path: str) -> str:
    return RADAR_TILE_TEMPLATE.format(path=path)


def parse_frame_listing(payload: Any, past_limit: int = RADAR_PAST_FRAMES) -> List[Frame]:
    """Last ``past_limit`` past scans followed by every nowcast scan, time ascending."""
    radar = payload.get("radar") if isinstance(payload, dict) else None
    if not isinstance(radar, dict):
        return []

    def _frames(key: str) -> List[Frame]:
        raw = radar.get(key)
        if not isinstance(raw, list):
            return []
        return [f for f in (Frame.from_upstream(r) for r in raw) if f is not None]

    past = _frames("past")[-past_limit:] if past_limit > 0 else []
    frames = past + _frames("nowcast")
    return sorted(frames, key=lambda f: f.time)


def fetch_frames(session: Optional[requests.Session] = None) -> List[Frame]:
    """Fetch the radar listing. Returns [] on any failure."""
    try:
        payload = fetch_json(RADAR_LISTING_URL, session=session)
    except UpstreamError as e:
        logger.warning("[Radar] Frame listing failed: %s", e)
        return []
    frames = parse_frame_listing(payload)
    logger.info("[Radar] %d frames available", len(frames))
    return frames


class MapAdapter:
    """What the sequencer needs from a map widget.

    ``on_loading``/``on_load`` must be called by the widget whenever one of
    the layer's tiles starts/finishes loading.
    """

    def create_group(self, name: str) -> Any:
        raise NotImplementedError

    def create_layer(
        self,
        url: str,
        opacity: float,
        z_index: int,
        group: Any,
        on_loading: Callable[[], None],
        on_load: Callable[[], None],
    ) -> Any:
        raise NotImplementedError

    def set_opacity(self, layer: Any, opacity: float) -> None:
        raise NotImplementedError

    def bring_to_front(self, layer: Any) -> None:
        raise NotImplementedError

    def remove_layer(self, layer: Any) -> None:
        raise NotImplementedError

    def remove_group(self, group: Any) -> None:
        raise NotImplementedError


class LogMap(MapAdapter):
    """Map adapter with no widget behind it: layers are dicts and the frame shown is logged."""

    def create_group(self, name: str) -> Any:
        return {"name": name}

    def create_layer(self, url, opacity, z_index, group, on_loading, on_load):
        return {"url": url, "opacity": opacity, "z_index": z_index}

    def set_opacity(self, layer: Any, opacity: float) -> None:
        layer["opacity"] = opacity

    def bring_to_front(self, layer: Any) -> None:
        logger.info("[Radar] Showing %s", layer["url"])

    def remove_layer(self, layer: Any) -> None:
        layer["opacity"] = 0.0

    def remove_group(self, group: Any) -> None:
        pass


class Timer:
    """Repeating timer: ``on_tick`` every ``interval`` seconds until stopped."""

    def start(self, interval: float, on_tick: Callable[[], None]) -> None:
        raise NotImplementedError

    def stop(self) -> None:
        raise NotImplementedError


class _TileLoadTracker:
    """Counts a layer's pending tiles; marks its frame loaded at zero."""

    def __init__(self, sequencer: "RadarSequencer", index: int, generation: int):
        self.sequencer = sequencer
        self.index = index
        self.generation = generation
        self.pending = 0

    def on_loading(self) -> None:
        self.pending += 1

    def on_load(self) -> None:
        self.pending = max(0, self.pending - 1)
        if self.pending == 0:
            self.sequencer.mark_loaded(self.index, self.generation)


class RadarSequencer:
    def __init__(
        self,
        map_adapter: MapAdapter,
        timer: Optional[Timer] = None,
        opacity: float = RADAR_OPACITY,
        step_ms: int = RADAR_STEP_MS,
    ):
        self.map = map_adapter
        self.timer = timer
        self.opacity = opacity
        self.step_ms = max(RADAR_MIN_STEP_MS, step_ms)

        self.frames: List[Frame] = []
        self.loaded: List[bool] = []
        self.layers: List[Any] = []
        self.index = 0
        self.playing = False

        self._group: Any = None
        self._static_layer: Any = None
        self._generation = 0
        self._lock = threading.RLock()

    # -- lifecycle -------------------------------------------------------

    def initialize(self, frames: List[Frame]) -> None:
        """Build one hidden layer per frame and show the most recent one."""
        with self._lock:
            self._clear_layers()
            self._generation += 1
            self._group = self.map.create_group("Radar")

            if not frames:
                logger.info("[Radar] No frames; using static latest layer")
                self._static_layer = self.map.create_layer(
                    tile_url(RADAR_FALLBACK_PATH),
                    opacity=self.opacity,
                    z_index=RADAR_FALLBACK_Z_INDEX,
                    group=self._group,
                    on_loading=lambda: None,
                    on_load=lambda: None,
                )
                return

            for i, frame in enumerate(frames):
                tracker = _TileLoadTracker(self, i, self._generation)
                layer = self.map.create_layer(
                    tile_url(frame.path),
                    opacity=0.0,
                    z_index=RADAR_BASE_Z_INDEX + i,
                    group=self._group,
                    on_loading=tracker.on_loading,
                    on_load=tracker.on_load,
                )
                self.frames.append(frame)
                self.layers.append(layer)
                self.loaded.append(False)

            self.index = len(self.frames) - 1
            self.show_frame(self.index)

    def load(self, session: Optional[requests.Session] = None) -> None:
        """Fetch the listing and initialize from it."""
        self.initialize(fetch_frames(session=session))

    def teardown(self) -> None:
        # Stop outside the lock; a tick in flight needs it to finish.
        self.set_playing(False)
        with self._lock:
            self._clear_layers()
            self._generation += 1

    def _clear_layers(self) -> None:
        for layer in self.layers:
            self.map.remove_layer(layer)
        if self._static_layer is not None:
            self.map.remove_layer(self._static_layer)
            self._static_layer = None
        if self._group is not None:
            self.map.remove_group(self._group)
            self._group = None
        self.frames = []
        self.loaded = []
        self.layers = []
        self.index = 0

    # -- frame selection -------------------------------------------------

    @property
    def is_static(self) -> bool:
        return self._static_layer is not None

    def clamp(self, index: int) -> int:
        if not self.layers:
            return 0
        return max(0, min(index, len(self.layers) - 1))

    def show_frame(self, index: int) -> Optional[int]:
        """Make exactly one layer visible. Returns the clamped index, None if empty."""
        with self._lock:
            if not self.layers:
                return None
            selected = self.clamp(index)
            for i, layer in enumerate(self.layers):
                self.map.set_opacity(layer, self.opacity if i == selected else 0.0)
            self.map.bring_to_front(self.layers[selected])
            return selected

    def scrub(self, index: int) -> Optional[int]:
        with self._lock:
            selected = self.show_frame(index)
            if selected is not None:
                self.index = selected
            return selected

    def next_index(self) -> Optional[int]:
        """The frame autoplay would show next, skipping frames still loading."""
        with self._lock:
            count = len(self.layers)
            if not count:
                return None
            candidate = (self.index + 1) % count
            for offset in range(count):
                nxt = (candidate + offset) % count
                if self.loaded[nxt]:
                    return nxt
            return candidate

    def advance(self) -> Optional[int]:
        with self._lock:
            nxt = self.next_index()
            if nxt is None:
                return None
            self.index = self.show_frame(nxt)
            return self.index

    def mark_loaded(self, index: int, generation: Optional[int] = None) -> None:
        with self._lock:
            if generation is not None and generation != self._generation:
                return
            if 0 <= index < len(self.loaded):
                self.loaded[index] = True

    # -- playback --------------------------------------------------------

    def set_step(self, step_ms: int) -> None:
        self.step_ms = max(RADAR_MIN_STEP_MS, step_ms)
        if self.playing:
            self.set_playing(False)
            self.set_playing(True)

    def set_playing(self, playing: bool) -> None:
        if self.timer is None:
            self.playing = False
            return
        if playing and (self.is_static or not self.layers):
            return
        if playing and not self.playing:
            self.timer.start(self.step_ms / 1000.0, self.advance)
        elif not playing and self.playing:
            self.timer.stop()
        self.playing = playing

    # -- display ---------------------------------------------------------

    def frame_label(self, tz: Optional[Any] = None) -> str:
        """Active frame time like "3:45 PM EDT", or "Radar" when there is none."""
        with self._lock:
            if not self.frames:
                return "Radar"
            frame = self.frames[self.clamp(self.index)]
        if not frame.time:
            return "Radar"
        try:
            stamp = datetime.fromtimestamp(frame.time, tz=timezone.utc).astimezone(tz)
        except (OverflowError, OSError, ValueError):
            return "Radar"
        return f"{stamp.strftime('%I:%M %p').lstrip('0')} {stamp.tzname() or ''}".strip()
