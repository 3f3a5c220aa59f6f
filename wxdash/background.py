"""Background timer thread driving radar playback, and a headless player on top of it."""

from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional

from .config import RADAR_STEP_MS
from .radar import Frame, LogMap, MapAdapter, RadarSequencer, Timer

logger = logging.getLogger(__name__)


def tick_loop(stop_event: threading.Event, interval: float, on_tick: Callable[[], None]) -> None:
    """Call on_tick every interval seconds until stop_event is set."""
    # Wait first: the current frame is already on screen when playback starts
    while not stop_event.wait(interval):
        try:
            on_tick()
        except Exception as e:
            logger.error("[Timer] Tick error: %s", e)


class IntervalTimer(Timer):
    """Timer backed by a daemon thread waiting on a threading.Event."""

    def __init__(self, name: str = "radar-playback"):
        self.name = name
        self._stop_event: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self, interval: float, on_tick: Callable[[], None]) -> None:
        self.stop()
        stop_event = threading.Event()
        thread = threading.Thread(
            target=tick_loop,
            args=(stop_event, interval, on_tick),
            name=self.name,
            daemon=True,
        )
        self._stop_event = stop_event
        self._thread = thread
        thread.start()
        logger.debug("[Timer] Started %s every %.3fs", self.name, interval)

    def stop(self) -> None:
        if self._stop_event is None:
            return
        self._stop_event.set()
        thread = self._thread
        self._stop_event = None
        self._thread = None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=2)
        logger.debug("[Timer] Stopped %s", self.name)


def play(
    frames: List[Frame],
    seconds: float,
    step_ms: int = RADAR_STEP_MS,
    map_adapter: Optional[MapAdapter] = None,
    stop_event: Optional[threading.Event] = None,
) -> RadarSequencer:
    """Loop the frames on an IntervalTimer for ``seconds`` (or until stop_event is set), then tear down."""
    sequencer = RadarSequencer(map_adapter or LogMap(), IntervalTimer(), step_ms=step_ms)
    sequencer.initialize(frames)
    sequencer.set_playing(True)
    logger.info("[Radar] Playing %d frames every %d ms", len(sequencer.frames), sequencer.step_ms)
    try:
        (stop_event or threading.Event()).wait(seconds)
    finally:
        sequencer.teardown()
    return sequencer
