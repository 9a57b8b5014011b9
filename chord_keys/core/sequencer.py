"""Chord sequencer — records chord triggers and replays them with fixed pacing.

The recorder and playback loop are pure Python and importable without Qt.
The Qt controller below is defined lazily and requires a running QApplication.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import IntEnum, auto
from typing import TYPE_CHECKING, Protocol

from .chord_theory import ChordParams, ChordQuality, ChordType
from .constants import DEFAULT_DWELL_SECONDS, DEFAULT_GAP_SECONDS

if TYPE_CHECKING:
    from .config import ConfigManager

log = logging.getLogger(__name__)


# ──────────────────────────────────────────────
# Pure Python (no Qt dependency)
# ──────────────────────────────────────────────

class SequencerState(IntEnum):
    IDLE = auto()
    RECORDING = auto()
    PLAYING = auto()


@dataclass(frozen=True, slots=True)
class RecordedEvent:
    """Snapshot of one chord trigger, with the params that were in effect."""

    id: int
    root: str
    octave: int
    quality: ChordQuality
    chord_type: ChordType
    inversion: int
    timestamp: float  # seconds since recording start (perf_counter based)

    @property
    def params(self) -> ChordParams:
        return ChordParams(self.quality, self.chord_type, self.inversion)


class ChordPlayer(Protocol):
    """What playback drives: attack and release of a stored chord."""

    def play_chord(self, root: str, octave: int, params: ChordParams) -> list[str]: ...

    def stop_chord(self, root: str, octave: int, params: ChordParams) -> list[str]: ...


class Scheduler(Protocol):
    def sleep(self, seconds: float, cancel: threading.Event) -> bool:
        """Wait ``seconds`` unless ``cancel`` is set first.

        Returns True if the full duration elapsed, False if cancelled.
        """
        ...


class EventScheduler:
    """Timer raced against the cancellation event — wakes as soon as it is set."""

    def sleep(self, seconds: float, cancel: threading.Event) -> bool:
        if seconds <= 0:
            return not cancel.is_set()
        return not cancel.wait(timeout=seconds)


class Sequencer:
    """Append-only chord recording plus cancellable, paced playback.

    States: IDLE → RECORDING → IDLE, IDLE → PLAYING → IDLE.
    Playback attacks each event, holds it for ``dwell`` seconds, releases it,
    then waits ``gap`` seconds before the next one (no gap after the last).
    """

    def __init__(
        self,
        player: ChordPlayer,
        dwell: float = DEFAULT_DWELL_SECONDS,
        gap: float = DEFAULT_GAP_SECONDS,
        scheduler: Scheduler | None = None,
    ) -> None:
        self._player = player
        self._dwell = dwell
        self._gap = gap
        self._scheduler: Scheduler = scheduler if scheduler is not None else EventScheduler()
        self._events: list[RecordedEvent] = []
        self._state = SequencerState.IDLE
        self._start_time: float = 0.0
        self._next_id = 1
        self._current_index: int | None = None
        self._lock = threading.Lock()
        self._cancel = threading.Event()
        self._playback_thread: threading.Thread | None = None

        # Observers for the UI layer; called on whichever thread changed state
        self.on_state_changed: Callable[[SequencerState], None] | None = None
        self.on_index_changed: Callable[[int | None], None] | None = None
        self.on_sequence_changed: Callable[[int], None] | None = None
        self.on_playback_finished: Callable[[bool], None] | None = None

    @classmethod
    def from_config(cls, config: ConfigManager, player: ChordPlayer) -> Sequencer:
        return cls(
            player,
            dwell=float(config.get("playback.dwell_seconds", DEFAULT_DWELL_SECONDS)),
            gap=float(config.get("playback.gap_seconds", DEFAULT_GAP_SECONDS)),
        )

    # --- Properties ---

    @property
    def state(self) -> SequencerState:
        return self._state

    @property
    def is_recording(self) -> bool:
        return self._state == SequencerState.RECORDING

    @property
    def is_playing(self) -> bool:
        return self._state == SequencerState.PLAYING

    @property
    def events(self) -> list[RecordedEvent]:
        """Return a copy of the recorded sequence."""
        with self._lock:
            return list(self._events)

    @property
    def event_count(self) -> int:
        return len(self._events)

    @property
    def current_index(self) -> int | None:
        """Index of the event being played back, or None when not playing."""
        return self._current_index

    @property
    def dwell(self) -> float:
        return self._dwell

    @property
    def gap(self) -> float:
        return self._gap

    # --- Recording ---

    def start_recording(self) -> bool:
        """Start a new recording, clearing any previous sequence."""
        if self._state == SequencerState.PLAYING:
            log.debug("start_recording ignored: playback in progress")
            return False
        with self._lock:
            self._events.clear()
            self._next_id = 1
            self._start_time = time.perf_counter()
        self._set_state(SequencerState.RECORDING)
        self._notify_sequence()
        return True

    def stop_recording(self) -> bool:
        if self._state != SequencerState.RECORDING:
            return False
        self._set_state(SequencerState.IDLE)
        return True

    def record(self, root: str, octave: int, params: ChordParams) -> RecordedEvent | None:
        """Append a chord trigger. No-op unless recording."""
        with self._lock:
            if self._state != SequencerState.RECORDING:
                return None
            event = RecordedEvent(
                id=self._next_id,
                root=root,
                octave=octave,
                quality=params.quality,
                chord_type=params.chord_type,
                inversion=params.inversion,
                timestamp=time.perf_counter() - self._start_time,
            )
            self._next_id += 1
            self._events.append(event)
        self._notify_sequence()
        return event

    def clear(self) -> bool:
        """Drop the recorded sequence (refused while playing)."""
        if self._state == SequencerState.PLAYING:
            log.debug("clear ignored: playback in progress")
            return False
        with self._lock:
            self._events.clear()
            self._next_id = 1
        self._notify_sequence()
        return True

    # --- Playback ---

    def play(self) -> bool:
        """Start playback on a background thread. Returns False if refused."""
        events = self._begin_playback()
        if events is None:
            return False
        self._join_playback_thread()
        self._playback_thread = threading.Thread(
            target=self._run_playback, args=(events,), daemon=True, name="chord-playback",
        )
        self._playback_thread.start()
        return True

    def run(self) -> bool:
        """Play the sequence on the calling thread, blocking until done.

        Returns True if every event was played, False if refused or cancelled.
        """
        events = self._begin_playback()
        if events is None:
            return False
        return self._run_playback(events)

    def request_stop(self) -> None:
        """Ask playback to stop; the loop reacts at its next wait."""
        self._cancel.set()

    def stop(self) -> None:
        """Stop playback and wait for the playback thread to finish."""
        self._cancel.set()
        self._join_playback_thread()

    def _begin_playback(self) -> list[RecordedEvent] | None:
        with self._lock:
            if self._state != SequencerState.IDLE:
                log.debug("play ignored: sequencer is %s", self._state.name)
                return None
            if not self._events:
                log.debug("play ignored: empty sequence")
                return None
            events = list(self._events)
            self._cancel.clear()
            self._state = SequencerState.PLAYING
        self._emit(self.on_state_changed, SequencerState.PLAYING)
        return events

    def _join_playback_thread(self) -> None:
        """Wait for the playback thread to finish (if running)."""
        thread = self._playback_thread
        if thread is None or thread is threading.current_thread():
            return
        if thread.is_alive():
            thread.join(timeout=3.0)
        self._playback_thread = None

    def _run_playback(self, events: list[RecordedEvent]) -> bool:
        """Playback loop: attack, dwell, release, gap — in recorded order."""
        completed = True
        last = len(events) - 1
        try:
            for index, evt in enumerate(events):
                if self._cancel.is_set():
                    completed = False
                    break
                self._set_index(index)
                params = evt.params
                self._player.play_chord(evt.root, evt.octave, params)
                held = self._scheduler.sleep(self._dwell, self._cancel)
                self._player.stop_chord(evt.root, evt.octave, params)
                if not held:
                    completed = False
                    break
                if index < last and not self._scheduler.sleep(self._gap, self._cancel):
                    completed = False
                    break
        finally:
            self._set_index(None)
            self._set_state(SequencerState.IDLE)
        log.info("Playback %s", "finished" if completed else "stopped")
        self._emit(self.on_playback_finished, completed)
        return completed

    # --- Notifications ---

    def _set_state(self, state: SequencerState) -> None:
        self._state = state
        self._emit(self.on_state_changed, state)

    def _set_index(self, index: int | None) -> None:
        self._current_index = index
        self._emit(self.on_index_changed, index)

    def _notify_sequence(self) -> None:
        self._emit(self.on_sequence_changed, len(self._events))

    @staticmethod
    def _emit(callback: Callable | None, value) -> None:
        if callback is not None:
            callback(value)


# ──────────────────────────────────────────────
# Qt-dependent (requires running QApplication)
# ──────────────────────────────────────────────

_SequencerControllerClass = None


def _ensure_qt_class():
    """Define the Qt-dependent SequencerController on first use."""
    global _SequencerControllerClass

    if _SequencerControllerClass is not None:
        return

    from PyQt6.QtCore import QObject, pyqtSignal

    class SequencerController(QObject):
        """Re-emits sequencer notifications as Qt signals.

        Notifications raised on the playback thread are queued to the GUI
        thread by Qt, so slots may touch widgets directly.
        """

        state_changed = pyqtSignal(int)        # SequencerState value
        index_changed = pyqtSignal(int)        # -1 when not playing
        sequence_changed = pyqtSignal(int)     # event count
        playback_finished = pyqtSignal(bool)   # True if played to the end

        def __init__(self, sequencer: Sequencer, parent=None) -> None:
            super().__init__(parent)
            self._sequencer = sequencer
            sequencer.on_state_changed = lambda s: self.state_changed.emit(int(s))
            sequencer.on_index_changed = lambda i: self.index_changed.emit(-1 if i is None else i)
            sequencer.on_sequence_changed = self.sequence_changed.emit
            sequencer.on_playback_finished = self.playback_finished.emit

        @property
        def sequencer(self) -> Sequencer:
            return self._sequencer

        def toggle_recording(self) -> bool:
            if self._sequencer.is_recording:
                return self._sequencer.stop_recording()
            return self._sequencer.start_recording()

        def play(self) -> bool:
            return self._sequencer.play()

        def stop(self) -> None:
            self._sequencer.stop()

        def clear(self) -> bool:
            return self._sequencer.clear()

        def cleanup(self) -> None:
            self._sequencer.stop()
            self._sequencer.stop_recording()

    _SequencerControllerClass = SequencerController


def get_sequencer_controller_class():
    """Get the SequencerController class (requires running QApplication)."""
    _ensure_qt_class()
    return _SequencerControllerClass


def create_sequencer_controller(sequencer: Sequencer, parent=None):
    """Create a SequencerController (requires running QApplication)."""
    cls = get_sequencer_controller_class()
    return cls(sequencer, parent)
