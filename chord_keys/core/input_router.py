"""Turns pointer and physical-key presses into sounding notes and chords.

The router resolves the octave and the effective chord params for each press.
It drives the audio sink, the voice tracker, and (while recording) the
sequencer. UI selections arrive as an immutable ``KeyboardSettings`` snapshot
on every press. Held override keys live in a ``TransientOverride``.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .chord_theory import (
    ChordParams,
    ChordQuality,
    ChordType,
    chord_pitch_names,
    max_inversion,
)
from .constants import (
    HOME_OCTAVE,
    INVERSION_KEYS,
    KEY_TO_NOTE,
    OCTAVE_SHIFT_MAX,
    OCTAVE_SHIFT_MIN,
    SEVENTH_KEY,
    PlayMode,
)
from .pitch import Pitch
from .voice_tracker import Voice, VoiceTracker

if TYPE_CHECKING:
    from .audio_sink import AudioSink
    from .config import ConfigManager
    from .sequencer import Sequencer

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class KeyboardSettings:
    """Snapshot of the user's keyboard and chord selections."""

    play_mode: PlayMode = PlayMode.CHORD
    quality: ChordQuality = ChordQuality.MAJOR
    chord_type: ChordType = ChordType.TRIAD
    inversion: int = 0
    home_octave: int = HOME_OCTAVE
    octave_shift: int = 0

    @property
    def base_octave(self) -> int:
        return self.home_octave + self.octave_shift

    @property
    def params(self) -> ChordParams:
        return ChordParams(self.quality, self.chord_type, self.inversion)

    def with_changes(self, **changes) -> KeyboardSettings:
        """Return a copy with ``changes`` applied.

        Changing quality or chord type resets the inversion to root position
        unless an inversion is given too. The octave shift is clamped.
        """
        if ("quality" in changes or "chord_type" in changes) and "inversion" not in changes:
            changes["inversion"] = 0
        if "octave_shift" in changes:
            changes["octave_shift"] = max(
                OCTAVE_SHIFT_MIN, min(OCTAVE_SHIFT_MAX, changes["octave_shift"]),
            )
        updated = dataclasses.replace(self, **changes)
        if updated.inversion > max_inversion(updated.quality, updated.chord_type):
            updated = dataclasses.replace(updated, inversion=0)
        return updated

    @classmethod
    def from_config(cls, config: ConfigManager) -> KeyboardSettings:
        defaults = cls()
        try:
            return cls(
                play_mode=PlayMode(config.get("keyboard.play_mode", defaults.play_mode.value)),
                quality=ChordQuality(config.get("chord.quality", defaults.quality.value)),
                chord_type=ChordType(config.get("chord.type", defaults.chord_type.value)),
                home_octave=int(config.get("keyboard.home_octave", defaults.home_octave)),
            ).with_changes(
                inversion=int(config.get("chord.inversion", 0)),
                octave_shift=int(config.get("keyboard.octave_shift", 0)),
            )
        except (TypeError, ValueError):
            log.warning("Invalid keyboard settings in config, using defaults", exc_info=True)
            return defaults

    def save(self, config: ConfigManager) -> None:
        config.set("keyboard.play_mode", self.play_mode.value)
        config.set("keyboard.home_octave", self.home_octave)
        config.set("keyboard.octave_shift", self.octave_shift)
        config.set("chord.quality", self.quality.value)
        config.set("chord.type", self.chord_type.value)
        config.set("chord.inversion", self.inversion)


@dataclass(frozen=True, slots=True)
class KeyEvent:
    """A physical key press or release from the input source."""

    key: str                 # logical key, e.g. "a", "7"
    shift: bool = False
    repeat: bool = False     # auto-repeat from holding the key down
    text_input: bool = False  # focus is in a text-entry control


class TransientOverride:
    """Chord params forced only while their modifier key is held.

    Values are tracked per physical key; when several keys of one kind are
    held, the most recently pressed one wins.
    """

    def __init__(self) -> None:
        self._inversions: dict[str, int] = {}
        self._chord_types: dict[str, ChordType] = {}

    @property
    def temporary_inversion(self) -> int | None:
        if not self._inversions:
            return None
        return next(reversed(self._inversions.values()))

    @property
    def temporary_chord_type(self) -> ChordType | None:
        if not self._chord_types:
            return None
        return next(reversed(self._chord_types.values()))

    def set_inversion(self, key: str, inversion: int, limit: int) -> bool:
        """Hold an inversion for ``key``. Rejected (not clamped) above ``limit``."""
        if not 0 <= inversion <= limit:
            return False
        self._inversions.pop(key, None)
        self._inversions[key] = inversion
        return True

    def clear_inversion(self, key: str) -> None:
        self._inversions.pop(key, None)

    def set_chord_type(self, key: str, chord_type: ChordType) -> None:
        self._chord_types.pop(key, None)
        self._chord_types[key] = chord_type

    def clear_chord_type(self, key: str) -> None:
        self._chord_types.pop(key, None)

    def clear(self) -> None:
        self._inversions.clear()
        self._chord_types.clear()

    def effective_chord_type(self, settings: KeyboardSettings) -> ChordType:
        override = self.temporary_chord_type
        return override if override is not None else settings.chord_type

    def resolve(self, settings: KeyboardSettings) -> ChordParams:
        """Effective params: each held override replaces its selected value."""
        inversion = self.temporary_inversion
        return ChordParams(
            quality=settings.quality,
            chord_type=self.effective_chord_type(settings),
            inversion=inversion if inversion is not None else settings.inversion,
        )


class InputRouter:
    """Routes press/release input to the audio sink, voice tracker, and sequencer.

    Every failure path degrades to silence: an untracked release, a repeated
    press, or a sink that is not ready are all dropped without raising.
    """

    def __init__(
        self,
        sink: AudioSink | None = None,
        tracker: VoiceTracker | None = None,
        sequencer: Sequencer | None = None,
    ) -> None:
        self._sink = sink
        self._tracker = tracker if tracker is not None else VoiceTracker()
        self._sequencer = sequencer
        self._overrides = TransientOverride()
        # physical key → (root, octave) of the voice it started
        self._held_notes: dict[str, tuple[str, int]] = {}
        self._down: set[str] = set()

    @property
    def tracker(self) -> VoiceTracker:
        return self._tracker

    @property
    def overrides(self) -> TransientOverride:
        return self._overrides

    @property
    def sink(self) -> AudioSink | None:
        return self._sink

    @sink.setter
    def sink(self, sink: AudioSink | None) -> None:
        self._sink = sink

    @property
    def sequencer(self) -> Sequencer | None:
        return self._sequencer

    @sequencer.setter
    def sequencer(self, sequencer: Sequencer | None) -> None:
        self._sequencer = sequencer

    # --- Physical keys ---

    def key_down(self, event: KeyEvent, settings: KeyboardSettings) -> Voice | None:
        """Handle a physical key press. Returns the started voice, if any."""
        if event.text_input or event.repeat:
            return None
        key = event.key.lower()
        if key in self._down:
            return None
        self._down.add(key)

        if settings.play_mode == PlayMode.CHORD:
            if key in INVERSION_KEYS:
                self._hold_inversion(key, INVERSION_KEYS[key], settings)
                return None
            if key == SEVENTH_KEY:
                self._overrides.set_chord_type(key, ChordType.SEVENTH)
                return None

        root = KEY_TO_NOTE.get(key)
        if root is None:
            return None
        octave = settings.base_octave + (1 if event.shift else 0)
        voice = self.press(root, octave, settings)
        if voice is not None:
            self._held_notes[key] = (root, octave)
        return voice

    def key_up(self, event: KeyEvent) -> Voice | None:
        """Handle a physical key release. Returns the ended voice, if any."""
        key = event.key.lower()
        self._down.discard(key)
        if key in INVERSION_KEYS:
            self._overrides.clear_inversion(key)
        elif key == SEVENTH_KEY:
            self._overrides.clear_chord_type(key)

        held = self._held_notes.pop(key, None)
        if held is None:
            return None
        return self.release(*held)

    def _hold_inversion(self, key: str, inversion: int, settings: KeyboardSettings) -> None:
        limit = max_inversion(settings.quality, self._overrides.effective_chord_type(settings))
        if not self._overrides.set_inversion(key, inversion, limit):
            log.debug("Temporary inversion %d rejected (max %d)", inversion, limit)

    # --- Pointer ---

    def pointer_down(self, root: str, octave: int, settings: KeyboardSettings) -> Voice | None:
        return self.press(root, octave, settings)

    def pointer_up(self, root: str, octave: int) -> Voice | None:
        return self.release(root, octave)

    def pointer_leave(self, root: str, octave: int) -> Voice | None:
        """Pointer left a key while pressed; same as releasing it."""
        return self.release(root, octave)

    # --- Shared press/release path ---

    def press(self, root: str, octave: int, settings: KeyboardSettings) -> Voice | None:
        """Sound a note or chord on ``root`` and start tracking it.

        A voice already sounding on the same key (e.g. a held physical key
        and a pointer click) is released first, so none of its pitches stick.
        """
        self.release(root, octave)
        if settings.play_mode == PlayMode.NOTE:
            if not self._attack([str(Pitch(root, octave))]):
                return None
            return self._tracker.begin_voice(root, octave, None)

        params = self._overrides.resolve(settings)
        if not self._attack(chord_pitch_names(root, octave, params)):
            return None
        voice = self._tracker.begin_voice(root, octave, params)
        if self._sequencer is not None:
            self._sequencer.record(root, octave, params)
        return voice

    def release(self, root: str, octave: int) -> Voice | None:
        """Silence whatever ``root``/``octave`` started, using its stored params."""
        voice = self._tracker.end_voice(root, octave)
        if voice is None:
            return None
        if self._sink is not None:
            self._sink.release(voice.pitch_names())
        return voice

    def release_all(self) -> None:
        """Silence every tracked voice and forget held keys and overrides."""
        for voice in self._tracker.release_all():
            if self._sink is not None:
                self._sink.release(voice.pitch_names())
        self._held_notes.clear()
        self._down.clear()
        self._overrides.clear()

    # --- Chord playback (used by the sequencer) ---

    def play_chord(self, root: str, octave: int, params: ChordParams) -> list[str]:
        pitches = chord_pitch_names(root, octave, params)
        if not self._attack(pitches):
            return []
        return pitches

    def stop_chord(self, root: str, octave: int, params: ChordParams) -> list[str]:
        if self._sink is None:
            return []
        pitches = chord_pitch_names(root, octave, params)
        self._sink.release(pitches)
        return pitches

    def _attack(self, pitch_names: list[str]) -> bool:
        sink = self._sink
        if sink is None or not sink.is_ready:
            log.debug("Audio not ready, dropped %s", pitch_names)
            return False
        if not sink.is_started:
            sink.start()
            if not sink.is_started:
                log.debug("Audio failed to start, dropped %s", pitch_names)
                return False
        sink.attack(pitch_names)
        return True
