"""Registry of currently sounding triggers and the parameters that started them.

Releasing a voice must silence exactly the pitches its press started, even
when the selected chord settings or held overrides have changed since.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass

from .chord_theory import ChordParams, chord_pitch_names
from .pitch import Pitch


def voice_key(root: str, octave: int) -> str:
    """Key identifying a sounding trigger, e.g. ``"C#4"``."""
    return f"{root}{octave}"


@dataclass(frozen=True, slots=True)
class Voice:
    """One active trigger: its root, octave, and the chord params used at attack.

    ``params`` is None for a single-note (note mode) trigger.
    """

    root: str
    octave: int
    params: ChordParams | None

    @property
    def key(self) -> str:
        return voice_key(self.root, self.octave)

    def pitch_names(self) -> list[str]:
        """The pitches this voice sounds, rebuilt from its stored params."""
        if self.params is None:
            return [str(Pitch(self.root, self.octave))]
        return chord_pitch_names(self.root, self.octave, self.params)


class VoiceTracker:
    """Maps voice key → Voice for every trigger between press and release.

    Guarded by a single lock so that input callbacks and the playback
    thread see one consistent map.
    """

    def __init__(self) -> None:
        self._voices: dict[str, Voice] = {}
        self._lock = threading.Lock()

    def begin_voice(self, root: str, octave: int, params: ChordParams | None) -> Voice:
        """Start tracking a trigger, overwriting any voice with the same key.

        Tracking only — the caller drives the audio attack.
        """
        voice = Voice(root, octave, params)
        with self._lock:
            self._voices[voice.key] = voice
        return voice

    def end_voice(self, root: str, octave: int) -> Voice | None:
        """Stop tracking a trigger and return it.

        Returns None if nothing was sounding for this key, e.g. a release
        with no matching press.
        """
        with self._lock:
            return self._voices.pop(voice_key(root, octave), None)

    def is_sounding(self, root: str, octave: int) -> bool:
        with self._lock:
            return voice_key(root, octave) in self._voices

    @property
    def active_keys(self) -> list[str]:
        """Return the keys of all sounding voices, oldest first."""
        with self._lock:
            return list(self._voices)

    def release_all(self) -> list[Voice]:
        """Forget every sounding voice and return them (panic / shutdown)."""
        with self._lock:
            voices = list(self._voices.values())
            self._voices.clear()
        return voices
