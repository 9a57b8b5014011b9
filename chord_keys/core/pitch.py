"""Pitch arithmetic: pitch classes, octaves, and semitone offsets."""

from __future__ import annotations

import re
from dataclasses import dataclass

# Chromatic order starting at C, sharp spelling only
NOTE_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

_PITCH_RE = re.compile(r"^([A-G]#?)(-?\d+)$")


@dataclass(frozen=True, slots=True)
class Pitch:
    """A pitch class plus an octave, e.g. ``Pitch("C#", 4)`` → ``C#4``."""

    name: str
    octave: int

    def __str__(self) -> str:
        return f"{self.name}{self.octave}"

    @property
    def midi_number(self) -> int:
        """MIDI note number (C4 = 60)."""
        return (self.octave + 1) * 12 + note_index(self.name)

    @classmethod
    def parse(cls, text: str) -> Pitch:
        """Parse a ``NoteOctave`` string such as ``"A#3"``."""
        match = _PITCH_RE.match(text.strip())
        if match is None:
            raise ValueError(f"Not a pitch name: {text!r}")
        return cls(match.group(1), int(match.group(2)))


def note_index(name: str) -> int:
    """Return the chromatic index (0-11) of a pitch class."""
    try:
        return NOTE_NAMES.index(name)
    except ValueError:
        raise ValueError(f"Unknown pitch class: {name!r}") from None


def realize(root: str, semitone_interval: int, base_octave: int) -> Pitch:
    """Move ``semitone_interval`` semitones up from ``root`` in ``base_octave``.

    Intervals are non-negative; every wrap past B carries into the next octave.
    """
    total = note_index(root) + semitone_interval
    return Pitch(NOTE_NAMES[total % 12], base_octave + total // 12)


def is_sharp(name: str) -> bool:
    return name.endswith("#")
