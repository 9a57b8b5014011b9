"""Chord construction: quality/type intervals, inversions, and realized pitches.

Pure Python, no Qt dependency.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from .pitch import Pitch, realize


class ChordQuality(str, Enum):
    MAJOR = "major"
    MINOR = "minor"
    DIMINISHED = "diminished"
    AUGMENTED = "augmented"


class ChordType(str, Enum):
    TRIAD = "triad"
    SEVENTH = "seventh"


# Base triads as semitone offsets from the root
CHORD_QUALITIES: dict[ChordQuality, tuple[int, int, int]] = {
    ChordQuality.MAJOR: (0, 4, 7),
    ChordQuality.MINOR: (0, 3, 7),
    ChordQuality.DIMINISHED: (0, 3, 6),
    ChordQuality.AUGMENTED: (0, 4, 8),
}

DOMINANT_SEVENTH = 10

# Interval appended for the seventh extension.
# Augmented has no standard seventh and falls back to the dominant seventh.
SEVENTH_INTERVALS: dict[ChordQuality, int] = {
    ChordQuality.MAJOR: 11,
    ChordQuality.MINOR: 10,
    ChordQuality.DIMINISHED: 9,
    ChordQuality.AUGMENTED: DOMINANT_SEVENTH,
}

_QUALITY_ABBREVIATIONS: dict[ChordQuality, str] = {
    ChordQuality.MAJOR: "Maj",
    ChordQuality.MINOR: "min",
    ChordQuality.DIMINISHED: "dim",
    ChordQuality.AUGMENTED: "aug",
}


@dataclass(frozen=True, slots=True)
class ChordParams:
    """The chord parameters in effect for one trigger."""

    quality: ChordQuality
    chord_type: ChordType
    inversion: int = 0


def chord_intervals(quality: ChordQuality, chord_type: ChordType) -> list[int]:
    """Return the root-position intervals for a chord quality and type."""
    intervals = list(CHORD_QUALITIES[quality])
    if chord_type == ChordType.SEVENTH:
        intervals.append(SEVENTH_INTERVALS.get(quality, DOMINANT_SEVENTH))
    return intervals


def apply_inversion(intervals: Sequence[int], inversion: int) -> list[int]:
    """Rotate the lowest ``inversion`` tones to the top, one octave up.

    The range is not clamped: callers keep ``inversion`` within
    ``[0, len(intervals) - 1]``.  Larger values keep rotating, so
    ``len(intervals)`` steps give root position one octave higher.
    """
    result = list(intervals)
    for _ in range(inversion):
        first = result.pop(0)
        result.append(first + 12)
    return result


def max_inversion(quality: ChordQuality, chord_type: ChordType) -> int:
    """Highest valid inversion for a chord (3 notes → 2, 4 notes → 3)."""
    return len(chord_intervals(quality, chord_type)) - 1


def realize_chord(
    root: str,
    quality: ChordQuality,
    chord_type: ChordType,
    inversion: int,
    octave: int,
) -> list[Pitch]:
    """Build the chord's pitches in voicing order (lowest chord tone first)."""
    intervals = apply_inversion(chord_intervals(quality, chord_type), inversion)
    return [realize(root, interval, octave) for interval in intervals]


def chord_pitch_names(root: str, octave: int, params: ChordParams) -> list[str]:
    """Shorthand for ``realize_chord`` rendered as ``NoteOctave`` strings."""
    pitches = realize_chord(root, params.quality, params.chord_type, params.inversion, octave)
    return [str(p) for p in pitches]


# ── Display helpers ─────────────────────────────────────


def ordinal_suffix(num: int) -> str:
    """Return the English ordinal suffix for ``num`` (1st, 2nd, 11th, 23rd)."""
    j = num % 10
    k = num % 100
    if j == 1 and k != 11:
        return "st"
    if j == 2 and k != 12:
        return "nd"
    if j == 3 and k != 13:
        return "rd"
    return "th"


def inversion_label(inversion: int) -> str:
    if inversion == 0:
        return "Root Position"
    return f"{inversion}{ordinal_suffix(inversion)} Inversion"


def abbreviate_chord(quality: ChordQuality, chord_type: ChordType) -> str:
    """Short quality label, e.g. ``Maj``, ``min7``, ``aug``."""
    label = _QUALITY_ABBREVIATIONS.get(quality, str(quality.value))
    if chord_type == ChordType.SEVENTH:
        label += "7"
    return label


def chord_symbol(root: str, quality: ChordQuality, chord_type: ChordType) -> str:
    """Root plus abbreviated quality, e.g. ``Cmin7``."""
    return f"{root}{abbreviate_chord(quality, chord_type)}"
