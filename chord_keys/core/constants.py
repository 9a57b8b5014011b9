"""Physical-key bindings, octave limits, PlayMode enum, and playback timing."""

from enum import Enum


class PlayMode(str, Enum):
    """Whether a key press triggers a single pitch or a whole chord."""
    NOTE = "note"
    CHORD = "chord"


# Physical key (lower-case) → pitch class.
# Home row plays the naturals, the row above plays the sharps.
KEY_TO_NOTE: dict[str, str] = {
    "a": "C",
    "s": "D",
    "d": "E",
    "f": "F",
    "g": "G",
    "h": "A",
    "j": "B",
    "w": "C#",
    "e": "D#",
    "t": "F#",
    "y": "G#",
    "u": "A#",
}

# Held digit keys force an inversion (the digit is the inversion number).
INVERSION_KEYS: dict[str, int] = {
    "1": 1,
    "2": 2,
    "3": 3,
}

# Held key forcing the seventh extension
SEVENTH_KEY = "7"

# Octave layout of the on-screen keyboard (before octave shift)
HOME_OCTAVE = 4
KEYBOARD_OCTAVES = (4, 5)

# Octave shift step limits
OCTAVE_SHIFT_MIN = -3
OCTAVE_SHIFT_MAX = 3

# Sequencer playback pacing in seconds
DEFAULT_DWELL_SECONDS = 1.0
DEFAULT_GAP_SECONDS = 0.2
