"""Tests for VoiceTracker: press/release pairing and stored params."""

import threading

import pytest

from chord_keys.core.chord_theory import ChordParams, ChordQuality, ChordType
from chord_keys.core.voice_tracker import Voice, VoiceTracker, voice_key

C_MAJOR = ChordParams(ChordQuality.MAJOR, ChordType.TRIAD, 0)
C_MINOR7_INV1 = ChordParams(ChordQuality.MINOR, ChordType.SEVENTH, 1)


class TestVoiceTracker:
    def test_initially_idle(self):
        tracker = VoiceTracker()
        assert tracker.active_keys == []
        assert not tracker.is_sounding("C", 4)

    def test_round_trip_returns_same_params(self):
        tracker = VoiceTracker()
        tracker.begin_voice("C", 4, C_MINOR7_INV1)
        voice = tracker.end_voice("C", 4)
        assert voice is not None
        assert voice.params == C_MINOR7_INV1
        assert not tracker.is_sounding("C", 4)

    def test_end_without_begin_returns_none(self):
        tracker = VoiceTracker()
        assert tracker.end_voice("D", 4) is None

    def test_second_end_returns_none(self):
        tracker = VoiceTracker()
        tracker.begin_voice("C", 4, C_MAJOR)
        tracker.end_voice("C", 4)
        assert tracker.end_voice("C", 4) is None

    def test_begin_while_sounding_overwrites(self):
        tracker = VoiceTracker()
        tracker.begin_voice("C", 4, C_MAJOR)
        tracker.begin_voice("C", 4, C_MINOR7_INV1)
        assert tracker.active_keys == ["C4"]
        assert tracker.end_voice("C", 4).params == C_MINOR7_INV1

    def test_keys_are_per_octave(self):
        tracker = VoiceTracker()
        tracker.begin_voice("C", 4, C_MAJOR)
        tracker.begin_voice("C", 5, C_MINOR7_INV1)
        assert tracker.end_voice("C", 5).params == C_MINOR7_INV1
        assert tracker.is_sounding("C", 4)

    def test_release_all(self):
        tracker = VoiceTracker()
        tracker.begin_voice("C", 4, C_MAJOR)
        tracker.begin_voice("E", 4, None)
        voices = tracker.release_all()
        assert {v.key for v in voices} == {"C4", "E4"}
        assert tracker.active_keys == []

    def test_concurrent_begin_end(self):
        tracker = VoiceTracker()

        def churn(root):
            for _ in range(500):
                tracker.begin_voice(root, 4, C_MAJOR)
                tracker.end_voice(root, 4)

        threads = [threading.Thread(target=churn, args=(r,)) for r in ("C", "D", "E")]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert tracker.active_keys == []


class TestVoice:
    def test_key(self):
        assert Voice("F#", 3, None).key == "F#3"
        assert voice_key("F#", 3) == "F#3"

    def test_single_note_pitches(self):
        assert Voice("G", 4, None).pitch_names() == ["G4"]

    def test_chord_pitches_from_stored_params(self):
        voice = Voice("C", 4, ChordParams(ChordQuality.MAJOR, ChordType.TRIAD, 1))
        assert voice.pitch_names() == ["E4", "G4", "C5"]

    def test_frozen(self):
        voice = Voice("C", 4, C_MAJOR)
        with pytest.raises(AttributeError):
            voice.params = C_MINOR7_INV1
