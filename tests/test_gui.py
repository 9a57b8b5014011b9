"""GUI tests — piano widget, sequencer controller signals, and main window wiring."""

from __future__ import annotations

import pytest
from PyQt6.QtCore import QEvent, QPoint, Qt
from PyQt6.QtGui import QKeyEvent
from PyQt6.QtWidgets import QApplication, QLineEdit

from chord_keys.core.chord_theory import ChordParams, ChordQuality, ChordType
from chord_keys.core.config import ConfigManager
from chord_keys.core.input_router import KeyEvent
from chord_keys.core.sequencer import (
    RecordedEvent,
    Sequencer,
    SequencerState,
    create_sequencer_controller,
)
from chord_keys.gui.main_window import MainWindow, describe_event, key_event_from_qt
from chord_keys.gui.piano_widget import PianoWidget, keyboard_keys


class ImmediateScheduler:
    def sleep(self, seconds, cancel):
        return not cancel.is_set()


class NullPlayer:
    def play_chord(self, root, octave, params):
        return []

    def stop_chord(self, root, octave, params):
        return []


def _key(key, modifiers=Qt.KeyboardModifier.NoModifier, autorep=False):
    return QKeyEvent(QEvent.Type.KeyPress, key.value, modifiers, "", autorep)


class TestKeyEventFromQt:
    def test_letter(self, qapp):
        evt = key_event_from_qt(_key(Qt.Key.Key_A))
        assert evt.key == "a"
        assert not evt.shift
        assert not evt.repeat

    def test_shift_and_repeat(self, qapp):
        evt = key_event_from_qt(_key(Qt.Key.Key_J, Qt.KeyboardModifier.ShiftModifier, True))
        assert evt.key == "j"
        assert evt.shift
        assert evt.repeat

    def test_override_digit(self, qapp):
        assert key_event_from_qt(_key(Qt.Key.Key_7)).key == "7"

    def test_text_input_flag(self, qapp):
        assert key_event_from_qt(_key(Qt.Key.Key_A), text_input=True).text_input

    @pytest.mark.parametrize("key", [Qt.Key.Key_Z, Qt.Key.Key_5, Qt.Key.Key_Space])
    def test_unrouted_keys(self, qapp, key):
        assert key_event_from_qt(_key(key)) is None


class TestPianoWidget:
    def test_keyboard_keys(self):
        keys = keyboard_keys()
        assert len(keys) == 24
        assert keys[0] == ("C", 4)
        assert keys[-1] == ("B", 5)

    def test_keyboard_keys_shifted(self):
        assert keyboard_keys(-1)[0] == ("C", 3)

    def test_click_emits_press_and_release(self, qtbot):
        piano = PianoWidget()
        qtbot.addWidget(piano)
        piano.resize(480, 90)
        piano.show()
        qtbot.waitExposed(piano)

        pressed, released = [], []
        piano.key_pressed.connect(lambda n, o: pressed.append((n, o)))
        piano.key_released.connect(lambda n, o: released.append((n, o)))

        qtbot.mousePress(piano, Qt.MouseButton.LeftButton, pos=QPoint(5, 45))
        qtbot.mouseRelease(piano, Qt.MouseButton.LeftButton, pos=QPoint(5, 45))
        assert pressed == [("C", 4)]
        assert released == [("C", 4)]

    def test_octave_shift_releases_held_key(self, qtbot):
        piano = PianoWidget()
        qtbot.addWidget(piano)
        piano.resize(480, 90)
        piano.show()
        qtbot.waitExposed(piano)

        released = []
        piano.key_released.connect(lambda n, o: released.append((n, o)))
        qtbot.mousePress(piano, Qt.MouseButton.LeftButton, pos=QPoint(5, 45))
        piano.set_octave_shift(1)
        assert released == [("C", 4)]
        assert piano.keys[0] == ("C", 5)


class TestSequencerController:
    def test_signals(self, qapp):
        seq = Sequencer(NullPlayer(), scheduler=ImmediateScheduler())
        controller = create_sequencer_controller(seq)
        states, indexes, counts, finished = [], [], [], []
        controller.state_changed.connect(states.append)
        controller.index_changed.connect(indexes.append)
        controller.sequence_changed.connect(counts.append)
        controller.playback_finished.connect(finished.append)

        assert controller.toggle_recording()
        seq.record("C", 4, ChordParams(ChordQuality.MAJOR, ChordType.TRIAD))
        assert controller.toggle_recording()
        seq.run()

        assert counts == [0, 1]
        assert states == [
            SequencerState.RECORDING,
            SequencerState.IDLE,
            SequencerState.PLAYING,
            SequencerState.IDLE,
        ]
        assert indexes == [0, -1]
        assert finished == [True]


class TestMainWindow:
    @pytest.fixture
    def window(self, qtbot, tmp_path, sink):
        win = MainWindow(config=ConfigManager(config_dir=tmp_path), sink=sink)
        qtbot.addWidget(win)
        win.show()
        return win

    def test_pointer_plays_selected_chord(self, window, sink):
        window.router.pointer_down("C", 4, window.settings)
        window.router.pointer_up("C", 4)
        assert sink.attacks == [["C4", "E4", "G4"]]
        assert sink.releases == [["C4", "E4", "G4"]]

    def test_piano_signal_routes_to_router(self, window, sink):
        window._piano.key_pressed.emit("A", 4)
        assert window.router.tracker.is_sounding("A", 4)
        window._piano.key_released.emit("A", 4)
        assert not window.router.tracker.is_sounding("A", 4)

    def test_recording_from_pointer(self, window):
        window._controller.toggle_recording()
        window.router.pointer_down("D", 4, window.settings)
        assert window.sequencer.event_count == 1
        assert window._sequence_list.count() == 1

    def test_quality_change_persists(self, window, tmp_path):
        combo = window._quality_combo
        combo.setCurrentIndex(combo.findData(ChordQuality.MINOR))
        assert window.settings.quality == ChordQuality.MINOR
        assert ConfigManager(config_dir=tmp_path).get("chord.quality") == "minor"

    def test_inversion_choices_follow_chord_type(self, window):
        combo = window._type_combo
        combo.setCurrentIndex(combo.findData(ChordType.SEVENTH))
        assert window._inversion_combo.count() == 4

    def test_close_releases_voices(self, window, sink):
        window.router.pointer_down("E", 4, window.settings)
        window.close()
        assert sink.releases == [["E4", "G#4", "B4"]]


class TestDescribeEvent:
    def test_label(self):
        evt = RecordedEvent(1, "C", 4, ChordQuality.MINOR, ChordType.SEVENTH, 1, 0.0)
        assert describe_event(0, evt) == "1. Cmin7 — C4, 1st Inversion"


class TestKeyboardInput:
    @pytest.fixture
    def window(self, qtbot, tmp_path, sink):
        win = MainWindow(config=ConfigManager(config_dir=tmp_path), sink=sink)
        qtbot.addWidget(win)
        win.show()
        win.activateWindow()
        qtbot.waitActive(win)
        win._piano.setFocus()
        return win

    @pytest.fixture
    def text_field(self, window):
        edit = QLineEdit(window.centralWidget())
        edit.show()
        return edit

    def test_key_press_sounds_and_records(self, window, qtbot, sink):
        window._controller.toggle_recording()
        qtbot.keyPress(window._piano, Qt.Key.Key_A)
        assert sink.attacks == [["C4", "E4", "G4"]]
        assert window.sequencer.event_count == 1

        qtbot.keyRelease(window._piano, Qt.Key.Key_A)
        assert sink.releases == [["C4", "E4", "G4"]]

    def test_held_seventh_key(self, window, qtbot, sink):
        qtbot.keyPress(window._piano, Qt.Key.Key_7)
        qtbot.keyPress(window._piano, Qt.Key.Key_D)
        assert sink.attacks == [["E4", "G#4", "B4", "D#5"]]

    def test_press_in_text_field_is_dropped(self, window, text_field, qtbot, sink):
        text_field.setFocus()
        qtbot.keyPress(text_field, Qt.Key.Key_A)
        assert sink.calls == []
        assert text_field.text() == "a"

    def test_release_after_focus_moves_to_text_field(self, window, text_field, qtbot, sink):
        qtbot.keyPress(window._piano, Qt.Key.Key_A)
        text_field.setFocus()
        qtbot.keyRelease(text_field, Qt.Key.Key_A)
        assert sink.releases == [["C4", "E4", "G4"]]
        assert window.router.tracker.active_keys == []


class TestInactiveWindow:
    @pytest.fixture
    def window(self, qtbot, tmp_path, sink):
        win = MainWindow(config=ConfigManager(config_dir=tmp_path), sink=sink)
        qtbot.addWidget(win)
        return win

    def test_press_ignored(self, window, sink):
        press = QKeyEvent(QEvent.Type.KeyPress, Qt.Key.Key_A.value, Qt.KeyboardModifier.NoModifier)
        assert not window.eventFilter(window, press)
        assert sink.calls == []

    def test_release_still_routed(self, window, sink):
        window.router.key_down(KeyEvent("a"), window.settings)
        release = QKeyEvent(
            QEvent.Type.KeyRelease, Qt.Key.Key_A.value, Qt.KeyboardModifier.NoModifier,
        )
        window.eventFilter(window, release)
        assert sink.releases == [["C4", "E4", "G4"]]
        # The key is no longer considered held, so it plays again
        assert window.router.key_down(KeyEvent("a"), window.settings) is not None

    def test_deactivation_releases_held_notes(self, window, sink):
        window.router.key_down(KeyEvent("a"), window.settings)
        window.router.key_down(KeyEvent("1"), window.settings)
        QApplication.sendEvent(window, QEvent(QEvent.Type.ActivationChange))
        assert sink.releases == [["C4", "E4", "G4"]]
        assert window.router.tracker.active_keys == []
        assert window.router.overrides.temporary_inversion is None
        assert window.router.key_down(KeyEvent("a"), window.settings) is not None
