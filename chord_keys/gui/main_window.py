"""Main window — chord controls, clickable keyboard, and the recorder panel."""

from __future__ import annotations

import logging

from PyQt6.QtCore import QEvent, QObject, Qt
from PyQt6.QtGui import QKeyEvent
from PyQt6.QtWidgets import (
    QAbstractSpinBox,
    QApplication,
    QComboBox,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QListWidget,
    QMainWindow,
    QPushButton,
    QSpinBox,
    QTextEdit,
    QVBoxLayout,
    QWidget,
)

from ..core.audio_sink import MidiSynthSink
from ..core.chord_theory import (
    ChordQuality,
    ChordType,
    apply_inversion,
    chord_intervals,
    chord_pitch_names,
    chord_symbol,
    inversion_label,
    max_inversion,
)
from ..core.config import ConfigManager, get_config
from ..core.constants import (
    INVERSION_KEYS,
    KEY_TO_NOTE,
    OCTAVE_SHIFT_MAX,
    OCTAVE_SHIFT_MIN,
    SEVENTH_KEY,
    PlayMode,
)
from ..core.input_router import InputRouter, KeyboardSettings, KeyEvent
from ..core.sequencer import RecordedEvent, Sequencer, SequencerState, create_sequencer_controller
from .piano_widget import PianoWidget

log = logging.getLogger(__name__)

_ROUTED_KEYS = set(KEY_TO_NOTE) | set(INVERSION_KEYS) | {SEVENTH_KEY}
_TEXT_INPUT_WIDGETS = (QLineEdit, QTextEdit, QComboBox, QAbstractSpinBox)


def key_event_from_qt(event: QKeyEvent, text_input: bool = False) -> KeyEvent | None:
    """Convert a Qt key event into a router KeyEvent, or None for unrouted keys."""
    key_code = event.key()
    if 65 <= key_code <= 90 or 48 <= key_code <= 57:  # A-Z, 0-9
        key = chr(key_code).lower()
    else:
        return None
    if key not in _ROUTED_KEYS:
        return None
    return KeyEvent(
        key=key,
        shift=bool(event.modifiers() & Qt.KeyboardModifier.ShiftModifier),
        repeat=event.isAutoRepeat(),
        text_input=text_input,
    )


def describe_event(index: int, evt: RecordedEvent) -> str:
    """List label for a recorded chord, e.g. ``2. Cmin7 — C4, 1st Inversion``."""
    symbol = chord_symbol(evt.root, evt.quality, evt.chord_type)
    return f"{index + 1}. {symbol} — {evt.root}{evt.octave}, {inversion_label(evt.inversion)}"


class MainWindow(QMainWindow):
    """Application window: routes pointer and keyboard input into the engine."""

    def __init__(self, config: ConfigManager | None = None, sink=None) -> None:
        super().__init__()
        self.setWindowTitle("Chord Keys")
        self._config = config if config is not None else get_config()
        self._settings = KeyboardSettings.from_config(self._config)

        if sink is None:
            sink = MidiSynthSink(port_name=self._config.get("audio.output_port", ""))
        self._sink = sink
        self._router = InputRouter(sink=sink)
        self._sequencer = Sequencer.from_config(self._config, self._router)
        self._router.sequencer = self._sequencer
        self._controller = create_sequencer_controller(self._sequencer, self)

        self._build_ui()
        self._connect_signals()
        self._sync_controls()
        self._on_state_changed(int(SequencerState.IDLE))

        app = QApplication.instance()
        if app is not None:
            app.installEventFilter(self)

    @property
    def router(self) -> InputRouter:
        return self._router

    @property
    def sequencer(self) -> Sequencer:
        return self._sequencer

    @property
    def settings(self) -> KeyboardSettings:
        return self._settings

    # ── UI construction ─────────────────────────────────────

    def _build_ui(self) -> None:
        central = QWidget(self)
        layout = QVBoxLayout(central)

        controls = QHBoxLayout()
        self._mode_combo = QComboBox()
        self._mode_combo.addItem("Chord", PlayMode.CHORD)
        self._mode_combo.addItem("Single Note", PlayMode.NOTE)
        self._quality_combo = QComboBox()
        for quality in ChordQuality:
            self._quality_combo.addItem(quality.value.capitalize(), quality)
        self._type_combo = QComboBox()
        for chord_type in ChordType:
            self._type_combo.addItem(chord_type.value.capitalize(), chord_type)
        self._inversion_combo = QComboBox()
        self._octave_spin = QSpinBox()
        self._octave_spin.setRange(OCTAVE_SHIFT_MIN, OCTAVE_SHIFT_MAX)

        for label, widget in (
            ("Mode", self._mode_combo),
            ("Quality", self._quality_combo),
            ("Type", self._type_combo),
            ("Inversion", self._inversion_combo),
            ("Octave shift", self._octave_spin),
        ):
            controls.addWidget(QLabel(label))
            controls.addWidget(widget)
        controls.addStretch()
        layout.addLayout(controls)

        self._piano = PianoWidget(self._settings.octave_shift)
        self._piano.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
        layout.addWidget(self._piano)

        self._info_label = QLabel()
        layout.addWidget(self._info_label)

        recorder = QHBoxLayout()
        self._record_btn = QPushButton("Record")
        self._play_btn = QPushButton("Play")
        self._stop_btn = QPushButton("Stop")
        self._clear_btn = QPushButton("Clear")
        for btn in (self._record_btn, self._play_btn, self._stop_btn, self._clear_btn):
            btn.setFocusPolicy(Qt.FocusPolicy.NoFocus)
            recorder.addWidget(btn)
        self._status_label = QLabel()
        recorder.addWidget(self._status_label)
        recorder.addStretch()
        layout.addLayout(recorder)

        self._sequence_list = QListWidget()
        self._sequence_list.setFocusPolicy(Qt.FocusPolicy.NoFocus)
        layout.addWidget(self._sequence_list)

        self.setCentralWidget(central)
        self._piano.setFocus()

    def _connect_signals(self) -> None:
        self._mode_combo.currentIndexChanged.connect(self._on_controls_changed)
        self._quality_combo.currentIndexChanged.connect(self._on_chord_changed)
        self._type_combo.currentIndexChanged.connect(self._on_chord_changed)
        self._inversion_combo.currentIndexChanged.connect(self._on_controls_changed)
        self._octave_spin.valueChanged.connect(self._on_controls_changed)

        self._piano.key_pressed.connect(self._on_piano_pressed)
        self._piano.key_released.connect(self._router.pointer_up)

        self._record_btn.clicked.connect(self._controller.toggle_recording)
        self._play_btn.clicked.connect(self._controller.play)
        self._stop_btn.clicked.connect(self._controller.stop)
        self._clear_btn.clicked.connect(self._controller.clear)

        self._controller.state_changed.connect(self._on_state_changed)
        self._controller.index_changed.connect(self._on_index_changed)
        self._controller.sequence_changed.connect(self._on_sequence_changed)

    # ── Settings ───────────────────────────────────────────

    def _sync_controls(self) -> None:
        """Push the current settings snapshot into the widgets."""
        s = self._settings
        for combo, value in (
            (self._mode_combo, s.play_mode),
            (self._quality_combo, s.quality),
            (self._type_combo, s.chord_type),
        ):
            combo.blockSignals(True)
            combo.setCurrentIndex(combo.findData(value))
            combo.blockSignals(False)

        self._inversion_combo.blockSignals(True)
        self._inversion_combo.clear()
        for i in range(max_inversion(s.quality, s.chord_type) + 1):
            self._inversion_combo.addItem(inversion_label(i), i)
        self._inversion_combo.setCurrentIndex(s.inversion)
        self._inversion_combo.blockSignals(False)

        self._octave_spin.blockSignals(True)
        self._octave_spin.setValue(s.octave_shift)
        self._octave_spin.blockSignals(False)

        chord_enabled = s.play_mode == PlayMode.CHORD
        for widget in (self._quality_combo, self._type_combo, self._inversion_combo):
            widget.setEnabled(chord_enabled)
        if chord_enabled:
            intervals = apply_inversion(chord_intervals(s.quality, s.chord_type), s.inversion)
            self._info_label.setText(
                f"{inversion_label(s.inversion)} — intervals: {', '.join(map(str, intervals))}",
            )
        else:
            self._info_label.setText("Single note mode")

    def _apply_settings(self, settings: KeyboardSettings) -> None:
        if settings.octave_shift != self._settings.octave_shift:
            self._piano.set_octave_shift(settings.octave_shift)
        self._settings = settings
        settings.save(self._config)
        self._sync_controls()

    def _on_chord_changed(self) -> None:
        self._apply_settings(self._settings.with_changes(
            quality=self._quality_combo.currentData(),
            chord_type=self._type_combo.currentData(),
        ))

    def _on_controls_changed(self) -> None:
        self._apply_settings(self._settings.with_changes(
            play_mode=self._mode_combo.currentData(),
            inversion=max(0, self._inversion_combo.currentIndex()),
            octave_shift=self._octave_spin.value(),
        ))

    # ── Input ──────────────────────────────────────────────

    def _on_piano_pressed(self, note: str, octave: int) -> None:
        self._router.pointer_down(note, octave, self._settings)

    def eventFilter(self, obj: QObject, event: QEvent) -> bool:  # noqa: N802
        if event.type() not in (QEvent.Type.KeyPress, QEvent.Type.KeyRelease):
            return False
        if event.type() == QEvent.Type.KeyPress and not self.isActiveWindow():
            return False
        focus = QApplication.focusWidget()
        key_event = key_event_from_qt(event, isinstance(focus, _TEXT_INPUT_WIDGETS))
        if key_event is None:
            return False
        if event.type() == QEvent.Type.KeyPress:
            self._router.key_down(key_event, self._settings)
        elif not key_event.repeat:
            # Releases always go through so a key held before focus moved still stops
            self._router.key_up(key_event)
        return not key_event.text_input

    def changeEvent(self, event: QEvent) -> None:  # noqa: N802
        # Key releases go to whichever window is active, so nothing held survives deactivation
        if event.type() == QEvent.Type.ActivationChange and not self.isActiveWindow():
            self._router.release_all()
        super().changeEvent(event)

    # ── Sequencer feedback ─────────────────────────────────

    def _on_state_changed(self, state: int) -> None:
        state = SequencerState(state)
        self._record_btn.setText("Stop Recording" if state == SequencerState.RECORDING else "Record")
        self._record_btn.setEnabled(state != SequencerState.PLAYING)
        self._play_btn.setEnabled(state == SequencerState.IDLE and self._sequencer.event_count > 0)
        self._stop_btn.setEnabled(state == SequencerState.PLAYING)
        self._clear_btn.setEnabled(state != SequencerState.PLAYING)
        labels = {
            SequencerState.IDLE: "",
            SequencerState.RECORDING: "● Recording",
            SequencerState.PLAYING: "▶ Playing",
        }
        ready = self._sink is not None and self._sink.is_ready
        self._status_label.setText(labels[state] if ready else "No audio output available")

    def _on_sequence_changed(self, count: int) -> None:
        self._sequence_list.clear()
        for i, evt in enumerate(self._sequencer.events):
            self._sequence_list.addItem(describe_event(i, evt))
        self._play_btn.setEnabled(self._sequencer.state == SequencerState.IDLE and count > 0)

    def _on_index_changed(self, index: int) -> None:
        events = self._sequencer.events
        if 0 <= index < len(events):
            evt = events[index]
            self._sequence_list.setCurrentRow(index)
            self._piano.set_active(set(chord_pitch_names(evt.root, evt.octave, evt.params)))
        else:
            self._sequence_list.clearSelection()
            self._piano.set_active(set())

    # ── Shutdown ───────────────────────────────────────────

    def closeEvent(self, event) -> None:  # noqa: N802
        app = QApplication.instance()
        if app is not None:
            app.removeEventFilter(self)
        self._controller.cleanup()
        self._router.release_all()
        close = getattr(self._sink, "close", None)
        if close is not None:
            close()
        super().closeEvent(event)
