"""Interactive piano widget — click keys to play notes or chords.

Keys are drawn as equal-width columns across the visible octaves.
The widget only reports pointer input; sound is handled by the router.
"""

from __future__ import annotations

from PyQt6.QtCore import QRectF, Qt, pyqtSignal
from PyQt6.QtGui import (
    QBrush,
    QColor,
    QFont,
    QLinearGradient,
    QPainter,
    QPainterPath,
    QPen,
)
from PyQt6.QtWidgets import QWidget

from ..core.constants import KEYBOARD_OCTAVES
from ..core.pitch import NOTE_NAMES, is_sharp
from ..core.voice_tracker import voice_key

_COLOR_NATURAL = QColor(0x1A, 0x23, 0x32)
_COLOR_SHARP = QColor(0x1A, 0x14, 0x28)
_COLOR_ACTIVE = QColor(0x00, 0xF0, 0xFF)
_COLOR_BORDER = QColor(0x2E, 0x3D, 0x50)
_COLOR_TEXT_LIGHT = QColor(0xE8, 0xE0, 0xD0)
_COLOR_TEXT_DIM = QColor(0x7A, 0x88, 0x99)


def keyboard_keys(octave_shift: int = 0) -> list[tuple[str, int]]:
    """(note, octave) for every on-screen key, lowest first."""
    return [
        (note, octave + octave_shift)
        for octave in KEYBOARD_OCTAVES
        for note in NOTE_NAMES
    ]


class PianoWidget(QWidget):
    """Two-octave clickable keyboard."""

    key_pressed = pyqtSignal(str, int)   # note, octave (mouse down)
    key_released = pyqtSignal(str, int)  # note, octave (mouse up or leave)

    def __init__(self, octave_shift: int = 0, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._keys = keyboard_keys(octave_shift)
        self._pressed: tuple[str, int] | None = None
        self._hover: tuple[str, int] | None = None
        self._active: set[str] = set()
        self.setFixedHeight(90)
        self.setMinimumWidth(480)
        self.setMouseTracking(True)
        self.setCursor(Qt.CursorShape.PointingHandCursor)

    @property
    def keys(self) -> list[tuple[str, int]]:
        return list(self._keys)

    def set_octave_shift(self, octave_shift: int) -> None:
        self._release_pressed()
        self._keys = keyboard_keys(octave_shift)
        self.update()

    def set_active(self, pitch_names: set[str]) -> None:
        """Highlight keys whose ``NoteOctave`` name is in ``pitch_names``."""
        self._active = set(pitch_names)
        self.update()

    def _key_at_pos(self, x: float, y: float) -> tuple[str, int] | None:
        """Hit-test: return (note, octave) at pixel position, or None."""
        w = self.width()
        h = self.height()
        if x < 0 or x >= w or y < 0 or y >= h:
            return None
        key_w = w / len(self._keys)
        index = max(0, min(int(x / key_w), len(self._keys) - 1))
        return self._keys[index]

    def _release_pressed(self) -> None:
        if self._pressed is not None:
            self.key_released.emit(*self._pressed)
            self._pressed = None
            self.update()

    def mousePressEvent(self, event) -> None:  # noqa: N802
        if event.button() == Qt.MouseButton.LeftButton:
            key = self._key_at_pos(event.position().x(), event.position().y())
            if key is not None:
                self._pressed = key
                self.key_pressed.emit(*key)
                self.update()
        super().mousePressEvent(event)

    def mouseReleaseEvent(self, event) -> None:  # noqa: N802
        if event.button() == Qt.MouseButton.LeftButton:
            self._release_pressed()
        super().mouseReleaseEvent(event)

    def mouseMoveEvent(self, event) -> None:  # noqa: N802
        key = self._key_at_pos(event.position().x(), event.position().y())
        if self._pressed is not None and key != self._pressed:
            # Dragging off a held key releases it
            self._release_pressed()
        if key != self._hover:
            self._hover = key
            self.update()
        super().mouseMoveEvent(event)

    def leaveEvent(self, event) -> None:  # noqa: N802
        self._release_pressed()
        self._hover = None
        self.update()
        super().leaveEvent(event)

    def paintEvent(self, event) -> None:  # noqa: N802
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)

        w = self.width()
        h = self.height()
        key_w = w / len(self._keys)
        font = QFont()
        font.setPointSize(max(7, int(min(key_w / 3.5, h / 5.0))))
        painter.setFont(font)

        clip = QPainterPath()
        clip.addRoundedRect(QRectF(0, 0, w, h), 8, 8)
        painter.setClipPath(clip)

        bg_grad = QLinearGradient(0, 0, 0, h)
        bg_grad.setColorAt(0, QColor(0x10, 0x18, 0x20))
        bg_grad.setColorAt(1, QColor(0x0A, 0x0E, 0x14))
        painter.fillRect(0, 0, w, h, bg_grad)

        for i, key in enumerate(self._keys):
            note, octave = key
            x = i * key_w
            kw = key_w - 1
            kh = h - 1
            sharp = is_sharp(note)
            lit = key == self._pressed or voice_key(note, octave) in self._active

            if lit:
                bg = _COLOR_ACTIVE
            elif key == self._hover:
                bg = QColor(0x00, 0xF0, 0xFF, 60)
            elif sharp:
                bg = _COLOR_SHARP
            else:
                bg = _COLOR_NATURAL

            path = QPainterPath()
            path.addRoundedRect(QRectF(x, 0, kw, kh), 3, 3)
            painter.fillPath(path, QBrush(bg))

            if lit:
                painter.setPen(QPen(QColor(0, 240, 255, 150), 1.5))
            else:
                painter.setPen(QPen(_COLOR_BORDER, 0.5))
            painter.drawPath(path)

            painter.setPen(_COLOR_TEXT_LIGHT if lit else _COLOR_TEXT_DIM)
            painter.drawText(
                int(x), int(kh * 0.55), int(kw), int(kh * 0.4),
                Qt.AlignmentFlag.AlignCenter, f"{note}{octave}",
            )

        painter.end()
