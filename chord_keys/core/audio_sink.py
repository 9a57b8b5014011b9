"""Audio sinks — where triggered pitches are sent to be heard.

The router and sequencer only see the ``AudioSink`` protocol.
``MidiSynthSink`` renders through the operating-system synthesizer
(e.g. Windows GS Wavetable Synth) via mido's rtmidi backend.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from typing import Protocol

import mido

from .pitch import Pitch

log = logging.getLogger(__name__)


class AudioSink(Protocol):
    """Black-box sound renderer addressed by ``NoteOctave`` pitch names."""

    @property
    def is_ready(self) -> bool:
        """True once the renderer exists and can accept triggers."""
        ...

    @property
    def is_started(self) -> bool:
        """True once the audio context has been started for this session."""
        ...

    def start(self) -> None: ...

    def attack(self, pitch_names: Sequence[str]) -> None: ...

    def release(self, pitch_names: Sequence[str]) -> None: ...


class MidiSynthSink:
    """Plays pitch names on the system MIDI synthesizer.

    The output port is discovered on construction and opened by ``start()``.
    Port errors are logged and leave the sink un-started, so triggers
    become silent no-ops instead of raising.
    """

    def __init__(self, port_name: str = "", velocity: int = 100, channel: int = 0) -> None:
        self._velocity = velocity & 0x7F
        self._channel = channel & 0x0F
        self._port: mido.ports.BaseOutput | None = None
        self._port_name: str | None = self._discover(port_name)
        self._lock = threading.Lock()

    @staticmethod
    def _discover(preferred: str) -> str | None:
        """Pick an output port: the preferred one, else a wavetable/GS synth, else the first."""
        try:
            names = mido.get_output_names()
        except Exception:
            log.warning("MIDI output backend unavailable", exc_info=True)
            return None
        if not names:
            log.warning("No MIDI output ports available")
            return None
        if preferred and preferred in names:
            return preferred
        for name in names:
            lowered = name.lower()
            if "wavetable" in lowered or "gs" in lowered:
                return name
        return names[0]

    @property
    def port_name(self) -> str | None:
        return self._port_name

    @property
    def is_ready(self) -> bool:
        return self._port_name is not None

    @property
    def is_started(self) -> bool:
        return self._port is not None and not self._port.closed

    def start(self) -> None:
        """Open the output port (idempotent)."""
        if self.is_started or self._port_name is None:
            return
        try:
            self._port = mido.open_output(self._port_name)
            log.info("MIDI output opened: %s", self._port_name)
        except (OSError, RuntimeError):
            self._port = None
            log.warning("Failed to open MIDI output %s", self._port_name, exc_info=True)

    def attack(self, pitch_names: Sequence[str]) -> None:
        self._send("note_on", pitch_names, self._velocity)

    def release(self, pitch_names: Sequence[str]) -> None:
        self._send("note_off", pitch_names, 0)

    def _send(self, msg_type: str, pitch_names: Sequence[str], velocity: int) -> None:
        with self._lock:
            if self._port is None:
                return
            for name in pitch_names:
                note = Pitch.parse(name).midi_number
                if not 0 <= note <= 127:
                    log.debug("Pitch %s outside MIDI range, skipped", name)
                    continue
                self._port.send(mido.Message(
                    msg_type, channel=self._channel, note=note, velocity=velocity,
                ))

    def close(self) -> None:
        """Silence everything and close the port."""
        with self._lock:
            if self._port is None:
                return
            try:
                self._port.reset()
                self._port.close()
            except (OSError, RuntimeError):
                log.warning("Error while closing MIDI output", exc_info=True)
            self._port = None
            log.info("MIDI output closed")
