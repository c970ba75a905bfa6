"""Sound and vibration cues at the end of a timer phase."""

from __future__ import annotations

import logging
import shutil
import subprocess

from pomoplan.display import console

log = logging.getLogger(__name__)

VIBRATE_MS = 1000


class Notifier:
    """Best-effort cues. Failures are logged and never propagate."""

    def __init__(self, sound_enabled: bool = True, vibration_enabled: bool = False) -> None:
        self.sound_enabled = sound_enabled
        self.vibration_enabled = vibration_enabled

    def play_sound(self) -> None:
        try:
            console.bell()
        except Exception:
            log.warning("Could not play notification sound", exc_info=True)

    def vibrate(self) -> None:
        binary = shutil.which("termux-vibrate")
        if binary is None:
            log.debug("Vibration is not supported on this device")
            return
        try:
            subprocess.run(
                [binary, "-d", str(VIBRATE_MS)],
                check=True,
                capture_output=True,
                timeout=5,
            )
        except (OSError, subprocess.SubprocessError):
            log.warning("Could not vibrate", exc_info=True)

    def notify(self) -> None:
        """Fire whichever cues are enabled."""
        if self.sound_enabled:
            self.play_sound()
        if self.vibration_enabled:
            self.vibrate()
