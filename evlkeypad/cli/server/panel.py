"""Provides the keypad state machine for the network module emulator."""

import logging
from collections.abc import Callable
from enum import Enum

from evlkeypad.event import KeypadUpdate
from evlkeypad.indicator import Indicator

_LOGGER = logging.getLogger(__name__)


class Panel:
    """
    Represents the keypad of an emulated alarm panel.

    Keys are entered as ``<user code><function>``:
    * 1 : Disarm (a second disarm clears alarm memory)
    * 2 : Arm away
    * 3 : Arm stay
    * 7 : Arm instant
    * 9 : Toggle chime

    ``#`` clears partially entered keys and ``*`` repeats the current status.
    """

    class ArmingState(Enum):
        """The arming states for the emulated panel."""

        DISARMED = "DISARMED"
        ARMED_AWAY = "ARMED_AWAY"
        ARMED_STAY = "ARMED_STAY"
        ARMED_INSTANT = "ARMED_INSTANT"

    CODE_LENGTH = 4

    ARMED_ICONS = {
        ArmingState.ARMED_AWAY: Indicator.ARMED_AWAY,
        ArmingState.ARMED_STAY: Indicator.ARMED_STAY,
        ArmingState.ARMED_INSTANT: Indicator.ARMED_INSTANT,
    }

    ARMED_TEXT = {
        ArmingState.ARMED_AWAY: "ARMED ***AWAY***",
        ArmingState.ARMED_STAY: "ARMED ***STAY***",
        ArmingState.ARMED_INSTANT: "ARMED *INSTANT*",
    }

    state: ArmingState
    in_alarm: bool
    alarm_memory: bool
    fire: bool
    fire_memory: bool
    ac_power: bool
    chime: bool
    _code: str
    _keys: str
    _status_changed: Callable[[KeypadUpdate], None]

    def __init__(
        self, status_changed: Callable[[KeypadUpdate], None], code: str = "1234"
    ) -> None:
        """Create a disarmed panel, reporting each change to status_changed."""
        if len(code) != Panel.CODE_LENGTH or not code.isdigit():
            msg = f"User code must be {Panel.CODE_LENGTH} digits"
            raise ValueError(msg)
        self.state = Panel.ArmingState.DISARMED
        self.in_alarm = False
        self.alarm_memory = False
        self.fire = False
        self.fire_memory = False
        self.ac_power = True
        self.chime = False
        self._code = code
        self._keys = ""
        self._status_changed = status_changed

    @property
    def ready(self) -> bool:
        """Whether the panel could be armed."""
        return (
            self.state == Panel.ArmingState.DISARMED
            and not self.in_alarm
            and not self.fire
        )

    def press(self, key: str) -> None:
        """Handle a single keypress."""
        _LOGGER.debug("Key pressed: %s (buffer %s)", key, self._keys)
        if key == "#":
            self._keys = ""
            return
        if key == "*":
            self._keys = ""
            self._publish()
            return
        if not key.isdigit():
            _LOGGER.warning("Ignoring key %r", key)
            return

        self._keys += key
        if len(self._keys) <= Panel.CODE_LENGTH:
            return

        code, function = self._keys[: Panel.CODE_LENGTH], self._keys[-1]
        self._keys = ""
        if code != self._code:
            _LOGGER.info("Incorrect user code entered")
            self._publish(beep_count=2)
            return

        if function == "1":
            self.disarm()
        elif function == "2":
            self.arm(Panel.ArmingState.ARMED_AWAY)
        elif function == "3":
            self.arm(Panel.ArmingState.ARMED_STAY)
        elif function == "7":
            self.arm(Panel.ArmingState.ARMED_INSTANT)
        elif function == "9":
            self.chime = not self.chime
            self._publish(beep_count=1)
        else:
            _LOGGER.info("Unsupported function key %s", function)
            self._publish(beep_count=2)

    def arm(self, state: ArmingState = ArmingState.ARMED_AWAY) -> None:
        """Arm the panel, if it is ready."""
        if not self.ready:
            _LOGGER.info("Panel not ready - cannot arm %s", state)
            self._publish(beep_count=2)
            return
        self.state = state
        self._publish(beep_count=1)

    def disarm(self) -> None:
        """Disarm the panel. Disarming when already disarmed clears memory."""
        if self.state == Panel.ArmingState.DISARMED and not self.in_alarm:
            self.alarm_memory = False
            self.fire_memory = False
        if self.in_alarm:
            self.alarm_memory = True
        if self.fire:
            self.fire_memory = True
        self.state = Panel.ArmingState.DISARMED
        self.in_alarm = False
        self.fire = False
        self._publish(beep_count=1)

    def trip(self) -> None:
        """Put the panel into alarm."""
        self.in_alarm = True
        self._publish(beep_count=4)

    def fire_alarm(self) -> None:
        """Raise a fire alarm."""
        self.fire = True
        self._publish(beep_count=4)

    def set_ac_power(self, *, present: bool) -> None:
        """Simulate loss or restoration of mains power."""
        self.ac_power = present
        self._publish()

    def status(self, beep_count: int = 0) -> KeypadUpdate:
        """Build the keypad update describing the current state."""
        icons = Indicator(0)
        if self.in_alarm:
            icons |= Indicator.ALARM_ACTIVE
        if self.alarm_memory:
            icons |= Indicator.ALARM_CANCEL
        if self.ac_power:
            icons |= Indicator.AC_POWER
        if self.chime:
            icons |= Indicator.CHIME_ENABLED
        if self.fire:
            icons |= Indicator.FIRE_ACTIVE
        if self.fire_memory:
            icons |= Indicator.FIRE_CANCEL
        if not self.ac_power:
            icons |= Indicator.SYSTEM_TROUBLE
        if self.ready:
            icons |= Indicator.SYSTEM_READY
        if self.state in Panel.ARMED_ICONS:
            icons |= Panel.ARMED_ICONS[self.state]

        return KeypadUpdate(
            icon_bitmask=int(icons),
            beep_count=beep_count,
            display_text=self._display_text(),
        )

    def _display_text(self) -> str:
        if self.fire:
            rows = ("FIRE ALARM", "Zone 09")
        elif self.in_alarm:
            rows = ("ALARM", "Zone 01")
        elif self.state in Panel.ARMED_TEXT:
            rows = (Panel.ARMED_TEXT[self.state], "")
        elif not self.ac_power:
            rows = ("AC LOSS", "Power Failure")
        elif self.alarm_memory or self.fire_memory:
            rows = ("****DISARMED****", "Alarm In Memory")
        else:
            rows = ("****DISARMED****", "  Ready to Arm")
        row_length = KeypadUpdate.DISPLAY_ROW_LENGTH
        return "".join(row.ljust(row_length)[:row_length] for row in rows)

    def _publish(self, beep_count: int = 0) -> None:
        update = self.status(beep_count)
        _LOGGER.debug("Panel status: %s", update)
        self._status_changed(update)
