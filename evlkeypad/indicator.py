"""
Resolve the keypad icon bitmask into labelled indicators.

The bitmask is field 2 of a ``%00`` keypad update. Each set bit lights one
icon on a physical keypad. Several icons share a label (for example a live
alarm and an alarm-in-memory both show ``ALARM``) so the resolver applies a
fixed precedence within each family.
"""

from enum import Enum, IntFlag


class Indicator(IntFlag):
    """Icon bits of a virtual keypad update."""

    ALARM_ACTIVE = 0x0001  # System is in alarm
    ALARM_CANCEL = 0x0002  # Alarm in memory
    ARMED_AWAY = 0x0004
    AC_POWER = 0x0008
    ZONES_BYPASS = 0x0010
    CHIME_ENABLED = 0x0020
    PROGRAM_MODE = 0x0040
    ARMED_INSTANT = 0x0080  # Armed with zero entry delay
    FIRE_ACTIVE = 0x0100  # Alarm in a fire zone
    SYSTEM_TROUBLE = 0x0200
    SYSTEM_READY = 0x1000
    FIRE_CANCEL = 0x2000
    LOW_BATTERY = 0x4000
    ARMED_STAY = 0x8000


_KNOWN_BITS = sum(item.value for item in Indicator)


class Severity(Enum):
    """How urgently an indicator should be presented."""

    NORMAL = "NORMAL"
    ALARM = "ALARM"


IndicatorSet = dict[str, Severity]

ARMED_ANY = Indicator.ARMED_AWAY | Indicator.ARMED_INSTANT | Indicator.ARMED_STAY

# Labels which, at NORMAL severity, still deserve the user's attention
CAUTION_LABELS = frozenset({"ALARM", "PRGRM", "FIRE", "TRBL"})


def resolve_indicators(bitmask: int) -> IndicatorSet:
    """
    Build the ordered label -> severity mapping for an icon bitmask.

    Insertion order is the display order. Within each family only the
    first matching rule contributes a label, so a label never appears
    twice with different severities.
    """
    flags = Indicator(bitmask & _KNOWN_BITS)
    labels: IndicatorSet = {}

    if Indicator.ALARM_ACTIVE in flags:
        labels["ALARM"] = Severity.ALARM
    elif Indicator.ALARM_CANCEL in flags:
        labels["ALARM"] = Severity.NORMAL

    if Indicator.AC_POWER in flags:
        labels["AC"] = Severity.NORMAL
    elif Indicator.PROGRAM_MODE not in flags:
        # No AC warning while the panel is being programmed
        labels["AC"] = Severity.ALARM

    if Indicator.CHIME_ENABLED in flags:
        labels["CHIME"] = Severity.NORMAL

    if Indicator.PROGRAM_MODE in flags:
        labels["PRGRM"] = Severity.NORMAL

    if Indicator.FIRE_ACTIVE in flags:
        labels["FIRE"] = Severity.ALARM
    elif Indicator.FIRE_CANCEL in flags:
        labels["FIRE"] = Severity.NORMAL

    if Indicator.SYSTEM_TROUBLE in flags:
        labels["TRBL"] = Severity.NORMAL

    if Indicator.SYSTEM_READY in flags:
        labels["READY"] = Severity.NORMAL

    if flags & ARMED_ANY:
        labels["ARMED"] = Severity.ALARM

    return labels


def is_caution(label: str, severity: Severity) -> bool:
    """Check whether a NORMAL indicator should still be highlighted."""
    return severity == Severity.NORMAL and label in CAUTION_LABELS
