"""
Mode / rotation control shared between the render loop and input sources.

Writers:
- UI (toggle button, SPACE key) calls set_mode / toggle
- Gesture producer thread puts GestureSamples into a LatestValue cell,
  which the render loop drains into apply_gesture once per frame

Readers:
- The composition root reads one immutable ControlState per frame

Mode changes are edge-triggered: setting the current mode again is a no-op
and does not count as a transition.
"""

import math
import threading
from dataclasses import dataclass
from enum import IntEnum

from config import INITIAL_ASSEMBLED, GESTURE_ROTATION_SPAN


class Mode(IntEnum):
    DISPERSED = 0
    ASSEMBLED = 1


@dataclass(frozen=True)
class ControlState:
    """Snapshot of the controller taken once per frame."""
    mode: Mode
    rotation_target: float
    gesture_active: bool
    pinching: bool
    cursor: object          # Last accepted GestureSample, or None
    transitions: int


class LatestValue:
    """
    Single-slot cell: writers overwrite, the reader takes the newest value.

    There is no queue; samples that arrive faster than the render loop
    drains them are dropped, last writer wins.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._value = None

    def put(self, value):
        with self._lock:
            self._value = value

    def take(self):
        """Return the newest value and empty the slot (None if empty)."""
        with self._lock:
            value, self._value = self._value, None
        return value

    def peek(self):
        with self._lock:
            return self._value

    def clear(self):
        self.put(None)


def rotation_from_pointer(x):
    """Map a normalized pointer x in [0, 1] to a yaw target in radians."""
    return (x - 0.5) * GESTURE_ROTATION_SPAN


class ModeController:
    """
    Holds the requested mode and rotation target.

    All setters take the internal lock briefly; none of them block on I/O.
    """

    def __init__(self, initial=None, verbose=True):
        if initial is None:
            initial = Mode.ASSEMBLED if INITIAL_ASSEMBLED else Mode.DISPERSED
        self._lock = threading.Lock()
        self._mode = Mode(initial)
        self._rotation_target = 0.0
        self._gesture_active = False
        self._pinching = False
        self._cursor = None
        self._transitions = 0
        self.verbose = verbose

    @property
    def mode(self):
        with self._lock:
            return self._mode

    def set_mode(self, mode):
        """
        Request a mode. Returns True only if the mode actually changed.
        """
        mode = Mode(mode)
        with self._lock:
            if mode == self._mode:
                return False
            self._mode = mode
            self._transitions += 1
            count = self._transitions
        if self.verbose:
            print(f"[Mode] -> {mode.name} (transition #{count})")
        return True

    def toggle(self):
        with self._lock:
            target = Mode.DISPERSED if self._mode == Mode.ASSEMBLED else Mode.ASSEMBLED
        self.set_mode(target)
        return target

    def set_rotation_target(self, angle):
        """
        Overwrite the rotation target (radians).

        Ignored (returns False) for non-finite angles and while the latest
        gesture sample reports a pinch.
        """
        if not math.isfinite(angle):
            return False
        with self._lock:
            if self._pinching:
                return False
            self._rotation_target = float(angle)
        return True

    def set_gesture_active(self, active):
        """UI start/stop gate for gesture input. Stopping clears the pinch latch."""
        with self._lock:
            changed = self._gesture_active != bool(active)
            self._gesture_active = bool(active)
            if not active:
                self._pinching = False
        if changed and self.verbose:
            print(f"[Gesture] input {'enabled' if active else 'disabled'}")

    def apply_gesture(self, sample):
        """
        Apply one gesture sample: pinch -> ASSEMBLED, open -> DISPERSED,
        and, while open, pointer x -> rotation target.

        Samples are ignored while gesture input is inactive and rejected when
        the pointer is not finite. Finite pointers outside [0, 1] are clamped.

        Returns:
            True if the sample was accepted
        """
        if sample is None:
            return False
        x = float(sample.pointer_x)
        if not math.isfinite(x) or not math.isfinite(float(sample.pointer_y)):
            return False
        x = min(1.0, max(0.0, x))
        with self._lock:
            if not self._gesture_active:
                return False
            self._pinching = bool(sample.pinching)
            self._cursor = sample
        self.set_mode(Mode.ASSEMBLED if sample.pinching else Mode.DISPERSED)
        if not sample.pinching:
            self.set_rotation_target(rotation_from_pointer(x))
        return True

    def state(self):
        with self._lock:
            return ControlState(
                mode=self._mode,
                rotation_target=self._rotation_target,
                gesture_active=self._gesture_active,
                pinching=self._pinching,
                cursor=self._cursor,
                transitions=self._transitions,
            )
