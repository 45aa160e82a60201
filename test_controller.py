import dataclasses
import math
import threading

import pytest

from controller import Mode, ModeController, LatestValue, rotation_from_pointer
from gesture import GestureSample


def make_controller(initial=Mode.DISPERSED, active=True):
    c = ModeController(initial=initial, verbose=False)
    c.set_gesture_active(active)
    return c


def test_default_mode_is_assembled():
    assert ModeController(verbose=False).mode == Mode.ASSEMBLED


def test_set_mode_is_edge_triggered():
    c = make_controller()
    assert c.set_mode(Mode.ASSEMBLED) is True
    assert c.set_mode(Mode.ASSEMBLED) is False
    assert c.state().transitions == 1
    assert c.set_mode(Mode.DISPERSED) is True
    assert c.state().transitions == 2


def test_toggle_flips_mode():
    c = make_controller(Mode.ASSEMBLED)
    assert c.toggle() == Mode.DISPERSED
    assert c.toggle() == Mode.ASSEMBLED
    assert c.state().transitions == 2


@pytest.mark.parametrize("bad", [float("nan"), float("inf"), -float("inf")])
def test_non_finite_rotation_is_rejected(bad):
    c = make_controller()
    assert c.set_rotation_target(1.25)
    assert c.set_rotation_target(bad) is False
    assert c.state().rotation_target == 1.25


def test_open_hand_sets_mode_and_rotation():
    c = make_controller(Mode.ASSEMBLED)
    assert c.apply_gesture(GestureSample(False, 0.75, 0.5))
    s = c.state()
    assert s.mode == Mode.DISPERSED
    assert s.rotation_target == pytest.approx(0.25 * 4.0 * math.pi)
    assert s.cursor.pointer_x == 0.75


def test_pinch_assembles_and_freezes_rotation():
    c = make_controller()
    c.apply_gesture(GestureSample(False, 0.75, 0.5))
    target = c.state().rotation_target
    c.apply_gesture(GestureSample(True, 0.1, 0.5))
    s = c.state()
    assert s.mode == Mode.ASSEMBLED
    assert s.pinching
    assert s.rotation_target == target
    assert c.set_rotation_target(0.5) is False
    assert c.state().rotation_target == target


def test_out_of_range_pointer_is_clamped():
    c = make_controller()
    c.apply_gesture(GestureSample(False, 1.7, 0.5))
    assert c.state().rotation_target == pytest.approx(rotation_from_pointer(1.0))
    c.apply_gesture(GestureSample(False, -3.0, 0.5))
    assert c.state().rotation_target == pytest.approx(-2.0 * math.pi)


def test_non_finite_gesture_keeps_previous_state():
    c = make_controller()
    c.apply_gesture(GestureSample(False, 0.6, 0.5))
    before = c.state()
    assert c.apply_gesture(GestureSample(True, float("nan"), 0.5)) is False
    assert c.apply_gesture(GestureSample(True, 0.5, float("inf"))) is False
    assert c.state() == before


def test_gestures_ignored_while_inactive():
    c = make_controller(Mode.ASSEMBLED, active=False)
    assert c.apply_gesture(GestureSample(False, 0.9, 0.5)) is False
    s = c.state()
    assert s.mode == Mode.ASSEMBLED and s.rotation_target == 0.0 and s.cursor is None


def test_stopping_gestures_releases_pinch_latch():
    c = make_controller()
    c.apply_gesture(GestureSample(True, 0.5, 0.5))
    c.set_gesture_active(False)
    assert not c.state().pinching
    assert c.set_rotation_target(0.3)


def test_control_state_is_immutable():
    s = make_controller().state()
    with pytest.raises(dataclasses.FrozenInstanceError):
        s.mode = Mode.ASSEMBLED


def test_latest_value_keeps_only_newest():
    cell = LatestValue()
    assert cell.take() is None
    cell.put(1)
    cell.put(2)
    assert cell.peek() == 2
    assert cell.take() == 2
    assert cell.take() is None


def test_latest_value_concurrent_writers():
    cell = LatestValue()
    values = set()

    def writer(k):
        for i in range(200):
            cell.put((k, i))

    threads = [threading.Thread(target=writer, args=(k,)) for k in range(4)]
    for t in threads:
        t.start()
    for _ in range(100):
        v = cell.take()
        if v is not None:
            values.add(v)
    for t in threads:
        t.join()
    last = cell.take()
    assert last is None or last[1] <= 199
    assert all(0 <= k < 4 and 0 <= i < 200 for k, i in values)
