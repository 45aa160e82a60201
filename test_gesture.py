import sys
import threading
import time
from types import ModuleType, SimpleNamespace

import pytest

from controller import LatestValue
from gesture import GestureProducer, GestureSample, sample_from_landmarks


def hand(thumb, index):
    pts = [(0.5, 0.5, 0.0)] * 21
    pts[4] = thumb
    pts[8] = index
    return pts


def wait_for(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return False


def test_pinch_detected_below_threshold():
    s = sample_from_landmarks(hand((0.50, 0.50), (0.52, 0.51)))
    assert s.pinching
    assert s.pointer_x == pytest.approx(0.48)
    assert s.pointer_y == pytest.approx(0.51)


def test_open_hand_reports_mirrored_pointer():
    s = sample_from_landmarks(hand((0.3, 0.7), (0.8, 0.2)))
    assert not s.pinching
    assert s.pointer_x == pytest.approx(0.2)
    assert s.pointer_y == pytest.approx(0.2)


def test_threshold_is_configurable():
    lm = hand((0.5, 0.5), (0.55, 0.5))
    assert sample_from_landmarks(lm).pinching
    assert not sample_from_landmarks(lm, pinch_threshold=0.01).pinching


def test_landmark_objects_with_attributes():
    pts = [SimpleNamespace(x=0.5, y=0.5, z=0.0) for _ in range(21)]
    pts[8] = SimpleNamespace(x=0.9, y=0.1, z=0.0)
    s = sample_from_landmarks(pts)
    assert s.pointer_x == pytest.approx(0.1)


def test_short_landmark_list_gives_none():
    assert sample_from_landmarks([(0.0, 0.0)] * 5) is None
    assert sample_from_landmarks(None) is None


def test_producer_pushes_samples_and_stops():
    cell = LatestValue()
    sample = GestureSample(True, 0.4, 0.6)
    producer = GestureProducer(cell, frames=lambda: "frame", detect=lambda f: sample,
                               verbose=False)
    producer.start()
    try:
        assert wait_for(lambda: cell.peek() is not None)
    finally:
        producer.stop()
    assert not producer.is_alive()
    assert producer.stopped
    assert cell.take() == sample
    assert producer.error is None


def test_producer_pushes_nothing_without_a_hand():
    cell = LatestValue()
    seen = threading.Event()
    calls = []

    def detect(frame):
        calls.append(frame)
        if len(calls) > 20:
            seen.set()
        return None

    producer = GestureProducer(cell, frames=lambda: "frame", detect=detect, verbose=False)
    producer.start()
    try:
        assert seen.wait(2.0)
    finally:
        producer.stop()
    assert cell.peek() is None
    assert producer.samples == 0


def test_producer_waits_when_no_frame_is_available():
    cell = LatestValue()
    producer = GestureProducer(cell, frames=lambda: None,
                               detect=lambda f: GestureSample(False, 0.5, 0.5), verbose=False)
    producer.start()
    time.sleep(0.05)
    producer.stop()
    assert cell.peek() is None
    assert not producer.is_alive()


class FakeCapture:
    def __init__(self, index, opened, frames):
        self.index = index
        self.opened = opened
        self.frames = list(frames)
        self.released = False
        self.settings = {}

    def isOpened(self):
        return self.opened

    def set(self, prop, value):
        self.settings[prop] = value
        return True

    def read(self):
        if self.frames:
            return True, self.frames.pop(0)
        return False, None

    def release(self):
        self.released = True


class FakeHands:
    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.closed = False
        self.landmarks = [SimpleNamespace(x=x, y=y) for x, y, _ in
                          hand((0.50, 0.50, 0.0), (0.51, 0.50, 0.0))]

    def process(self, image):
        return SimpleNamespace(multi_hand_landmarks=[SimpleNamespace(landmark=self.landmarks)])

    def close(self):
        self.closed = True


def fake_webcam_modules(monkeypatch, opened=True, with_hands=True, frames=("frame",)):
    """Install stand-in cv2/mediapipe modules and return what they create."""
    made = SimpleNamespace(captures=[], hands=[])

    cv2 = ModuleType("cv2")
    cv2.CAP_PROP_FRAME_WIDTH = 3
    cv2.CAP_PROP_FRAME_HEIGHT = 4
    cv2.COLOR_BGR2RGB = 4

    def video_capture(index):
        cap = FakeCapture(index, opened, frames)
        made.captures.append(cap)
        return cap

    cv2.VideoCapture = video_capture
    cv2.cvtColor = lambda frame, code: frame

    mp = ModuleType("mediapipe")
    if with_hands:
        def make_hands(**kwargs):
            h = FakeHands(**kwargs)
            made.hands.append(h)
            return h
        mp.solutions = SimpleNamespace(hands=SimpleNamespace(Hands=make_hands))

    monkeypatch.setitem(sys.modules, "cv2", cv2)
    monkeypatch.setitem(sys.modules, "mediapipe", mp)
    return made


def run_to_end(producer):
    producer.start()
    producer.join(2.0)
    assert not producer.is_alive()


def test_missing_webcam_libraries_end_the_producer(monkeypatch):
    monkeypatch.setitem(sys.modules, "cv2", None)
    cell = LatestValue()
    producer = GestureProducer(cell, verbose=False)
    run_to_end(producer)
    assert isinstance(producer.error, ImportError)
    assert cell.peek() is None


def test_unopenable_camera_is_released(monkeypatch):
    made = fake_webcam_modules(monkeypatch, opened=False)
    producer = GestureProducer(LatestValue(), camera_index=7, verbose=False)
    run_to_end(producer)
    assert isinstance(producer.error, RuntimeError)
    assert len(made.captures) == 1
    assert made.captures[0].index == 7
    assert made.captures[0].released
    assert all(h.closed for h in made.hands)


def test_missing_hands_solution_leaves_no_open_camera(monkeypatch):
    made = fake_webcam_modules(monkeypatch, with_hands=False)
    producer = GestureProducer(LatestValue(), verbose=False)
    run_to_end(producer)
    assert isinstance(producer.error, AttributeError)
    assert all(cap.released for cap in made.captures)


def test_webcam_samples_flow_and_resources_close_on_stop(monkeypatch):
    made = fake_webcam_modules(monkeypatch, frames=("frame",) * 5)
    cell = LatestValue()
    producer = GestureProducer(cell, verbose=False)
    producer.start()
    try:
        assert wait_for(lambda: producer.samples >= 5)
    finally:
        producer.stop()
    assert not producer.is_alive()
    assert producer.error is None
    sample = cell.take()
    assert sample.pinching
    assert sample.pointer_x == pytest.approx(0.49)
    cap, = made.captures
    assert cap.released and cap.settings
    assert made.hands[0].closed
    assert made.hands[0].kwargs["max_num_hands"] == 1
