"""
Webcam hand-gesture producer.

A background thread reads camera frames, runs MediaPipe Hands on each one,
classifies the first hand into a GestureSample and puts it into a
LatestValue cell. The render loop drains the cell once per frame, so the
producer never touches particle state.

Classification (normalized image coordinates):
  - pinch:   |thumb tip (4) - index tip (8)| < PINCH_THRESHOLD
  - pointer: mirrored index tip, x = 1 - index.x, y = index.y

OpenCV and MediaPipe are optional (pip install .[gesture]); they are only
imported when a producer opens the real camera.
"""

import math
import threading
from dataclasses import dataclass

from config import (PINCH_THRESHOLD, CAMERA_INDEX, CAPTURE_WIDTH, CAPTURE_HEIGHT,
                    HAND_DETECTION_CONF, HAND_TRACKING_CONF)

THUMB_TIP = 4
INDEX_TIP = 8


@dataclass(frozen=True)
class GestureSample:
    pinching: bool
    pointer_x: float
    pointer_y: float


def sample_from_landmarks(landmarks, pinch_threshold=PINCH_THRESHOLD):
    """
    Classify one hand.

    Args:
        landmarks: Sequence of 21 points with .x/.y attributes or (x, y[, z])
            tuples, in normalized image coordinates
        pinch_threshold: Thumb-index distance below which the hand pinches

    Returns:
        GestureSample, or None if the landmark list is too short
    """
    if landmarks is None or len(landmarks) <= INDEX_TIP:
        return None
    tx, ty = _xy(landmarks[THUMB_TIP])
    ix, iy = _xy(landmarks[INDEX_TIP])
    distance = math.hypot(tx - ix, ty - iy)
    return GestureSample(pinching=distance < pinch_threshold,
                         pointer_x=1.0 - ix, pointer_y=iy)


def _xy(point):
    if hasattr(point, "x"):
        return float(point.x), float(point.y)
    return float(point[0]), float(point[1])


class _Webcam:
    """cv2.VideoCapture + mp.solutions.hands pair owned by the producer thread."""

    def __init__(self, camera_index):
        import cv2
        import mediapipe as mp

        self._cv2 = cv2
        # Detector first: the camera is only opened once nothing else can fail
        # before the producer owns it.
        self.hands = mp.solutions.hands.Hands(
            static_image_mode=False,
            max_num_hands=1,
            min_detection_confidence=HAND_DETECTION_CONF,
            min_tracking_confidence=HAND_TRACKING_CONF,
        )
        self.cap = cv2.VideoCapture(camera_index)
        try:
            if not self.cap.isOpened():
                raise RuntimeError(f"could not open camera {camera_index}")
            self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, CAPTURE_WIDTH)
            self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, CAPTURE_HEIGHT)
        except Exception:
            self.close()
            raise

    def read(self):
        ok, frame = self.cap.read()
        return frame if ok else None

    def detect(self, frame):
        rgb = self._cv2.cvtColor(frame, self._cv2.COLOR_BGR2RGB)
        results = self.hands.process(rgb)
        if not results.multi_hand_landmarks:
            return None
        return sample_from_landmarks(results.multi_hand_landmarks[0].landmark)

    def close(self):
        self.cap.release()
        self.hands.close()


class GestureProducer(threading.Thread):
    """
    Daemon thread that feeds GestureSamples into a LatestValue cell.

    Args:
        cell: LatestValue receiving samples
        frames: Optional callable returning the next frame (None = no frame).
            Defaults to the webcam.
        detect: Optional callable frame -> GestureSample or None.
            Defaults to MediaPipe Hands.
        camera_index: Webcam index used when frames is not given
    """

    def __init__(self, cell, frames=None, detect=None, camera_index=CAMERA_INDEX,
                 verbose=True):
        super().__init__(name="gesture-producer", daemon=True)
        self.cell = cell
        self._frames = frames
        self._detect = detect
        self._camera_index = camera_index
        self._stop_event = threading.Event()
        self.verbose = verbose
        self.error = None
        self.samples = 0

    def run(self):
        webcam = None
        try:
            if self._frames is None or self._detect is None:
                try:
                    webcam = _Webcam(self._camera_index)
                except ImportError as e:
                    self.error = e
                    print(f"[Gesture] opencv/mediapipe unavailable ({e}); "
                          f"install with: pip install .[gesture]")
                    return
                except (RuntimeError, AttributeError) as e:
                    self.error = e
                    print(f"[Gesture] {e}")
                    return
            frames = self._frames or webcam.read
            detect = self._detect or webcam.detect
            if self.verbose:
                print("[Gesture] producer started")
            while not self._stop_event.is_set():
                frame = frames()
                if frame is None:
                    self._stop_event.wait(0.01)
                    continue
                sample = detect(frame)
                if sample is not None:
                    self.cell.put(sample)
                    self.samples += 1
        finally:
            if webcam is not None:
                webcam.close()
            if self.verbose:
                print(f"[Gesture] producer stopped after {self.samples} samples")

    def stop(self, timeout=2.0):
        """Signal the loop to exit and wait for it (camera released on exit)."""
        self._stop_event.set()
        if self.is_alive():
            self.join(timeout)

    @property
    def stopped(self):
        return self._stop_event.is_set()
