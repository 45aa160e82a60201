"""
Composition root: owns the particle groups and runs one frame at a time.

Per frame (advance):
1. Drain the gesture cell into the controller (latest sample only)
2. Read one ControlState
3. Advance every group (ease / rotate / scale)
4. Smooth rotation toward its target, or sway when no gesture is active
   (yaw left over from a gesture decays into the sway instead of snapping)
5. Write the global placement  T(0, PLACEMENT_Y, 0) @ Ry(yaw)
6. Compose every group's instance transforms

The render loop is the only caller of advance(), so it is the single writer
of particle state and of rotation_current.
"""

import math
from dataclasses import dataclass

import numpy as np
import taichi as ti

from config import (TAU, PLACEMENT_Y, ROTATION_SMOOTHING, SWAY_AMP, SWAY_FREQ,
                    TELEMETRY_EVERY)
from controller import Mode
from groups import build_default_groups


def smooth_rotation(current, target, k=ROTATION_SMOOTHING):
    """One step of exponential smoothing toward target."""
    return current + (target - current) * k


def sway(t):
    """Idle yaw sway in radians at scene time t."""
    return math.sin(t * SWAY_FREQ) * SWAY_AMP


def placement_matrix(yaw, lift=PLACEMENT_Y):
    """T(0, lift, 0) @ Ry(yaw) as a float32 4x4 array."""
    c, s = math.cos(yaw), math.sin(yaw)
    return np.array([
        [c, 0.0, s, 0.0],
        [0.0, 1.0, 0.0, lift],
        [-s, 0.0, c, 0.0],
        [0.0, 0.0, 0.0, 1.0],
    ], dtype=np.float32)


@dataclass(frozen=True)
class FrameSnapshot:
    """Host copy of every instance after a frame, groups concatenated in draw order."""
    frame: int
    time: float
    mode: Mode
    yaw: float
    names: tuple
    offsets: tuple         # Start index of each group in the concatenated arrays
    transforms: np.ndarray  # (N, 4, 4)
    colors: np.ndarray      # (N, 3)


class Assembly:
    """
    Scene state advanced once per rendered frame.

    Args:
        controller: ModeController shared with the UI
        groups: Particle groups; defaults to the full scene built from rng
        feed: Optional LatestValue carrying GestureSamples
        rng: numpy Generator used when groups are built here
        verbose: Print [Init] / [Frame N] telemetry
    """

    def __init__(self, controller, groups=None, feed=None, rng=None, verbose=True):
        if groups is None:
            groups = build_default_groups(rng if rng is not None else np.random.default_rng())
        if not groups:
            raise ValueError("assembly needs at least one particle group")
        self.controller = controller
        self.groups = list(groups)
        self.feed = feed
        self.verbose = verbose

        self.frame = 0
        self.time = 0.0
        self.rotation_current = 0.0
        self.yaw = 0.0
        self.sway_offset = 0.0  # Left over gesture yaw, decays back into the sway
        self._gesture_was_active = False
        self.state = controller.state()
        self.placement = ti.Matrix.field(4, 4, dtype=ti.f32, shape=())
        self.placement.from_numpy(placement_matrix(0.0))

        self.total = sum(g.n for g in self.groups)
        if self.verbose:
            sizes = ", ".join(f"{g.spec.name}={g.n}" for g in self.groups)
            print(f"[Init] {len(self.groups)} groups, {self.total} instances ({sizes})")

    def advance(self, dt):
        """
        Run one frame.

        Args:
            dt: Seconds since the previous frame (finite, >= 0)

        Returns:
            The ControlState used for this frame
        """
        if not math.isfinite(dt) or dt < 0.0:
            raise ValueError(f"frame dt must be finite and non-negative, got {dt}")

        if self.feed is not None:
            sample = self.feed.take()
            if sample is not None:
                self.controller.apply_gesture(sample)
        state = self.controller.state()

        self.time += dt
        assembled = state.mode == Mode.ASSEMBLED
        for g in self.groups:
            g.advance(assembled, self.time)

        if state.gesture_active:
            if not self._gesture_was_active:
                # Pick up from the yaw on screen, not the one left at switch-off
                self.rotation_current = self.yaw
            self.rotation_current = smooth_rotation(self.rotation_current, state.rotation_target)
            self.yaw = self.rotation_current
        else:
            if self._gesture_was_active:
                self.sway_offset = math.remainder(self.yaw - sway(self.time), TAU)
            else:
                self.sway_offset = smooth_rotation(self.sway_offset, 0.0)
            self.yaw = sway(self.time) + self.sway_offset
        self._gesture_was_active = state.gesture_active
        self.state = state
        self.placement.from_numpy(placement_matrix(self.yaw))

        for g in self.groups:
            g.compose(self.placement)

        self.frame += 1
        if self.verbose and TELEMETRY_EVERY and self.frame % TELEMETRY_EVERY == 0:
            print(f"[Frame {self.frame:5d}] mode={state.mode.name} yaw={self.yaw:+.3f} "
                  f"target={state.rotation_target:+.3f} gesture={'on' if state.gesture_active else 'off'}")
        return state

    def offsets(self):
        out, start = [], 0
        for g in self.groups:
            out.append(start)
            start += g.n
        return tuple(out)

    def snapshot(self):
        """Host copy of all transforms and colors as of the last advance(). Does not mutate state."""
        return FrameSnapshot(
            frame=self.frame,
            time=self.time,
            mode=self.state.mode,
            yaw=self.yaw,
            names=tuple(g.spec.name for g in self.groups),
            offsets=self.offsets(),
            transforms=np.concatenate([g.transform_array() for g in self.groups], axis=0),
            colors=np.concatenate([g.colors() for g in self.groups], axis=0),
        )

    def instances(self):
        """Yield (group_id, index, transform, color) for every instance."""
        for gid, g in enumerate(self.groups):
            transforms = g.transform_array()
            colors = g.colors()
            for i in range(g.n):
                yield gid, i, transforms[i], colors[i]
