"""
Particle groups: static configuration, Taichi field storage and builders.

A group is a fixed-size set of particles that share one mesh, one anchor
strategy and one set of animation constants (GroupSpec). All per-particle
storage is allocated once at construction and never reallocated, so a
particle's index is stable for the group's lifetime.

Builders reproduce the default scene:
    foliage   4500  cone volume    -> sphere r=15
    ribbon    1500  helix          -> sphere r=20
    ornaments  400  cube shell     -> sphere r=18
               400  icosa shell    -> sphere r=18
    star         1  above the apex -> high above the scene
"""

import math
from dataclasses import dataclass, replace

import numpy as np
import taichi as ti

import sampling
from config import (
    TREE_HEIGHT, TREE_BASE_RADIUS, KERNEL_TIME_PERIOD,
    FOLIAGE_COUNT, FOLIAGE_DISPERSE_RADIUS, FOLIAGE_SCALE_MIN, FOLIAGE_SCALE_SPAN,
    FOLIAGE_SPIN_MAX, FOLIAGE_BLEND_ASSEMBLED, FOLIAGE_BLEND_DISPERSED,
    FOLIAGE_JITTER_PERIOD, FOLIAGE_JITTER_STEP, FOLIAGE_HOVER_AMP, FOLIAGE_HOVER_FREQ,
    FOLIAGE_COLORS,
    RIBBON_COUNT, RIBBON_LOOPS, RIBBON_RADIUS_PAD, RIBBON_DISPERSE_RADIUS,
    RIBBON_SCALE_MIN, RIBBON_SCALE_SPAN, RIBBON_BLEND, RIBBON_SPIN,
    RIBBON_PULSE_AMP, RIBBON_PULSE_FREQ, RIBBON_PULSE_INDEX_PHASE, RIBBON_COLOR,
    ORNAMENT_COUNT, ORNAMENT_SHELL, ORNAMENT_DISPERSE_RADIUS, ORNAMENT_SCALE_MIN,
    ORNAMENT_SCALE_SPAN, ORNAMENT_SPIN_MAX, ORNAMENT_BLEND, ORNAMENT_DISPERSED_SCALE,
    ORNAMENT_SCALE_BLEND, ORNAMENT_COLORS,
    STAR_LIFT, STAR_DISPERSED, STAR_BLEND, STAR_SPIN, STAR_WOBBLE_AMP, STAR_WOBBLE_FREQ,
    STAR_COLOR,
    ORIENT_FREE, ORIENT_FACE_AXIS, SCALE_FIXED, SCALE_PULSE, SCALE_EASE,
)
from dynamics import ease_positions, advance_rotations, advance_scales, compose_transforms

# Anchor strategy tags
CONE_VOLUME = "cone_volume"
CONE_SURFACE = "cone_surface"
SPIRAL = "spiral"
SINGLETON = "singleton"


@dataclass(frozen=True)
class GroupSpec:
    """Static configuration shared by every particle of a group."""
    name: str
    count: int
    strategy: str
    mesh: str
    blend_assembled: float
    blend_dispersed: float
    jitter_period: int = 0
    jitter_step: float = 0.0
    hover_amp: float = 0.0
    hover_freq: float = 0.0
    orient: int = ORIENT_FREE
    wobble_amp: float = 0.0
    wobble_freq: float = 0.0
    scale_mode: int = SCALE_FIXED
    pulse_amp: float = 0.0
    pulse_freq: float = 0.0
    pulse_index_phase: float = 0.0
    dispersed_scale: float = 1.0
    scale_blend: float = 0.0


def kernel_time(t):
    """Scene time folded into [0, KERNEL_TIME_PERIOD) before it is narrowed to f32."""
    return math.fmod(t, KERNEL_TIME_PERIOD)


def hex_to_rgb(color):
    """'#RRGGBB' -> (r, g, b) floats in [0, 1]."""
    h = color.lstrip("#")
    if len(h) != 6:
        raise ValueError(f"expected #RRGGBB color, got {color!r}")
    return tuple(int(h[k:k + 2], 16) / 255.0 for k in (0, 2, 4))


def _per_particle(name, value, n, width):
    arr = np.asarray(value, dtype=np.float32)
    want = (n, width) if width else (n,)
    if width and arr.shape == (width,):
        arr = np.broadcast_to(arr, want)
    elif not width and arr.ndim == 0:
        arr = np.full(n, arr, dtype=np.float32)
    if arr.shape != want:
        raise ValueError(f"{name}: expected shape {want}, got {arr.shape}")
    if not np.all(np.isfinite(arr)):
        raise ValueError(f"{name}: contains non-finite values")
    return np.ascontiguousarray(arr)


class ParticleGroup:
    """
    One group of particles backed by pre-sized Taichi fields.

    Fields (all of length spec.count):
        anchor_assembled, anchor_dispersed   vec3, written once here
        pos, rot, scale                      current pose, written by the kernels
        scale_base, phase, spin, color       static per-particle parameters
        transforms                           mat4, composed every frame
    """

    def __init__(self, spec, assembled, dispersed, scale_base, color, phase, spin):
        n = spec.count
        if n < 1:
            raise ValueError(f"group '{spec.name}' must contain at least one particle")
        for label, freq in (("hover_freq", spec.hover_freq), ("wobble_freq", spec.wobble_freq),
                            ("pulse_freq", spec.pulse_freq)):
            if freq != int(freq):
                raise ValueError(f"group '{spec.name}': {label} must be a whole number, got {freq}")
        assembled =_per_particle("assembled anchors", assembled, n, 3)
        dispersed = _per_particle("dispersed anchors", dispersed, n, 3)
        scale_base = _per_particle("scale_base", scale_base, n, 0)
        color = _per_particle("color", color, n, 3)
        phase = _per_particle("phase", phase, n, 0)
        spin = _per_particle("spin", spin, n, 3)

        self.spec = spec
        self.n = n

        self.anchor_assembled = ti.Vector.field(3, dtype=ti.f32, shape=n)
        self.anchor_dispersed = ti.Vector.field(3, dtype=ti.f32, shape=n)
        self.pos = ti.Vector.field(3, dtype=ti.f32, shape=n)
        self.rot = ti.Vector.field(3, dtype=ti.f32, shape=n)
        self.spin = ti.Vector.field(3, dtype=ti.f32, shape=n)
        self.color = ti.Vector.field(3, dtype=ti.f32, shape=n)
        self.scale = ti.field(dtype=ti.f32, shape=n)
        self.scale_base = ti.field(dtype=ti.f32, shape=n)
        self.phase = ti.field(dtype=ti.f32, shape=n)
        self.transforms = ti.Matrix.field(4, 4, dtype=ti.f32, shape=n)

        self.anchor_assembled.from_numpy(assembled)
        self.anchor_dispersed.from_numpy(dispersed)
        self.scale_base.from_numpy(scale_base)
        self.color.from_numpy(color)
        self.phase.from_numpy(phase)
        self.spin.from_numpy(spin)

        # Every group opens at its dispersed pose
        self.pos.from_numpy(dispersed)
        self.rot.fill(0.0)
        if spec.scale_mode == SCALE_EASE:
            self.scale.from_numpy((scale_base * spec.dispersed_scale).astype(np.float32))
        else:
            self.scale.from_numpy(scale_base)
        self.transforms.fill(0.0)

    def advance(self, assembled, t):
        """Run one frame of easing, rotation and scale update."""
        s = self.spec
        t = kernel_time(t)
        a = 1 if assembled else 0
        rate = s.blend_assembled if assembled else s.blend_dispersed
        ease_positions(self.anchor_assembled, self.anchor_dispersed, self.pos, self.phase,
                       self.n, a, t, rate, s.jitter_period, s.jitter_step,
                       s.hover_amp, s.hover_freq)
        advance_rotations(self.pos, self.rot, self.spin, self.n, a, t,
                          1 if s.orient == ORIENT_FACE_AXIS else 0,
                          s.wobble_amp, s.wobble_freq)
        advance_scales(self.scale, self.scale_base, self.n, a, t, s.scale_mode,
                       s.pulse_amp, s.pulse_freq, s.pulse_index_phase,
                       s.dispersed_scale, s.scale_blend)

    def compose(self, placement):
        compose_transforms(self.pos, self.rot, self.scale, placement, self.transforms, self.n)

    def color_runs(self):
        """
        Contiguous runs of equal color as (offset, count, rgb) tuples.

        The instanced renderer takes one color per draw, so each run becomes
        one mesh_instance call.
        """
        colors = self.color.to_numpy()
        runs = []
        start = 0
        for i in range(1, self.n + 1):
            if i == self.n or not np.array_equal(colors[i], colors[start]):
                runs.append((start, i - start, tuple(float(c) for c in colors[start])))
                start = i
        return runs

    # Host-side views (copies)
    def positions(self):
        return self.pos.to_numpy()

    def rotations(self):
        return self.rot.to_numpy()

    def scales(self):
        return self.scale.to_numpy()

    def colors(self):
        return self.color.to_numpy()

    def anchors(self):
        return self.anchor_assembled.to_numpy(), self.anchor_dispersed.to_numpy()

    def transform_array(self):
        return self.transforms.to_numpy()


# ==============================================================================
# Default group specs
# ==============================================================================

FOLIAGE = GroupSpec(
    name="foliage", count=FOLIAGE_COUNT, strategy=CONE_VOLUME, mesh="octahedron",
    blend_assembled=FOLIAGE_BLEND_ASSEMBLED, blend_dispersed=FOLIAGE_BLEND_DISPERSED,
    jitter_period=FOLIAGE_JITTER_PERIOD, jitter_step=FOLIAGE_JITTER_STEP,
    hover_amp=FOLIAGE_HOVER_AMP, hover_freq=FOLIAGE_HOVER_FREQ,
)

RIBBON = GroupSpec(
    name="ribbon", count=RIBBON_COUNT, strategy=SPIRAL, mesh="tetrahedron",
    blend_assembled=RIBBON_BLEND, blend_dispersed=RIBBON_BLEND,
    orient=ORIENT_FACE_AXIS, scale_mode=SCALE_PULSE,
    pulse_amp=RIBBON_PULSE_AMP, pulse_freq=RIBBON_PULSE_FREQ,
    pulse_index_phase=RIBBON_PULSE_INDEX_PHASE,
)

ORNAMENT = GroupSpec(
    name="ornament", count=ORNAMENT_COUNT // 2, strategy=CONE_SURFACE, mesh="cube",
    blend_assembled=ORNAMENT_BLEND, blend_dispersed=ORNAMENT_BLEND,
    scale_mode=SCALE_EASE, dispersed_scale=ORNAMENT_DISPERSED_SCALE,
    scale_blend=ORNAMENT_SCALE_BLEND,
)

STAR = GroupSpec(
    name="star", count=1, strategy=SINGLETON, mesh="star",
    blend_assembled=STAR_BLEND, blend_dispersed=STAR_BLEND,
    wobble_amp=STAR_WOBBLE_AMP, wobble_freq=STAR_WOBBLE_FREQ,
)


# ==============================================================================
# Builders
# ==============================================================================

def build_foliage(rng, count=FOLIAGE_COUNT):
    """Cone-volume foliage, colors sorted into two contiguous runs."""
    spec = replace(FOLIAGE, count=count)
    assembled, _ = sampling.cone_points(count, TREE_HEIGHT, TREE_BASE_RADIUS, rng)
    dispersed = sampling.sphere_points(count, FOLIAGE_DISPERSE_RADIUS, rng)
    scale_base = rng.random(count) * FOLIAGE_SCALE_SPAN + FOLIAGE_SCALE_MIN
    n_light = int(rng.binomial(count, 0.5))
    palette = np.array([hex_to_rgb(c) for c in FOLIAGE_COLORS])
    color = np.where((np.arange(count) < n_light)[:, None], palette[0], palette[1])
    spin = rng.random((count, 3)) * FOLIAGE_SPIN_MAX
    phase = rng.random(count) * 2.0 * math.pi
    return ParticleGroup(spec, assembled, dispersed, scale_base, color, phase, spin)


def build_ribbon(rng, count=RIBBON_COUNT):
    """Helix ribbon winding up the tree; faces the trunk once assembled."""
    spec = replace(RIBBON, count=count)
    assembled = sampling.spiral_points(count, TREE_HEIGHT,
                                       TREE_BASE_RADIUS + RIBBON_RADIUS_PAD, RIBBON_LOOPS)
    dispersed = sampling.sphere_points(count, RIBBON_DISPERSE_RADIUS, rng)
    scale_base = rng.random(count) * RIBBON_SCALE_SPAN + RIBBON_SCALE_MIN
    phase = rng.random(count) * math.pi
    spin = (RIBBON_SPIN, RIBBON_SPIN, 0.0)
    return ParticleGroup(spec, assembled, dispersed, scale_base, hex_to_rgb(RIBBON_COLOR),
                         phase, spin)


def build_ornaments(rng, kind="cube", count=ORNAMENT_COUNT // 2):
    """
    Ornaments hugging the cone surface.

    Args:
        kind: 'cube' or 'icosa' (selects mesh and color)
    """
    if kind not in ORNAMENT_COLORS:
        raise ValueError(f"unknown ornament kind {kind!r}")
    spec = replace(ORNAMENT, name=f"ornament_{kind}", count=count, mesh=kind)
    assembled, _ = sampling.cone_shell_points(count, TREE_HEIGHT, TREE_BASE_RADIUS,
                                              ORNAMENT_SHELL, rng)
    dispersed = sampling.sphere_points(count, ORNAMENT_DISPERSE_RADIUS, rng)
    scale_base = rng.random(count) * ORNAMENT_SCALE_SPAN + ORNAMENT_SCALE_MIN
    s = rng.random(count) * ORNAMENT_SPIN_MAX
    spin = np.stack([s, s, np.zeros(count)], axis=1)
    phase = np.zeros(count)
    return ParticleGroup(spec, assembled, dispersed, scale_base,
                         hex_to_rgb(ORNAMENT_COLORS[kind]), phase, spin)


def build_centerpiece():
    """Single star above the apex."""
    assembled = [(0.0, TREE_HEIGHT + STAR_LIFT, 0.0)]
    dispersed = [STAR_DISPERSED]
    return ParticleGroup(STAR, assembled, dispersed, 1.0, hex_to_rgb(STAR_COLOR),
                         0.0, (0.0, STAR_SPIN, 0.0))


def build_default_groups(rng):
    """All groups of the default scene, in draw order."""
    return [
        build_foliage(rng),
        build_ribbon(rng),
        build_ornaments(rng, "cube"),
        build_ornaments(rng, "icosa"),
        build_centerpiece(),
    ]
