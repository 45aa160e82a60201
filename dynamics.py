"""
Interpolation kernels for the Morphing Tree scene.

This module provides the per-frame update, run once per group:
1. Position easing toward the mode-selected anchor (with assembled hover)
2. Rotation advance (spin, trunk-facing orientation, wobble, angle wrap)
3. Scale update (fixed, index-phased pulse, or eased toward a mode target)
4. Transform composition (placement @ T @ Rx @ Ry @ Rz @ S)

Pose is stored as separate position / Euler rotation / scale fields. The
4x4 instance matrix is only ever composed, never decomposed.

Each particle is written only at its own index, so every loop is a plain
parallel for with no atomics.
"""

import taichi as ti
import taichi.math as tm
from config import TAU, SCALE_PULSE, SCALE_EASE

# ==============================================================================
# Helpers
# ==============================================================================

@ti.func
def ease(current, target, k: ti.f32):
    """Exponential approach: move fraction k of the remaining distance."""
    return current + (target - current) * k


@ti.func
def wrap_angle(a: ti.f32) -> ti.f32:
    """
    Wrap an angle into [-pi, pi) using centered floor.

    Uses floor(a/TAU + 0.5) rather than round() to avoid tie issues at +-pi.
    """
    return a - TAU * ti.floor(a / TAU + 0.5)


@ti.func
def rotation_xyz(r: tm.vec3) -> tm.mat3:
    """
    Rotation matrix for Euler angles applied in XYZ order (R = Rx @ Ry @ Rz).

    Args:
        r: Euler angles (x, y, z) in radians

    Returns:
        3x3 rotation matrix
    """
    cx, sx = ti.cos(r[0]), ti.sin(r[0])
    cy, sy = ti.cos(r[1]), ti.sin(r[1])
    cz, sz = ti.cos(r[2]), ti.sin(r[2])
    rx = ti.Matrix([[1.0, 0.0, 0.0], [0.0, cx, -sx], [0.0, sx, cx]])
    ry = ti.Matrix([[cy, 0.0, sy], [0.0, 1.0, 0.0], [-sy, 0.0, cy]])
    rz = ti.Matrix([[cz, -sz, 0.0], [sz, cz, 0.0], [0.0, 0.0, 1.0]])
    return rx @ ry @ rz


@ti.func
def trs_matrix(p: tm.vec3, r: tm.vec3, s: ti.f32) -> tm.mat4:
    """Compose translate @ rotate(XYZ) @ uniform scale into a 4x4 matrix."""
    m = rotation_xyz(r) * s
    return ti.Matrix([
        [m[0, 0], m[0, 1], m[0, 2], p[0]],
        [m[1, 0], m[1, 1], m[1, 2], p[1]],
        [m[2, 0], m[2, 1], m[2, 2], p[2]],
        [0.0, 0.0, 0.0, 1.0],
    ])


# ==============================================================================
# Kernel 1: Position easing
# ==============================================================================

@ti.kernel
def ease_positions(anchor_assembled: ti.template(), anchor_dispersed: ti.template(),
                   pos: ti.template(), phase: ti.template(), n: ti.i32,
                   assembled: ti.i32, t: ti.f32, rate: ti.f32,
                   jitter_period: ti.i32, jitter_step: ti.f32,
                   hover_amp: ti.f32, hover_freq: ti.f32):
    """
    Ease every position toward the anchor selected by the current mode.

    Rule:
      - dest = anchor_assembled[i] if assembled else anchor_dispersed[i]
      - assembled only: dest.y += sin(t * hover_freq + phase[i]) * hover_amp
      - assembled only: k = rate + (i % jitter_period) * jitter_step
      - pos[i] += (dest - pos[i]) * k

    With k in (0, 1) the distance to dest shrinks strictly every frame and
    never overshoots. A particle already at dest stays put.

    Args:
        anchor_assembled, anchor_dispersed: Immutable anchor fields (vec3)
        pos: Current positions (vec3), updated in place
        phase: Per-particle hover phase
        n: Number of particles
        assembled: 1 for ASSEMBLED, 0 for DISPERSED
        t: Elapsed scene time in seconds
        rate: Base easing rate for the current mode
        jitter_period, jitter_step: Per-index rate offset (period 0 = off)
        hover_amp, hover_freq: Vertical hover around the assembled anchor
    """
    for i in range(n):
        dest = anchor_dispersed[i]
        k = rate
        if assembled != 0:
            dest = anchor_assembled[i]
            dest[1] += ti.sin(t * hover_freq + phase[i]) * hover_amp
            if jitter_period > 0:
                k += (i % jitter_period) * jitter_step
        pos[i] = ease(pos[i], dest, k)


# ==============================================================================
# Kernel 2: Rotation advance
# ==============================================================================

@ti.kernel
def advance_rotations(pos: ti.template(), rot: ti.template(), spin: ti.template(),
                      n: ti.i32, assembled: ti.i32, t: ti.f32, face_axis: ti.i32,
                      wobble_amp: ti.f32, wobble_freq: ti.f32):
    """
    Advance Euler rotations by one frame.

    Rule:
      - rot += spin
      - face_axis and assembled: local +Z faces (0, pos.y, 0), i.e.
        rot = (0, atan2(-x, -z), 0)
      - wobble_amp != 0: rot.z = sin(t * wobble_freq) * wobble_amp
      - every component wrapped into [-pi, pi)
    """
    for i in range(n):
        r = rot[i] + spin[i]
        if face_axis != 0 and assembled != 0:
            p = pos[i]
            r = tm.vec3(0.0, ti.atan2(-p[0], -p[2]), 0.0)
        if wobble_amp != 0.0:
            r[2] = ti.sin(t * wobble_freq) * wobble_amp
        for d in ti.static(range(3)):
            r[d] = wrap_angle(r[d])
        rot[i] = r


# ==============================================================================
# Kernel 3: Scale update
# ==============================================================================

@ti.kernel
def advance_scales(scale: ti.template(), scale_base: ti.template(), n: ti.i32,
                   assembled: ti.i32, t: ti.f32, scale_mode: ti.i32,
                   pulse_amp: ti.f32, pulse_freq: ti.f32, pulse_index_phase: ti.f32,
                   dispersed_factor: ti.f32, rate: ti.f32):
    """
    Update per-particle uniform scale.

    Modes:
      - SCALE_FIXED: scale = base
      - SCALE_PULSE: scale = base + sin(t * freq + i * index_phase) * amp
      - SCALE_EASE:  ease toward base (assembled) or base * dispersed_factor
    """
    for i in range(n):
        base = scale_base[i]
        s = base
        if scale_mode == SCALE_PULSE:
            s = base + ti.sin(t * pulse_freq + i * pulse_index_phase) * pulse_amp
        elif scale_mode == SCALE_EASE:
            target = base
            if assembled == 0:
                target = base * dispersed_factor
            s = ease(scale[i], target, rate)
        scale[i] = s


# ==============================================================================
# Kernel 4: Transform composition
# ==============================================================================

@ti.kernel
def compose_transforms(pos: ti.template(), rot: ti.template(), scale: ti.template(),
                       placement: ti.template(), transforms: ti.template(), n: ti.i32):
    """
    Write transforms[i] = placement @ T(pos) @ Rx @ Ry @ Rz @ S(scale).

    Args:
        placement: 0-D mat4 field holding the global scene placement
        transforms: Per-instance mat4 field read by the renderer
    """
    for i in range(n):
        transforms[i] = placement[None] @ trs_matrix(pos[i], rot[i], scale[i])
