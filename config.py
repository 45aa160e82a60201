"""
Configuration parameters for the Morphing Tree particle scene.

This module defines all scene parameters:
- Tree silhouette (height, base radius)
- Particle groups (counts, dispersal radii, size ranges, colors)
- Easing rates and secondary motion (hover, spin, wobble, pulse)
- Mode/rotation control (smoothing, gesture mapping, sway)
- Rendering (window, camera, lights, backdrop)

Distances are in scene units with +Y up. Angles are radians. Easing rates
are fractions of the remaining distance covered per frame.
"""

import math

# ==============================================================================
# Tree silhouette
# ==============================================================================

TREE_HEIGHT = 9.0           # Apex height of the assembled cone
TREE_BASE_RADIUS = 3.5      # Cone radius at y = 0
PLACEMENT_Y = -3.5          # Whole scene is lowered so the tree sits mid-frame

TAU = 2.0 * math.pi

# Kernels see scene time modulo this period so f32 keeps sub-millisecond
# resolution in long sessions. Hover, pulse and wobble frequencies must stay
# whole numbers for the fold to leave every sine unchanged.
KERNEL_TIME_PERIOD = TAU

# ==============================================================================
# Group: foliage (cone volume)
# ==============================================================================

FOLIAGE_COUNT = 4500
FOLIAGE_DISPERSE_RADIUS = 15.0
FOLIAGE_SCALE_MIN = 0.05    # scale = U * FOLIAGE_SCALE_SPAN + FOLIAGE_SCALE_MIN
FOLIAGE_SCALE_SPAN = 0.15
FOLIAGE_SPIN_MAX = 0.02     # Per-axis spin in rad/frame, uniform in [0, max)
FOLIAGE_BLEND_ASSEMBLED = 0.03
FOLIAGE_BLEND_DISPERSED = 0.02
FOLIAGE_JITTER_PERIOD = 50  # k += (i % period) * step while assembled
FOLIAGE_JITTER_STEP = 0.0002
FOLIAGE_HOVER_AMP = 0.05
FOLIAGE_HOVER_FREQ = 2.0
FOLIAGE_COLORS = ("#FFB7C5", "#FF69B4")   # light pink / hot pink, 50/50

# ==============================================================================
# Group: ribbon (helix)
# ==============================================================================

RIBBON_COUNT = 1500
RIBBON_LOOPS = 6.0
RIBBON_RADIUS_PAD = 0.5     # Helix radius = TREE_BASE_RADIUS + pad at the bottom
RIBBON_DISPERSE_RADIUS = 20.0
RIBBON_SCALE_MIN = 0.04
RIBBON_SCALE_SPAN = 0.08
RIBBON_BLEND = 0.05
RIBBON_SPIN = 0.05          # x and y tumble while dispersed
RIBBON_PULSE_AMP = 0.02
RIBBON_PULSE_FREQ = 3.0
RIBBON_PULSE_INDEX_PHASE = 0.1
RIBBON_COLOR = "#FFFFFF"

# ==============================================================================
# Group: ornaments (cone surface shell)
# ==============================================================================

ORNAMENT_COUNT = 800        # Split evenly between cubes and icosahedra
ORNAMENT_SHELL = 0.2        # Radial thickness of the surface shell
ORNAMENT_DISPERSE_RADIUS = 18.0
ORNAMENT_SCALE_MIN = 0.1
ORNAMENT_SCALE_SPAN = 0.15
ORNAMENT_SPIN_MAX = 0.02
ORNAMENT_BLEND = 0.025
ORNAMENT_DISPERSED_SCALE = 0.5   # Ornaments shrink to half size when dispersed
ORNAMENT_SCALE_BLEND = 0.1
ORNAMENT_COLORS = {"cube": "#E6E6FA", "icosa": "#FFFFFF"}

# ==============================================================================
# Group: centerpiece star (singleton)
# ==============================================================================

STAR_LIFT = 0.5             # Star sits this far above the apex
STAR_DISPERSED = (0.0, 30.0, 0.0)
STAR_BLEND = 0.04
STAR_SPIN = 0.02            # rad/frame around Y
STAR_WOBBLE_AMP = 0.1
STAR_WOBBLE_FREQ = 2.0
STAR_COLOR = "#FFD700"

# ==============================================================================
# Interpolation engine tags (compile-time switches passed as kernel ints)
# ==============================================================================

ORIENT_FREE = 0             # rot += spin
ORIENT_FACE_AXIS = 1        # Face the trunk axis while assembled

SCALE_FIXED = 0
SCALE_PULSE = 1
SCALE_EASE = 2

# ==============================================================================
# Mode / rotation control
# ==============================================================================

INITIAL_ASSEMBLED = True    # App opens in the tree layout
ROTATION_SMOOTHING = 0.1    # rotation_current += (target - current) * k, per frame
PINCH_THRESHOLD = 0.08      # Normalized thumb-index distance that counts as a pinch
GESTURE_ROTATION_SPAN = 4.0 * math.pi   # Full pointer sweep maps to two turns
SWAY_AMP = 0.2              # Idle yaw sway when no gesture source is active
SWAY_FREQ = 0.1

# ==============================================================================
# Gesture capture
# ==============================================================================

CAMERA_INDEX = 0
CAPTURE_WIDTH = 320
CAPTURE_HEIGHT = 240
HAND_DETECTION_CONF = 0.5
HAND_TRACKING_CONF = 0.5

# ==============================================================================
# Rendering
# ==============================================================================

WINDOW_RES = (1280, 800)
FPS_TARGET = 60
BACKGROUND = "#050103"
CAMERA_POS = (0.0, 2.0, 14.0)
CAMERA_FOV = 45.0
AUTO_ROTATE_SPEED = 0.5     # Orbit speed in turns per minute at 60 fps
AUTO_ROTATE_STEP = TAU / 3600.0 * AUTO_ROTATE_SPEED  # rad/frame

AMBIENT_COLOR = "#FFB7C5"
AMBIENT_INTENSITY = 0.5
KEY_LIGHT = ((10.0, 20.0, 10.0), "#FFFFFF")
FILL_LIGHT = ((-10.0, 5.0, -10.0), "#FF69B4")
RIM_LIGHT = ((0.0, 10.0, -10.0), "#00FFFF")

BACKDROP_COUNT = 2000
BACKDROP_RADIUS = 50.0
BACKDROP_DEPTH = 50.0
BACKDROP_POINT_RADIUS = 0.08

# ==============================================================================
# Telemetry
# ==============================================================================

TELEMETRY_EVERY = 300       # Print a [Frame N] line every this many frames (0 = off)
