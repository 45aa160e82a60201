"""
Main entry point for the Morphing Tree viewer.

This script:
1. Initializes Taichi and builds the particle groups
2. Uploads the instance meshes and the backdrop star field
3. Runs the main loop: drain gesture -> advance -> compose -> render

Controls:
  - ENTER / GESTURE MODE buttons: leave the start screen
  - SPACE: Toggle tree / explode (manual mode only)
  - G: Start / stop webcam gesture input
  - ESC: Exit

Gesture mode (pip install .[gesture]):
  - Pinch thumb and index: assemble the tree
  - Open hand: explode; move the hand left/right to spin the scene
"""

import argparse
import math
import time

import numpy as np
import taichi as ti

from config import (
    WINDOW_RES, BACKGROUND, CAMERA_POS, CAMERA_FOV, AUTO_ROTATE_STEP, CAMERA_INDEX,
    AMBIENT_COLOR, AMBIENT_INTENSITY, KEY_LIGHT, FILL_LIGHT, RIM_LIGHT,
    BACKDROP_COUNT, BACKDROP_RADIUS, BACKDROP_DEPTH, BACKDROP_POINT_RADIUS, FPS_TARGET,
)
from composition import Assembly
from controller import Mode, ModeController, LatestValue
from gesture import GestureProducer
from groups import hex_to_rgb
from sampling import shell_points
from shapes import load_mesh


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description='Morphing tree particle viewer')
    parser.add_argument('--arch', default='gpu', choices=['gpu', 'cpu', 'cuda', 'vulkan', 'metal'],
                        help='Taichi backend (default: gpu)')
    parser.add_argument('--seed', type=int, default=None,
                        help='Random seed for the scene layout (default: random)')
    parser.add_argument('--gesture', action='store_true',
                        help='Skip the start screen and enable webcam gestures')
    parser.add_argument('--camera', type=int, default=CAMERA_INDEX,
                        help=f'Webcam index for gesture input (default: {CAMERA_INDEX})')
    return parser.parse_args()


def start_gesture(controller, feed, camera_index):
    feed.clear()
    controller.set_gesture_active(True)
    producer = GestureProducer(feed, camera_index=camera_index)
    producer.start()
    return producer


def stop_gesture(controller, feed, producer):
    if producer is not None:
        producer.stop()
    controller.set_gesture_active(False)
    feed.clear()
    return None


def scale_rgb(color, k):
    return tuple(c * k for c in hex_to_rgb(color))


def main():
    args = parse_args()

    # ==========================================================================
    # Initialize Taichi and the scene
    # ==========================================================================

    ti.init(arch=getattr(ti, args.arch))
    print(f"[Taichi] Initialized with backend: {ti.cfg.arch}")

    rng = np.random.default_rng(args.seed)
    controller = ModeController()
    feed = LatestValue()
    assembly = Assembly(controller, feed=feed, rng=rng)

    meshes = {}
    draws = []
    for g in assembly.groups:
        if g.spec.mesh not in meshes:
            meshes[g.spec.mesh] = load_mesh(g.spec.mesh)
        draws.append((g, g.color_runs()))
    print(f"[Init] Meshes: {', '.join(sorted(meshes))} | draw calls: {sum(len(r) for _, r in draws)}")

    backdrop = ti.Vector.field(3, dtype=ti.f32, shape=BACKDROP_COUNT)
    backdrop.from_numpy(shell_points(BACKDROP_COUNT, BACKDROP_RADIUS, BACKDROP_DEPTH, rng)
                        .astype(np.float32))
    cursor = ti.Vector.field(2, dtype=ti.f32, shape=1)

    # ==========================================================================
    # Window, camera, lights
    # ==========================================================================

    window = ti.ui.Window("Morphing Tree", WINDOW_RES, vsync=True)
    canvas = window.get_canvas()
    canvas.set_background_color(hex_to_rgb(BACKGROUND))
    scene = window.get_scene()
    camera = ti.ui.Camera()
    camera.fov(CAMERA_FOV)
    camera.up(0, 1, 0)
    orbit_radius = math.hypot(CAMERA_POS[0], CAMERA_POS[2])
    orbit_angle = math.atan2(CAMERA_POS[0], CAMERA_POS[2])

    print("\n" + "=" * 70)
    print("MORPHING TREE")
    print("=" * 70)
    print("Controls:")
    print("  - SPACE: Toggle tree / explode (manual mode)")
    print("  - G: Start / stop gesture input")
    print("  - ESC: Exit")
    print("=" * 70 + "\n")

    producer = None
    started = False
    if args.gesture:
        started = True
        producer = start_gesture(controller, feed, args.camera)

    last = time.perf_counter()
    fps_estimate = float(FPS_TARGET)

    while window.running:
        # Handle keyboard input
        if window.get_event(ti.ui.PRESS):
            key = window.event.key
            if key == ti.ui.ESCAPE:
                print("[Control] Exiting...")
                break
            elif key == ti.ui.SPACE and started and producer is None:
                controller.toggle()
            elif key in ('g', 'G') and started:
                if producer is None:
                    producer = start_gesture(controller, feed, args.camera)
                else:
                    producer = stop_gesture(controller, feed, producer)

        # Producer exits on its own when the camera or libraries are missing
        if producer is not None and not producer.is_alive():
            producer = stop_gesture(controller, feed, producer)

        # === 1. Advance the scene ===
        now = time.perf_counter()
        dt = now - last
        last = now
        if dt > 0.0:
            fps_estimate = 0.95 * fps_estimate + 0.05 / dt
        state = assembly.advance(dt)

        # === 2. Camera: auto-orbit unless gestures steer the scene ===
        if not state.gesture_active:
            orbit_angle += AUTO_ROTATE_STEP
        camera.position(orbit_radius * math.sin(orbit_angle), CAMERA_POS[1],
                        orbit_radius * math.cos(orbit_angle))
        camera.lookat(0.0, 0.0, 0.0)
        scene.set_camera(camera)

        # === 3. Lights ===
        scene.ambient_light(scale_rgb(AMBIENT_COLOR, AMBIENT_INTENSITY))
        for light_pos, light_color in (KEY_LIGHT, FILL_LIGHT, RIM_LIGHT):
            scene.point_light(pos=light_pos, color=hex_to_rgb(light_color))

        # === 4. Instanced meshes, one draw per color run ===
        for g, runs in draws:
            verts, norms = meshes[g.spec.mesh]
            for offset, count, rgb in runs:
                scene.mesh_instance(verts, normals=norms, color=rgb, transforms=g.transforms,
                                    instance_offset=offset, instance_count=count)
        scene.particles(backdrop, radius=BACKDROP_POINT_RADIUS, color=(1.0, 1.0, 1.0))
        canvas.scene(scene)

        # === 5. Hand cursor overlay ===
        if state.gesture_active and state.cursor is not None:
            cursor[0] = ti.Vector([state.cursor.pointer_x, 1.0 - state.cursor.pointer_y])
            pinch_color = (1.0, 0.84, 0.0) if state.pinching else (1.0, 0.72, 0.77)
            canvas.circles(cursor, radius=0.012, color=pinch_color)

        # === 6. GUI ===
        gui = window.GUI
        if not started:
            gui.begin("Morphing Tree", 0.40, 0.40, 0.20, 0.16)
            gui.text("Pinch to assemble, open to explode")
            if gui.button("ENTER"):
                started = True
            if gui.button("GESTURE MODE"):
                started = True
                producer = start_gesture(controller, feed, args.camera)
            gui.end()
        else:
            assembled = state.mode == Mode.ASSEMBLED
            gui.begin("Control Panel", 0.01, 0.01, 0.24, 0.24)
            gui.text(f"Status: {'STABLE' if assembled else 'CHAOS'}")
            if producer is None:
                if gui.button("Detonate" if assembled else "Assemble"):
                    controller.toggle()
                if gui.button("Start gesture"):
                    producer = start_gesture(controller, feed, args.camera)
            else:
                gui.text("OPEN TO EXPLODE" if assembled else "PINCH TO ASSEMBLE")
                if gui.button("Stop gesture"):
                    producer = stop_gesture(controller, feed, producer)
            gui.text(f"Frame {assembly.frame} | FPS~{fps_estimate:.0f}")
            gui.end()

        window.show()

    if producer is not None:
        stop_gesture(controller, feed, producer)

    print("\n[Exit] Viewer closed.")
    print(f"       Total frames: {assembly.frame}")
    print(f"       Mode transitions: {controller.state().transitions}")


if __name__ == "__main__":
    main()
