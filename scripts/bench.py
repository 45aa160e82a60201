#!/usr/bin/env python3
"""
Benchmark script for the Morphing Tree - Reproducible Performance Testing
==========================================================================

Runs a fixed number of headless frames with a deterministic seed, toggling
the mode every --toggle-every frames, and reports:
- Frames per second (update + compose, no rendering)
- Mean / worst frame time
- How close the foliage got to its anchors at the end

Usage:
    python scripts/bench.py [--frames N] [--arch cpu] [--seed S]

Example:
    python scripts/bench.py --frames 600 --toggle-every 200
"""

import sys
import os
import time
import argparse
import numpy as np

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import taichi as ti


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description='Benchmark morphing tree frame updates')
    parser.add_argument('--frames', type=int, default=600,
                        help='Number of frames to run (default: 600)')
    parser.add_argument('--arch', default='cpu', choices=['cpu', 'gpu', 'cuda', 'vulkan', 'metal'],
                        help='Taichi backend (default: cpu)')
    parser.add_argument('--seed', type=int, default=42,
                        help='Random seed for reproducibility (default: 42)')
    parser.add_argument('--toggle-every', type=int, default=200,
                        help='Flip the mode every N frames, 0 = never (default: 200)')
    parser.add_argument('--dt', type=float, default=1.0 / 60.0,
                        help='Simulated frame time in seconds (default: 1/60)')
    return parser.parse_args()


def run_benchmark(args):
    from controller import ModeController, Mode
    from composition import Assembly

    rng = np.random.default_rng(args.seed)
    controller = ModeController(verbose=False)
    assembly = Assembly(controller, rng=rng, verbose=False)
    print(f"[Bench] {assembly.total} instances in {len(assembly.groups)} groups, seed={args.seed}")

    # Warm-up compiles every kernel
    assembly.advance(args.dt)
    ti.sync()

    times = []
    for frame in range(args.frames):
        if args.toggle_every and frame > 0 and frame % args.toggle_every == 0:
            controller.toggle()
        t0 = time.perf_counter()
        assembly.advance(args.dt)
        ti.sync()
        times.append(time.perf_counter() - t0)

    times = np.array(times)
    foliage = assembly.groups[0]
    anchor_a, anchor_d = foliage.anchors()
    dest = anchor_a if controller.mode == Mode.ASSEMBLED else anchor_d
    residual = np.linalg.norm(foliage.positions() - dest, axis=1)

    print(f"\n[PERF] {args.frames} frames on {ti.cfg.arch}")
    print(f"       FPS≈{1.0 / times.mean():.1f}  mean={times.mean() * 1e3:.3f}ms  "
          f"worst={times.max() * 1e3:.3f}ms")
    print(f"       Final mode: {controller.mode.name}, foliage residual "
          f"mean={residual.mean():.4f} max={residual.max():.4f}")


def main():
    args = parse_args()
    ti.init(arch=getattr(ti, args.arch))
    run_benchmark(args)


if __name__ == "__main__":
    main()
