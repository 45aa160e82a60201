"""
Quick import test to verify all modules load correctly.
Run directly (python test_import.py) or through pytest; nothing is simulated.
"""


def test_imports():
    print("Testing imports...")

    import taichi as ti
    print(f"✓ Taichi imported ({ti.__version__})")

    import numpy as np
    print(f"✓ NumPy imported ({np.__version__})")

    from config import TREE_HEIGHT, TREE_BASE_RADIUS, FOLIAGE_COUNT, RIBBON_COUNT, ORNAMENT_COUNT
    print(f"✓ Config imported (tree h={TREE_HEIGHT}, R={TREE_BASE_RADIUS})")

    from sampling import sphere_points, cone_points, cone_shell_points, spiral_points, shell_points
    print("✓ Samplers imported (5 distributions)")

    from dynamics import ease_positions, advance_rotations, advance_scales, compose_transforms
    print("✓ Dynamics kernels imported (4 kernels)")

    from groups import ParticleGroup, build_default_groups
    from controller import Mode, ModeController, LatestValue
    from gesture import GestureProducer, sample_from_landmarks
    from composition import Assembly
    from shapes import load_mesh
    print("✓ Groups, controller, gesture, composition, shapes imported")

    print("\n" + "=" * 60)
    print("ALL IMPORTS SUCCESSFUL!")
    print("=" * 60)
    print("\nScene summary:")
    print(f"  Foliage:   {FOLIAGE_COUNT}")
    print(f"  Ribbon:    {RIBBON_COUNT}")
    print(f"  Ornaments: {ORNAMENT_COUNT}")
    print("\nReady to run: python run.py")


if __name__ == "__main__":
    test_imports()
