"""
Scene rotation: SceneScheduler cycles through SceneDescriptors with one owned timer; the rotation
itself starts as the built-in default and is swapped once the remote scene configuration loads.
"""
from venue_display.services.rotation.scenes import build_rotation, default_rotation
from venue_display.services.rotation.scheduler import NO_SCENE, RotationState, SceneScheduler

__all__ = ["NO_SCENE", "RotationState", "SceneScheduler", "build_rotation", "default_rotation"]
