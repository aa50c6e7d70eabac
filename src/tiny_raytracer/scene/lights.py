"""Point light sources.

Lights are immutable on the Python side and copied into Taichi fields when
they are added to the scene, so shading kernels can iterate over them.
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors
vec3 = tm.vec3


@dataclass(frozen=True)
class Light:
    """A point light.

    Attributes:
        position: Position of the light in world space (x, y, z).
        intensity: Scalar intensity (> 0). It has no physical unit; the
            shading code multiplies it into the diffuse and specular sums.
    """

    position: tuple[float, float, float]
    intensity: float

    def __post_init__(self) -> None:
        if self.intensity <= 0.0:
            raise ValueError(f"Light intensity must be > 0, got {self.intensity}")


# Maximum number of lights in the scene
MAX_LIGHTS = 256

light_positions = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
light_intensities = ti.field(dtype=ti.f32, shape=MAX_LIGHTS)
num_lights = ti.field(dtype=ti.i32, shape=())


def clear_lights() -> None:
    """Clear all lights from the scene."""
    num_lights[None] = 0


def add_light(light: Light) -> int:
    """Add a light to the scene.

    Args:
        light: The light to copy into the light fields.

    Returns:
        The index of the added light.

    Raises:
        RuntimeError: If the maximum number of lights is exceeded.
    """
    idx = num_lights[None]
    if idx >= MAX_LIGHTS:
        raise RuntimeError(f"Maximum number of lights ({MAX_LIGHTS}) exceeded")
    light_positions[idx] = vec3(light.position[0], light.position[1], light.position[2])
    light_intensities[idx] = light.intensity
    num_lights[None] = idx + 1
    return idx


def get_light_count() -> int:
    """Get the number of lights in the scene."""
    return int(num_lights[None])
