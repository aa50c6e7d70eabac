"""Demo scene: four spheres over a checkerboard floor, lit by three lights.

The scene is designed for a camera at the origin looking down -z with a
vertical field of view of about 60 degrees. It exercises every material
component:

    - ivory: diffuse + specular + a little reflection
    - glass: specular + reflection + refraction (index 1.5)
    - red rubber: mostly diffuse with a dull highlight
    - mirror: strong reflection with a sharp highlight

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from tiny_raytracer.scene.demo import create_demo_scene
    >>> scene = create_demo_scene()
"""

from tiny_raytracer.materials.material import Material
from tiny_raytracer.scene.lights import Light
from tiny_raytracer.scene.manager import CheckerboardInfo, Scene, SphereInfo

IVORY = Material.color((0.4, 0.4, 0.3), 0.6).with_specular(50.0, 0.3).with_reflect(0.1)
GLASS = (
    Material.color((0.6, 0.7, 0.8), 0.0)
    .with_specular(125.0, 0.5)
    .with_reflect(0.1)
    .with_refract(1.5, 0.8)
)
RED_RUBBER = Material.color((0.3, 0.1, 0.1), 0.9).with_specular(10.0, 0.1)
MIRROR = Material.color((1.0, 1.0, 1.0), 0.0).with_specular(1425.0, 10.0).with_reflect(0.8)

# Floor tiles
BOARD_LIGHT = Material.color((0.3, 0.3, 0.3), 1.0)
BOARD_DARK = Material.color((0.3, 0.2, 0.1), 1.0)

DEMO_SPHERES = (
    SphereInfo(center=(-3.0, 0.0, -16.0), radius=2.0, material=IVORY),
    SphereInfo(center=(-1.0, -1.5, -12.0), radius=2.0, material=GLASS),
    SphereInfo(center=(1.5, -0.5, -18.0), radius=3.0, material=RED_RUBBER),
    SphereInfo(center=(7.0, 5.0, -18.0), radius=4.0, material=MIRROR),
)

# 20 x 20 floor at y = -4 spanning x in [-10, 10] and z in [-30, -10].
# cross(cell_u, cell_v) points up (+y).
DEMO_BOARD = CheckerboardInfo(
    origin=(-10.0, -4.0, -30.0),
    cell_u=(0.0, 0.0, 2.0),
    cell_v=(2.0, 0.0, 0.0),
    dims=(10, 10),
    materials=(BOARD_LIGHT, BOARD_DARK),
)

DEMO_LIGHTS = (
    Light(position=(-20.0, 20.0, 20.0), intensity=1.5),
    Light(position=(30.0, 50.0, -25.0), intensity=1.8),
    Light(position=(30.0, 20.0, 30.0), intensity=1.7),
)


def create_demo_scene(include_board: bool = True) -> Scene:
    """Create the demo scene.

    Args:
        include_board: Whether to add the checkerboard floor.

    Returns:
        A populated Scene. Any previously active scene is cleared.
    """
    scene = Scene()
    for sphere in DEMO_SPHERES:
        scene.push_object(sphere)
    if include_board:
        scene.push_object(DEMO_BOARD)
    for light in DEMO_LIGHTS:
        scene.push_light(light)
    return scene
