"""Surface material model with optional light-transport components.

A material describes how a surface responds to light through four
independent components, each of which may be absent:

    - diffuse: base color and albedo (Lambertian term)
    - specular: shininess exponent and albedo (Phong highlight, white)
    - reflect: albedo of a recursive mirror bounce
    - refract: index of refraction and albedo of a recursive transmission

An absent component contributes zero energy. The shading code composes the
terms additively, so there is no per-"type" dispatch as in a BSDF hierarchy.

Materials are built on the Python side with a fluent constructor and then
registered into Taichi fields (Structure of Arrays) so kernels can look them
up by id.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from tiny_raytracer.materials.material import Material, add_material
    >>> glass = (
    ...     Material.color((0.6, 0.7, 0.8), 0.0)
    ...     .with_specular(125.0, 0.5)
    ...     .with_reflect(0.1)
    ...     .with_refract(1.5, 0.8)
    ... )
    >>> material_id = add_material(glass)
"""

from dataclasses import dataclass, replace

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors
vec3 = tm.vec3


@dataclass(frozen=True)
class Diffuse:
    """Diffuse component.

    Attributes:
        color: Base color as (R, G, B). Nominally in [0, 1], not enforced.
        albedo: Weight of the diffuse term.
    """

    color: tuple[float, float, float]
    albedo: float

    def __post_init__(self) -> None:
        # Materials are dict keys in the scene registry
        object.__setattr__(self, "color", tuple(float(c) for c in self.color))


@dataclass(frozen=True)
class Specular:
    """Specular highlight component.

    Attributes:
        exponent: Shininess exponent (>= 0).
        albedo: Weight of the specular term.
    """

    exponent: float
    albedo: float

    def __post_init__(self) -> None:
        if self.exponent < 0.0:
            raise ValueError(f"Specular exponent must be >= 0, got {self.exponent}")


@dataclass(frozen=True)
class Refract:
    """Refraction component.

    Attributes:
        index: Index of refraction of the material (> 0). Common values:
            - Water: 1.33
            - Glass: 1.5
            - Diamond: 2.4
        albedo: Weight of the transmitted term.
    """

    index: float
    albedo: float

    def __post_init__(self) -> None:
        if self.index <= 0.0:
            raise ValueError(f"Index of refraction must be > 0, got {self.index}")


@dataclass(frozen=True)
class Material:
    """Immutable material value combining optional components.

    Build materials with the fluent constructors; each ``with_*`` call
    returns a new material and leaves the receiver untouched.

    Attributes:
        diffuse: Diffuse component, or None.
        specular: Specular component, or None.
        reflect: Mirror reflection albedo, or None. Presence alone triggers
            the recursive mirror bounce.
        refract: Refraction component, or None.
    """

    diffuse: Diffuse | None = None
    specular: Specular | None = None
    reflect: float | None = None
    refract: Refract | None = None

    @classmethod
    def none(cls) -> "Material":
        """A material with no components (renders black)."""
        return cls()

    @classmethod
    def color(cls, color: tuple[float, float, float], albedo: float) -> "Material":
        """A purely diffuse material."""
        return cls(diffuse=Diffuse(color=color, albedo=float(albedo)))

    def with_specular(self, exponent: float, albedo: float) -> "Material":
        return replace(self, specular=Specular(exponent=float(exponent), albedo=float(albedo)))

    def with_reflect(self, albedo: float) -> "Material":
        return replace(self, reflect=float(albedo))

    def with_refract(self, index: float, albedo: float) -> "Material":
        return replace(self, refract=Refract(index=float(index), albedo=float(albedo)))


@ti.dataclass
class MaterialRecord:
    """GPU-side copy of a material.

    Absent components have their ``has_*`` flag set to 0 and zeroed
    parameters.
    """

    has_diffuse: ti.i32
    diffuse_color: vec3
    diffuse_albedo: ti.f32
    has_specular: ti.i32
    specular_exponent: ti.f32
    specular_albedo: ti.f32
    has_reflect: ti.i32
    reflect_albedo: ti.f32
    has_refract: ti.i32
    refract_index: ti.f32
    refract_albedo: ti.f32


# =============================================================================
# Material Field Storage
# =============================================================================

# Maximum number of materials in the registry
MAX_MATERIALS = 1024

# Storage for material components (Structure of Arrays)
material_has_diffuse = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
material_diffuse_colors = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS)
material_diffuse_albedos = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
material_has_specular = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
material_specular_exponents = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
material_specular_albedos = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
material_has_reflect = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
material_reflect_albedos = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
material_has_refract = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
material_refract_indices = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
material_refract_albedos = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def clear_materials() -> None:
    """Clear all registered materials.

    Resets the material count to zero. Existing data in the fields will be
    overwritten when new materials are added.
    """
    num_materials[None] = 0


def add_material(material: Material) -> int:
    """Add a material to the registry.

    Args:
        material: The material to copy into the GPU fields.

    Returns:
        The id of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
    """
    idx = num_materials[None]
    if idx >= MAX_MATERIALS:
        raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

    diffuse = material.diffuse
    material_has_diffuse[idx] = int(diffuse is not None)
    if diffuse is not None:
        material_diffuse_colors[idx] = vec3(diffuse.color[0], diffuse.color[1], diffuse.color[2])
        material_diffuse_albedos[idx] = diffuse.albedo
    else:
        material_diffuse_colors[idx] = vec3(0.0, 0.0, 0.0)
        material_diffuse_albedos[idx] = 0.0

    specular = material.specular
    material_has_specular[idx] = int(specular is not None)
    material_specular_exponents[idx] = specular.exponent if specular is not None else 0.0
    material_specular_albedos[idx] = specular.albedo if specular is not None else 0.0

    material_has_reflect[idx] = int(material.reflect is not None)
    material_reflect_albedos[idx] = material.reflect if material.reflect is not None else 0.0

    refract = material.refract
    material_has_refract[idx] = int(refract is not None)
    material_refract_indices[idx] = refract.index if refract is not None else 1.0
    material_refract_albedos[idx] = refract.albedo if refract is not None else 0.0

    num_materials[None] = idx + 1
    return idx


def get_material_count() -> int:
    """Get the number of materials in the registry."""
    return int(num_materials[None])


@ti.func
def get_material(material_id: ti.i32) -> MaterialRecord:
    """Get a copy of a registered material by id.

    Args:
        material_id: The id returned by add_material().

    Returns:
        The MaterialRecord for the material.
    """
    return MaterialRecord(
        has_diffuse=material_has_diffuse[material_id],
        diffuse_color=material_diffuse_colors[material_id],
        diffuse_albedo=material_diffuse_albedos[material_id],
        has_specular=material_has_specular[material_id],
        specular_exponent=material_specular_exponents[material_id],
        specular_albedo=material_specular_albedos[material_id],
        has_reflect=material_has_reflect[material_id],
        reflect_albedo=material_reflect_albedos[material_id],
        has_refract=material_has_refract[material_id],
        refract_index=material_refract_indices[material_id],
        refract_albedo=material_refract_albedos[material_id],
    )
