"""Materials module.

A material is a set of optional light-transport components (diffuse,
specular, reflect, refract) that the shading code sums additively.
"""

from .material import (
    MAX_MATERIALS,
    Diffuse,
    Material,
    MaterialRecord,
    Refract,
    Specular,
    add_material,
    clear_materials,
    get_material,
    get_material_count,
)

__all__ = [
    "Material",
    "Diffuse",
    "Specular",
    "Refract",
    "MaterialRecord",
    "add_material",
    "clear_materials",
    "get_material",
    "get_material_count",
    "MAX_MATERIALS",
]
