"""Material module for surface responses.

This module provides the effect model and material presets:

Components:
    effects: Effect descriptions and the material registry
    bsdf: Per-intersection surface response (shade, select, scatter)
    lambertian: Ideal diffuse reflector
    metal: Mirror and glossy metals
    dielectric: Glass and water (reflection plus refraction)
    emissive: Blackbody emitters and glowing surfaces
    phong: Emission, diffuse and glossy specular combined
    translucent: Diffuse transmission

Presets return plain lists of Effect and validate their parameters; the
add_*_material helpers register them and return a material id.
"""

from .bsdf import Bsdf, emitted_radiance, scatter_effect, select_effect, shade
from .dielectric import add_dielectric_material, dielectric_effects, schlick_r0
from .effects import (
    Effect,
    EffectKind,
    add_material,
    clear_materials,
    get_material_count,
    get_material_effects,
)
from .emissive import (
    add_emissive_material,
    add_glowing_material,
    blackbody_effects,
    glowing_effects,
)
from .lambertian import add_lambertian_material, lambertian_effects
from .metal import add_metal_material, metal_effects, roughness_to_exponent
from .phong import add_phong_material, phong_effects
from .translucent import add_translucent_material, translucent_effects

__all__ = [
    "Bsdf",
    "shade",
    "emitted_radiance",
    "select_effect",
    "scatter_effect",
    "Effect",
    "EffectKind",
    "add_material",
    "clear_materials",
    "get_material_count",
    "get_material_effects",
    "lambertian_effects",
    "add_lambertian_material",
    "metal_effects",
    "add_metal_material",
    "roughness_to_exponent",
    "dielectric_effects",
    "add_dielectric_material",
    "schlick_r0",
    "blackbody_effects",
    "glowing_effects",
    "add_emissive_material",
    "add_glowing_material",
    "phong_effects",
    "add_phong_material",
    "translucent_effects",
    "add_translucent_material",
]
