"""Engine configuration: geometric tunables shared by all stages."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class EngineConfig:
    """Controls the blob geometry. Distances are in canvas units."""

    # Boolean geometry works on integers: multiply before, divide after
    scaling_factor: float = 1e5

    # Circle outline sampling (radians between samples)
    circle_angle_step: float = 0.1

    # Radius extension at closeness 0
    smallest_radius_extend: float = 1.0

    # Metaball / gravitation tangent blend (0 = intersection, 1 = max spread)
    inward_shift: float = 0.5
    # Bridge waist at the weakest merge; 1.0 = straight tangent line
    metaball_min_waist: float = 0.3
    # Samples per spline edge of a connector
    connector_spline_samples: int = 8

    # Dissolve shrinks the union by this many units at dissolve = 1
    dissolve_offset: float = 20.0

    # Douglas-Peucker tolerances
    union_simplify_tolerance: float = 1.0
    star_simplify_tolerance: float = 0.25

    # Star shape deformation
    star_resample_points: int = 150
    star_output_points: int = 200
    # Linear densify multiple before the periodic spline fit
    star_densify_factor: int = 4
    # Inward displacement cap as a fraction of local thickness
    valley_depth_limit: float = 0.45
    min_wings: int = 5
    max_wings: int = 20
    wing_length_factor: float = 1.0
    wing_dissolve_shrink: float = 0.5

    # Low-resolution field contour (decoration source)
    field_sample_rate: float = 10.0
    field_padding_factor: float = 1.3

    # Decorations
    decoration_radius_bounds: tuple[float, float] = (4.0, 8.0)
    decoration_density: float = 0.2
    decoration_max_attempts: int = 200
    max_decorations: int = 100
    # "field" samples the low-res field contour, "outline" the undissolved union
    decoration_source: str = "field"
    decorate_only_while_dissolving: bool = True
