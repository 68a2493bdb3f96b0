"""Rejection sampling of non-overlapping decorative circles inside a polygon."""

from __future__ import annotations

import logging
import math

import numpy as np
import shapely
from shapely.geometry import Point
from shapely.geometry import Polygon as ShapelyPolygon

from metablob.engine.context import Polygon, SpaceFillingPosition
from metablob.utils.geometry import circle_polygon

logger = logging.getLogger(__name__)


class RandomSpaceFilling:
    """Scatters circles with radii in ``radius_bounds`` inside ``contour``.

    A candidate is accepted when its center and a coarse ring of samples on
    its circumference lie inside the contour, none of those samples fall in
    an accepted circle, and (exactly) it clears the contour boundary and every
    accepted circle. Under-filling after the attempt budget is normal.
    """

    def __init__(
        self,
        contour: Polygon,
        radius_bounds: tuple[float, float],
        rng: np.random.Generator | None = None,
    ) -> None:
        self.polygon = ShapelyPolygon(np.asarray(contour, dtype=np.float64))
        if not self.polygon.is_valid:
            self.polygon = self.polygon.buffer(0)
        self.min_x, self.min_y, self.max_x, self.max_y = self.polygon.bounds
        self.radius_bounds = radius_bounds
        self.rng = rng or np.random.default_rng()

    def get_positions(self, samples_per_unit_area: float, max_attempts: int = 200) -> list[SpaceFillingPosition]:
        if self.polygon.is_empty:
            return []
        target = samples_per_unit_area * self.polygon.area
        boundary = self.polygon.boundary
        positions: list[SpaceFillingPosition] = []

        attempt = 0
        while len(positions) < target and attempt < max_attempts:
            attempt += 1
            cx, cy, r = self._random_candidate()

            if not shapely.contains_xy(self.polygon, cx, cy):
                continue
            samples = circle_polygon((cx, cy), r, math.pi / 4)
            if not np.all(shapely.contains_xy(self.polygon, samples[:, 0], samples[:, 1])):
                continue
            if any(self._inside(samples, p) for p in positions):
                continue
            if boundary.distance(Point(cx, cy)) < r:
                continue
            if any(math.hypot(cx - p.center[0], cy - p.center[1]) < r + p.radius for p in positions):
                continue

            positions.append(SpaceFillingPosition(center=(cx, cy), radius=r))

        logger.debug(
            "Space filling: %d/%d positions after %d attempts",
            len(positions),
            math.ceil(target),
            attempt,
        )
        return positions

    def _random_candidate(self) -> tuple[float, float, float]:
        x = float(self.rng.uniform(self.min_x, self.max_x))
        y = float(self.rng.uniform(self.min_y, self.max_y))
        radius = float(self.rng.uniform(*self.radius_bounds))
        return x, y, radius

    @staticmethod
    def _inside(samples: np.ndarray, position: SpaceFillingPosition) -> bool:
        dx = samples[:, 0] - position.center[0]
        dy = samples[:, 1] - position.center[1]
        return bool(np.any(dx * dx + dy * dy <= position.radius**2))


def fill(
    contour: Polygon,
    radius_bounds: tuple[float, float],
    samples_per_unit_area: float,
    max_attempts: int = 200,
    rng: np.random.Generator | None = None,
) -> list[SpaceFillingPosition]:
    if len(contour) < 3:
        return []
    return RandomSpaceFilling(contour, radius_bounds, rng).get_positions(samples_per_unit_area, max_attempts)
