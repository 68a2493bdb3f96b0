"""Polygon compositing: union of all cluster polygons, dissolve offset, hole filtering.

Boolean geometry sits behind the PolygonBooleanOps protocol. Its contract is
integer coordinates: callers multiply float coordinates by a fixed scaling
factor and round before calling, and divide results by the same factor.
Outer rings come back counter-clockwise (orientation True), holes clockwise.
"""

from __future__ import annotations

import enum
import logging
from functools import reduce
from typing import Iterable, Protocol

import numpy as np
from numpy.typing import NDArray
from shapely.geometry import LinearRing, MultiPolygon
from shapely.geometry import Polygon as ShapelyPolygon
from shapely.geometry.base import BaseGeometry
from shapely.geometry.polygon import orient
from shapely.ops import unary_union
from shapely.validation import make_valid

from metablob.engine.context import Polygon
from metablob.utils.geometry import signed_area

logger = logging.getLogger(__name__)

IntPath = NDArray[np.int64]


class FillRule(enum.Enum):
    NON_ZERO = "nonzero"
    EVEN_ODD = "evenodd"


class JoinType(enum.Enum):
    SQUARE = "square"
    ROUND = "round"
    MITER = "miter"


class EndType(enum.Enum):
    CLOSED_POLYGON = "closed_polygon"
    CLOSED_LINE = "closed_line"


class PolygonBooleanOps(Protocol):
    """Boolean operations on integer-coordinate closed paths."""

    def union(self, paths: list[IntPath], fill_rule: FillRule = FillRule.NON_ZERO) -> list[IntPath]: ...

    def offset(
        self,
        paths: list[IntPath],
        delta: float,
        join_type: JoinType = JoinType.SQUARE,
        end_type: EndType = EndType.CLOSED_POLYGON,
    ) -> list[IntPath]: ...

    def simplify(self, paths: list[IntPath], fill_rule: FillRule = FillRule.NON_ZERO) -> list[IntPath]: ...

    def orientation(self, path: IntPath) -> bool: ...


def extract_polys(geom: BaseGeometry) -> list[ShapelyPolygon]:
    """Extract all Polygon objects from any Shapely geometry."""
    polys: list[ShapelyPolygon] = []
    if geom.is_empty:
        return polys
    if geom.geom_type == "Polygon":
        polys = [geom]
    elif geom.geom_type == "MultiPolygon":
        polys = list(geom.geoms)
    elif geom.geom_type == "GeometryCollection":
        for g in geom.geoms:
            polys.extend(extract_polys(g))
    return polys


class ShapelyBooleanOps:
    """PolygonBooleanOps backed by shapely (GEOS)."""

    def __init__(self, round_quad_segs: int = 8, mitre_limit: float = 1.0) -> None:
        self.round_quad_segs = round_quad_segs
        self.mitre_limit = mitre_limit

    def union(self, paths: list[IntPath], fill_rule: FillRule = FillRule.NON_ZERO) -> list[IntPath]:
        polys = [p for path in paths for p in self._path_polys(path)]
        if not polys:
            return []
        if fill_rule is FillRule.EVEN_ODD:
            merged = reduce(lambda acc, p: acc.symmetric_difference(p), polys[1:], polys[0])
        else:
            merged = unary_union(polys)
        return self._to_paths(merged)

    def offset(
        self,
        paths: list[IntPath],
        delta: float,
        join_type: JoinType = JoinType.SQUARE,
        end_type: EndType = EndType.CLOSED_POLYGON,
    ) -> list[IntPath]:
        if not paths:
            return []
        if end_type is EndType.CLOSED_LINE:
            geom = unary_union([LinearRing(p) for p in paths if len(p) >= 3])
        else:
            geom = self._oriented_geometry(paths)
        if geom.is_empty:
            return []

        if join_type is JoinType.ROUND:
            buffered = geom.buffer(delta, quad_segs=self.round_quad_segs, join_style="round")
        elif join_type is JoinType.MITER:
            buffered = geom.buffer(delta, join_style="mitre", mitre_limit=5.0)
        else:
            # Square joins cut corners off at the offset distance
            buffered = geom.buffer(delta, join_style="mitre", mitre_limit=self.mitre_limit)
        return self._to_paths(buffered)

    def simplify(self, paths: list[IntPath], fill_rule: FillRule = FillRule.NON_ZERO) -> list[IntPath]:
        return self.union(paths, fill_rule)

    def orientation(self, path: IntPath) -> bool:
        return signed_area(np.asarray(path, dtype=np.float64)) >= 0

    def _path_polys(self, path: IntPath) -> list[ShapelyPolygon]:
        if len(path) < 3:
            return []
        poly = ShapelyPolygon(np.asarray(path, dtype=np.float64))
        if not poly.is_valid:
            poly = make_valid(poly)
        return [p for p in extract_polys(poly) if p.area > 0]

    def _oriented_geometry(self, paths: list[IntPath]) -> BaseGeometry:
        """Outer rings (orientation True) minus holes (orientation False)."""
        outers = [p for path in paths if self.orientation(path) for p in self._path_polys(path)]
        holes = [p for path in paths if not self.orientation(path) for p in self._path_polys(path)]
        geom = unary_union(outers) if outers else MultiPolygon()
        if holes and not geom.is_empty:
            geom = geom.difference(unary_union(holes))
        return geom

    @staticmethod
    def _to_paths(geom: BaseGeometry) -> list[IntPath]:
        out: list[IntPath] = []
        for poly in extract_polys(geom):
            poly = orient(poly, sign=1.0)
            for ring in [poly.exterior, *poly.interiors]:
                coords = np.rint(np.asarray(ring.coords)[:-1]).astype(np.int64)
                if len(coords) >= 3:
                    out.append(coords)
        return out


class PolygonCompositor:
    """Unions per-cluster polygon lists into outer contours and offsets them."""

    def __init__(self, ops: PolygonBooleanOps, scaling_factor: float = 1e5) -> None:
        self.ops = ops
        self.scaling_factor = scaling_factor

    def scale(self, polygon: Polygon) -> IntPath:
        return np.rint(np.asarray(polygon, dtype=np.float64) * self.scaling_factor).astype(np.int64)

    def unscale(self, paths: Iterable[IntPath]) -> list[Polygon]:
        return [np.asarray(p, dtype=np.float64) / self.scaling_factor for p in paths]

    def union(self, paths_map: dict[int, list[Polygon]]) -> list[IntPath]:
        """Union of every cluster's polygons, holes removed. Result stays scaled."""
        subject = [self.scale(p) for polygons in paths_map.values() for p in polygons if len(p) >= 3]
        unioned = self.ops.union(subject, FillRule.NON_ZERO)
        outer = [p for p in unioned if self.ops.orientation(p)]
        logger.debug("Union: %d input paths -> %d outer contours", len(subject), len(outer))
        return outer

    def offset(self, paths: list[IntPath], delta: float) -> list[IntPath]:
        """Grow (delta > 0) or shrink (delta < 0) scaled paths by ``delta`` canvas units."""
        if not paths:
            return []
        if delta == 0:
            return list(paths)
        offset = self.ops.offset(
            paths,
            delta * self.scaling_factor,
            JoinType.SQUARE,
            EndType.CLOSED_POLYGON,
        )
        return [p for p in offset if self.ops.orientation(p)]

    def compose(self, paths_map: dict[int, list[Polygon]], delta: float = 0.0) -> list[Polygon]:
        """Union then offset, returned in canvas coordinates."""
        return self.unscale(self.offset(self.union(paths_map), delta))
