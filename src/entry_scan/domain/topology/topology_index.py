# entry_scan/domain/topology/topology_index.py
import logging
import math
from dataclasses import dataclass

import numpy as np

from entry_scan.domain.entities.geography import NodeId
from entry_scan.domain.topology.topology_geometry import LocalFrame
from entry_scan.domain.topology.topology_graph import RoadGraph

log = logging.getLogger(__name__)

Cell = tuple[int, int]


# Uniform grid over a local metric frame; each cell holds positions into `ids`.
@dataclass
class GridIndex:
    frame: LocalFrame
    cell_m: float
    ids: list[NodeId]
    xs: np.ndarray
    ys: np.ndarray
    cells: dict[Cell, list[int]]
    linear_fallback_below: int = 10_000

    @classmethod
    def build(
        cls,
        graph: RoadGraph,
        *,
        sparse_cell_m: float = 0.5,
        dense_cell_m: float = 50.0,
        dense_min_nodes: int = 1000,
        linear_fallback_below: int = 10_000,
    ) -> "GridIndex":
        ids = list(graph.nodes)
        lons = np.fromiter((graph.nodes[i].lon for i in ids), dtype=float, count=len(ids))
        lats = np.fromiter((graph.nodes[i].lat for i in ids), dtype=float, count=len(ids))
        frame = LocalFrame(
            float(lons.mean()) if ids else 0.0, float(lats.mean()) if ids else 0.0
        )
        cs = dense_cell_m if len(ids) >= dense_min_nodes else sparse_cell_m
        xs, ys = frame.to_xy(lons, lats)

        cells: dict[Cell, list[int]] = {}
        ix = np.floor(xs / cs).astype(np.int64)
        iy = np.floor(ys / cs).astype(np.int64)
        for pos, key in enumerate(zip(ix.tolist(), iy.tolist())):
            cells.setdefault(key, []).append(pos)
        log.debug(
            "grid index built",
            extra={"extra": {"nodes": len(ids), "cell_m": cs, "cells": len(cells)}},
        )
        return cls(frame, cs, ids, xs, ys, cells, linear_fallback_below)

    def __len__(self) -> int:
        return len(self.ids)

    def _cell_window(self, cx: float, cy: float, r: float) -> tuple[int, int, int, int]:
        cs = self.cell_m
        return (
            int(math.floor((cx - r) / cs)),
            int(math.floor((cy - r) / cs)),
            int(math.floor((cx + r) / cs)),
            int(math.floor((cy + r) / cs)),
        )

    def query(self, lon: float, lat: float, radius_m: float) -> list[NodeId]:
        """Superset of node ids within `radius_m` of (lon, lat), in graph order."""
        if not self.ids:
            return []
        cx, cy = self.frame.point_xy((lon, lat))
        # pad for the frame distortion away from its origin
        r = radius_m * 1.05 + self.cell_m
        ix0, iy0, ix1, iy1 = self._cell_window(cx, cy, r)
        window = (ix1 - ix0 + 1) * (iy1 - iy0 + 1)

        hits: list[int] = []
        if window > len(self.cells):
            for (ix, iy), positions in self.cells.items():
                if ix0 <= ix <= ix1 and iy0 <= iy <= iy1:
                    hits.extend(positions)
        else:
            for ix in range(ix0, ix1 + 1):
                for iy in range(iy0, iy1 + 1):
                    hits.extend(self.cells.get((ix, iy), ()))

        if not hits and len(self.ids) < self.linear_fallback_below:
            return self._linear(cx, cy, r)
        return [self.ids[p] for p in sorted(hits)]

    def _linear(self, cx: float, cy: float, r: float) -> list[NodeId]:
        d = np.hypot(self.xs - cx, self.ys - cy)
        found = np.nonzero(d <= r)[0]
        if found.size:
            log.debug("grid query recovered by linear scan", extra={"extra": {"hits": int(found.size)}})
        return [self.ids[int(p)] for p in found]
