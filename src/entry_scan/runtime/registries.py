# runtime/registries.py
from collections.abc import Callable

from entry_scan.app.protocols import PathTraverser, SpatialIndex
from entry_scan.config.models import (
    IndexGridModel,
    IndexUnion,
    TraversalBestFirstModel,
    TraversalBfsModel,
    TraversalUnion,
)
from entry_scan.domain.topology.topology_graph import RoadGraph
from entry_scan.domain.topology.topology_index import GridIndex
from entry_scan.domain.topology.topology_search import BestFirstTraverser, BreadthFirstTraverser

TraversalFactory = Callable[[TraversalUnion], PathTraverser]
# an index factory returns a builder: graph -> index
IndexBuilder = Callable[[RoadGraph], SpatialIndex]
IndexFactory = Callable[[IndexUnion], IndexBuilder]

_traversal_registry: dict[str, TraversalFactory] = {}
_index_registry: dict[str, IndexFactory] = {}


# ------------------- Traversal registries ---------------------------


def register_traversal(kind: str):
    def deco(fn: TraversalFactory):
        _traversal_registry[kind] = fn
        return fn

    return deco


def make_traversal(cfg: TraversalUnion) -> PathTraverser:
    try:
        factory = _traversal_registry[cfg.kind]
    except KeyError:
        raise ValueError(f"Unknown traversal kind {cfg.kind!r}")
    return factory(cfg)


@register_traversal("bfs")
def _make_bfs(cfg: TraversalBfsModel):
    return BreadthFirstTraverser(max_visits=cfg.max_visits)


@register_traversal("best_first")
def _make_best_first(cfg: TraversalBestFirstModel):
    return BestFirstTraverser(max_visits=cfg.max_visits)


# ----- Spatial index --------------------------


def register_index(kind: str):
    def deco(fn: IndexFactory):
        _index_registry[kind] = fn
        return fn

    return deco


def make_index(cfg: IndexUnion) -> IndexBuilder:
    try:
        factory = _index_registry[cfg.kind]
    except KeyError:
        raise ValueError(f"Unknown index kind {cfg.kind!r}")
    return factory(cfg)


@register_index("grid")
def _make_grid(cfg: IndexGridModel):
    def build(graph: RoadGraph) -> GridIndex:
        return GridIndex.build(
            graph,
            sparse_cell_m=cfg.sparse_cell_m,
            dense_cell_m=cfg.dense_cell_m,
            dense_min_nodes=cfg.dense_min_nodes,
            linear_fallback_below=cfg.linear_fallback_below,
        )

    return build
