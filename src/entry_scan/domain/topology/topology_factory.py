# entry_scan/domain/topology/topology_factory.py

from entry_scan.config.models import DetectorModel
from entry_scan.domain.topology.topology_core import PreparedGraph, Topology
from entry_scan.domain.topology.topology_search import StartNodeFinder
from entry_scan.runtime.registries import make_index, make_traversal
from entry_scan.runtime.resources import GraphCache


def build_topology(
    cfg: DetectorModel, *, cache: GraphCache[PreparedGraph] | None = None
) -> Topology:
    if cache is None and cfg.cache.enabled:
        cache = GraphCache(max_entries=cfg.cache.max_entries)

    return Topology(
        traverser=make_traversal(cfg.traversal),
        start_finder=StartNodeFinder(
            include_gate_nodes=cfg.start_nodes.include_gate_nodes,
            search_radius_m=cfg.start_nodes.search_radius_m,
        ),
        index_builder=make_index(cfg.index),
        cache=cache,
    )
