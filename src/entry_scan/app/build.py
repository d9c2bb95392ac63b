# entry_scan/app/build.py
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, TextIO

from entry_scan.app.detect import Detector
from entry_scan.app.protocols import DetectionService
from entry_scan.config.models import DetectorModel
from entry_scan.domain.entities.candidate import DetectionInput, DetectionResult
from entry_scan.domain.entities.geography import Node, Way
from entry_scan.domain.topology.topology_core import Topology
from entry_scan.domain.topology.topology_factory import build_topology
from entry_scan.engine.hooks import NoopHooks
from entry_scan.io.codec import coerce_node, coerce_way, polygon_from_geojson
from entry_scan.io.detect_logging import DetectionLogging  # JSON logs
from entry_scan.io.recorder import JsonlSink, Recorder, Sink
from entry_scan.runtime.policy_factory import (
    make_clustering_policy,
    make_confidence_policy,
    make_road_class_policy,
)
from entry_scan.runtime.services_factory import make_detection_service


@dataclass
class App:
    config: DetectorModel
    topology: Topology
    detector: Detector
    service: DetectionService

    def detect(
        self,
        polygon: Any,
        nodes: Iterable[Node | Mapping],
        ways: Iterable[Way | Mapping],
        outer_buffer_m: float | None = None,
        *,
        max_visits: int | None = None,
        search_radius_m: float | None = None,
    ) -> DetectionResult:
        inp = DetectionInput(
            polygon=polygon_from_geojson(polygon),
            nodes=tuple(coerce_node(n) for n in nodes),
            ways=tuple(coerce_way(w) for w in ways),
            outer_buffer_m=self.config.outer_buffer_m if outer_buffer_m is None else outer_buffer_m,
            max_visits=max_visits,
            search_radius_m=search_radius_m,
        )
        return self.service.compute(inp)


def build(
    cfg: DetectorModel | Mapping | None = None,
    *,
    use_logging: bool = True,
    sinks: Iterable[Sink] | None = None,
    log_stream: TextIO | None = None,
) -> App:
    # 0) Validate config
    if cfg is None:
        model = DetectorModel()
    else:
        model = cfg if isinstance(cfg, DetectorModel) else DetectorModel.model_validate(cfg)

    # 1) Hooks (+ recorder for analytics)
    if use_logging:
        recorder = Recorder(*(sinks or (JsonlSink(),)))
        hooks = DetectionLogging(
            run_id=model.run_id,
            recorder=recorder,
            level=model.log.level,
            debug=model.log.debug,
            stream=log_stream,
        )
    else:
        hooks = NoopHooks()

    # 2) Topology & policies
    topology = build_topology(model)
    detector = Detector(
        topology,
        road_class=make_road_class_policy(model.scoring),
        confidence=make_confidence_policy(model.scoring),
        clustering=make_clustering_policy(model.clustering),
        hooks=hooks,
    )

    # 3) Execution
    service = make_detection_service(model.executor, detector=detector)
    return App(model, topology, detector, service)


def detect_entry_candidates(
    polygon: Any,
    nodes: Iterable[Node | Mapping],
    ways: Iterable[Way | Mapping],
    outer_buffer_m: float = 30.0,
    *,
    max_visits: int | None = None,
    search_radius_m: float | None = None,
) -> DetectionResult:
    """One-shot detection with the default configuration, inline and without logging."""
    app = build(use_logging=False)
    return app.detect(
        polygon,
        nodes,
        ways,
        outer_buffer_m,
        max_visits=max_visits,
        search_radius_m=search_radius_m,
    )
