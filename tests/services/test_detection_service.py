import threading
import time

import pytest

from entry_scan.app.build import build
from entry_scan.domain.entities.candidate import DetectionInput, DetectionResult, GraphStats
from entry_scan.domain.errors import DetectionFailed, DetectionTimeout, InvalidGeometry
from entry_scan.io.codec import polygon_from_geojson
from entry_scan.services.detection import InlineDetectionService, ThreadedDetectionService


class _SlowDetector:
    def run(self, inp):
        time.sleep(0.5)
        return DetectionResult()


class _SlowThenFast:
    def __init__(self):
        self.calls = 0

    def run(self, inp):
        self.calls += 1
        if self.calls == 1:
            time.sleep(0.6)
        return DetectionResult(graph_stats=GraphStats(node_count=self.calls))


class _FailsOffMainThread:
    def __init__(self):
        self.calls = []

    def run(self, inp):
        name = threading.current_thread().name
        self.calls.append(name)
        if name == "entry-scan-worker":
            raise RuntimeError("worker crashed")
        return DetectionResult(graph_stats=GraphStats(node_count=1))


@pytest.fixture
def small_input(small_square):
    return DetectionInput(polygon=polygon_from_geojson(small_square))


def test_threaded_matches_inline(unit_square, crossing_network):
    inline = build(use_logging=False).detect(unit_square, *crossing_network, 0.2)
    app = build({"executor": {"kind": "thread", "timeout_s": 10}}, use_logging=False)
    assert isinstance(app.service, ThreadedDetectionService)
    try:
        threaded = app.detect(unit_square, *crossing_network, 0.2)
        again = app.detect(unit_square, *crossing_network, 0.2)
    finally:
        app.service.close()
    assert threaded.candidates == inline.candidates
    assert again.candidates == inline.candidates
    assert threaded.graph_stats == inline.graph_stats


def test_timeout_has_no_partial_result(small_input):
    svc = ThreadedDetectionService(_SlowDetector(), timeout_s=0.05)
    with pytest.raises(DetectionTimeout):
        svc.compute(small_input)
    svc.close()


def test_call_after_timeout_is_not_blocked(small_input):
    det = _SlowThenFast()
    with ThreadedDetectionService(det, timeout_s=0.2) as svc:
        with pytest.raises(DetectionTimeout):
            svc.compute(small_input)
        res = svc.compute(small_input)
    assert res.graph_stats.node_count == 2


def test_worker_error_falls_back_to_calling_thread(small_input):
    det = _FailsOffMainThread()
    with ThreadedDetectionService(det, timeout_s=5) as svc:
        res = svc.compute(small_input)
    assert res.graph_stats.node_count == 1
    assert det.calls[0] == "entry-scan-worker"
    assert det.calls[1] != "entry-scan-worker"


def test_worker_error_without_fallback(small_input):
    with ThreadedDetectionService(_FailsOffMainThread(), timeout_s=5, fallback=False) as svc:
        with pytest.raises(DetectionFailed, match="worker crashed"):
            svc.compute(small_input)


def test_fallback_reraises_real_error():
    app = build({"executor": {"kind": "thread"}}, use_logging=False)
    bad = DetectionInput(polygon=((0, 0), (1, 0), (0, 1), (0, 0)), outer_buffer_m=-1)
    with pytest.raises(ValueError):
        app.service.compute(bad)
    app.service.close()


def test_invalid_polygon_fails_before_dispatch():
    svc = ThreadedDetectionService(_SlowDetector(), timeout_s=5)
    with pytest.raises(InvalidGeometry):
        svc.compute(DetectionInput(polygon=((0, 0), (1, 1))))
    svc.close()


def test_inline_service(small_input):
    det = _FailsOffMainThread()
    res = InlineDetectionService(det).compute(small_input)
    assert res.graph_stats.node_count == 1
