# io/detect_logging.py
import itertools
import json
import logging
import sys

from entry_scan.domain.entities.candidate import DetectionResult, EntryCandidate, GraphStats
from entry_scan.engine.hooks import NoopHooks
from entry_scan.io.business_events import DetectionCompletedBiz, EntryDetectedBiz
from entry_scan.io.recorder import Recorder


def _default_json_logger(name="entry_scan", level="INFO", stream=None):
    logger = logging.getLogger(name)
    if not logger.handlers:
        h = logging.StreamHandler(stream or sys.stdout)

        class _JsonFormatter(logging.Formatter):
            def format(self, record: logging.LogRecord) -> str:
                payload = {
                    "level": record.levelname,
                    "msg": record.getMessage(),
                    "logger": record.name,
                }
                extra = getattr(record, "extra", None)
                if isinstance(extra, dict):
                    payload.update(extra)
                if record.exc_info:
                    payload["exc"] = self.formatException(record.exc_info)
                return json.dumps(payload, default=str)

        h.setFormatter(_JsonFormatter())
        logger.addHandler(h)
        logger.setLevel(level)
    return logger


class DetectionLogging(NoopHooks):
    """
    Structured logs for a detector run, plus business events when a recorder is attached.
    """

    def __init__(
        self,
        run_id: str = "local",
        level: str = "INFO",
        debug: bool = False,
        logger: logging.Logger | None = None,
        recorder: Recorder | None = None,
        stream=None,
    ):
        self.run_id, self.debug = run_id, debug
        self.recorder = recorder
        self.log = logger or _default_json_logger(level=level, stream=stream)
        self._seq = itertools.count(1)

    # --------------- Helpers -----------------------------

    def _emit(self, level: str, msg: str, **extra):
        payload = {"run_id": self.run_id}
        self.log.log(getattr(logging, level), msg, extra={"extra": {**payload, **extra}})

    def _next_seq(self) -> int:
        return next(self._seq)

    # --------------------------------------------------------

    def run_start(self, *, nodes: int, ways: int, outer_buffer_m: float):
        self._seq = itertools.count(1)
        self._emit("INFO", "run_start", nodes=nodes, ways=ways, outer_buffer_m=outer_buffer_m)

    def graph_built(self, *, stats: GraphStats, cached: bool, skipped: int):
        self._emit(
            "INFO",
            "graph_built",
            node_count=stats.node_count,
            way_count=stats.way_count,
            edge_count=stats.edge_count,
            cached=cached,
            skipped_connections=skipped,
        )

    def start_nodes(self, *, count: int):
        self._emit("INFO", "start_nodes", count=count)

    def candidate(self, cand: EntryCandidate, *, visits: int):
        if self.debug:
            self._emit(
                "DEBUG",
                "candidate",
                candidate_id=cand.id,
                confidence=round(cand.confidence, 4),
                path_nodes=len(cand.path_node_ids),
                visits=visits,
            )
        self.biz(
            EntryDetectedBiz(
                run_id=self.run_id,
                seq=self._next_seq(),
                name="EntryDetected",
                candidate_id=cand.id,
                lon=cand.intersection_point[0],
                lat=cand.intersection_point[1],
                confidence=cand.confidence,
                distance_m=cand.distance_m,
                path_nodes=len(cand.path_node_ids),
                road_class_score=cand.road_class_score,
            )
        )

    def run_end(self, result: DetectionResult):
        self._emit(
            "INFO",
            "run_end",
            candidates=len(result.candidates),
            raw_candidates=result.raw_candidate_count,
            start_nodes=result.start_node_count,
            processing_time_ms=round(result.processing_time_ms, 3),
        )
        s = result.graph_stats
        self.biz(
            DetectionCompletedBiz(
                run_id=self.run_id,
                seq=self._next_seq(),
                name="DetectionCompleted",
                candidates=len(result.candidates),
                raw_candidates=result.raw_candidate_count,
                start_nodes=result.start_node_count,
                node_count=s.node_count,
                way_count=s.way_count,
                edge_count=s.edge_count,
                processing_time_ms=result.processing_time_ms,
            )
        )

    def error(self, *, reason: str, exc: BaseException | None = None, **extra):
        err = {"error": str(exc), "error_type": type(exc).__name__} if exc else {}
        self._emit("ERROR", "detection_error", reason=reason, **err, **extra)

    # ------------- Business Event Reporting --------------------------

    def biz(self, ev):
        if self.recorder:
            self.recorder.emit(ev)
