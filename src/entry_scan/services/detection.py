# entry_scan/services/detection.py
import logging
import queue
import threading

from entry_scan.app.detect import Detector
from entry_scan.app.protocols import DetectionService
from entry_scan.domain.entities.candidate import DetectionInput, DetectionResult
from entry_scan.domain.errors import DetectionFailed, DetectionTimeout
from entry_scan.io.codec import input_from_dict, input_to_dict, result_from_dict, result_to_dict

log = logging.getLogger(__name__)

_STOP = object()


class InlineDetectionService(DetectionService):
    def __init__(self, detector: Detector):
        self.detector = detector

    def compute(self, inp: DetectionInput) -> DetectionResult:
        return self.detector.run(inp)


class ThreadedDetectionService(InlineDetectionService):
    """
    Runs detections on a background worker thread.

    Requests and replies cross the thread boundary as plain dicts: the worker
    answers {"ok": True, "data": ...} or {"ok": False, "error": ...}. A worker
    that cannot start or reports an error falls back to a run on the calling
    thread (when `fallback` is set). A reply later than `timeout_s` is a
    DetectionTimeout; the busy worker is retired and the next call gets a fresh one.
    """

    def __init__(self, detector: Detector, *, timeout_s: float = 30.0, fallback: bool = True):
        super().__init__(detector)
        self.timeout_s = timeout_s
        self.fallback = fallback
        self._requests: queue.Queue | None = None
        self._worker: threading.Thread | None = None
        self._lock = threading.Lock()

    # ------------- worker ---------------------------------

    def _serve(self, requests: queue.Queue) -> None:
        while True:
            item = requests.get()
            if item is _STOP:
                return
            payload, reply = item
            try:
                res = self.detector.run(input_from_dict(payload))
                reply.put({"ok": True, "data": result_to_dict(res)})
            except Exception as exc:
                reply.put({"ok": False, "error": str(exc), "error_type": type(exc).__name__})

    def _ensure_worker(self) -> queue.Queue | None:
        with self._lock:
            if self._worker is not None and self._worker.is_alive():
                return self._requests
            requests: queue.Queue = queue.Queue()
            t = threading.Thread(target=self._serve, args=(requests,), name="entry-scan-worker", daemon=True)
            try:
                t.start()
            except RuntimeError as exc:
                log.warning("worker start failed", extra={"extra": {"error": str(exc)}})
                return None
            self._worker, self._requests = t, requests
            return requests

    def _abandon_worker(self, requests: queue.Queue) -> None:
        # the busy worker drains what it already holds, then exits
        with self._lock:
            requests.put(_STOP)
            if self._requests is requests:
                self._worker, self._requests = None, None

    def close(self) -> None:
        with self._lock:
            if self._worker is not None:
                self._requests.put(_STOP)
                self._worker.join(timeout=self.timeout_s)
                self._worker, self._requests = None, None

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    # -------------------------------------------------------

    def _fallback(self, inp: DetectionInput, reason: str, error: str | None = None):
        if not self.fallback:
            raise DetectionFailed(f"{reason}: {error}" if error else reason)
        log.warning(
            "detection falling back to calling thread",
            extra={"extra": {"reason": reason, "error": error}},
        )
        return self.detector.run(inp)

    def compute(self, inp: DetectionInput) -> DetectionResult:
        requests = self._ensure_worker()
        if requests is None:
            return self._fallback(inp, "worker_unavailable")

        reply: queue.Queue = queue.Queue(maxsize=1)
        requests.put((input_to_dict(inp), reply))
        try:
            msg = reply.get(timeout=self.timeout_s)
        except queue.Empty:
            self._abandon_worker(requests)
            log.warning("detection timed out", extra={"extra": {"timeout_s": self.timeout_s}})
            raise DetectionTimeout(
                f"entry detection exceeded {self.timeout_s:.1f}s"
            ) from None

        if msg["ok"]:
            return result_from_dict(msg["data"])
        return self._fallback(inp, "worker_error", msg.get("error"))
