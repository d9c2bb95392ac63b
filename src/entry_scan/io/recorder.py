# entry_scan/io/recorder.py
import json
import logging
import queue
import sys
import threading
from dataclasses import asdict
from typing import Protocol

log = logging.getLogger(__name__)


class Sink(Protocol):
    def write(self, ev) -> None: ...


class JsonlSink:
    def __init__(self, fp=sys.stdout):
        self.fp = fp

    def write(self, ev) -> None:
        self.fp.write(json.dumps(asdict(ev)) + "\n")


class MemorySink:
    def __init__(self):
        self.events: list = []

    def write(self, ev) -> None:
        self.events.append(ev)


_STOP = object()


# Async sink (non-blocking, drops on overflow)
class AsyncSink:
    def __init__(self, sink: Sink, maxsize: int = 10000):
        self.sink, self.q = sink, queue.Queue(maxsize=maxsize)
        self.dropped = 0
        self.failed = 0
        self._t = threading.Thread(target=self._run, name="entry-scan-sink", daemon=True)
        self._t.start()

    def write(self, ev) -> None:
        try:
            self.q.put_nowait(ev)
        except queue.Full:
            self.dropped += 1  # never block detection

    def _run(self):
        while True:
            ev = self.q.get()
            if ev is _STOP:
                return
            try:
                self.sink.write(ev)
            except Exception:
                self.failed += 1
                log.exception("async sink write failed")

    def stop(self, timeout: float = 1.0):
        self.q.put(_STOP)
        self._t.join(timeout=timeout)


class Recorder:
    def __init__(self, *sinks: Sink):
        self.sinks = sinks or (JsonlSink(),)
        self.failed = 0

    def emit(self, ev):
        for s in self.sinks:
            try:
                s.write(ev)
            except Exception:
                # a broken sink must not fail the detection run
                self.failed += 1
                log.exception("recorder sink failed", extra={"extra": {"event": ev.name}})
