# engine/hooks.py
from typing import Protocol

from entry_scan.domain.entities.candidate import DetectionResult, EntryCandidate, GraphStats


class DetectionHooks(Protocol):
    def run_start(self, *, nodes: int, ways: int, outer_buffer_m: float): ...
    def graph_built(self, *, stats: GraphStats, cached: bool, skipped: int): ...
    def start_nodes(self, *, count: int): ...
    def candidate(self, cand: EntryCandidate, *, visits: int): ...
    def run_end(self, result: DetectionResult): ...
    def error(self, *, reason: str, exc: BaseException | None = None, **kw): ...


class NoopHooks:
    def run_start(self, **_):
        pass

    def graph_built(self, **_):
        pass

    def start_nodes(self, **_):
        pass

    def candidate(self, *_, **__):
        pass

    def run_end(self, *_, **__):
        pass

    def error(self, *_, **__):
        pass
