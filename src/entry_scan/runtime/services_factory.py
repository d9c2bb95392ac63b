# entry_scan/runtime/services_factory.py
from entry_scan.app.detect import Detector
from entry_scan.app.protocols import DetectionService
from entry_scan.config.models import ExecutorInlineModel, ExecutorThreadModel, ExecutorUnion
from entry_scan.services.detection import InlineDetectionService, ThreadedDetectionService


def make_detection_service(cfg: ExecutorUnion, *, detector: Detector) -> DetectionService:
    if isinstance(cfg, ExecutorInlineModel):
        return InlineDetectionService(detector)
    elif isinstance(cfg, ExecutorThreadModel):
        return ThreadedDetectionService(
            detector, timeout_s=cfg.timeout_s, fallback=cfg.fallback
        )
    else:
        raise TypeError(cfg)
