# main.py
import json
import sys

from entry_scan.app.build import build
from entry_scan.io.codec import result_to_dict
from entry_scan.io.recorder import JsonlSink
from entry_scan.runtime.resources import load_bundle_from_path


def run(bundle_path: str, config_path: str | None = None) -> dict:
    cfg = None
    if config_path:
        with open(config_path, encoding="utf-8") as f:
            cfg = json.load(f)

    app = build(cfg, sinks=[JsonlSink(sys.stderr)], log_stream=sys.stderr)
    inp = load_bundle_from_path(bundle_path)
    return result_to_dict(app.service.compute(inp))


if __name__ == "__main__":
    if len(sys.argv) < 2:
        sys.exit("usage: python main.py BUNDLE.json [CONFIG.json]")
    out = run(sys.argv[1], sys.argv[2] if len(sys.argv) > 2 else None)
    json.dump(out, sys.stdout, indent=2)
    sys.stdout.write("\n")
