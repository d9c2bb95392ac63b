import json
import os
import subprocess
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]


def test_runner_prints_only_the_result_on_stdout(tmp_path, small_square):
    bundle = tmp_path / "bundle.json"
    bundle.write_text(
        json.dumps(
            {
                "polygon": small_square,
                "nodes": [{"id": "a", "lon": -0.0001, "lat": 0.0005}, {"id": "b", "lon": 0.0002, "lat": 0.0005}],
                "ways": [{"id": "w", "node_ids": ["a", "b"]}],
            }
        )
    )
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(ROOT / "src"), env.get("PYTHONPATH")]))

    proc = subprocess.run(
        [sys.executable, str(ROOT / "main.py"), str(bundle)],
        cwd=ROOT,
        env=env,
        capture_output=True,
        text=True,
        timeout=60,
    )

    assert proc.returncode == 0, proc.stderr
    out = json.loads(proc.stdout)
    assert len(out["candidates"]) == 1
    logged = [json.loads(line) for line in proc.stderr.splitlines() if line.startswith("{")]
    assert "run_end" in {rec.get("msg") for rec in logged}
