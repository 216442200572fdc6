import hashlib
import json
import os
import random
from typing import Any, Dict, Optional

from api.puzzles.constants import DEV_METRICS_ENV_VAR


def stable_json_dumps(obj: Any) -> str:
    return json.dumps(obj, separators=(",", ":"), sort_keys=True, ensure_ascii=False)


def sha256_hex(value: str | bytes) -> str:
    if isinstance(value, bytes):
        data = value
    else:
        data = str(value).encode("utf-8")
    return hashlib.sha256(data).hexdigest()


def resolve_rng(rng: Optional[random.Random]) -> random.Random:
    # Unseeded by default; callers that need repeatable output pass their own.
    if rng is None:
        return random.Random()
    return rng


def is_dev_metrics_enabled() -> bool:
    return os.getenv(DEV_METRICS_ENV_VAR) == "1"


def round3(value: float) -> float:
    return float(f"{float(value):.3f}")


def write_dev_metrics(out: Optional[Dict[str, Any]], metrics: Dict[str, Any]) -> None:
    if out is None or not is_dev_metrics_enabled():
        return
    out.update(metrics)


def puzzle_fingerprint(payload: Dict[str, Any]) -> str:
    return sha256_hex(stable_json_dumps(payload))
