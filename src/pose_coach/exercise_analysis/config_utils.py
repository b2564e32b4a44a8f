import copy
import json
import os
from typing import Any, Dict, Optional


def load_exercise_config(config_path: str = None) -> Dict[str, Any]:
    """Load exercise thresholds from JSON file."""
    if config_path is None:
        config_path = os.path.join(os.path.dirname(__file__), "exercise_config.json")
    with open(config_path, "r") as f:
        return json.load(f)


def merge_config(base: Dict[str, Any], overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Deep-merge overrides into a copy of base; nested dicts merge, other values replace."""
    merged = copy.deepcopy(base)
    for key, value in (overrides or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = value
    return merged
