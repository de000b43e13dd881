from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Iterable, List

from .models import ProcessSpec


def load_workload(path: str | Path) -> List[ProcessSpec]:
    """
    Load a workload from a JSON or CSV file into a list of ProcessSpec objects.

    Timing fields are only parsed here; range checks (non-negative arrival,
    positive burst) happen when the engine admits the processes.
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix == ".json":
        return _load_json(path)
    if suffix == ".csv":
        return _load_csv(path)

    raise ValueError(f"Unsupported workload format: {suffix} (use .json or .csv)")


def _load_json(path: Path) -> List[ProcessSpec]:
    with path.open("r", encoding="utf-8") as f:
        raw = json.load(f)

    if isinstance(raw, dict) or not isinstance(raw, Iterable):
        raise ValueError("JSON workload must be a list of process objects")

    specs: List[ProcessSpec] = []
    for entry in raw:
        if not isinstance(entry, dict):
            raise ValueError(f"Invalid process entry: {entry!r}")
        specs.append(ProcessSpec.from_mapping(entry))

    return specs


def _load_csv(path: Path) -> List[ProcessSpec]:
    specs: List[ProcessSpec] = []
    with path.open("r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        for row in reader:
            specs.append(ProcessSpec.from_mapping(row))
    return specs
