"""Per-epoch metric sinks."""

from __future__ import annotations

import csv
import json
import math
from pathlib import Path
from typing import Mapping


def _numeric(metrics: Mapping[str, float]) -> dict:
    values = {}
    for key, value in metrics.items():
        if isinstance(value, (int, float)):
            value = float(value)
            # JSON has no NaN literal; an empty evaluation set reports null.
            values[key] = value if math.isfinite(value) else None
    return values


class JsonlSink:
    """Append-only JSONL writer, one record per epoch."""

    def __init__(self, path: str | Path, *, seed: int | None = None) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("")
        self.seed = seed

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        record = {"epoch": int(epoch), "seed": self.seed}
        record.update(_numeric(metrics))
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record) + "\n")

    __call__ = on_epoch


class CsvSink:
    """Write epoch metrics to CSV with a stable, sorted header."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("")

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        row = {"epoch": int(epoch)}
        row.update(_numeric(metrics))
        with self.path.open("a", encoding="utf-8", newline="") as handle:
            writer = csv.DictWriter(handle, fieldnames=sorted(row.keys()))
            if handle.tell() == 0:
                writer.writeheader()
            writer.writerow(row)

    __call__ = on_epoch


class ConsoleReporter:
    """Print a short progress block after each epoch."""

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        print(f"Epoch # {epoch} of training is complete:")
        print(f"\tCost on training data: {metrics['training_cost']:.6f}")
        print(
            f"\tAccuracy on training data: "
            f"{metrics['training_correct']} / {metrics['training_total']}"
        )
        print(f"\tCost on evaluation data: {metrics['evaluation_cost']:.6f}")
        print(
            f"\tAccuracy on evaluation data: "
            f"{metrics['evaluation_correct']} / {metrics['evaluation_total']}"
        )

    __call__ = on_epoch


__all__ = ["ConsoleReporter", "CsvSink", "JsonlSink"]
