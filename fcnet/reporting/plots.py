"""Headless-safe plotting of training curves."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Mapping

_SERIES = ("training_cost", "evaluation_cost", "training_accuracy", "evaluation_accuracy")


class PlotAdapter:
    """Collect epoch metrics and optionally emit matplotlib figures."""

    def __init__(self, run_dir: str | Path, enable_plots: bool = False):
        self.enable_plots = enable_plots
        self.run_dir = Path(run_dir)
        self._epochs: List[int] = []
        self._history: Dict[str, List[float]] = {name: [] for name in _SERIES}
        if self.enable_plots:
            self.run_dir.mkdir(parents=True, exist_ok=True)

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        if not self.enable_plots:
            return
        self._epochs.append(int(epoch))
        for name in _SERIES:
            self._history[name].append(float(metrics.get(name, float("nan"))))

    def close(self) -> None:
        if not self.enable_plots or not self._epochs:
            return
        import matplotlib

        matplotlib.use("Agg", force=True)
        import matplotlib.pyplot as plt  # imported lazily for headless safety

        for kind in ("cost", "accuracy"):
            fig, ax = plt.subplots()
            for split in ("training", "evaluation"):
                ax.plot(self._epochs, self._history[f"{split}_{kind}"], label=split)
            ax.set_xlabel("Epoch")
            ax.set_ylabel(kind.capitalize())
            ax.set_title(f"{kind.capitalize()} per epoch")
            ax.legend()
            fig.savefig(self.run_dir / f"{kind}.png")
            plt.close(fig)

    __call__ = on_epoch


__all__ = ["PlotAdapter"]
