"""Pipeline assembly: build or load a network, train, save and evaluate."""

from __future__ import annotations

import json
import time
from copy import deepcopy
from pathlib import Path
from typing import Dict, Mapping, Sequence

from ..core.builder import NetworkBuilder
from ..core.network import DEFAULT_SEED, Network
from ..core.types import RunResult
from ..data import DatasetSpec, get_dataset
from ..reporting.artifacts import write_manifest
from ..reporting.metrics import ConsoleReporter, CsvSink, JsonlSink
from ..reporting.plots import PlotAdapter

_REQUIRED_SECTIONS = {"data", "model", "train"}

_PRESETS: Dict[str, Mapping[str, object]] = {
    "mnist-logistic": {
        "data": {
            "name": "mnist_csv",
            "options": {"folder": "data/MNIST", "split_index": 784, "num_classes": 10},
        },
        "model": {
            "input_size": 784,
            "cost": "crossentropy",
            "optimizer": "stochastic",
            "true_random": False,
            "layers": [
                {"size": 30, "activation": "logistic"},
                {"size": 10, "activation": "logistic"},
            ],
        },
        "train": {
            "epochs": 30,
            "batch_size": 10,
            "eta": 0.1,
            "lmbda": 5.0,
            "run_dir": "runs/mnist-logistic",
            "save_path": "runs/mnist-logistic/network.net",
            "sample_index": 3,
            "enable_plots": False,
        },
    },
    "synthetic-blobs": {
        "data": {
            "name": "synthetic",
            "options": {"n_features": 4, "n_classes": 3, "n_training": 120, "seed": 0},
        },
        "model": {
            "input_size": 4,
            "cost": "crossentropy",
            "optimizer": "stochastic",
            "true_random": False,
            "layers": [
                {"size": 8, "activation": "logistic"},
                {"size": 3, "activation": "logistic"},
            ],
        },
        "train": {
            "epochs": 5,
            "batch_size": 10,
            "eta": 0.5,
            "lmbda": 0.1,
            "run_dir": "runs/synthetic-blobs",
            "save_path": "runs/synthetic-blobs/network.net",
            "sample_index": 0,
            "enable_plots": False,
        },
    },
}


def presets() -> Mapping[str, Mapping[str, object]]:
    return {name: deepcopy(cfg) for name, cfg in _PRESETS.items()}


def load_preset(name: str) -> Mapping[str, object]:
    try:
        return deepcopy(_PRESETS[name])
    except KeyError as exc:
        available = ", ".join(sorted(_PRESETS))
        raise KeyError(f"Unknown preset: {name!r}. Available: {available}") from exc


def read_config_file(path: str | Path) -> Mapping[str, object]:
    """Read a JSON or YAML configuration mapping from ``path``."""

    path = Path(path)
    suffix = path.suffix.lower()
    if suffix not in {".yaml", ".yml", ".json"}:
        raise ValueError(f"Unsupported config file type: {path.suffix}")
    text = path.read_text(encoding="utf-8")
    if suffix == ".json":
        data = json.loads(text or "{}")
    else:
        import yaml

        data = yaml.safe_load(text) or {}
    if not isinstance(data, Mapping):
        raise TypeError(f"Config {path.name} must decode to a mapping")
    return data


def merge_config(base: dict, override: Mapping[str, object]) -> dict:
    """Recursively merge ``override`` into ``base`` and return ``base``."""

    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(base.get(key), dict):
            base[key] = merge_config(dict(base[key]), value)
        else:
            base[key] = value
    return base


def build_network(model_cfg: Mapping[str, object], builder: NetworkBuilder | None = None) -> Network:
    """Create a network from ``model_cfg``, or load it when ``load_path`` is set."""

    builder = builder or NetworkBuilder()
    builder.set_optimizer(str(model_cfg.get("optimizer", "stochastic")))
    builder.set_is_true_random(bool(model_cfg.get("true_random", False)))

    load_path = model_cfg.get("load_path")
    if load_path:
        return builder.load(str(load_path))

    if "input_size" not in model_cfg or "cost" not in model_cfg:
        raise KeyError("Model config requires `input_size` and `cost`")
    network = (
        builder.set_input_size(int(model_cfg["input_size"]))
        .set_cost_function(str(model_cfg["cost"]))
        .build()
    )
    for layer_cfg in model_cfg.get("layers", []):
        network.add_layer(
            NetworkBuilder.create_layer(int(layer_cfg["size"]), str(layer_cfg["activation"]))
        )
    return network


def run_pipeline(config: Mapping[str, object]) -> RunResult:
    missing = _REQUIRED_SECTIONS - set(config)
    if missing:
        raise KeyError(f"Config is missing required sections: {', '.join(sorted(missing))}")

    data_cfg = dict(config["data"])
    model_cfg = dict(config["model"])
    train_cfg = dict(config["train"])

    dataset = get_dataset(str(data_cfg["name"]), **dict(data_cfg.get("options", {})))
    network = build_network(model_cfg)

    epochs = int(train_cfg.get("epochs", 1))
    batch_size = int(train_cfg.get("batch_size", 10))
    eta = float(train_cfg.get("eta", 0.1))
    lmbda = float(train_cfg.get("lmbda", 0.0))

    run_dir = _resolve_run_dir(train_cfg, dataset.name)
    run_dir.mkdir(parents=True, exist_ok=True)

    _print_startup_summary(
        dataset=dataset,
        network=network,
        epochs=epochs,
        batch_size=batch_size,
        eta=eta,
        lmbda=lmbda,
    )

    seed = None if network.is_true_random else DEFAULT_SEED
    jsonl = JsonlSink(run_dir / "metrics.jsonl", seed=seed)
    csv_sink = CsvSink(run_dir / "metrics.csv")
    plots = PlotAdapter(run_dir, enable_plots=bool(train_cfg.get("enable_plots", False)))
    callbacks: list = [jsonl, csv_sink, plots]
    if train_cfg.get("verbose", True):
        callbacks.append(ConsoleReporter())

    started = time.perf_counter()
    network.train(
        dataset.training,
        dataset.validation,
        epochs,
        batch_size,
        eta,
        lmbda,
        callbacks=callbacks,
    )
    elapsed = time.perf_counter() - started
    plots.close()
    print(f"Training has finished within {elapsed:.1f} seconds.")

    network_path = ""
    save_path = train_cfg.get("save_path")
    if save_path:
        Path(save_path).parent.mkdir(parents=True, exist_ok=True)
        network_path = NetworkBuilder.save(network, save_path)

    test_correct, test_total = _validate_network(
        network, dataset.testing, int(train_cfg.get("sample_index", 0))
    )

    (run_dir / "config.json").write_text(json.dumps(_safe_config(config), indent=2))
    manifest = write_manifest(
        run_dir / "manifest.json",
        config=_safe_config(config),
        dataset_provenance={**dataset.provenance, "splits": dataset.splits},
        network={
            "input_size": network.input_size,
            "layers": [
                {"size": layer.size, "activation": layer.activation.name}
                for layer in network.layers
            ],
            "cost": network.cost_function.name,
            "optimizer": network.optimizer.name,
            "test_correct": test_correct,
            "test_total": test_total,
        },
    )

    return RunResult(
        epochs=epochs,
        metrics_path=str(jsonl.path),
        manifest_path=manifest,
        network_path=network_path,
        test_correct=test_correct,
        test_total=test_total,
    )


def _validate_network(network: Network, testing: Sequence, sample_index: int) -> tuple[int, int]:
    if not testing:
        print("No testing data available.")
        return 0, 0
    sample_index = min(max(sample_index, 0), len(testing) - 1)
    x, label = testing[sample_index]
    print(f"Testing the network for test input number {sample_index}:")
    print(f"\tNetwork's prediction is: {network.predict(x)}.")
    print(f"\tThe actual value is: {network.output_to_prediction(label)}.")
    print("List of epoch accuracies for the validation set:")
    for accuracy in network.history.evaluation_accuracy:
        print(f"{accuracy}")
    correct, _ = network.calc_accuracy_and_cost(testing)
    print(f"For the testing set: total correct = {correct} out of {len(testing)}")
    return correct, len(testing)


def _resolve_run_dir(train_cfg: Mapping[str, object], dataset: str) -> Path:
    if "run_dir" in train_cfg:
        return Path(str(train_cfg["run_dir"]))
    timestamp = time.strftime("%Y%m%d-%H%M%S")
    return Path("runs") / timestamp / dataset


def _safe_config(config: Mapping[str, object]) -> Mapping[str, object]:
    return json.loads(json.dumps(config))


def _print_startup_summary(
    *,
    dataset: DatasetSpec,
    network: Network,
    epochs: int,
    batch_size: int,
    eta: float,
    lmbda: float,
) -> None:
    print("=== fcnet run ===")
    print(f"Dataset       : {dataset.name} {dataset.splits}")
    print(f"Cost          : {network.cost_function.name}")
    print(f"Optimizer     : {network.optimizer.name}")
    print(f"Epochs        : {epochs}")
    print(f"Batch size    : {batch_size}")
    print(f"Eta / lambda  : {eta} / {lmbda}")
    print(network.describe())
    print("=================")


__all__ = [
    "build_network",
    "load_preset",
    "merge_config",
    "presets",
    "read_config_file",
    "run_pipeline",
]
