"""Command line entry point for fcnet training runs."""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Iterable

from fcnet.training import pipelines


def _format_result(result) -> str:
    payload = {
        "epochs": result.epochs,
        "metrics": result.metrics_path,
        "manifest": result.manifest_path,
        "network": result.network_path,
        "test_correct": result.test_correct,
        "test_total": result.test_total,
    }
    return json.dumps(payload, sort_keys=True)


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    preset_names = sorted(pipelines.presets().keys())
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--preset",
        choices=preset_names,
        default="synthetic-blobs",
        help="Preset configuration to execute",
    )
    parser.add_argument("--config", type=Path, help="Optional JSON/YAML config override")
    parser.add_argument("--load", type=Path, help="Load network parameters instead of building")
    parser.add_argument("--save", type=Path, help="Where to save the trained parameters")
    parser.add_argument("--data-folder", type=Path, help="Folder holding the MNIST CSV files")
    parser.add_argument("--epochs", type=int, help="Number of training epochs")
    parser.add_argument("--batch-size", type=int, help="Mini-batch size")
    parser.add_argument("--eta", type=float, help="Learning rate")
    parser.add_argument("--lmbda", type=float, help="L2 regularization coefficient")
    parser.add_argument(
        "--true-random",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Seed the network RNG from OS entropy instead of the fixed seed",
    )
    parser.add_argument("--run-dir", type=Path, help="Directory for metrics and manifest")
    parser.add_argument(
        "--enable-plots", action="store_true", help="Write cost/accuracy curves"
    )
    parser.add_argument("--quiet", action="store_true", help="Suppress per-epoch output")
    parser.add_argument(
        "--list-presets", action="store_true", help="List available presets and exit"
    )
    parser.add_argument(
        "--dump-config", type=Path, help="Dump the resolved config to a JSON file"
    )
    return parser.parse_args(argv)


def resolve_config(args: argparse.Namespace) -> dict:
    config = json.loads(json.dumps(pipelines.load_preset(args.preset)))

    if args.config:
        override = pipelines.read_config_file(args.config)
        if {"data", "model", "train"} <= set(override.keys()):
            config = json.loads(json.dumps(override))
        else:
            config = pipelines.merge_config(config, override)

    model_cfg = config.setdefault("model", {})
    train_cfg = config.setdefault("train", {})
    if args.load:
        model_cfg["load_path"] = str(args.load)
    if args.true_random is not None:
        model_cfg["true_random"] = bool(args.true_random)
    if args.data_folder:
        data_cfg = config.setdefault("data", {})
        dataset = data_cfg.get("name")
        if dataset != "mnist_csv":
            raise ValueError(
                f"--data-folder only applies to the mnist_csv dataset, but preset "
                f"{args.preset!r} uses {dataset!r}"
            )
        data_cfg.setdefault("options", {})["folder"] = str(args.data_folder)
    for key, value in (
        ("epochs", args.epochs),
        ("batch_size", args.batch_size),
        ("eta", args.eta),
        ("lmbda", args.lmbda),
    ):
        if value is not None:
            train_cfg[key] = value
    if args.save:
        train_cfg["save_path"] = str(args.save)
    if args.run_dir:
        train_cfg["run_dir"] = str(args.run_dir)
    if args.enable_plots:
        train_cfg["enable_plots"] = True
    if args.quiet:
        train_cfg["verbose"] = False
    return config


def main(argv: Iterable[str] | None = None) -> None:
    args = parse_args(argv)

    if args.list_presets:
        for name in sorted(pipelines.presets().keys()):
            print(name)
        raise SystemExit(0)

    config = resolve_config(args)

    if args.dump_config:
        args.dump_config.parent.mkdir(parents=True, exist_ok=True)
        args.dump_config.write_text(json.dumps(config, indent=2))

    result = pipelines.run_pipeline(config)
    print(_format_result(result))


if __name__ == "__main__":
    main()
