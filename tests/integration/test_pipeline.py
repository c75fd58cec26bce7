import json
from pathlib import Path

import pytest

from fcnet.core.builder import NetworkBuilder
from fcnet.training import pipelines


def _config(tmp_path, **train):
    config = pipelines.load_preset("synthetic-blobs")
    config["train"].update(
        run_dir=str(tmp_path / "run"),
        save_path=str(tmp_path / "out" / "network.net"),
        epochs=3,
        verbose=False,
    )
    config["train"].update(train)
    return config


def test_pipeline_writes_artifacts(tmp_path, capsys):
    result = pipelines.run_pipeline(_config(tmp_path))
    run_dir = tmp_path / "run"

    records = [json.loads(line) for line in Path(result.metrics_path).read_text().splitlines()]
    assert [record["epoch"] for record in records] == [0, 1, 2]
    assert all(record["seed"] == 17111993 for record in records)
    assert {"training_cost", "evaluation_accuracy", "training_total"} <= set(records[0])
    assert (run_dir / "metrics.csv").read_text().startswith("epoch,")
    assert json.loads((run_dir / "config.json").read_text())["train"]["epochs"] == 3

    manifest = json.loads(Path(result.manifest_path).read_text())
    assert manifest["dataset"]["type"] == "synthetic"
    assert manifest["network"]["layers"] == [
        {"size": 8, "activation": "logistic"},
        {"size": 3, "activation": "logistic"},
    ]
    assert result.test_total == 30
    assert 0 <= result.test_correct <= 30

    out = capsys.readouterr().out
    assert "=== fcnet run ===" in out
    assert "Training has finished within" in out
    assert f"total correct = {result.test_correct} out of 30" in out
    assert "of training is complete" not in out


def test_saved_network_can_be_reloaded_and_trained_further(tmp_path):
    first = pipelines.run_pipeline(_config(tmp_path))
    loaded = NetworkBuilder().load(first.network_path)
    assert loaded.input_size == 4
    assert [layer.size for layer in loaded.layers] == [8, 3]

    config = _config(tmp_path, save_path=str(tmp_path / "second.net"), epochs=1)
    config["model"]["load_path"] = first.network_path
    second = pipelines.run_pipeline(config)
    assert second.epochs == 1
    assert Path(second.network_path).read_text() != Path(first.network_path).read_text()


def test_plots_are_written_when_enabled(tmp_path):
    pipelines.run_pipeline(_config(tmp_path, enable_plots=True, epochs=2))
    assert (tmp_path / "run" / "cost.png").exists()
    assert (tmp_path / "run" / "accuracy.png").exists()


def test_mnist_preset_reads_csv_folder(tmp_path):
    folder = tmp_path / "mnist"
    folder.mkdir()
    rows = "\n".join(
        ",".join(["0"] * 784 if label % 2 else ["255"] * 784) + f",{label}" for label in range(10)
    )
    for name in ("Training.csv", "Validation.csv", "Testing.csv"):
        (folder / name).write_text(rows + "\n")

    config = pipelines.load_preset("mnist-logistic")
    config["data"]["options"]["folder"] = str(folder)
    config["train"].update(
        epochs=1, run_dir=str(tmp_path / "run"), save_path="", verbose=False
    )
    result = pipelines.run_pipeline(config)
    assert result.network_path == ""
    assert result.test_total == 10


def test_config_helpers(tmp_path):
    with pytest.raises(KeyError, match="Unknown preset"):
        pipelines.load_preset("missing")
    with pytest.raises(KeyError, match="missing required sections"):
        pipelines.run_pipeline({"data": {}})

    yaml_path = tmp_path / "override.yaml"
    yaml_path.write_text("train:\n  epochs: 7\n")
    override = pipelines.read_config_file(yaml_path)
    merged = pipelines.merge_config(pipelines.load_preset("synthetic-blobs"), override)
    assert merged["train"]["epochs"] == 7
    assert merged["train"]["batch_size"] == 10

    with pytest.raises(ValueError):
        pipelines.read_config_file(tmp_path / "override.toml")
    list_path = tmp_path / "list.json"
    list_path.write_text("[1, 2]")
    with pytest.raises(TypeError):
        pipelines.read_config_file(list_path)


def test_verbose_run_reports_each_epoch(tmp_path, capsys):
    pipelines.run_pipeline(_config(tmp_path, epochs=2, verbose=True))
    out = capsys.readouterr().out
    assert "Epoch # 0 of training is complete:" in out
    assert "Epoch # 1 of training is complete:" in out
