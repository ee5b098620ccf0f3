from __future__ import annotations

import json

import numpy as np

from rppg_stream.evaluation import bland_altman, evaluate, mae, main, pearson, read_values, rmse


def test_error_metrics() -> None:
    gt = [70.0, 72.0, 74.0, 76.0]
    pred = [71.0, 71.0, 75.0, 77.0]
    assert np.isclose(mae(gt, pred), 1.0)
    assert np.isclose(rmse(gt, pred), 1.0)
    assert np.isclose(pearson(gt, [2 * v for v in gt]), 1.0)
    assert np.isclose(pearson(gt, gt[::-1]), -1.0)


def test_bland_altman_limits() -> None:
    ba = bland_altman([70.0, 70.0, 70.0], [71.0, 73.0, 72.0])
    assert np.isclose(ba["mean_diff"], 2.0)
    assert np.isclose(ba["sd_diff"], 1.0)
    assert np.isclose(ba["loa_lower"], 2.0 - 1.96)
    assert np.isclose(ba["loa_upper"], 2.0 + 1.96)


def test_common_prefix_and_empty_input() -> None:
    report = evaluate([60.0, 61.0, 62.0], [60.0, 61.0])
    assert report["n"] == 2 and report["mae"] == 0.0
    empty = evaluate([], [1.0])
    assert empty["n"] == 0 and empty["rmse"] == 0.0
    assert empty["bland_altman"]["sd_diff"] == 0.0


def test_cli_reads_arrays_and_value_objects(tmp_path, capsys) -> None:
    gt = tmp_path / "gt.json"
    pred = tmp_path / "pred.json"
    gt.write_text(json.dumps([70, 72, 74]))
    pred.write_text(json.dumps({"values": [71, 73, 75]}))
    assert read_values(pred) == [71, 73, 75]

    main(["--pred", str(pred), "--gt", str(gt)])
    report = json.loads(capsys.readouterr().out)
    assert report["n"] == 3
    assert np.isclose(report["mae"], 1.0)
    assert np.isclose(report["bland_altman"]["mean_diff"], 1.0)
