"""Accuracy metrics for estimated heart rates against a reference.

Usage:
    rppg-eval --pred predictions.json --gt ground_truth.json

Each JSON file holds an array of numbers or an object {"values": [...]}.
Metrics use the common prefix of both series.
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Dict, Optional, Sequence, Tuple

import numpy as np


def _pair(y: Sequence[float], yhat: Sequence[float]) -> Tuple[np.ndarray, np.ndarray]:
    n = min(len(y), len(yhat))
    return np.asarray(y[:n], dtype=np.float64), np.asarray(yhat[:n], dtype=np.float64)


def mae(y: Sequence[float], yhat: Sequence[float]) -> float:
    a, b = _pair(y, yhat)
    return float(np.mean(np.abs(b - a))) if a.size else 0.0


def rmse(y: Sequence[float], yhat: Sequence[float]) -> float:
    a, b = _pair(y, yhat)
    return float(np.sqrt(np.mean((b - a) ** 2))) if a.size else 0.0


def pearson(y: Sequence[float], yhat: Sequence[float]) -> float:
    a, b = _pair(y, yhat)
    if a.size == 0:
        return 0.0
    da = a - a.mean()
    db = b - b.mean()
    den = float(np.sqrt(np.sum(da**2)) * np.sqrt(np.sum(db**2)))
    return float(np.sum(da * db)) / (den or 1.0)


def bland_altman(y: Sequence[float], yhat: Sequence[float]) -> Dict[str, float]:
    """Mean difference (bias), its sample SD and 95 % limits of agreement."""
    a, b = _pair(y, yhat)
    if a.size == 0:
        return {"mean_diff": 0.0, "sd_diff": 0.0, "loa_lower": 0.0, "loa_upper": 0.0}
    d = b - a
    mean_diff = float(np.mean(d))
    sd_diff = float(np.std(d, ddof=1)) if d.size > 1 else 0.0
    return {
        "mean_diff": mean_diff,
        "sd_diff": sd_diff,
        "loa_lower": mean_diff - 1.96 * sd_diff,
        "loa_upper": mean_diff + 1.96 * sd_diff,
    }


def evaluate(y: Sequence[float], yhat: Sequence[float]) -> Dict[str, object]:
    return {
        "n": min(len(y), len(yhat)),
        "mae": mae(y, yhat),
        "rmse": rmse(y, yhat),
        "pearson": pearson(y, yhat),
        "bland_altman": bland_altman(y, yhat),
    }


def read_values(path: Path) -> list:
    raw = json.loads(Path(path).read_text())
    if isinstance(raw, list):
        return raw
    if isinstance(raw, dict) and isinstance(raw.get("values"), list):
        return raw["values"]
    return []


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Compare HR predictions with ground truth")
    parser.add_argument("--pred", required=True, type=Path)
    parser.add_argument("--gt", required=True, type=Path)
    args = parser.parse_args(argv)
    report = evaluate(read_values(args.gt), read_values(args.pred))
    print(json.dumps(report, indent=2))


if __name__ == "__main__":  # pragma: no cover
    main()
