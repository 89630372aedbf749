"""
experiments/run_experiments.py

Experiment harness that loads the baseline config, expands one sweep family
into configurations, runs the replications of each and writes
(sweep parameter, mean, low CI, high CI) rows to one CSV per policy. A console
report and an optional mean ± CI plot per CSV are produced along the way.
"""

from __future__ import annotations
import argparse, copy, csv, os, sys, yaml
from collections import OrderedDict
from typing import Dict, List, Optional
try:
    # When executed as a module: python -m experiments.run_experiments
    from .scenarios import SWEEPS, PROMPT_KEYS  # type: ignore
except Exception:  # pragma: no cover
    # When run as a script in VSCode/terminal
    import os, sys
    ROOT = os.path.dirname(os.path.dirname(__file__))
    if ROOT not in sys.path:
        sys.path.insert(0, ROOT)
    from experiments.scenarios import SWEEPS, PROMPT_KEYS  # type: ignore

from sim.simulation import run_config

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
DEFAULT_CONFIG = os.path.join(ROOT, "config", "baseline.yaml")

def load_cfg(path: str = DEFAULT_CONFIG) -> Dict:
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}

def apply_overrides(cfg: Dict, overrides: Dict) -> Dict:
    """Apply scenario overrides (recursive merge) on top of the base config."""
    new = copy.deepcopy(cfg)

    def _merge(dst: Dict, src: Dict):
        for key, val in src.items():
            if isinstance(val, dict) and isinstance(dst.get(key), dict):
                _merge(dst[key], val)
            else:
                dst[key] = copy.deepcopy(val)

    _merge(new, overrides)
    return new

def print_result(run_cfg: Dict, res: Dict):
    """Console report for one configuration."""
    q = run_cfg["queues"]
    sim_cfg = run_cfg.get("sim", {})
    level = float(sim_cfg.get("confidence_level", 0.95)) * 100.0
    reps = len(res.get("replication_means", []))
    print(f"\nResults for Policy = {q['policy']}, p = {q['connection_probabilities']}, "
          f"and lambda = {[round(l, 4) for l in q['arrival_rates']]}")
    print(f"  Average queue length over {reps} reps: {res['mean']:.4f}")
    print(f"  Range = {res['half_width']:.4f}")
    print(f"  {level:.0f}% Confidence interval = ({res['low_ci']:.4f}, {res['high_ci']:.4f})")

def write_rows(path: str, rows: List[List[float]]):
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", newline="") as f:
        writer = csv.writer(f)
        for row in rows:
            writer.writerow(row)

def plot_sweep(rows: List[List[float]], title: str, out_path: str) -> Optional[str]:
    """
    Persist a PNG of mean occupancy against the swept parameter with the
    confidence band shaded.
    """
    if not rows:
        return None
    try:
        import matplotlib
        matplotlib.use("Agg")
        import matplotlib.pyplot as plt  # type: ignore
    except Exception:
        return None
    x = [r[0] for r in rows]
    y = [r[1] for r in rows]
    lo = [r[2] for r in rows]
    hi = [r[3] for r in rows]
    plt.figure(figsize=(8, 5))
    plt.plot(x, y, marker="o", color="#2563eb", label="Mean occupancy")
    plt.fill_between(x, lo, hi, color="#2563eb", alpha=0.2, label="Confidence interval")
    plt.xlabel("Arrival rate (lambda)")
    plt.ylabel("Average queue occupancy (packets)")
    plt.title(title)
    plt.legend()
    plt.grid(True, linestyle="--", alpha=0.4)
    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    plt.tight_layout()
    plt.savefig(out_path, dpi=160)
    plt.close()
    return out_path

def run_sweep(cfg: Dict, sweep: str, results_dir: str, plots: bool = True,
              verbose: bool = True) -> Dict[str, List[List[float]]]:
    """
    Run every configuration of one sweep family and write its CSV files.

    Returns a mapping CSV path -> rows written.
    """
    if sweep not in SWEEPS:
        raise KeyError(f"unknown sweep {sweep!r}; expected one of {sorted(SWEEPS)}")
    exp_cfg = cfg.get("experiments") or {}
    tables: "OrderedDict[str, List[List[float]]]" = OrderedDict()
    for run in SWEEPS[sweep](**exp_cfg):
        run_cfg = apply_overrides(cfg, run["overrides"])
        res = run_config(run_cfg)
        path = os.path.join(results_dir, run["file"])
        tables.setdefault(path, []).append([run["param"], res["mean"], res["low_ci"], res["high_ci"]])
        if verbose:
            print_result(run_cfg, res)
    for path, rows in tables.items():
        write_rows(path, rows)
        if verbose:
            print(f"  rows written to: {path}")
        if plots:
            title = os.path.splitext(os.path.relpath(path, results_dir))[0]
            plot_path = plot_sweep(rows, title, os.path.splitext(path)[0] + ".png")
            if plot_path and verbose:
                print(f"  plot saved to: {plot_path}")
    return dict(tables)

def ask_sweep() -> Optional[str]:
    print("Run which simulation group?")
    print("a = topology 1 symmetric")
    print("b = topology 1 asymmetric")
    print("c = topology 2")
    try:
        choice = input().strip().lower()
    except EOFError:
        return None
    return PROMPT_KEYS.get(choice, choice if choice in SWEEPS else None)

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Slotted multi-queue simulation sweeps")
    parser.add_argument("--sweep", choices=sorted(SWEEPS), help="sweep family to run (prompted when omitted)")
    parser.add_argument("--config", default=DEFAULT_CONFIG, help="baseline YAML config")
    parser.add_argument("--max-time", type=int, help="override sim.max_time")
    parser.add_argument("--max-reps", type=int, help="override sim.max_reps")
    parser.add_argument("--seed", type=int, help="override sim.seed")
    parser.add_argument("--correlated", action="store_true", help="drive arrivals through TES correlators")
    parser.add_argument("--results-dir", help="output directory for CSV files")
    parser.add_argument("--no-plots", action="store_true", help="skip matplotlib plots")
    return parser

def main(argv: Optional[List[str]] = None):
    """Entry point: pick a sweep, run it, and report."""
    args = build_parser().parse_args(argv)
    cfg = load_cfg(args.config)
    sim_over = {k: v for k, v in (("max_time", args.max_time), ("max_reps", args.max_reps),
                                  ("seed", args.seed)) if v is not None}
    overrides: Dict = {"sim": sim_over}
    if args.correlated:
        overrides["correlation"] = {"enabled": True}
    cfg = apply_overrides(cfg, overrides)

    sweep = args.sweep or ask_sweep()
    if sweep is None:
        print("[warn] no valid simulation group selected")
        return 1
    out_cfg = cfg.get("output") or {}
    results_dir = args.results_dir or os.path.join(ROOT, out_cfg.get("results_dir", "results"))
    plots = bool(out_cfg.get("plots", True)) and not args.no_plots
    print("Running your simulation. Please be patient...")
    run_sweep(cfg, sweep, results_dir, plots=plots)
    print("done")
    return 0

if __name__ == "__main__":
    sys.exit(main())
