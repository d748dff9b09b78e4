"""Command-line entry point for path-coefficient analysis.

Usage::

    pathcoef --data trial.csv --response yield --select --max-vif 10
    pathcoef --data trial.csv --response yield --predictors "ph,ed,tkw" --correction 0.05
    pathcoef --data trial.csv --response yield --group env --jobs 4 --verbose

Reads a CSV table, runs the analysis, and prints each result's summary.
"""

import argparse
import sys
from typing import List, Optional

import pandas as pd

from pathcoef.analysis import analyze
from pathcoef.config import DEFAULT_K_GRID_SIZE, DEFAULT_MAX_VIF, PathConfig
from pathcoef.errors import InvalidConfigurationError, PathAnalysisError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Path-coefficient analysis with multicollinearity diagnostics."
    )
    parser.add_argument("--data", required=True, help="Path to a CSV file")
    parser.add_argument("--response", required=True, help="Dependent variable column")
    parser.add_argument(
        "--predictors", default=None,
        help='Comma-separated predictor columns (default: all numeric except the response)',
    )
    parser.add_argument(
        "--exclude", action="store_true",
        help="Treat --predictors as columns to remove from the default set",
    )
    parser.add_argument("--group", default=None, help="Column defining independent groups")
    parser.add_argument(
        "--correction", type=float, default=None,
        help="Fixed diagonal correction k in [0, 1) (default: sweep k)",
    )
    parser.add_argument(
        "--k-grid-size", type=int, default=DEFAULT_K_GRID_SIZE,
        help=f"Number of k values swept without --correction (default: {DEFAULT_K_GRID_SIZE})",
    )
    parser.add_argument("--select", action="store_true", help="Run VIF pruning and the stepwise ladder")
    parser.add_argument(
        "--max-vif", type=float, default=DEFAULT_MAX_VIF,
        help=f"VIF pruning threshold (default: {DEFAULT_MAX_VIF:g})",
    )
    parser.add_argument(
        "--missing", default="pairwise", help="Missing-data policy: pairwise or listwise",
    )
    parser.add_argument("--jobs", type=int, default=1, help="Worker threads for grouped analysis")
    parser.add_argument("--verbose", action="store_true", help="Print progress lines")
    return parser


def _parse_names(text: Optional[str]) -> Optional[List[str]]:
    if text is None:
        return None
    names = [tok.strip() for tok in text.split(",") if tok.strip()]
    return names or None


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = PathConfig(
            response=args.response,
            predictors=_parse_names(args.predictors),
            grouping=args.group,
            exclude=args.exclude,
            correction=args.correction,
            k_grid_size=args.k_grid_size,
            run_selection=args.select,
            max_vif=args.max_vif,
            missing_data_policy=args.missing,
        )
        data = pd.read_csv(args.data)
        result = analyze(data, config, n_jobs=args.jobs, progress=print if args.verbose else None)
    except InvalidConfigurationError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 1
    except PathAnalysisError as exc:
        print(f"{type(exc).__name__}: {exc}", file=sys.stderr)
        return 1

    if isinstance(result, dict):
        n_failed = 0
        for key, outcome in result.items():
            print(f"\n=== {config.grouping} = {key} ===")
            if outcome.ok:
                print(outcome.result.summary())
            else:
                n_failed += 1
                print(f"{type(outcome.error).__name__}: {outcome.error}")
        return 0 if n_failed < len(result) else 1

    print(result.summary())
    return 0


if __name__ == "__main__":
    sys.exit(main())
