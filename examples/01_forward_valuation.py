#!/usr/bin/env python3
"""
Forward Monte Carlo DCF Valuation Demo.

This example prices a share under uncertain growth and discount rates and
answers the question:

    "Given my ranges for g and r, how likely is the stock to be worth more
    than the market price?"

Key Concepts:
- Triangular inputs: (min, most likely, max) for growth and discount rate
- Discard rule: trials with r - g <= 1 bp carry no Gordon value and are dropped
- Mode scenario: the single price at the most likely (g, r)
- Sensitivity matrix: prices at every combination of min / mode / max

Usage:
    python examples/01_forward_valuation.py            # 200k trials
    python examples/01_forward_valuation.py --ci       # CI mode (10k trials)
    python examples/01_forward_valuation.py --price 42 --seed MSFT
"""

import argparse
import logging
import sys

# Add src to path if running as script
sys.path.insert(0, "src")

from dcf_montecarlo import (
    FcfMethod,
    ForwardResult,
    HistoricalCashFlow,
    TriangularParams,
    ValuationInputs,
    ValuationMode,
    run_forward_simulation,
)
from dcf_montecarlo.simulation.base import ProgressUpdate

# Five years of (CFO, CapEx), oldest first
DEMO_HISTORY = (
    HistoricalCashFlow(operating_cash_flow=5_200.0, capital_expenditure=1_900.0),
    HistoricalCashFlow(operating_cash_flow=5_650.0, capital_expenditure=2_050.0),
    HistoricalCashFlow(operating_cash_flow=6_100.0, capital_expenditure=2_150.0),
    HistoricalCashFlow(operating_cash_flow=6_400.0, capital_expenditure=2_300.0),
    HistoricalCashFlow(operating_cash_flow=7_000.0, capital_expenditure=2_450.0),
)


def build_demo_inputs(price: float, trials: int, seed: str) -> ValuationInputs:
    """
    Inputs for a mid-cap with a five-year cash-flow history.

    Parameters
    ----------
    price : float
        Market price per share
    trials : int
        Monte Carlo trial count
    seed : str
        Seed text (empty for a non-reproducible run)

    Returns
    -------
    ValuationInputs
        Validated inputs
    """
    return ValuationInputs(
        mode=ValuationMode.HISTORICAL,
        growth=TriangularParams(minimum=0.01, mode=0.025, maximum=0.045),
        discount=TriangularParams(minimum=0.075, mode=0.09, maximum=0.12),
        shares_outstanding=1_200.0,
        current_price=price,
        trial_count=trials,
        debt=9_000.0,
        cash=2_500.0,
        seed=seed,
        historical_cash_flows=DEMO_HISTORY,
        fcf_method=FcfMethod.WEIGHTED_AVERAGE,
    )


def print_progress(update: ProgressUpdate) -> None:
    """Progress line per chunk."""
    print(f"  ... {update.processed:>9,} / {update.total:,} trials ({update.percent}%)")


def print_summary(result: ForwardResult) -> None:
    """Print the forward-run summary."""
    s = result.summary
    print("\n" + "=" * 60)
    print("FORWARD VALUATION RESULTS")
    print("=" * 60)
    print(f"\nBase FCF:            {result.base_fcf:,.2f}")
    print(f"Valid trials:        {s.valid_count:,} of {s.trial_count:,}")
    print(f"Elapsed:             {result.elapsed_seconds:.3f}s")
    print("\nPrice per share:")
    print(f"  Mean:              {s.mean:10.2f}  (±{s.standard_error:.2f} SE)")
    print(f"  Median:            {s.median:10.2f}")
    print(f"  5th percentile:    {s.p05:10.2f}")
    print(f"  95th percentile:   {s.p95:10.2f}")
    print(f"\nMarket price {result.inputs.current_price:.2f}:")
    print(f"  P(value > price):  {s.prob_above_current_price:6.1f}%")
    print(f"  Percentile:        {s.current_price_percentile:6.1f}")
    if s.mode_scenario_price is None:
        print("\nMode scenario:       undefined (r - g <= 0)")
    else:
        print(f"\nMode scenario:       {s.mode_scenario_price:.2f} "
              f"(percentile {s.mode_scenario_percentile:.1f})")
    for warning in result.warnings:
        print(f"\nWARNING: {warning}")


def print_histogram(result: ForwardResult, bins: int = 20, width: int = 40) -> None:
    """Text histogram with the market price bin marked."""
    hist = result.histogram(bins)
    marker = result.current_price_bin(bins)
    peak = int(hist.counts.max())
    print("\n" + "=" * 60)
    print("PRICE DISTRIBUTION")
    print("=" * 60)
    for i, count in enumerate(hist.counts):
        bar = "#" * round(width * count / peak) if peak else ""
        flag = " <- market" if i == marker else ""
        print(f"  {hist.edges[i]:9.2f} | {bar}{flag}")


def print_sensitivity(result: ForwardResult) -> None:
    """Scenario matrix as a pandas table."""
    analysis = result.sensitivity()
    frame = analysis.matrix.to_frame()
    print("\n" + "=" * 60)
    print("SCENARIO MATRIX (rows: g, columns: r)")
    print("=" * 60)
    print(frame.round(2).to_string())
    print(f"\nLattice: {analysis.lattice.steps}x{analysis.lattice.steps}, "
          f"{analysis.lattice.defined_fraction:.0%} of cells defined")


def main() -> None:
    """Run forward valuation demo."""
    parser = argparse.ArgumentParser(description="Forward Monte Carlo DCF Demo")
    parser.add_argument("--ci", action="store_true", help="CI mode (small trial count)")
    parser.add_argument("--price", type=float, default=35.0, help="Market price (default: 35)")
    parser.add_argument("--seed", type=str, default="DEMO", help="Seed text (default: DEMO)")
    parser.add_argument("--trials", type=int, default=200_000, help="Trial count")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log at DEBUG level")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    trials = 10_000 if args.ci else args.trials
    inputs = build_demo_inputs(args.price, trials, args.seed)

    print("\n" + "=" * 60)
    print("FORWARD MONTE CARLO DCF DEMO")
    print("=" * 60)
    result = run_forward_simulation(inputs, progress_callback=print_progress)

    print_summary(result)
    print_histogram(result)
    print_sensitivity(result)

    print("\n" + "=" * 60)
    print("DEMO COMPLETE")
    print("=" * 60)


if __name__ == "__main__":
    main()
