#!/usr/bin/env python3
"""
Implied Expectations Demo.

Reverse the DCF: instead of valuing the share, ask what the market price
already assumes about cash flow and growth.

    EV = price x shares + net debt
    implied FCF    = EV (r - g)
    implied growth = r - FCF_0 / EV

Key Concepts:
- The market enterprise value must be positive
- No trial is discarded: a negative implied FCF is a valid reading
- The joint density shows which (FCF, growth) pairs the price supports

Usage:
    python examples/02_implied_expectations.py          # 200k trials
    python examples/02_implied_expectations.py --ci     # CI mode (10k trials)
"""

import argparse
import logging
import sys

# Add src to path if running as script
sys.path.insert(0, "src")

from dcf_montecarlo import (
    FixedRate,
    ImpliedResult,
    TriangularParams,
    ValuationInputs,
    ValuationMode,
    run_implied_simulation,
)

DENSITY_SHADES = " .:-=+*#%@"


def build_demo_inputs(price: float, trials: int, fixed_rate: float | None) -> ValuationInputs:
    """Forecast-mode inputs with an optional fixed discount rate."""
    discount = (
        FixedRate(fixed_rate) if fixed_rate is not None
        else TriangularParams(minimum=0.07, mode=0.085, maximum=0.11)
    )
    return ValuationInputs(
        mode=ValuationMode.FORECAST,
        growth=TriangularParams(minimum=0.0, mode=0.02, maximum=0.04),
        discount=discount,
        shares_outstanding=800.0,
        current_price=price,
        trial_count=trials,
        debt=4_000.0,
        cash=1_000.0,
        seed="IMPLIED-DEMO",
        forecast_cash_flows=(2_100.0, 2_250.0, 2_400.0, 2_500.0, 2_600.0),
    )


def print_stats(result: ImpliedResult) -> None:
    """Print implied FCF and growth statistics."""
    print("\n" + "=" * 60)
    print("IMPLIED EXPECTATIONS")
    print("=" * 60)
    print(f"\nMarket EV:        {result.market_enterprise_value:,.0f}")
    print(f"Base FCF:         {result.base_fcf:,.0f}")
    print(f"Trials:           {result.trial_count:,}  ({result.elapsed_seconds:.3f}s)")

    f, g = result.fcf_stats, result.growth_stats
    print("\n                  Implied FCF   Implied growth")
    print(f"  Mean            {f.mean:11,.0f}   {g.mean:13.2%}")
    print(f"  Median          {f.median:11,.0f}   {g.median:13.2%}")
    print(f"  5th pct         {f.p05:11,.0f}   {g.p05:13.2%}")
    print(f"  95th pct        {f.p95:11,.0f}   {g.p95:13.2%}")

    print(f"\nThe price supports a year-one FCF near {f.median:,.0f} "
          f"vs. a base of {result.base_fcf:,.0f}.")
    for warning in result.warnings:
        print(f"\nWARNING: {warning}")


def print_density(result: ImpliedResult, bins: int = 16) -> None:
    """Text heat map, implied growth up, implied FCF across."""
    density = result.density(bins)
    shades = density.intensity()
    print("\n" + "=" * 60)
    print("IMPLIED GROWTH vs IMPLIED FCF")
    print("=" * 60)
    for row in range(bins - 1, -1, -1):
        cells = "".join(
            DENSITY_SHADES[round(v * (len(DENSITY_SHADES) - 1))] for v in shades[row]
        )
        print(f"  {density.y_edges[row]:7.2%} |{cells}|")
    print(f"           {density.x_edges[0]:,.0f} .. {density.x_edges[-1]:,.0f}")


def main() -> None:
    """Run implied expectations demo."""
    parser = argparse.ArgumentParser(description="Implied Expectations Demo")
    parser.add_argument("--ci", action="store_true", help="CI mode (small trial count)")
    parser.add_argument("--price", type=float, default=48.0, help="Market price (default: 48)")
    parser.add_argument("--rate", type=float, default=None, help="Fixed discount rate")
    parser.add_argument("--trials", type=int, default=200_000, help="Trial count")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(name)s %(levelname)s: %(message)s")

    trials = 10_000 if args.ci else args.trials
    inputs = build_demo_inputs(args.price, trials, args.rate)

    print("\n" + "=" * 60)
    print("IMPLIED EXPECTATIONS DEMO")
    print("=" * 60)
    result = run_implied_simulation(inputs)

    print_stats(result)
    print_density(result)

    print("\n" + "=" * 60)
    print("DEMO COMPLETE")
    print("=" * 60)


if __name__ == "__main__":
    main()
