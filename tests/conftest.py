"""
Centralized pytest fixtures for the dcf-montecarlo test suite.

This module provides shared fixtures used across all test categories:
- anti_patterns/
- unit/
- properties/
- validation/
- integration/

Fixture Categories:
1. Tolerance Tiers - Precision expected per test type
2. Distribution Parameters - Typical growth / discount triangles
3. Valuation Inputs - Ready-to-run inputs for each mode
4. Input Factory - Build variations without repeating every field
"""

from dataclasses import dataclass

import pytest

from dcf_montecarlo.data.schemas import (
    FcfMethod,
    FixedRate,
    HistoricalCashFlow,
    TriangularParams,
    ValuationInputs,
    ValuationMode,
)

# =============================================================================
# TOLERANCE TIERS
# =============================================================================

@dataclass(frozen=True)
class ToleranceTiers:
    """
    Tiered tolerance framework for different test types.

    Derived from precision requirements, not ad hoc.
    """

    # Anti-pattern tests: Very tight (fundamental violations)
    anti_pattern: float = 1e-10

    # Closed-form DCF evaluations
    analytical: float = 1e-9

    # Integration tests: Workflow correctness
    integration: float = 1e-4

    # Sampled statistics vs. closed form
    mc_100k_samples: float = 0.01  # 1%


TOLERANCES = ToleranceTiers()


@pytest.fixture(scope="session")
def tolerances() -> ToleranceTiers:
    """Provide tiered tolerance settings for all tests."""
    return TOLERANCES


# =============================================================================
# DISTRIBUTION PARAMETERS
# =============================================================================

@pytest.fixture
def growth_params() -> TriangularParams:
    """Perpetual growth: 1% / 2% / 3%."""
    return TriangularParams(minimum=0.01, mode=0.02, maximum=0.03)


@pytest.fixture
def discount_params() -> TriangularParams:
    """Discount rate: 7% / 8% / 10%."""
    return TriangularParams(minimum=0.07, mode=0.08, maximum=0.10)


# =============================================================================
# HISTORICAL CASH FLOWS
# =============================================================================

# Oldest first; FCF = 800, 900, 1000, 1100, 1200
HISTORY_5Y = (
    HistoricalCashFlow(operating_cash_flow=1_300.0, capital_expenditure=500.0),
    HistoricalCashFlow(operating_cash_flow=1_450.0, capital_expenditure=550.0),
    HistoricalCashFlow(operating_cash_flow=1_600.0, capital_expenditure=600.0),
    HistoricalCashFlow(operating_cash_flow=1_750.0, capital_expenditure=650.0),
    HistoricalCashFlow(operating_cash_flow=1_900.0, capital_expenditure=700.0),
)

FORECAST_5Y = (1_000.0, 1_080.0, 1_160.0, 1_240.0, 1_300.0)


@pytest.fixture
def history_5y() -> tuple[HistoricalCashFlow, ...]:
    """Five years of (CFO, CapEx) with FCF 800..1200."""
    return HISTORY_5Y


# =============================================================================
# VALUATION INPUTS
# =============================================================================

@pytest.fixture
def historical_inputs(growth_params, discount_params) -> ValuationInputs:
    """Historical-mode inputs, seeded, 20k trials."""
    return ValuationInputs(
        mode=ValuationMode.HISTORICAL,
        growth=growth_params,
        discount=discount_params,
        shares_outstanding=1_000.0,
        current_price=15.0,
        trial_count=20_000,
        debt=2_000.0,
        cash=500.0,
        seed="test-seed",
        historical_cash_flows=HISTORY_5Y,
        fcf_method=FcfMethod.SIMPLE_AVERAGE,
    )


@pytest.fixture
def forecast_inputs(growth_params, discount_params) -> ValuationInputs:
    """Forecast-mode inputs with a five-year explicit forecast."""
    return ValuationInputs(
        mode=ValuationMode.FORECAST,
        growth=growth_params,
        discount=discount_params,
        shares_outstanding=1_000.0,
        current_price=15.0,
        trial_count=20_000,
        debt=2_000.0,
        cash=500.0,
        seed="test-seed",
        forecast_cash_flows=FORECAST_5Y,
    )


@pytest.fixture
def fixed_rate_inputs(growth_params) -> ValuationInputs:
    """Historical-mode inputs with the discount rate fixed at 8%."""
    return ValuationInputs(
        mode=ValuationMode.HISTORICAL,
        growth=growth_params,
        discount=FixedRate(0.08),
        shares_outstanding=1_000.0,
        current_price=15.0,
        trial_count=20_000,
        seed="fixed",
        base_fcf=1_000.0,
    )


# =============================================================================
# INPUT FACTORY
# =============================================================================

def build_inputs(**overrides) -> ValuationInputs:
    """
    Historical-mode inputs with base FCF 100 and 100 shares.

    Any field can be overridden by keyword.
    """
    fields = {
        "mode": ValuationMode.HISTORICAL,
        "growth": TriangularParams(0.01, 0.02, 0.03),
        "discount": TriangularParams(0.07, 0.08, 0.10),
        "shares_outstanding": 100.0,
        "current_price": 21.0,
        "trial_count": 5_000,
        "seed": "factory",
        "base_fcf": 100.0,
    }
    fields.update(overrides)
    return ValuationInputs(**fields)


@pytest.fixture
def make_inputs():
    """Factory fixture: ``make_inputs(trial_count=..., seed=...)``."""
    return build_inputs
