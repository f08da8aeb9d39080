"""
Integration test for full CashLedger workflow.

Runs the engines end to end from JSON files: trades through FIFO matching
and valuation to XIRR, and contracts through schedule regeneration.
"""

from dataclasses import replace
from datetime import date

import pytest

from cashledger.cashflows import adjustment_notice
from cashledger.fifo import match_lots
from cashledger.positions import summarize_position
from cashledger.schedule_store import InMemoryScheduleStore, regenerate_all
from cashledger.serialization import (
    fifo_result_to_dict,
    load_contracts,
    load_transactions,
    save_json,
    schedule_to_records,
)
from cashledger.series import EconomicIndicators
from cashledger.xirr import CashflowStream


@pytest.mark.integration
class TestFullWorkflow:
    """Integration tests across loaders, engines and serialization."""

    def test_portfolio_workflow(self, transactions_file, tmp_path):
        # 1. Load and match
        instrument, transactions = load_transactions(transactions_file)
        result = match_lots(transactions)
        assert result.total_realized_gain == pytest.approx(192.0)

        # 2. Value what is still open
        summary = summarize_position(result, 120.0, instrument=instrument)
        assert summary.total_gain == pytest.approx(306.0)

        # 3. Money-weighted return with the holding as terminal inflow
        stream = CashflowStream.from_transactions(
            transactions, market_value=summary.market_value, valuation_date=date(2024, 12, 31)
        )
        rate = stream.xirr()
        assert rate is not None
        assert stream.xnpv(rate) == pytest.approx(0.0, abs=1e-3)

        # 4. Persist
        out = tmp_path / "fifo.json"
        save_json(fifo_result_to_dict(result, instrument=instrument), out)
        assert out.exists()

    def test_rent_workflow(self, contracts_file):
        contracts, indicators = load_contracts(contracts_file)
        store = InMemoryScheduleStore()

        assert regenerate_all(contracts, indicators, store, max_workers=2) == 1
        entries = store.get_schedule("c1")
        assert len(entries) == 12

        notice = adjustment_notice(contracts[0], indicators, date(2024, 10, 1))
        assert notice.new_amount == pytest.approx(entries[9].amount_local)

        records = schedule_to_records(entries)
        assert records[9]["month_index"] == 10

    def test_new_index_month_changes_schedule(self, contracts_file):
        """Appending a rate and regenerating replaces the stored schedule."""
        contracts, indicators = load_contracts(contracts_file)
        store = InMemoryScheduleStore()
        regenerate_all(contracts, indicators, store)
        before = store.get_schedule("c1")

        updated = EconomicIndicators(
            inflation=indicators.inflation.append(date(2025, 1, 1), 0.05),
            fx=indicators.fx,
        )
        longer = [replace(c, duration_months=13) for c in contracts]
        regenerate_all(longer, updated, store)
        after = store.get_schedule("c1")

        assert len(after) == 13
        assert after[:12] == before
        assert after[12].monthly_index_rate == pytest.approx(0.05)
