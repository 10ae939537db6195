"""
Routing engine: ordering, failover, retry budget, terminal short-circuit,
cascades and the no-retry baseline.
"""
from concurrent.futures import ThreadPoolExecutor

import pytest

from psp_router.catalog import ProviderCatalog
from psp_router.classifier import DeclineCategory, classify
from psp_router.dataset import generate_test_data
from psp_router.exceptions import InvalidStrategy, UnknownCountry
from psp_router.models import Country, DeclineReason, RoutingStrategy
from psp_router.router import MAX_DECLINE_ATTEMPTS, RoutingEngine

from helpers import ScriptedSimulator, approved, declined, make_provider, make_transaction

R = DeclineReason


def engine_with(script, catalog=None, default=None):
    sim = ScriptedSimulator(script, default=default)
    return RoutingEngine(catalog=catalog, simulator=sim), sim


class TestFailover:

    def test_retryable_decline_then_approval(self):
        # Brazil by approval: Cielo (psp_br_2), PagSeguro (psp_br_1), Stone (psp_br_3)
        engine, sim = engine_with({
            "psp_br_2": declined(R.ISSUER_UNAVAILABLE, 180),
            "psp_br_1": approved(250),
        })
        tx = make_transaction(bin_="411111", last4="1234", amount="150.00")

        result = engine.route(tx, RoutingStrategy.APPROVAL_OPTIMIZED)
        data = result.to_dict()

        assert data["approved"] is True
        assert data["total_attempts"] == 2
        assert data["attempts"][0]["decline_reason"] == "issuer_unavailable"
        assert data["attempts"][1]["approved"] is True
        assert data["final_provider"] == "psp_br_1"
        assert data["total_latency_ms"] == 430
        assert sim.calls == ["psp_br_2", "psp_br_1"]

    def test_first_provider_approves(self):
        engine, sim = engine_with({})
        result = engine.route(make_transaction())
        assert result.approved
        assert result.total_attempts == 1
        assert result.final_provider == "psp_br_2"

    def test_strategy_drives_order(self):
        engine, sim = engine_with({}, default=declined(R.DO_NOT_HONOR))
        engine.route(make_transaction(), RoutingStrategy.COST_OPTIMIZED)
        assert sim.calls == ["psp_br_3", "psp_br_1", "psp_br_2"]

    def test_strategy_accepts_string_tags(self):
        engine, sim = engine_with({})
        result = engine.route(make_transaction(), "balanced")
        assert result.strategy is RoutingStrategy.BALANCED
        assert sim.calls == ["psp_br_2"]


class TestStopConditions:

    @pytest.mark.parametrize("reason", [R.INSUFFICIENT_FUNDS, R.CARD_EXPIRED, R.INVALID_CARD, R.STOLEN_CARD])
    def test_terminal_decline_short_circuits(self, reason):
        engine, sim = engine_with({"psp_br_2": declined(reason)})
        result = engine.route(make_transaction())
        assert not result.approved
        assert result.final_provider is None
        assert sim.calls == ["psp_br_2"]

    def test_terminal_after_cascade_still_short_circuits(self):
        engine, sim = engine_with({
            "psp_br_2": declined(R.PROVIDER_UNAVAILABLE),
            "psp_br_1": declined(R.STOLEN_CARD),
        })
        result = engine.route(make_transaction())
        assert not result.approved
        assert sim.calls == ["psp_br_2", "psp_br_1"]
        assert [a.counts_toward_budget for a in result.attempts] == [False, True]

    def test_retry_cap_stops_before_list_is_exhausted(self, four_provider_catalog):
        engine, sim = engine_with({}, catalog=four_provider_catalog, default=declined(R.SUSPECTED_FRAUD))
        result = engine.route(make_transaction())
        assert not result.approved
        assert sim.calls == ["p1", "p2", "p3"]
        assert result.decline_attempts == MAX_DECLINE_ATTEMPTS

    def test_cascades_do_not_consume_retry_budget(self, four_provider_catalog):
        engine, sim = engine_with(
            {"p1": declined(R.PROVIDER_UNAVAILABLE)},
            catalog=four_provider_catalog,
            default=declined(R.DO_NOT_HONOR),
        )
        result = engine.route(make_transaction())
        assert sim.calls == ["p1", "p2", "p3", "p4"]
        assert result.decline_attempts == 3
        assert result.attempts[0].counts_toward_budget is False

    def test_cascade_then_approval(self, four_provider_catalog):
        engine, sim = engine_with(
            {"p1": declined(R.PROVIDER_UNAVAILABLE, 90), "p2": declined(R.PROVIDER_UNAVAILABLE, 110)},
            catalog=four_provider_catalog,
        )
        result = engine.route(make_transaction())
        assert result.approved
        assert result.final_provider == "p3"
        assert result.total_latency_ms == 90 + 110 + 100

    def test_all_providers_unavailable(self):
        engine, sim = engine_with({}, default=declined(R.PROVIDER_UNAVAILABLE, 50))
        result = engine.route(make_transaction())
        assert not result.approved
        assert result.total_attempts == 3
        assert result.decline_attempts == 0
        assert result.total_latency_ms == 150

    def test_loop_is_bounded_by_provider_count(self):
        catalog = ProviderCatalog([make_provider("only")])
        engine, sim = engine_with({}, catalog=catalog, default=declined(R.PROCESSOR_DECLINED))
        result = engine.route(make_transaction())
        assert sim.calls == ["only"]
        assert not result.approved


class TestSingleAttemptBaseline:

    def test_retryable_decline_is_final(self):
        engine, sim = engine_with({
            "psp_br_2": declined(R.ISSUER_UNAVAILABLE),
            "psp_br_1": approved(),
        })
        result = engine.route_single_attempt(make_transaction())
        assert result.approved is False
        assert result.total_attempts == 1
        assert sim.calls == ["psp_br_2"]

    def test_terminal_decline_is_final(self):
        engine, sim = engine_with({"psp_br_2": declined(R.INSUFFICIENT_FUNDS)})
        result = engine.route_single_attempt(make_transaction())
        assert not result.approved
        assert result.total_attempts == 1

    def test_unavailable_providers_are_still_skipped(self):
        engine, sim = engine_with({
            "psp_br_2": declined(R.PROVIDER_UNAVAILABLE),
            "psp_br_1": declined(R.DO_NOT_HONOR),
        })
        result = engine.route_single_attempt(make_transaction())
        assert not result.approved
        assert sim.calls == ["psp_br_2", "psp_br_1"]

    def test_cascade_into_approval(self):
        engine, sim = engine_with({"psp_br_2": declined(R.PROVIDER_UNAVAILABLE)})
        result = engine.route_single_attempt(make_transaction())
        assert result.approved
        assert result.final_provider == "psp_br_1"


class TestErrors:

    def test_unknown_country(self):
        catalog = ProviderCatalog([make_provider("p1", country=Country.BRAZIL)])
        engine = RoutingEngine(catalog=catalog)
        with pytest.raises(UnknownCountry):
            engine.route(make_transaction(country=Country.MEXICO))

    def test_invalid_strategy_rejected_before_routing(self):
        engine, sim = engine_with({})
        with pytest.raises(InvalidStrategy):
            engine.route(make_transaction(), "fastest")
        assert sim.calls == []


class TestWithSimulator:
    """Invariants over the real simulator and the canonical dataset."""

    @pytest.fixture(scope="class")
    def transactions(self):
        return generate_test_data(300)

    @pytest.mark.parametrize("strategy", list(RoutingStrategy))
    def test_trail_invariants(self, transactions, strategy):
        engine = RoutingEngine()
        for tx in transactions:
            result = engine.route(tx, strategy)
            attempts = result.attempts

            assert 1 <= len(attempts) <= 3
            assert [a.attempt_number for a in attempts] == list(range(1, len(attempts) + 1))
            assert result.total_latency_ms == sum(a.latency_ms for a in attempts)
            assert result.decline_attempts <= MAX_DECLINE_ATTEMPTS
            assert len({a.provider_id for a in attempts}) == len(attempts)

            for a in attempts[:-1]:
                assert not a.approved
                assert classify(a.outcome.decline_reason) is not DeclineCategory.TERMINAL
            for a in attempts:
                is_cascade = a.outcome.decline_reason is R.PROVIDER_UNAVAILABLE
                assert a.counts_toward_budget is not is_cascade

            if result.approved:
                assert attempts[-1].approved
                assert result.final_provider == attempts[-1].provider_id
            else:
                assert result.final_provider is None

    def test_replay_is_identical(self, transactions):
        engine = RoutingEngine()
        for tx in transactions[:50]:
            assert engine.route(tx) == RoutingEngine().route(tx)

    def test_smart_retry_never_loses_baseline_approvals(self, transactions):
        engine = RoutingEngine()
        for tx in transactions:
            if engine.route_single_attempt(tx).approved:
                assert engine.route(tx).approved

    def test_concurrent_routing_matches_sequential(self, transactions):
        engine = RoutingEngine()
        sequential = [engine.route(tx) for tx in transactions]
        with ThreadPoolExecutor(max_workers=8) as pool:
            concurrent = list(pool.map(engine.route, transactions))
        assert concurrent == sequential

    def test_route_batch_preserves_order(self, transactions):
        engine = RoutingEngine()
        results = engine.route_batch(transactions[:20], "cost_optimized")
        assert [r.transaction_id for r in results] == [tx.transaction_id for tx in transactions[:20]]
        assert all(r.strategy is RoutingStrategy.COST_OPTIMIZED for r in results)
