"""Tests for batch analysis over many chains."""

from datetime import date

import pytest

from config.settings import Settings
from data.chain import ChainRow, OptionChain, OptionQuote
from data.market_data import MarketContext, RiskFreeRateCurve
from engine.batch import AnalysisJob, BatchAnalyzer
from engine.results import Strategy

QUOTE_DATE = date(2026, 11, 18)


def put_spread_chain(symbol: str, expiry: date) -> OptionChain:
    def put(strike, bid, ask):
        return OptionQuote(
            symbol=f"{symbol}_P{strike:g}", bid=bid, ask=ask, bid_size=5, ask_size=5
        )

    return OptionChain(
        symbol=symbol,
        expiry_date=expiry,
        quote_date=QUOTE_DATE,
        rows=(
            ChainRow(strike=95.0, put=put(95.0, 0.50, 0.60)),
            ChainRow(strike=100.0, put=put(100.0, 2.00, 2.10)),
        ),
    )


@pytest.fixture
def market():
    return MarketContext(rate_curve=RiskFreeRateCurve.flat(0.05), as_of=QUOTE_DATE)


@pytest.fixture
def jobs(market):
    return [
        AnalysisJob(put_spread_chain(symbol, date(2026, 12, 18)), 103.0, market)
        for symbol in ["AAA", "BBB", "CCC", "DDD"]
    ]


@pytest.fixture
def analyzer():
    return BatchAnalyzer(max_workers=3, settings=Settings(option_trade_cost=0.0))


class TestBatchAnalyzer:
    """Tests for the thread pool analyzer."""

    def test_merge_in_submission_order(self, analyzer, jobs):
        """Results of each job stay together, in job order."""
        results = analyzer.run(jobs, strategies=(Strategy.VERTICAL_BULL_PUT,))

        assert [r.underlying for r in results] == ["AAA", "BBB", "CCC", "DDD"]

    def test_strategies_in_order_within_job(self, analyzer, jobs):
        results = analyzer.run(jobs[:1])

        assert [r.strategy for r in results] == [
            Strategy.SINGLE,
            Strategy.SINGLE,
            Strategy.VERTICAL_BULL_PUT,
        ]

    def test_failing_job_is_isolated(self, analyzer, jobs, monkeypatch):
        """One failing chain does not lose the others."""
        run_job = analyzer._run_job

        def flaky(job, strategies):
            if job.chain.symbol == "BBB":
                raise RuntimeError("feed error")
            return run_job(job, strategies)

        monkeypatch.setattr(analyzer, "_run_job", flaky)
        results = analyzer.run(jobs, strategies=(Strategy.VERTICAL_BULL_PUT,))

        assert [r.underlying for r in results] == ["AAA", "CCC", "DDD"]

    def test_invalid_job_yields_nothing(self, analyzer, jobs, market):
        expired = AnalysisJob(put_spread_chain("OLD", date(2026, 1, 16)), 103.0, market)
        results = analyzer.run([expired] + jobs[:1], strategies=(Strategy.VERTICAL_BULL_PUT,))

        assert [r.underlying for r in results] == ["AAA"]

    def test_cancel(self, analyzer, jobs):
        """A cancelled analyzer produces no results."""
        analyzer.cancel()

        assert analyzer.cancel_token.is_cancelled
        assert analyzer.run(jobs) == []

    def test_unsupported_method(self, jobs):
        analyzer = BatchAnalyzer(max_workers=2, method_name="TRINOM")
        assert analyzer.run(jobs) == []

    def test_job_name(self, jobs):
        assert jobs[0].name == "AAA 2026-12-18"

    def test_default_workers_from_settings(self):
        analyzer = BatchAnalyzer(settings=Settings(batch_max_workers=7))
        assert analyzer.max_workers == 7


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
