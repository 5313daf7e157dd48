"""Batch analysis of many option chains on a thread pool.

One calculator per (symbol, expiry) job, each on its own worker with its
own result list. Lists are merged in submission order once every job has
finished, so results of a job stay together and keep their strike order.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field

from config.settings import Settings, get_settings
from data.chain import OptionChain
from data.market_data import MarketContext
from engine.profit_calculator import CancellationToken, create_calculator
from engine.profit_filter import OptionProfitFilter
from engine.results import Strategy, StrategyResult

logger = logging.getLogger(__name__)

DEFAULT_STRATEGIES = (
    Strategy.SINGLE,
    Strategy.VERTICAL_BULL_PUT,
    Strategy.VERTICAL_BEAR_CALL,
)


@dataclass(frozen=True)
class AnalysisJob:
    """One chain to analyze."""

    chain: OptionChain
    underlying: float
    market: MarketContext = field(default_factory=MarketContext)

    @property
    def name(self) -> str:
        return f"{self.chain.symbol} {self.chain.expiry_date}"


class BatchAnalyzer:
    """Run profit calculators for many chains concurrently.

    Example:
        >>> analyzer = BatchAnalyzer(max_workers=4)
        >>> results = analyzer.run([AnalysisJob(chain, 101.0, market)])
    """

    def __init__(
        self,
        max_workers: int | None = None,
        method_name: str | None = None,
        filter: OptionProfitFilter | None = None,
        settings: Settings | None = None,
        cancel_token: CancellationToken | None = None,
    ):
        self.settings = settings or get_settings()
        self.max_workers = max_workers or self.settings.batch_max_workers
        self.method_name = method_name
        self.filter = filter
        self.cancel_token = cancel_token or CancellationToken()

    def cancel(self) -> None:
        """Stop every running and pending job."""
        self.cancel_token.cancel()

    def _run_job(self, job: AnalysisJob, strategies: tuple[Strategy, ...]) -> list[StrategyResult]:
        calc = create_calculator(
            job.underlying,
            job.chain,
            method_name=self.method_name,
            market=job.market,
            filter=self.filter,
            settings=self.settings,
            cancel_token=self.cancel_token,
        )
        if calc is None or not calc.is_valid:
            return []

        results: list[StrategyResult] = []
        for strategy in strategies:
            if self.cancel_token.is_cancelled:
                break
            calc.analyze(strategy, results)
        return results

    def run(
        self,
        jobs: list[AnalysisJob],
        strategies: tuple[Strategy, ...] = DEFAULT_STRATEGIES,
    ) -> list[StrategyResult]:
        """Analyze every job and merge the results.

        Args:
            jobs: Chains to analyze
            strategies: Strategies evaluated for each chain

        Returns:
            Results of all jobs, in job submission order
        """
        per_job: list[list[StrategyResult]] = [[] for _ in jobs]

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {
                executor.submit(self._run_job, job, tuple(strategies)): index
                for index, job in enumerate(jobs)
            }

            for future in as_completed(futures):
                index = futures[future]
                try:
                    per_job[index] = future.result()
                except Exception as e:
                    logger.exception(f"Analysis of {jobs[index].name} failed: {e}")

        merged = [result for results in per_job for result in results]
        logger.info(f"Analyzed {len(jobs)} chains: {len(merged)} results")
        return merged
