"""
Agent leaderboard.

Ranks agents by accuracy for display, with token totals, prediction
counts and trend badges. Input records come from the prediction-market
statistics service, whose field names vary between versions, or from
performance views recomputed off the reward ledger.
"""

import logging
from typing import Any, Iterable, Optional, Union

from pydantic import ValidationError

from src.models.enums import AccuracyUnit, SpecialistType, Trend
from src.models.rewards import AgentPerformance, Leaderboard, LeaderboardEntry, TokenShare
from src.rewards.resolver import accuracy_band, classify_trend, normalize_accuracy
from src.taxonomy.taxonomy import DEFAULT_TAXONOMY, Taxonomy, load_taxonomy
from src.utils.numbers import coerce_float, mean, safe_ratio
from src.utils.settings import Settings


logger = logging.getLogger(__name__)


DEFAULT_LEADERBOARD_SIZE = 5

ID_KEYS = ("agentId", "id")
NAME_KEYS = ("agentName", "name")
ACCURACY_KEYS = ("averageAccuracy", "accuracyRate", "accuracy")
TOKEN_KEYS = ("tokensEarned", "tokens", "netTokens")
PREDICTION_KEYS = ("totalPredictions", "predictions")
RECENT_KEYS = ("last7DaysAccuracy", "recentAccuracy")
STAKE_KEYS = ("averageStake", "avgStake")


def _first(record: dict, keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = record.get(key)
        if value is not None and value != "":
            return value
    return None


class AgentLeaderboardAggregator:
    """
    Builds the leaderboard view.

    Usage:
        aggregator = AgentLeaderboardAggregator(size=5)
        board = aggregator.from_market_statistics(stats)
    """

    def __init__(
        self,
        taxonomy: Taxonomy = DEFAULT_TAXONOMY,
        size: int = DEFAULT_LEADERBOARD_SIZE,
        accuracy_unit: Optional[AccuracyUnit] = None,
    ):
        self.taxonomy = taxonomy
        self.size = max(1, size)
        self.accuracy_unit = accuracy_unit

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        taxonomy: Optional[Taxonomy] = None,
        accuracy_unit: Optional[AccuracyUnit] = None,
    ) -> "AgentLeaderboardAggregator":
        """Create an aggregator sized by settings (read from the environment when omitted)."""
        settings = settings or Settings.from_env()
        return cls(
            taxonomy or load_taxonomy(settings.taxonomy_path),
            size=settings.leaderboard_size,
            accuracy_unit=accuracy_unit,
        )

    # =========================================================================
    # PARSING
    # =========================================================================

    def parse_record(self, raw: Any) -> Optional[AgentPerformance]:
        """
        Parse one agent record, accepting the known field aliases.

        Returns None (and logs) for records without an agent id.
        """
        if not isinstance(raw, dict):
            logger.warning("Skipping non-object leaderboard record")
            return None

        agent_id = _first(raw, ID_KEYS)
        if not agent_id:
            logger.warning("Skipping leaderboard record without an agent id")
            return None
        agent_id = str(agent_id)

        accuracy = normalize_accuracy(_first(raw, ACCURACY_KEYS), self.accuracy_unit)
        raw_recent = _first(raw, RECENT_KEYS)
        recent = (
            accuracy if raw_recent is None
            else normalize_accuracy(raw_recent, self.accuracy_unit)
        )

        try:
            return AgentPerformance(
                agent_id=agent_id,
                agent_name=_first(raw, NAME_KEYS) or self.taxonomy.agent_name(agent_id),
                accuracy_rate=accuracy,
                tokens_earned=coerce_float(_first(raw, TOKEN_KEYS), 0.0),
                total_predictions=int(coerce_float(_first(raw, PREDICTION_KEYS), 0.0)),
                last_7_days_accuracy=recent,
                average_stake=max(0.0, coerce_float(_first(raw, STAKE_KEYS), 0.0)),
                participation_rate=max(0.0, coerce_float(raw.get("participationRate"), 0.0)),
                trend=classify_trend(raw_recent, accuracy, self.accuracy_unit),
            )
        except ValidationError as e:
            logger.warning(f"Skipping malformed leaderboard record {agent_id}: {e.error_count()} errors")
            return None

    def parse_records(self, raw_records: Iterable[Any]) -> list[AgentPerformance]:
        parsed = (self.parse_record(raw) for raw in raw_records)
        return [record for record in parsed if record is not None]

    # =========================================================================
    # BUILDING
    # =========================================================================

    def build(
        self,
        records: Iterable[Union[AgentPerformance, dict]],
        total_predictions: Optional[int] = None,
        average_accuracy: Any = None,
        total_tokens_distributed: Optional[float] = None,
    ) -> Leaderboard:
        """
        Rank agents and compute market figures.

        Args:
            records: Agent performance views or raw records
            total_predictions: Market total, if the source reports one
            average_accuracy: Market accuracy (fraction or percentage), if reported
            total_tokens_distributed: Market token total, if reported

        Returns:
            Leaderboard; the fallback roster when there are no records
        """
        performances = [
            record if isinstance(record, AgentPerformance) else self.parse_record(record)
            for record in records
        ]
        performances = [p for p in performances if p is not None]

        if not performances:
            logger.info("No agent performance data; using fallback roster")
            return self.fallback()

        ranked = sorted(
            performances,
            key=lambda p: (-p.accuracy_rate, -p.tokens_earned, p.agent_id),
        )[:self.size]

        entries = [
            LeaderboardEntry(
                rank=index,
                agent_id=p.agent_id,
                agent_name=p.agent_name,
                accuracy_rate=p.accuracy_rate,
                tokens_earned=p.tokens_earned,
                total_predictions=p.total_predictions,
                last_7_days_accuracy=p.last_7_days_accuracy,
                average_stake=p.average_stake,
                participation_rate=p.participation_rate,
                trend=p.trend,
                accuracy_band=accuracy_band(p.accuracy_rate),
            )
            for index, p in enumerate(ranked, start=1)
        ]

        tokens_total = coerce_float(total_tokens_distributed)
        if tokens_total is None:
            tokens_total = sum(p.tokens_earned for p in performances)

        predictions_total = coerce_float(total_predictions)
        if predictions_total is None:
            predictions_total = sum(p.total_predictions for p in performances)

        if coerce_float(average_accuracy) is None:
            market_accuracy = mean([p.accuracy_rate for p in performances])
        else:
            market_accuracy = normalize_accuracy(average_accuracy, self.accuracy_unit)

        board = Leaderboard(
            entries=entries,
            token_distribution=self.token_distribution(entries, tokens_total),
            total_predictions=int(predictions_total),
            average_accuracy=market_accuracy,
            total_tokens_distributed=tokens_total,
            data_available=True,
        )

        logger.debug(
            f"Leaderboard: {len(entries)} of {len(performances)} agents, "
            f"{tokens_total} tokens distributed"
        )
        return board

    def from_market_statistics(self, stats: Optional[dict]) -> Leaderboard:
        """
        Build the leaderboard from a market-statistics payload.

        Accepts the payload directly or nested under ``statistics``, with
        agents under ``topPerformers`` or ``agents``. A missing payload
        gives the fallback roster.
        """
        if not isinstance(stats, dict):
            logger.warning("Market statistics unavailable; using fallback roster")
            return self.fallback()

        stats = stats.get("statistics") or stats
        agents = stats.get("topPerformers") or stats.get("agents") or []
        if not isinstance(agents, list):
            logger.warning("Ignoring non-list agent records in market statistics")
            agents = []

        return self.build(
            agents,
            total_predictions=stats.get("totalPredictions"),
            average_accuracy=_first(stats, ("averageMarketAccuracy", "averageAccuracy")),
            total_tokens_distributed=stats.get("totalTokensDistributed"),
        )

    def fallback(self) -> Leaderboard:
        """The five specialists with zero stats, flagged as having no data."""
        entries = [
            LeaderboardEntry(
                rank=index,
                agent_id=specialist.value,
                agent_name=self.taxonomy.agent_name(specialist.value),
                accuracy_rate=0.0,
                trend=Trend.STABLE,
            )
            for index, specialist in enumerate(SpecialistType, start=1)
        ]
        return Leaderboard(entries=entries, data_available=False)

    @staticmethod
    def token_distribution(
        entries: Iterable[LeaderboardEntry],
        total_tokens: float,
    ) -> list[TokenShare]:
        """Each agent's share of all distributed tokens (0 when nothing was distributed)."""
        return [
            TokenShare(
                agent_id=entry.agent_id,
                agent_name=entry.agent_name,
                tokens=entry.tokens_earned,
                percentage=max(0.0, safe_ratio(entry.tokens_earned, total_tokens) * 100),
            )
            for entry in entries
        ]


def top_earner_share(board: Leaderboard) -> Optional[TokenShare]:
    """The agent holding the largest share of tokens, or None if nobody earned any."""
    earners = [share for share in board.token_distribution if share.tokens > 0]
    if not earners:
        return None
    return max(earners, key=lambda share: share.tokens)
