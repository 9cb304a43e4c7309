"""
Token reward resolution.

Reward amounts are decided upstream by the accuracy-scoring service;
this module normalizes what it reports (accuracy may arrive as a 0-1
fraction or a 0-100 percentage), records rewards on the append-only
ledger and derives per-agent performance and trend from that ledger.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Iterable, Optional, Union

from src.models.enums import AccuracyBand, AccuracyUnit, Trend
from src.models.rewards import AgentPerformance, ResolutionOutcome, TokenReward
from src.taxonomy.taxonomy import DEFAULT_TAXONOMY, Taxonomy, load_taxonomy
from src.utils.clock import as_utc, utc_now
from src.utils.numbers import clamp, coerce_float, mean
from src.utils.settings import Settings


logger = logging.getLogger(__name__)


TREND_THRESHOLD = 0.02
DEFAULT_TRAILING_WINDOW_DAYS = 7
HIGH_ACCURACY = 0.9
MEDIUM_ACCURACY = 0.7

VALIDATED = "validated"
PENDING_VALIDATION = "pending_validation"


def normalize_accuracy(
    value: Any,
    unit: Union[AccuracyUnit, str, None] = None,
) -> float:
    """
    Normalize an accuracy to a 0-1 fraction.

    Args:
        value: Raw accuracy
        unit: Explicit unit; when omitted, values above 1 are read as percentages

    Returns:
        Accuracy in [0, 1]; 0 when missing or not numeric
    """
    number = coerce_float(value)
    if number is None:
        return 0.0

    if unit is None:
        unit = AccuracyUnit.PERCENT if number > 1 else AccuracyUnit.FRACTION
    else:
        unit = AccuracyUnit(unit)

    if unit == AccuracyUnit.PERCENT:
        number /= 100

    return clamp(number)


def classify_trend(
    recent: Any,
    overall: Any,
    unit: Union[AccuracyUnit, str, None] = None,
) -> Trend:
    """
    Compare trailing-window accuracy with cumulative accuracy.

    Both inputs are normalized first. A missing or zero input gives STABLE.
    """
    recent_rate = normalize_accuracy(recent, unit)
    overall_rate = normalize_accuracy(overall, unit)
    if not recent_rate or not overall_rate:
        return Trend.STABLE

    diff = recent_rate - overall_rate
    if diff > TREND_THRESHOLD:
        return Trend.IMPROVING
    if diff < -TREND_THRESHOLD:
        return Trend.DECLINING
    return Trend.STABLE


def accuracy_band(accuracy: float) -> AccuracyBand:
    """Display band for a normalized accuracy."""
    if accuracy >= HIGH_ACCURACY:
        return AccuracyBand.HIGH
    if accuracy >= MEDIUM_ACCURACY:
        return AccuracyBand.MEDIUM
    return AccuracyBand.LOW


def dedupe_rewards(rewards: Iterable[TokenReward]) -> list[TokenReward]:
    """
    Keep at most one reward per (consultation, milestone day, agent).

    The first resolution wins; later duplicates are dropped. Rewards that
    carry no consultation id cannot be matched and are all kept.
    """
    seen: set[tuple] = set()
    kept = []
    for reward in rewards:
        if reward.consultation_id is None:
            kept.append(reward)
            continue
        if reward.resolution_key in seen:
            logger.debug(f"Dropping duplicate reward {reward.resolution_key}")
            continue
        seen.add(reward.resolution_key)
        kept.append(reward)
    return kept


def _mapping(validation_results: dict, key: str) -> dict:
    value = validation_results.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        logger.warning(f"Ignoring non-object {key} in validation results")
        return {}
    return value


class TokenRewardResolver:
    """
    Turns resolution events into ledger entries and performance views.
    """

    def __init__(
        self,
        taxonomy: Taxonomy = DEFAULT_TAXONOMY,
        trailing_window_days: int = DEFAULT_TRAILING_WINDOW_DAYS,
        accuracy_unit: Optional[AccuracyUnit] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize the resolver.

        Args:
            taxonomy: Source of agent display names
            trailing_window_days: Window for recent accuracy
            accuracy_unit: Unit upstream reports accuracy in (None to infer per value)
            clock: Time source for awards and windows
        """
        self.taxonomy = taxonomy
        self.trailing_window_days = trailing_window_days
        self.accuracy_unit = accuracy_unit
        self.clock = clock

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        taxonomy: Optional[Taxonomy] = None,
        **kwargs,
    ) -> "TokenRewardResolver":
        """
        Create a resolver configured from settings.

        Args:
            settings: Runtime settings (read from the environment when omitted)
            taxonomy: Taxonomy to use instead of the configured file
            **kwargs: Further constructor arguments
        """
        settings = settings or Settings.from_env()
        return cls(
            taxonomy or load_taxonomy(settings.taxonomy_path),
            trailing_window_days=settings.trailing_window_days,
            **kwargs,
        )

    def resolve(
        self,
        validation_results: Optional[dict],
        consultation_id: Optional[str] = None,
        milestone_day: Optional[int] = None,
        progress_status: Optional[str] = None,
    ) -> ResolutionOutcome:
        """
        Record the rewards reported for one follow-up resolution.

        Args:
            validation_results: ``{agentAccuracy, tokenDistribution, predictionsValidated}``
                from the accuracy scorer; None when the scorer was unavailable
            consultation_id: Consultation the follow-up belongs to
            milestone_day: Milestone the follow-up was submitted for
            progress_status: Status reported by the scorer

        Returns:
            ResolutionOutcome with one TokenReward per rewarded agent
        """
        if not validation_results:
            logger.info(f"No validation results for {consultation_id}; resolution pending")
            return ResolutionOutcome(
                consultation_id=consultation_id,
                milestone_day=milestone_day,
                progress_status=PENDING_VALIDATION,
            )

        accuracies = _mapping(validation_results, "agentAccuracy")
        distribution = _mapping(validation_results, "tokenDistribution")
        validated = validation_results.get("predictionsValidated") or []
        if not isinstance(validated, list):
            logger.warning("Ignoring non-list predictionsValidated in validation results")
            validated = []

        awarded_at = self.clock()
        rewards = []
        for agent_id in list(distribution) + [a for a in accuracies if a not in distribution]:
            amount = coerce_float(distribution.get(agent_id), 0.0)
            if amount < 0:
                logger.warning(f"Clamping negative reward {amount} for {agent_id} to 0")
                amount = 0.0
            rewards.append(TokenReward(
                agent_id=agent_id,
                reward=amount,
                accuracy=normalize_accuracy(accuracies.get(agent_id), self.accuracy_unit),
                consultation_id=consultation_id,
                milestone_day=milestone_day,
                awarded_at=awarded_at,
            ))

        outcome = ResolutionOutcome(
            consultation_id=consultation_id,
            milestone_day=milestone_day,
            rewards=rewards,
            total_reward=sum(r.reward for r in rewards),
            milestone_achieved=len(validated) > 0,
            progress_status=progress_status or VALIDATED,
            predictions_validated=[str(p) for p in validated],
        )

        logger.info(
            f"Resolved {consultation_id} day {milestone_day}: {len(rewards)} rewards, "
            f"{outcome.total_reward} tokens"
        )
        return outcome

    def performance(
        self,
        agent_id: str,
        ledger: Iterable[TokenReward],
        as_of: Optional[datetime] = None,
    ) -> AgentPerformance:
        """
        Recompute an agent's performance from the reward ledger.

        Args:
            agent_id: Agent to summarise
            ledger: All recorded rewards (any agent)
            as_of: End of the trailing window (defaults to now)

        Returns:
            AgentPerformance
        """
        entries = [r for r in dedupe_rewards(ledger) if r.agent_id == agent_id]
        end = as_utc(as_of or self.clock())
        start = end - timedelta(days=self.trailing_window_days)

        overall = mean([r.accuracy for r in entries])
        recent = [r.accuracy for r in entries if start <= as_utc(r.awarded_at) <= end]
        recent_rate = mean(recent) if recent else None

        return AgentPerformance(
            agent_id=agent_id,
            agent_name=self.taxonomy.agent_name(agent_id),
            accuracy_rate=overall,
            tokens_earned=sum(r.reward for r in entries),
            total_predictions=len(entries),
            last_7_days_accuracy=overall if recent_rate is None else recent_rate,
            trend=classify_trend(recent_rate, overall, AccuracyUnit.FRACTION),
        )

    def performances(
        self,
        ledger: Iterable[TokenReward],
        as_of: Optional[datetime] = None,
    ) -> list[AgentPerformance]:
        """Performance for every agent on the ledger, in first-seen order."""
        ledger = list(ledger)
        agent_ids = list(dict.fromkeys(r.agent_id for r in ledger))
        return [self.performance(agent_id, ledger, as_of) for agent_id in agent_ids]
