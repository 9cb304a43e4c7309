"""
Primary prediction extraction.

Specialist output is unstructured model text. The extractor runs an ordered
chain of strategies over the top-staked agent's text; the first strategy
that recognises a prediction wins, and the last one always produces a
bounded, non-empty string.
"""

import logging
import re
from typing import Optional, Protocol, Sequence

from pydantic import BaseModel, ConfigDict

from src.models.card import AgentStake, PrimaryPrediction
from src.models.consultation import BaseSpecialistResponse
from src.taxonomy.taxonomy import DEFAULT_TAXONOMY, Taxonomy
from src.utils.parsing import first_meaningful_sentence, truncate_text


logger = logging.getLogger(__name__)


NEUTRAL_PREDICTION_TEXT = "Consultation analysis complete"
NEUTRAL_PREDICTION_AGENT = "Triage"
GENERIC_SENTENCE_TEXT = "Specialist analysis complete"

PAIN_REDUCTION_PATTERN = re.compile(r"(\d{1,2})-(\d{1,2})%\s*(?:pain\s*)?reduction", re.IGNORECASE)
FUNCTIONAL_RETURN_PATTERN = re.compile(
    r"(?:return to|resume)\s*(?:full\s*)?(?:activity|function|activities)", re.IGNORECASE
)
WEEKS_TIMELINE_PATTERN = re.compile(r"(?:in|within)\s*(\d{1,2})\s*weeks?", re.IGNORECASE)


class ExtractedPrediction(BaseModel):
    """Prediction text recognised by a strategy, before attribution."""

    model_config = ConfigDict(frozen=True)

    text: str
    timeline: Optional[str] = None


class PredictionStrategy(Protocol):
    """One link in the extraction chain."""

    name: str

    def extract(self, text: str) -> Optional[ExtractedPrediction]:
        """Return a prediction, or None to pass to the next strategy."""
        ...


def _weeks_timeline(text: str) -> Optional[str]:
    match = WEEKS_TIMELINE_PATTERN.search(text)
    return f"{match.group(1)} weeks" if match else None


class PainReductionStrategy:
    """Matches "30-50% pain reduction", with an optional "within 6 weeks"."""

    name = "pain_reduction"

    def extract(self, text: str) -> Optional[ExtractedPrediction]:
        match = PAIN_REDUCTION_PATTERN.search(text)
        if not match:
            return None

        timeline = _weeks_timeline(text)
        prediction = f"{match.group(1)}-{match.group(2)}% pain reduction"
        if timeline:
            prediction += f" in {timeline}"
        return ExtractedPrediction(text=prediction, timeline=timeline)


class FunctionalReturnStrategy:
    """Matches a return-to-activity phrase that comes with a weeks timeline."""

    name = "functional_return"

    def extract(self, text: str) -> Optional[ExtractedPrediction]:
        if not FUNCTIONAL_RETURN_PATTERN.search(text):
            return None

        match = WEEKS_TIMELINE_PATTERN.search(text)
        if not match:
            return None

        weeks = match.group(1)
        return ExtractedPrediction(
            text=f"Full return to activity in {weeks} weeks",
            timeline=f"{weeks} weeks",
        )


class LeadingSentenceStrategy:
    """Terminal strategy: the first meaningful sentence, truncated for display."""

    name = "leading_sentence"

    def __init__(self, min_length: int = 20, max_length: int = 80):
        self.min_length = min_length
        self.max_length = max_length

    def extract(self, text: str) -> Optional[ExtractedPrediction]:
        sentence = first_meaningful_sentence(text, self.min_length) or GENERIC_SENTENCE_TEXT
        return ExtractedPrediction(
            text=truncate_text(sentence, self.max_length, self.max_length - 3)
        )


DEFAULT_STRATEGIES: tuple[PredictionStrategy, ...] = (
    PainReductionStrategy(),
    FunctionalReturnStrategy(),
    LeadingSentenceStrategy(),
)


def neutral_prediction() -> PrimaryPrediction:
    """Prediction used when there is nothing to extract from."""
    return PrimaryPrediction(
        text=NEUTRAL_PREDICTION_TEXT,
        agent=NEUTRAL_PREDICTION_AGENT,
        stake=0.0,
    )


class PredictionExtractor:
    """
    Extracts the card's primary prediction from specialist responses.

    The text mined is the response of the highest-stake agent; the result
    is attributed to that agent's full name and stake.
    """

    def __init__(
        self,
        taxonomy: Taxonomy = DEFAULT_TAXONOMY,
        strategies: Sequence[PredictionStrategy] = DEFAULT_STRATEGIES,
    ):
        """
        Initialize the extractor.

        Args:
            taxonomy: Source of agent full names
            strategies: Ordered strategy chain; the last should always match
        """
        self.taxonomy = taxonomy
        self.strategies = tuple(strategies)

    def extract(
        self,
        responses: Sequence[BaseSpecialistResponse],
        highest_stake: Optional[AgentStake],
    ) -> PrimaryPrediction:
        """
        Extract the primary prediction.

        Args:
            responses: All specialist responses of the consultation
            highest_stake: The top entry of the sorted stake list

        Returns:
            PrimaryPrediction (never empty)
        """
        if not responses or highest_stake is None:
            return neutral_prediction()

        text = self._response_text(responses, highest_stake)
        agent = self.taxonomy.full_name(highest_stake.specialist)

        for strategy in self.strategies:
            extracted = strategy.extract(text)
            if extracted is not None:
                logger.debug(f"Prediction for {agent} extracted by {strategy.name}")
                return PrimaryPrediction(
                    text=extracted.text,
                    agent=agent,
                    stake=highest_stake.token_stake,
                    timeline=extracted.timeline,
                )

        # Only reachable with a custom chain lacking a terminal strategy
        logger.warning("No prediction strategy matched; using generic text")
        return PrimaryPrediction(
            text=GENERIC_SENTENCE_TEXT,
            agent=agent,
            stake=highest_stake.token_stake,
        )

    @staticmethod
    def _response_text(
        responses: Sequence[BaseSpecialistResponse],
        highest_stake: AgentStake,
    ) -> str:
        for response in responses:
            if response.specialist == highest_stake.specialist:
                return response.text
        return ""
