"""
Follow-up resolution requests.

Turns a milestone check-in into the request the prediction-resolution
service expects. Missing patient figures are filled with neutral values
so the service always receives a complete record.
"""

import logging
from datetime import datetime
from typing import Optional

from src.models.milestone import FollowUpData, FollowUpRequest, MilestoneFeedback
from src.utils.clock import utc_now


logger = logging.getLogger(__name__)


DEFAULT_PAIN_LEVEL = 5.0
DEFAULT_FUNCTIONAL_SCORE = 50.0
DEFAULT_ADHERENCE = 0.8
IMPROVING = "improving"


def build_follow_up_request(
    feedback: MilestoneFeedback,
    timestamp: Optional[datetime] = None,
) -> FollowUpRequest:
    """
    Build the resolution request for one milestone check-in.

    Args:
        feedback: The submitted milestone feedback
        timestamp: Request time (defaults to now, UTC)

    Returns:
        FollowUpRequest
    """
    progress = feedback.progress_data
    outcome = feedback.patient_reported_outcome

    pain_level = DEFAULT_PAIN_LEVEL if progress.pain_level is None else progress.pain_level
    functional = (
        DEFAULT_FUNCTIONAL_SCORE if progress.functional_score is None else progress.functional_score
    )
    adherence = DEFAULT_ADHERENCE if progress.adherence is None else progress.adherence

    moment = timestamp or utc_now()

    request = FollowUpRequest(
        consultation_id=feedback.consultation_id,
        follow_up_data=FollowUpData(
            pain_level=pain_level,
            functional_improvement=functional,
            returned_to_activity=outcome.overall_progress == IMPROVING,
            adherence_rate=adherence * 100,
            days_since_consultation=feedback.milestone_day,
            timestamp=moment.isoformat(),
        ),
    )

    logger.debug(
        f"Follow-up request for {feedback.consultation_id} day {feedback.milestone_day}"
    )
    return request
