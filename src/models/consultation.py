"""
Data models for consultation input.

A consultation payload arrives as loosely-typed JSON from the consultation
service. ``parse_consultation`` validates it once at the boundary into
typed records; the scoring pipeline only ever sees these records.
"""

import logging
from datetime import datetime
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, TypeAdapter, ValidationError

from src.models.enums import SpecialistType
from src.utils.numbers import clamp, coerce_float
from src.utils.parsing import extract_response_text, match_specialist_keyword


logger = logging.getLogger(__name__)


DEFAULT_RESPONSE_CONFIDENCE = 0.75


def _optional_float(value: Any) -> Optional[float]:
    return coerce_float(value)


OptionalFloat = Annotated[Optional[float], BeforeValidator(_optional_float)]


# =============================================================================
# SPECIALIST RESPONSES (tagged union)
# =============================================================================

class BaseSpecialistResponse(BaseModel):
    """Fields shared by every specialist response variant."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    raw_type: str = Field(
        default="",
        alias="specialistType",
        description="Specialist type string exactly as received"
    )
    confidence: OptionalFloat = Field(
        default=None,
        description="Self-reported confidence; None when absent"
    )
    response: Union[str, dict, None] = Field(
        default=None,
        description="Response text, or a nested response object"
    )
    assessment: Optional[str] = None

    @property
    def specialist(self) -> SpecialistType:
        """Specialist the response is scored as; unrecognised types score as triage."""
        return SpecialistType.TRIAGE

    @property
    def text(self) -> str:
        """Free text of the response (nested object first, then assessment)."""
        return extract_response_text(self.response, self.assessment)

    def stake_confidence(self, default: float = DEFAULT_RESPONSE_CONFIDENCE) -> float:
        """Confidence used for staking: default when absent, clamped to [0, 1]."""
        if self.confidence is None:
            return default
        return clamp(self.confidence)


class TriageResponse(BaseSpecialistResponse):
    kind: Literal["triage"] = "triage"


class PainWhispererResponse(BaseSpecialistResponse):
    kind: Literal["painWhisperer"] = "painWhisperer"

    @property
    def specialist(self) -> SpecialistType:
        return SpecialistType.PAIN_WHISPERER


class MovementDetectiveResponse(BaseSpecialistResponse):
    kind: Literal["movementDetective"] = "movementDetective"

    @property
    def specialist(self) -> SpecialistType:
        return SpecialistType.MOVEMENT_DETECTIVE


class StrengthSageResponse(BaseSpecialistResponse):
    kind: Literal["strengthSage"] = "strengthSage"

    @property
    def specialist(self) -> SpecialistType:
        return SpecialistType.STRENGTH_SAGE


class MindMenderResponse(BaseSpecialistResponse):
    kind: Literal["mindMender"] = "mindMender"

    @property
    def specialist(self) -> SpecialistType:
        return SpecialistType.MIND_MENDER


class UnknownSpecialistResponse(BaseSpecialistResponse):
    """A response whose type could not be recognised. Scored as triage."""

    kind: Literal["unknown"] = "unknown"


SpecialistResponse = Annotated[
    Union[
        TriageResponse,
        PainWhispererResponse,
        MovementDetectiveResponse,
        StrengthSageResponse,
        MindMenderResponse,
        UnknownSpecialistResponse,
    ],
    Field(discriminator="kind"),
]

_response_adapter: TypeAdapter = TypeAdapter(SpecialistResponse)


def normalize_specialist_type(raw_type: Optional[str]) -> SpecialistType:
    """
    Normalize a free-form specialist type string.

    Unrecognised strings fall back to triage.
    """
    identifier = match_specialist_keyword(raw_type)
    return SpecialistType(identifier) if identifier else SpecialistType.TRIAGE


def parse_specialist_response(raw: Any) -> BaseSpecialistResponse:
    """
    Validate one raw response entry into its tagged variant.

    The specialist type and confidence may sit on the entry itself or on a
    nested ``response`` object; nested values win. Anything that cannot be
    recognised becomes an ``UnknownSpecialistResponse``.

    Args:
        raw: One element of the payload's ``responses`` list

    Returns:
        A specialist response variant
    """
    if not isinstance(raw, dict):
        logger.warning(f"Non-object specialist response ({type(raw).__name__}); scoring as unknown")
        return UnknownSpecialistResponse()

    nested = raw.get("response") if isinstance(raw.get("response"), dict) else {}

    raw_type = (
        nested.get("specialistType")
        or raw.get("specialistType")
        or raw.get("specialist")
        or ""
    )
    confidence = nested.get("confidence")
    if confidence is None:
        confidence = raw.get("confidence")

    identifier = match_specialist_keyword(raw_type if isinstance(raw_type, str) else None)
    data = {
        "kind": identifier or "unknown",
        "specialistType": raw_type if isinstance(raw_type, str) else str(raw_type),
        "confidence": confidence,
        "response": raw.get("response"),
        "assessment": raw.get("assessment"),
    }

    try:
        return _response_adapter.validate_python(data)
    except ValidationError as e:
        logger.warning(
            f"Malformed specialist response ({e.error_count()} errors); keeping type and confidence only"
        )
        data["response"] = None
        data["assessment"] = None
        return _response_adapter.validate_python(data)


# =============================================================================
# CONSULTATION RECORD
# =============================================================================

class ConfidenceFactors(BaseModel):
    """Agreement and confidence figures produced by the synthesis step."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    inter_agent_agreement: OptionalFloat = Field(default=None, alias="interAgentAgreement")
    overall_confidence: OptionalFloat = Field(default=None, alias="overallConfidence")


class SynthesizedRecommendations(BaseModel):
    """The parts of the synthesized recommendation block the engine reads."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    confidence_factors: ConfidenceFactors = Field(
        default_factory=ConfidenceFactors, alias="confidenceFactors"
    )
    prescription_evidence_grade: Optional[str] = Field(
        default=None,
        description="prescriptionData.evidenceBase.evidenceGrade"
    )
    evidence_grade: Optional[str] = Field(default=None, alias="evidenceGrade")

    @property
    def resolved_evidence_grade(self) -> Optional[str]:
        return self.prescription_evidence_grade or self.evidence_grade or None


class ConsultationRecord(BaseModel):
    """A validated consultation payload."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    consultation_id: Optional[str] = Field(default=None, alias="consultationId")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    responses: list[SpecialistResponse] = Field(default_factory=list)
    participating_specialists: list[str] = Field(
        default_factory=list, alias="participatingSpecialists"
    )
    synthesized_recommendations: SynthesizedRecommendations = Field(
        default_factory=SynthesizedRecommendations, alias="synthesizedRecommendations"
    )


class UserFeedback(BaseModel):
    """Patient feedback attached to a consultation. Presence means feedback is complete."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    validated: bool = Field(default=False, description="Outcome confirmed by follow-up")


class MDReview(BaseModel):
    """Physician review of a consultation."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    approved: bool = False


def _as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _parse_synthesis(raw: Any) -> SynthesizedRecommendations:
    raw = _as_dict(raw)
    factors = _as_dict(raw.get("confidenceFactors"))
    evidence_base = _as_dict(_as_dict(raw.get("prescriptionData")).get("evidenceBase"))

    grade = evidence_base.get("evidenceGrade")
    top_grade = raw.get("evidenceGrade")

    return SynthesizedRecommendations(
        confidence_factors=ConfidenceFactors(
            inter_agent_agreement=factors.get("interAgentAgreement"),
            overall_confidence=factors.get("overallConfidence"),
        ),
        prescription_evidence_grade=grade if isinstance(grade, str) else None,
        evidence_grade=top_grade if isinstance(top_grade, str) else None,
    )


def _parse_created_at(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    try:
        return TypeAdapter(datetime).validate_python(value)
    except ValidationError:
        logger.warning(f"Unparseable consultation createdAt {value!r}; ignoring")
        return None


def parse_consultation(payload: Any) -> Optional[ConsultationRecord]:
    """
    Validate a raw consultation payload.

    Args:
        payload: Decoded JSON object from the consultation service

    Returns:
        The consultation record, or None when the payload is missing or empty
    """
    if not payload or not isinstance(payload, dict):
        return None

    raw_responses = payload.get("responses")
    if not isinstance(raw_responses, list):
        raw_responses = []

    raw_specialists = payload.get("participatingSpecialists")
    if not isinstance(raw_specialists, list):
        raw_specialists = []

    consultation_id = payload.get("consultationId")

    return ConsultationRecord(
        consultation_id=str(consultation_id) if consultation_id else None,
        created_at=_parse_created_at(payload.get("createdAt")),
        responses=[parse_specialist_response(r) for r in raw_responses],
        participating_specialists=[s for s in raw_specialists if isinstance(s, str)],
        synthesized_recommendations=_parse_synthesis(payload.get("synthesizedRecommendations")),
    )


def parse_user_feedback(payload: Any) -> Optional[UserFeedback]:
    """Validate optional user feedback; anything falsy means no feedback."""
    if not payload:
        return None
    if not isinstance(payload, dict):
        return UserFeedback()
    return UserFeedback(validated=bool(payload.get("validated")))


def parse_md_review(payload: Any) -> Optional[MDReview]:
    """Validate an optional MD review."""
    if not payload or not isinstance(payload, dict):
        return None
    return MDReview(approved=bool(payload.get("approved")))
