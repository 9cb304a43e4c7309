"""
Specialist and tier taxonomy.

Display names, colours and tier presentation are configuration, not code:
the builder and classifier receive a ``Taxonomy`` instance, so tests and
deployments can swap in an alternate taxonomy without touching scoring.
"""

import logging
from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from src.models.card import TierDisplay
from src.models.enums import CardTier, SpecialistType
from src.utils.parsing import humanize_identifier
from src.utils.settings import Settings


logger = logging.getLogger(__name__)


class SpecialistProfile(BaseModel):
    """How one specialist is presented."""

    model_config = ConfigDict(frozen=True)

    display_name: str = Field(..., description="Short name for the card, e.g. 'Pain'")
    full_name: str = Field(..., description="Name used for predictions, e.g. 'Pain Whisperer'")
    color: str = Field(default="#64748b")


DEFAULT_SPECIALISTS = {
    SpecialistType.TRIAGE: SpecialistProfile(
        display_name="Triage", full_name="OrthoTriage Master", color="#3b82f6"
    ),
    SpecialistType.PAIN_WHISPERER: SpecialistProfile(
        display_name="Pain", full_name="Pain Whisperer", color="#8b5cf6"
    ),
    SpecialistType.MOVEMENT_DETECTIVE: SpecialistProfile(
        display_name="Movement", full_name="Movement Detective", color="#10b981"
    ),
    SpecialistType.STRENGTH_SAGE: SpecialistProfile(
        display_name="Strength", full_name="Strength Sage", color="#f59e0b"
    ),
    SpecialistType.MIND_MENDER: SpecialistProfile(
        display_name="Mental", full_name="Mind Mender", color="#ef4444"
    ),
}

DEFAULT_TIER_DISPLAYS = {
    CardTier.EXCEPTIONAL: TierDisplay(
        label="EXCEPTIONAL",
        percentage="5%",
        border_color="rgba(139, 92, 246, 0.6)",
        gradient_from="#1e293b",
        gradient_to="#2e1065",
    ),
    CardTier.VERIFIED: TierDisplay(
        label="VERIFIED",
        percentage="10%",
        border_color="rgba(251, 191, 36, 0.5)",
        gradient_from="#1e293b",
        gradient_to="#422006",
    ),
    CardTier.COMPLETE: TierDisplay(
        label="COMPLETE",
        percentage="25%",
        border_color="rgba(20, 184, 166, 0.4)",
        gradient_from="#1e293b",
        gradient_to="#134e4a",
    ),
    CardTier.STANDARD: TierDisplay(
        label="STANDARD",
        percentage="60%",
        border_color="rgba(59, 130, 246, 0.3)",
        gradient_from="#1e293b",
        gradient_to="#0f172a",
    ),
}


class Taxonomy(BaseModel):
    """Immutable lookup tables for specialists and tiers."""

    model_config = ConfigDict(frozen=True)

    specialists: dict[SpecialistType, SpecialistProfile] = Field(
        default_factory=lambda: dict(DEFAULT_SPECIALISTS)
    )
    tiers: dict[CardTier, TierDisplay] = Field(
        default_factory=lambda: dict(DEFAULT_TIER_DISPLAYS)
    )
    default_color: str = "#64748b"
    collection_name: str = "OrthoIQ Intelligence Cards"

    @classmethod
    def from_config(cls, config_path: Union[str, Path] = "config/taxonomy.yaml") -> "Taxonomy":
        """
        Load a taxonomy from a YAML file.

        Entries missing from the file keep their built-in values. A missing
        file yields the built-in taxonomy.

        Args:
            config_path: Path to the YAML file

        Returns:
            Taxonomy instance

        Raises:
            ValueError: If the file exists but is not a valid taxonomy
        """
        try:
            with open(config_path) as f:
                config = yaml.safe_load(f) or {}
        except FileNotFoundError:
            logger.debug(f"No taxonomy config at {config_path}, using built-in taxonomy")
            return cls()
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid taxonomy YAML in {config_path}: {e}") from e

        if not isinstance(config, dict):
            raise ValueError(f"Taxonomy config {config_path} must be a mapping")

        for section in ("specialists", "tiers"):
            if not isinstance(config.get(section) or {}, dict):
                raise ValueError(f"Taxonomy section {section!r} in {config_path} must be a mapping")

        specialists = dict(DEFAULT_SPECIALISTS)
        tiers = dict(DEFAULT_TIER_DISPLAYS)

        try:
            for key, data in (config.get("specialists") or {}).items():
                specialists[SpecialistType(key)] = SpecialistProfile(**data)
            for key, data in (config.get("tiers") or {}).items():
                tiers[CardTier(key)] = TierDisplay(**data)
            extra = {
                k: config[k] for k in ("default_color", "collection_name") if k in config
            }
            taxonomy = cls(specialists=specialists, tiers=tiers, **extra)
        except (ValueError, TypeError, ValidationError) as e:
            raise ValueError(f"Invalid taxonomy config in {config_path}: {e}") from e

        logger.info(
            f"Loaded taxonomy from {config_path} "
            f"({len(config.get('specialists') or {})} specialist, "
            f"{len(config.get('tiers') or {})} tier overrides)"
        )
        return taxonomy

    def profile(self, specialist: SpecialistType) -> Optional[SpecialistProfile]:
        return self.specialists.get(specialist)

    def display_name(self, specialist: SpecialistType) -> str:
        """Short card name; falls back to the raw identifier."""
        profile = self.profile(specialist)
        return profile.display_name if profile else specialist.value

    def full_name(self, specialist: SpecialistType) -> str:
        profile = self.profile(specialist)
        return profile.full_name if profile else specialist.value

    def color(self, specialist: SpecialistType) -> str:
        profile = self.profile(specialist)
        return profile.color if profile else self.default_color

    def tier_display(self, tier: CardTier) -> TierDisplay:
        """Display configuration for a tier; unknown tiers render as standard."""
        return self.tiers.get(tier) or self.tiers.get(CardTier.STANDARD) or DEFAULT_TIER_DISPLAYS[CardTier.STANDARD]

    def agent_name(self, agent_id: str) -> str:
        """
        Leaderboard name for an agent id.

        Accepts camelCase (``painWhisperer``) and snake_case
        (``pain_whisperer``) ids; anything else is de-camel-cased.
        """
        if not agent_id:
            return ""
        compact = agent_id.replace("_", "").lower()
        for specialist in SpecialistType:
            if specialist.value.lower() == compact:
                if specialist == SpecialistType.TRIAGE:
                    return self.display_name(specialist)
                return self.full_name(specialist)
        return humanize_identifier(agent_id)


DEFAULT_TAXONOMY = Taxonomy()


def load_taxonomy(config_path: Optional[Union[str, Path]] = None) -> Taxonomy:
    """Load the taxonomy from ``config_path`` or the configured default path."""
    if config_path is None:
        config_path = Settings.from_env().taxonomy_path
    return Taxonomy.from_config(config_path)
