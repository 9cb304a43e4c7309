"""
Specialist and tier taxonomy (display names, colours, tier presentation).
"""

from src.taxonomy.taxonomy import (
    DEFAULT_TAXONOMY,
    SpecialistProfile,
    Taxonomy,
    load_taxonomy,
)

__all__ = ["DEFAULT_TAXONOMY", "SpecialistProfile", "Taxonomy", "load_taxonomy"]
