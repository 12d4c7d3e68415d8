"""Candidate generation for the recommendation pipeline.

Turns article entities and causes into a de-duplicated pool of nonprofits by
querying the external directory.
"""

from .base import CandidateGenerationInput, CandidateGenerationResult
from .generator import CandidateGenerator, build_search_terms

__all__ = [
    "CandidateGenerationInput",
    "CandidateGenerationResult",
    "CandidateGenerator",
    "build_search_terms",
]
