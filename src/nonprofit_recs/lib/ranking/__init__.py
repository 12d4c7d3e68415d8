"""Reranking of candidate pools into explainable, diversified results."""

from .reranker import Reranker, RerankingInput, RerankingResult
from .trust import CallableTrustProvider, NoopTrustProvider, TrustProvider

__all__ = [
    "CallableTrustProvider",
    "NoopTrustProvider",
    "Reranker",
    "RerankingInput",
    "RerankingResult",
    "TrustProvider",
]
