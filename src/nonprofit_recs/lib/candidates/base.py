"""Models shared by the candidate generation step."""

from pydantic import BaseModel, Field

from ...models import ArticleEntities, NonprofitCandidate


class CandidateGenerationInput(BaseModel):
    """What the generator needs to know about an article."""

    entities: ArticleEntities = Field(default_factory=ArticleEntities)
    causes: list[str] = Field(default_factory=list, description="Directory cause slugs")


class CandidateGenerationResult(BaseModel):
    """A de-duplicated candidate pool plus the queries that produced it."""

    candidates: list[NonprofitCandidate] = Field(default_factory=list)
    search_terms_used: list[str] = Field(default_factory=list)
    causes_used: list[str] = Field(default_factory=list)

    @property
    def candidate_count(self) -> int:
        return len(self.candidates)
