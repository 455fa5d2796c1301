"""PubMed data models."""

from pydantic import BaseModel, computed_field, model_validator

from biomed_assistant.constants import PUBMED_ARTICLE_URL, PUBMED_SOURCE_LABEL


class Paper(BaseModel):
    """One PubMed record projected from an esummary document."""

    pmid: str
    title: str = "No title available"
    authors: str = "Unknown authors"
    journal: str = "Unknown journal"
    pubdate: str = "Unknown date"
    doi: str | None = None
    source: str = "PubMed"

    @model_validator(mode="before")
    @classmethod
    def coerce_blanks(cls, values: dict) -> dict:
        # esummary sends "" rather than omitting a field; fall back to placeholders
        values = dict(values)
        for field_name, field_info in cls.model_fields.items():
            if values.get(field_name) or field_info.is_required():
                continue
            values[field_name] = field_info.default
        return values

    @computed_field  # type: ignore[prop-decorator]
    @property
    def url(self) -> str:
        return PUBMED_ARTICLE_URL.format(pmid=self.pmid)


class LiteratureResult(BaseModel):
    """Papers returned by the direct E-utilities lookup."""

    source: str = PUBMED_SOURCE_LABEL
    papers: list[Paper] = []
    count: int = 0
    total_found: int = 0
