"""
PubMed API client.

Two-step lookup against NCBI E-utilities:
  1. esearch  — PMIDs matching the query, ordered by relevance
  2. esummary — one batched summary request for all of those PMIDs

Completed lookups (including legitimate zero-hit answers) are stored in the
shared ResultCache; failed lookups are never cached.
"""

from __future__ import annotations

import logging
from typing import Any

from biomed_assistant.constants import (
    PUBMED_DEFAULT_MAX_RESULTS,
    PUBMED_MAX_LISTED_AUTHORS,
    PUBMED_SEARCH_URL,
    PUBMED_SUMMARY_URL,
)
from biomed_assistant.data_sources.base_client import (
    BaseClient,
    ClientConfig,
    RequestContext,
)
from biomed_assistant.models.model_pubmed import LiteratureResult, Paper
from biomed_assistant.utils.cache import ResultCache, cache_key

logger = logging.getLogger("biomed_assistant.data_sources.pubmed")


def format_authors(authors: list[dict[str, Any]] | None) -> str:
    """First three author names, with " et al." when more exist."""
    names = [a.get("name", "") for a in authors or [] if a.get("name")]
    if not names:
        return ""
    listed = ", ".join(names[:PUBMED_MAX_LISTED_AUTHORS])
    if len(names) > PUBMED_MAX_LISTED_AUTHORS:
        return f"{listed} et al."
    return listed


def parse_summary_record(pmid: str, record: dict[str, Any]) -> Paper:
    """Project one esummary document into a Paper."""
    return Paper(
        pmid=pmid,
        title=record.get("title"),
        authors=format_authors(record.get("authors")),
        journal=record.get("fulljournalname") or record.get("source"),
        pubdate=record.get("pubdate"),
        doi=record.get("elocationid"),
    )


class PubMedClient(BaseClient):
    """Client for the direct PubMed/NCBI literature lookup."""

    SEARCH_URL = PUBMED_SEARCH_URL
    SUMMARY_URL = PUBMED_SUMMARY_URL

    def __init__(
        self,
        cache: ResultCache,
        api_key: str = "",
        config: ClientConfig | None = None,
    ) -> None:
        super().__init__(config)
        self.cache = cache
        self.api_key = api_key

    @property
    def _source_name(self) -> str:
        return "pubmed"

    def _with_api_key(self, params: dict[str, Any]) -> dict[str, Any]:
        if self.api_key:
            return {**params, "api_key": self.api_key}
        return params

    async def search(
        self, query: str, max_results: int = PUBMED_DEFAULT_MAX_RESULTS
    ) -> LiteratureResult:
        """Search PubMed and return summarised papers.

        Raises UpstreamUnavailable if either request fails; nothing is
        cached in that case.
        """
        key = cache_key(query, max_results)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        search_data = await self._rest_get(
            self.SEARCH_URL,
            self._with_api_key(
                {
                    "db": "pubmed",
                    "term": query,
                    "retmax": max_results,
                    "retmode": "json",
                    "sort": "relevance",
                }
            ),
            context=RequestContext(
                source=self._source_name,
                method="esearch",
                params={"query": query, "max_results": max_results},
            ),
        )
        esearch = search_data.get("esearchresult") or {}
        pmids: list[str] = list(esearch.get("idlist") or [])[:max_results]

        if not pmids:
            result = LiteratureResult()
            self.cache.put(key, result)
            return result

        summary_data = await self._rest_get(
            self.SUMMARY_URL,
            self._with_api_key(
                {"db": "pubmed", "id": ",".join(pmids), "retmode": "json"}
            ),
            context=RequestContext(
                source=self._source_name,
                method="esummary",
                params={"pmids": len(pmids)},
            ),
        )
        records = summary_data.get("result") or {}

        papers = [
            parse_summary_record(pmid, records[pmid])
            for pmid in pmids
            if isinstance(records.get(pmid), dict)
        ]

        try:
            total_found = int(esearch.get("count") or 0)
        except (TypeError, ValueError):
            total_found = 0

        result = LiteratureResult(
            papers=papers, count=len(papers), total_found=total_found
        )
        self.cache.put(key, result)
        logger.info("PubMed lookup found %d papers for %r", len(papers), query)
        return result
