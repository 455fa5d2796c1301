"""Project-wide constants."""

# -- Result cache -----------------------------------------------------------
CACHE_TTL: int = 60 * 60  # 1 hour in seconds
CACHE_SWEEP_INTERVAL: int = 10 * 60  # 10 minutes in seconds

# -- BioMCP tool server -----------------------------------------------------
BIOMCP_BASE_URL: str = "https://biomcp-server-452652483423.europe-west4.run.app"
BIOMCP_TOOL_NAME: str = "pubmed_search"
BIOMCP_SOURCE_LABEL: str = "BioMCP Server"
BIOMCP_DATA_SOURCE: str = "BioMCP"
BIOMCP_DESCRIPTION: str = "BioMCP Server (PubMed, ClinicalTrials.gov, MyVariant.info)"

# Session handshake: connect timeout, per-chunk read timeout, chunk budget.
SESSION_CONNECT_TIMEOUT: float = 5.0
SESSION_READ_TIMEOUT: float = 3.0
SESSION_MAX_CHUNKS: int = 10

# Result stream: settle delay after the 202, then a wall-clock ceiling.
RESULT_SETTLE_DELAY: float = 2.0
RESULT_STREAM_TIMEOUT: float = 120.0
MIN_JSON_PAYLOAD_LENGTH: int = 5

TERMINAL_EVENT_TYPES: frozenset[str] = frozenset(
    {"result", "data", "complete", "message"}
)
TERMINAL_PAYLOAD_KEYS: tuple[str, ...] = (
    "results",
    "data",
    "papers",
    "trials",
    "variants",
)

# -- PubMed / NCBI ----------------------------------------------------------
NCBI_BASE_URL: str = "https://eutils.ncbi.nlm.nih.gov/entrez/eutils"
PUBMED_SEARCH_URL: str = f"{NCBI_BASE_URL}/esearch.fcgi"
PUBMED_SUMMARY_URL: str = f"{NCBI_BASE_URL}/esummary.fcgi"
PUBMED_ARTICLE_URL: str = "https://pubmed.ncbi.nlm.nih.gov/{pmid}/"
PUBMED_SOURCE_LABEL: str = "PubMed Direct API (NCBI E-utilities)"
PUBMED_DATA_SOURCE: str = "PubMed Direct API"
PUBMED_DEFAULT_MAX_RESULTS: int = 10
PUBMED_MAX_LISTED_AUTHORS: int = 3

# -- Enrichment race budgets ------------------------------------------------
PRIMARY_TIMEOUT: float = 5.0
FALLBACK_TIMEOUT: float = 10.0

# -- Chat provider ----------------------------------------------------------
OVERLOADED_STATUS: int = 529
OVERLOAD_RETRY_DELAY: float = 2.0

# -- Topic detection --------------------------------------------------------
BIOMEDICAL_KEYWORDS: tuple[str, ...] = (
    "paper",
    "papers",
    "study",
    "studies",
    "trial",
    "trials",
    "pubmed",
    "clinical",
    "gene",
    "variant",
    "disease",
    "drug",
    "treatment",
    "biomedical",
    "research",
    "publication",
    "article",
)
