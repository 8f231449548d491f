"""Feed ingestion, dedupe and LLM-backed selection."""

__all__ = [
    "dedupe",
    "ingest",
    "llm_client",
    "selection",
    "types",
]
