"""RSS curation bot: ingest feeds, rank with an LLM, post the pick to Slack."""

__version__ = "0.1.0"
