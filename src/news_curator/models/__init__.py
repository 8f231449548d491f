"""Typed models for candidate articles, ranked selections and ledger rows."""

from .article import Article, DeliveryResult, PostedRecord, ScoredSelection

__all__ = ["Article", "DeliveryResult", "PostedRecord", "ScoredSelection"]
