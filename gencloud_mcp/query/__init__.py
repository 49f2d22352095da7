from .semantic_search import MatchRecord, SemanticSearch, extract_embedding

__all__ = ["MatchRecord", "SemanticSearch", "extract_embedding"]
