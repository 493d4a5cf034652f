from __future__ import annotations

import re

from neujobscan.taxonomy.provider import TaxonomyProvider

from .embeddings import EmbeddingProvider, cosine_similarity

_TOKEN_PATTERN = re.compile(r"[a-z0-9\+#]+")
_STOPWORDS = frozenset(
    {
        "a", "an", "and", "are", "as", "at", "be", "by", "for", "from", "in", "is", "of",
        "on", "or", "the", "to", "with", "our", "we", "you", "your", "will", "experience",
    }
)

CONTAINMENT_SIMILARITY = 0.85


def tokenize(text: str) -> set[str]:
    return set(_TOKEN_PATTERN.findall((text or "").lower()))


def content_tokens(text: str) -> set[str]:
    return {token for token in tokenize(text) if token not in _STOPWORDS}


def jaccard_similarity(left: set[str], right: set[str]) -> float:
    union = left | right
    if not union:
        return 0.0
    return len(left & right) / len(union)


def term_similarity(
    left: str,
    right: str,
    taxonomy: TaxonomyProvider,
    embedder: EmbeddingProvider,
) -> float:
    """Similarity of two short terms in [0, 1].

    Identical or synonym-equivalent terms score 1.0. A term whose tokens are
    wholly contained in the other's scores 0.85. Otherwise token Jaccard and
    hashed-embedding cosine are blended 0.6 / 0.4.
    """
    left_norm, left_id = taxonomy.normalize_skill(left)
    right_norm, right_id = taxonomy.normalize_skill(right)
    if not left_norm or not right_norm:
        return 0.0
    if left_norm == right_norm or (left_id is not None and left_id == right_id):
        return 1.0

    left_tokens = content_tokens(left_norm)
    right_tokens = content_tokens(right_norm)
    if left_tokens and right_tokens and (left_tokens <= right_tokens or right_tokens <= left_tokens):
        return CONTAINMENT_SIMILARITY

    token_sim = jaccard_similarity(left_tokens, right_tokens)
    left_vector, right_vector = embedder.embed([left_norm, right_norm])
    embed_sim = max(0.0, cosine_similarity(left_vector, right_vector))
    return round(min(1.0, (0.6 * token_sim) + (0.4 * embed_sim)), 4)
