from __future__ import annotations

import hashlib
import math
import re
from functools import lru_cache
from typing import Protocol

_TOKEN_PATTERN = re.compile(r"[a-z0-9\+#\.]+")


class EmbeddingProvider(Protocol):
    def embed(self, texts: list[str]) -> list[list[float]]:
        """Return vector embeddings for input texts."""


@lru_cache(maxsize=4096)
def _bucket(feature: str, dimension: int) -> int:
    digest = hashlib.sha256(feature.encode("utf-8")).hexdigest()
    return int(digest[:8], 16) % dimension


class HashedNgramEmbeddingProvider(EmbeddingProvider):
    """Hashes whole tokens plus character trigrams so spelling variants land close together."""

    def __init__(self, dimension: int = 256, ngram: int = 3) -> None:
        if dimension <= 0:
            raise ValueError("dimension must be greater than 0")
        if ngram <= 0:
            raise ValueError("ngram must be greater than 0")
        self.dimension = dimension
        self.ngram = ngram

    def embed(self, texts: list[str]) -> list[list[float]]:
        return [self._embed_single(text) for text in texts]

    def _features(self, text: str) -> list[str]:
        features: list[str] = []
        for token in _TOKEN_PATTERN.findall(text.lower()):
            features.append(f"w:{token}")
            padded = f"^{token}$"
            if len(padded) <= self.ngram:
                features.append(f"c:{padded}")
                continue
            for index in range(len(padded) - self.ngram + 1):
                features.append(f"c:{padded[index : index + self.ngram]}")
        return features

    def _embed_single(self, text: str) -> list[float]:
        vector = [0.0] * self.dimension
        for feature in self._features(text):
            vector[_bucket(feature, self.dimension)] += 1.0

        norm = math.sqrt(sum(value * value for value in vector))
        if norm <= 0:
            return vector
        return [value / norm for value in vector]


def cosine_similarity(left: list[float], right: list[float]) -> float:
    if len(left) != len(right):
        return 0.0
    dot = sum(a * b for a, b in zip(left, right))
    left_norm = math.sqrt(sum(a * a for a in left))
    right_norm = math.sqrt(sum(b * b for b in right))
    if left_norm <= 0 or right_norm <= 0:
        return 0.0
    return dot / (left_norm * right_norm)
