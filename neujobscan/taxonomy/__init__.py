from functools import lru_cache

from .local_taxonomy import LocalTaxonomy, clean_term
from .provider import TaxonomyProvider


@lru_cache(maxsize=1)
def get_default_taxonomy_provider() -> LocalTaxonomy:
    return LocalTaxonomy()


__all__ = ["TaxonomyProvider", "LocalTaxonomy", "clean_term", "get_default_taxonomy_provider"]
