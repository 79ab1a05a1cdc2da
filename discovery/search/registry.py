"""Lookup of concrete providers by name."""

from discovery.search.base import LiteratureProvider

PROVIDERS = ("openalex", "pubmed", "semantic_scholar", "arxiv", "memory")


def get_provider(name: str, **kwargs) -> LiteratureProvider:
    """Instantiate the provider registered under ``name``.

    Imports are deferred so that only the chosen provider's library is loaded.
    ``memory`` takes a ``corpus`` path to a YAML corpus file.
    """
    if name == "openalex":
        from discovery.search.openalex import OpenAlexProvider

        return OpenAlexProvider(**kwargs)
    if name == "pubmed":
        from discovery.search.pubmed import PubMedProvider

        return PubMedProvider(**kwargs)
    if name == "semantic_scholar":
        from discovery.search.semantic_scholar import SemanticScholarProvider

        return SemanticScholarProvider(**kwargs)
    if name == "arxiv":
        from discovery.search.arxiv import ArxivProvider

        return ArxivProvider(**kwargs)
    if name == "memory":
        from discovery.search.memory import InMemoryProvider, load_corpus

        corpus = kwargs.pop("corpus", None)
        return load_corpus(corpus) if corpus else InMemoryProvider(**kwargs)
    raise ValueError(f"Unknown provider: {name} (valid: {', '.join(PROVIDERS)})")
