"""switchboard - one interface for generate, chat and embeddings across LLM providers."""

__version__ = "0.1.0"
