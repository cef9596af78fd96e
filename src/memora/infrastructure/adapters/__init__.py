# Infrastructure Adapters Package
from .openai_backend import OpenAIBackend, UnavailableEmbeddingService

__all__ = ["OpenAIBackend", "UnavailableEmbeddingService"]
