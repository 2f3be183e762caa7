"""
Embedding services for candidate and job canonical text.

The default backend runs a sentence-transformers model locally; the OpenAI
backend calls the hosted embeddings endpoint. Both expose the same async
``embed`` method and raise ``ExternalServiceError`` on any model failure, so
callers never receive a placeholder vector.
"""

import asyncio
import logging
from typing import Optional

import numpy as np
import torch
from openai import AsyncOpenAI, OpenAIError
from sentence_transformers import SentenceTransformer

from api.config import Settings
from api.errors import ExternalServiceError, ValidationError

logger = logging.getLogger(__name__)


def _check_text(text: str) -> None:
    if not isinstance(text, str) or not text.strip():
        raise ValidationError("Embedding input must be a non-empty string", operation="embed")


class EmbeddingService:
    """
    Service for generating text embeddings using sentence-transformers.

    Uses a lightweight model suitable for job-candidate matching. The model
    is loaded on ``initialize()`` or on the first ``embed()`` call.
    """

    backend_name = "sentence_transformers"

    def __init__(
        self, model_name: str = "all-MiniLM-L6-v2", device: Optional[str] = None
    ):
        """
        Initialize the embedding service.

        Args:
            model_name: Name of the sentence-transformer model to use
            device: Device to run the model on ('cuda', 'cpu', or None for auto)
        """
        self.model_name = model_name
        self.device = device or ("cuda" if torch.cuda.is_available() else "cpu")
        self.model: Optional[SentenceTransformer] = None
        self.embedding_dim: int = 384
        self._load_lock = asyncio.Lock()

    async def initialize(self) -> None:
        """
        Load the embedding model asynchronously.

        Concurrent callers wait for a single load.

        Raises:
            ExternalServiceError: If the model cannot be loaded
        """
        if self.model is not None:
            return

        async with self._load_lock:
            if self.model is not None:
                return

            try:
                logger.info(f"Loading embedding model: {self.model_name} on {self.device}")

                loop = asyncio.get_event_loop()
                model = await loop.run_in_executor(
                    None, lambda: SentenceTransformer(self.model_name, device=self.device)
                )
                self.embedding_dim = model.get_sentence_embedding_dimension()
                self.model = model

            except Exception as e:
                logger.error(f"Embedding model initialization failed: {e}")
                raise ExternalServiceError("embedding", "initialize", e)

    async def embed(self, text: str) -> np.ndarray:
        """
        Generate embedding for a single text.

        Args:
            text: Non-empty text to embed

        Returns:
            Numpy array containing the text embedding

        Raises:
            ValidationError: If the text is empty
            ExternalServiceError: If the model cannot be loaded or encoding fails
        """
        _check_text(text)

        if self.model is None:
            await self.initialize()

        try:
            loop = asyncio.get_event_loop()
            embedding = await loop.run_in_executor(
                None, lambda: self.model.encode(text, convert_to_numpy=True)
            )

            return embedding.astype(np.float32)

        except Exception as e:
            raise ExternalServiceError("embedding", "embed", e)

    def get_embedding_dim(self) -> int:
        return self.embedding_dim

    def is_initialized(self) -> bool:
        """
        Check if the embedding model is loaded.

        Returns:
            True if model is ready, False otherwise
        """
        return self.model is not None


class OpenAIEmbeddingService:
    """Embedding service backed by the OpenAI embeddings endpoint."""

    backend_name = "openai"

    def __init__(self, api_key: str, model_name: str = "text-embedding-3-small"):
        if not api_key:
            raise ValueError("OPENAI_API_KEY is required for the openai embedding backend")

        self.model_name = model_name
        self.client = AsyncOpenAI(api_key=api_key)
        self.embedding_dim: Optional[int] = None

    async def initialize(self) -> None:
        """Nothing to load; the hosted model is called per request."""
        logger.info(f"Using OpenAI embedding model: {self.model_name}")

    async def embed(self, text: str) -> np.ndarray:
        """
        Generate embedding for a single text via the OpenAI API.

        Raises:
            ValidationError: If the text is empty
            ExternalServiceError: On quota, auth, timeout or connection errors
        """
        _check_text(text)

        try:
            response = await self.client.embeddings.create(
                model=self.model_name, input=text, encoding_format="float"
            )
        except OpenAIError as e:
            logger.error(f"OpenAI embedding request failed: {e}")
            raise ExternalServiceError("embedding", "embed", e)

        embedding = np.asarray(response.data[0].embedding, dtype=np.float32)
        self.embedding_dim = len(embedding)
        return embedding

    def get_embedding_dim(self) -> Optional[int]:
        return self.embedding_dim

    def is_initialized(self) -> bool:
        return True


def create_embedding_service(settings: Settings):
    """
    Build the embedding service selected by ``EMBEDDING_BACKEND``.

    Args:
        settings: Application settings

    Returns:
        EmbeddingService or OpenAIEmbeddingService
    """
    if settings.embedding_backend == "openai":
        return OpenAIEmbeddingService(
            api_key=settings.openai_api_key, model_name=settings.openai_embedding_model
        )
    if settings.embedding_backend == "sentence_transformers":
        return EmbeddingService(
            model_name=settings.embedding_model, device=settings.embedding_device
        )
    raise ValueError(
        f"Unknown embedding backend: {settings.embedding_backend}. "
        f"Use 'sentence_transformers' or 'openai'"
    )
