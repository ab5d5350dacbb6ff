"""Abstract base class for all generation backends."""

from abc import ABC, abstractmethod

from src.engines.models import GenerationRequest, GenerationResponse


class GenerationBackend(ABC):
    """Base class that every generation backend must inherit from.

    A backend turns a :class:`GenerationRequest` into generated files.  It
    must not raise: any failure is reported through
    :attr:`GenerationResponse.errors` so the caller can keep going.
    """

    name: str = "backend"

    @abstractmethod
    async def invoke(self, request: GenerationRequest) -> GenerationResponse:
        """Produce artifacts for *request*.

        Parameters
        ----------
        request:
            Task type, task description and a free-form style/context
            payload (design tokens, reviewer feedback, expected files).
        """
        ...
