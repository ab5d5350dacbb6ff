from .llm_backend import LLMBackend
from .template_backend import TemplateBackend

__all__ = ["LLMBackend", "TemplateBackend"]
