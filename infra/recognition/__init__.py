from .provider import RecognitionClient
from .documentai import DocumentAIClient

__all__ = [
    "RecognitionClient",
    "DocumentAIClient",
]
