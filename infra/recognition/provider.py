from abc import ABC, abstractmethod


class RecognitionClient(ABC):
    """
    Handle for an external document recognition engine.

    Constructed by the caller and passed into the pipeline. Implementations
    must be safe to call from several worker threads at once.
    """

    @abstractmethod
    def recognize(self, image_bytes: bytes, mime_type: str = "image/png") -> str:
        """Return the raw recognized text for one page image."""
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
