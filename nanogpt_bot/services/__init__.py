from .documents import DocumentError, ParsedDocument, is_supported_file, parse_document
from .model_cache import ModelListCache
from .nanogpt_client import NanoGPTClient, NanoGPTError

__all__ = [
    "DocumentError",
    "ModelListCache",
    "NanoGPTClient",
    "NanoGPTError",
    "ParsedDocument",
    "is_supported_file",
    "parse_document",
]
