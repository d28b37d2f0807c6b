"""Services combining the core layer with a document backend."""

from .documents import DocumentExplorer, DocumentReader
from .knowledge_base import KnowledgeBase
from .preload import MAX_BATCH_DOCUMENTS, Preloader

__all__ = [
    "DocumentExplorer",
    "DocumentReader",
    "KnowledgeBase",
    "MAX_BATCH_DOCUMENTS",
    "Preloader",
]
