"""Document lookup and the JSON directory loader.

The review pipeline only needs to know whether a document exists and what
its saved title is. load_documents() scans a directory for JSON files, each
a Document ({"id": ..., "title": ...}) or a list of them; invalid files are
logged and skipped without affecting the rest.
"""

import json
from abc import ABC, abstractmethod
from pathlib import Path

from ..logging import logger
from ..schemas.notes import Document


class DocumentLookup(ABC):
    @abstractmethod
    async def get_document(self, document_id: int) -> Document | None: ...


class InMemoryDocumentStore(DocumentLookup):
    def __init__(self, documents: dict[int, Document] | None = None):
        self.documents: dict[int, Document] = dict(documents or {})

    def add(self, document: Document) -> None:
        self.documents[document.id] = document

    async def get_document(self, document_id: int) -> Document | None:
        return self.documents.get(document_id)

    def __len__(self) -> int:
        return len(self.documents)


def load_documents(documents_dir: str) -> InMemoryDocumentStore:
    store = InMemoryDocumentStore()
    path = Path(documents_dir)
    if not path.exists():
        logger.warning(f"Documents directory not found: {documents_dir}")
        return store

    for file in sorted(path.glob("*.json")):
        try:
            data = json.loads(file.read_text(encoding="utf-8"))
            entries = data if isinstance(data, list) else [data]
            for entry in entries:
                store.add(Document.model_validate(entry))
            logger.info(f"Loaded {len(entries)} document(s) from {file.name}")
        except Exception as e:
            logger.error(f"Failed to load documents file {file}: {e}")

    return store
