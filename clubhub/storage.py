"""
Document storage.

Stores each collection as a JSON file keyed by document id.
Unique indexes are enforced on insert and update, and every
read-modify-write runs under the collection lock so a single
document update is atomic within the process.
"""

import copy
import json
import logging
import threading
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

from .config import DEFAULT_DATA_DIR
from .errors import DuplicateKeyError, NotFoundError

logger = logging.getLogger(__name__)

Document = Dict[str, Any]
Mutator = Callable[[Document], None]


def _index_value(value: Any) -> Any:
    """Unique indexes compare strings case-insensitively."""
    if isinstance(value, str):
        return value.strip().lower()
    return value


def _matches(doc: Document, filters: Optional[Dict[str, Any]]) -> bool:
    if not filters:
        return True
    return all(doc.get(key) == value for key, value in filters.items())


class Collection:
    """
    JSON-file backed collection.

    Usage:
        users = Collection(path, id_field="user_id", unique=("email",))
        users.insert_one({"user_id": "u1", "email": "a@b.c"})
        users.update_one("u1", {"name": "A"})
    """

    def __init__(
        self,
        file_path: Path,
        id_field: str,
        unique: Iterable[str] = ()
    ):
        """
        Initialize collection.

        Args:
            file_path: Path to the collection's JSON file
            id_field: Name of the primary key field inside each document
            unique: Fields that must be unique across the collection
        """
        self.file_path = file_path
        self.id_field = id_field
        self.unique = tuple(unique)
        self._lock = threading.RLock()
        self._ensure_file()

    def _ensure_file(self):
        """Ensure the storage file and directory exist."""
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        if not self.file_path.exists():
            self._save_all({})

    def _load_all(self) -> Dict[str, Document]:
        """Load all documents from file."""
        try:
            with open(self.file_path, "r") as f:
                return json.load(f)
        except (json.JSONDecodeError, FileNotFoundError):
            return {}

    def _save_all(self, docs: Dict[str, Document]):
        """Save all documents to file."""
        with open(self.file_path, "w") as f:
            json.dump(docs, f, indent=2, ensure_ascii=False)

    def _check_unique(self, docs: Dict[str, Document], candidate: Document):
        doc_id = candidate[self.id_field]
        for field in self.unique:
            value = candidate.get(field)
            if value is None:
                continue
            wanted = _index_value(value)
            for other_id, other in docs.items():
                if other_id != doc_id and _index_value(other.get(field)) == wanted:
                    raise DuplicateKeyError(field)

    def insert_one(self, doc: Document) -> Document:
        """
        Insert a new document.

        Raises:
            DuplicateKeyError: If the id or a unique field is already taken
        """
        with self._lock:
            docs = self._load_all()
            doc_id = doc[self.id_field]
            if doc_id in docs:
                raise DuplicateKeyError(self.id_field)
            self._check_unique(docs, doc)
            docs[doc_id] = doc
            self._save_all(docs)
        logger.debug(f"Inserted {self.file_path.stem}/{doc_id}")
        return copy.deepcopy(doc)

    def get(self, doc_id: str) -> Optional[Document]:
        """Get a document by id."""
        return self._load_all().get(doc_id)

    def find_one(self, filters: Dict[str, Any]) -> Optional[Document]:
        """Return the first document whose fields equal ``filters``."""
        for doc in self._load_all().values():
            if _matches(doc, filters):
                return doc
        return None

    def find(
        self,
        filters: Optional[Dict[str, Any]] = None,
        predicate: Optional[Callable[[Document], bool]] = None
    ) -> List[Document]:
        """Return every document matching ``filters`` and ``predicate``."""
        result = []
        for doc in self._load_all().values():
            if not _matches(doc, filters):
                continue
            if predicate is not None and not predicate(doc):
                continue
            result.append(doc)
        return result

    def update_one(
        self,
        doc_id: str,
        changes: Optional[Dict[str, Any]] = None,
        mutator: Optional[Mutator] = None
    ) -> Document:
        """
        Atomically update a single document.

        ``changes`` is merged into the stored document. ``mutator`` receives
        a working copy and edits it in place; if it raises, nothing is
        written.

        Returns:
            The updated document

        Raises:
            NotFoundError: If the document doesn't exist
            DuplicateKeyError: If the update collides with a unique index
        """
        with self._lock:
            docs = self._load_all()
            if doc_id not in docs:
                raise NotFoundError(f"{self.file_path.stem} {doc_id} not found")

            working = copy.deepcopy(docs[doc_id])
            if changes:
                working.update(changes)
            if mutator is not None:
                mutator(working)
            # primary key is immutable
            working[self.id_field] = doc_id

            self._check_unique(docs, working)
            docs[doc_id] = working
            self._save_all(docs)
        return copy.deepcopy(working)


class DocumentStore:
    """Directory of collections, one JSON file per collection."""

    def __init__(self, data_dir: Optional[Path] = None):
        self.data_dir = Path(data_dir or DEFAULT_DATA_DIR)
        self._collections: Dict[str, Collection] = {}
        self._lock = threading.Lock()

    def collection(
        self,
        name: str,
        id_field: str,
        unique: Iterable[str] = ()
    ) -> Collection:
        """Get or create a named collection."""
        with self._lock:
            if name not in self._collections:
                self._collections[name] = Collection(
                    self.data_dir / f"{name}.json",
                    id_field=id_field,
                    unique=unique
                )
            return self._collections[name]
