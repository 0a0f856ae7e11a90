"""
Document Graph - Queries over a contract's ``documents`` table.

Documents are append-only rows; the highest id is the most recently
created one.
"""

from __future__ import annotations

from ..chain.rpc import ChainApi
from ..content import Document

DOCUMENTS_TABLE = "documents"


class DocumentNotFoundError(LookupError):
    """The contract's document table has no rows."""


def _single_document(api: ChainApi, contract: str, reverse: bool) -> Document:
    result = api.get_table_rows(contract, contract, DOCUMENTS_TABLE, limit=1, reverse=reverse)
    rows = result.get("rows", [])
    if not rows:
        raise DocumentNotFoundError(f"No documents in {contract}")
    return Document.from_row(rows[0])


def get_last_document(api: ChainApi, contract: str) -> Document:
    """Most recently created document of ``contract``."""
    return _single_document(api, contract, reverse=True)


def get_first_document(api: ChainApi, contract: str) -> Document:
    """Oldest document of ``contract`` (the DAO root)."""
    return _single_document(api, contract, reverse=False)
