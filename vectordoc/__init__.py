"""
vectordoc

Records with fixed and user-defined attributes, and filter predicates, for a
remote vector document store.

Quick Start:
    from vectordoc import Collection, Document, Filter, TypedValue, connect, in_

    with connect() as transport:    # settings from VECTORDOC_* variables
        books = Collection(transport, "db", "books")
        books.upsert([Document(id="0001", vector=[0.1, 0.2],
                               attributes={"author": TypedValue("jerry")})])
        result = books.query(filter=Filter('author="jerry"').and_(in_("page", [1, 2])))
        for doc in result.documents:
            print(doc.id, doc.attribute("author").as_string())

Environment Variables:
    VECTORDOC_URL          - Store endpoint
    VECTORDOC_USERNAME     - Account name (default: root)
    VECTORDOC_KEY          - API key
    VECTORDOC_CONFIG       - Path to a vectordoc.toml file
    VECTORDOC_POOL_SIZE    - Number of pooled HTTP clients
"""

import logging

from .client import HttpClient
from .collection import (
    AffectedResult,
    AICollection,
    Collection,
    DocumentSetQueryResult,
    QueryResult,
    SearchParams,
    SearchResult,
    SortRule,
    UpsertResult,
)
from .config import ClientConfig, load_config, load_or_env, save_config
from .documents import (
    Document,
    DocumentSetInfo,
    DocumentSplitterPreprocess,
    ParsingProcess,
    QueryDocumentSet,
    SearchData,
    SearchDocument,
    SearchDocumentSet,
    SourceFile,
)
from .errors import DecodingError, EncodingError, ServerError, TransportError, VectorDocError
from .filters import Filter, exclude, in_, include, include_all, new_filter, not_in
from .pool import ClientPool, connect
from .records import Record, decode_record, dynamic_field, encode_record, wire_field
from .types import FieldKind, NumberToken, TypedValue

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"
__all__ = [
    "AICollection",
    "AffectedResult",
    "ClientConfig",
    "ClientPool",
    "Collection",
    "DecodingError",
    "Document",
    "DocumentSetInfo",
    "DocumentSetQueryResult",
    "DocumentSplitterPreprocess",
    "EncodingError",
    "FieldKind",
    "Filter",
    "HttpClient",
    "NumberToken",
    "ParsingProcess",
    "QueryDocumentSet",
    "QueryResult",
    "Record",
    "SearchData",
    "SearchDocument",
    "SearchDocumentSet",
    "SearchParams",
    "SearchResult",
    "ServerError",
    "SortRule",
    "SourceFile",
    "TransportError",
    "TypedValue",
    "UpsertResult",
    "VectorDocError",
    "connect",
    "decode_record",
    "dynamic_field",
    "encode_record",
    "exclude",
    "in_",
    "include",
    "include_all",
    "load_config",
    "load_or_env",
    "new_filter",
    "not_in",
    "save_config",
    "wire_field",
]

