"""
Record types exchanged with the store.

Plain vector documents, AI document sets and the pieces of a document-set
search hit. Every type here carrying ``attributes`` accepts user-defined
scalar fields next to its fixed ones.
"""

from dataclasses import dataclass
from typing import Any, Optional

from .records import Record, dynamic_field, wire_field
from .types import TypedValue


@dataclass(frozen=True)
class Document(Record):
    """
    A document in a vector collection.

    Attributes:
        id: Primary key
        vector: Dense embedding
        sparse_vector: ``[[token_id, weight], ...]`` pairs
        score: Similarity score (search results only)
        doc_info: Opaque payload, base64 on the wire
        attributes: User-defined scalar fields
    """
    id: str = wire_field("id", default="", omitempty=True)
    vector: list[float] = wire_field("vector", default_factory=list, omitempty=True)
    sparse_vector: list[list[Any]] = wire_field(
        "sparse_vector", default_factory=list, omitempty=True
    )
    score: float = wire_field("score", default=0.0, omitempty=True)
    doc_info: bytes = wire_field("doc_info", default=b"", omitempty=True)
    attributes: dict[str, TypedValue] = dynamic_field()


@dataclass(frozen=True)
class DocumentSetInfo(Record):
    """Indexing status of an uploaded document set."""
    text_length: Optional[int] = wire_field("textLength", omitempty=True)
    byte_length: Optional[int] = wire_field("byteLength", omitempty=True)
    indexed_progress: Optional[int] = wire_field("indexedProgress", omitempty=True)
    indexed_status: Optional[str] = wire_field("indexedStatus", omitempty=True)  # Ready | New | Loading | Failure
    create_time: Optional[str] = wire_field("createTime", omitempty=True)
    last_update_time: Optional[str] = wire_field("lastUpdateTime", omitempty=True)
    indexed_error_msg: Optional[str] = wire_field("indexedErrorMsg", omitempty=True)
    keywords: Optional[str] = wire_field("keywords", omitempty=True)


@dataclass(frozen=True)
class DocumentSplitterPreprocess(Record):
    """
    Parameters for splitting a document into chunks.

    ``chunk_splitter`` is a regular expression, e.g. ``"\\n{2,}"`` for Q&A
    content.
    """
    append_title_to_chunk: Optional[bool] = wire_field("appendTitleToChunk", omitempty=True)
    append_keywords_to_chunk: Optional[bool] = wire_field("appendKeywordsToChunk", omitempty=True)
    chunk_splitter: Optional[str] = wire_field("chunkSplitter", omitempty=True)


@dataclass(frozen=True)
class ParsingProcess(Record):
    parsing_type: str = wire_field("parsingType", default="", omitempty=True)


@dataclass(frozen=True)
class QueryDocumentSet(Record):
    """A document set as returned by an AI collection query."""
    document_set_id: str = wire_field("documentSetId", default="")
    document_set_name: str = wire_field("documentSetName", default="")
    text: Optional[str] = wire_field("text", omitempty=True)
    text_prefix: Optional[str] = wire_field("textPrefix", omitempty=True)
    document_set_info: Optional[DocumentSetInfo] = wire_field("documentSetInfo", omitempty=True)
    attributes: dict[str, TypedValue] = dynamic_field()
    splitter_preprocess: Optional[DocumentSplitterPreprocess] = wire_field(
        "splitterPreprocess", omitempty=True
    )
    parsing_process: Optional[ParsingProcess] = wire_field("parsingProcess", omitempty=True)


@dataclass(frozen=True)
class SourceFile(Record):
    """The file a chunk was cut from."""
    id: str = wire_field("id", default="")
    file_name: str = wire_field("_file_name", default="")
    file_info: Optional[dict[str, Any]] = wire_field("_file_info")
    attributes: dict[str, TypedValue] = dynamic_field()


@dataclass(frozen=True)
class SearchDocumentSet(Record):
    """The document set a search hit belongs to."""
    document_set_id: str = wire_field("documentSetId", default="")
    document_set_name: str = wire_field("documentSetName", default="")
    attributes: dict[str, TypedValue] = dynamic_field()


@dataclass(frozen=True)
class SearchData(Record):
    """A matched chunk with its surrounding context."""
    text: str = wire_field("text", default="")
    start_pos: int = wire_field("startPos", default=0)
    end_pos: int = wire_field("endPos", default=0)
    pre: list[str] = wire_field("pre", default_factory=list)
    next: list[str] = wire_field("next", default_factory=list)
    paragraph_title: str = wire_field("paragraphTitle", default="")
    all_parent_paragraph_titles: list[str] = wire_field(
        "allParentParagraphTitles", default_factory=list
    )


@dataclass(frozen=True)
class SearchDocument(Record):
    """One hit of a document-set search."""
    score: float = wire_field("score", default=0.0)
    data: SearchData = wire_field("data", default_factory=SearchData)
    document_set: SearchDocumentSet = wire_field("documentSet", default_factory=SearchDocumentSet)
