"""
Collection operations.

Builds request envelopes from records and filters, hands them to a
transport, and decodes the records that come back:

    with connect(config) as transport:
        docs = Collection(transport, "db", "books")
        docs.upsert([Document(id="0001", vector=[0.1, 0.2],
                              attributes={"author": TypedValue("jerry")})])
        found = docs.query(filter=Filter('author="jerry"').and_("page > 10"))
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Sequence

from .config import EVENTUAL_CONSISTENCY
from .documents import Document, QueryDocumentSet, SearchDocument
from .filters import FilterLike, cond_of
from .protocol import Transport
from .records import Record, encode_attributes, wire_field
from .types import TypedValue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchParams(Record):
    """Index-specific search tuning; leave fields unset to use index defaults."""
    nprobe: int = wire_field("nprobe", default=0, omitempty=True)  # IVF
    ef: int = wire_field("ef", default=0, omitempty=True)  # HNSW
    radius: float = wire_field("radius", default=0.0, omitempty=True)


@dataclass(frozen=True)
class SortRule:
    field_name: str
    direction: str = "desc"

    def to_wire(self) -> dict[str, str]:
        return {"fieldName": self.field_name, "direction": self.direction}


@dataclass(frozen=True)
class UpsertResult:
    affected_count: int
    warning: str = ""


@dataclass(frozen=True)
class AffectedResult:
    affected_count: int
    warning: str = ""


@dataclass(frozen=True)
class QueryResult:
    documents: list[Document] = field(default_factory=list)
    total: int = 0


@dataclass(frozen=True)
class SearchResult:
    """One list of hits per query vector (or id, or text)."""
    documents: list[list[Document]] = field(default_factory=list)
    warning: str = ""


@dataclass(frozen=True)
class DocumentSetQueryResult:
    document_sets: list[QueryDocumentSet] = field(default_factory=list)
    count: int = 0


def _compact(payload: dict[str, Any]) -> dict[str, Any]:
    """Drop unset envelope options."""
    return {k: v for k, v in payload.items() if v not in (None, "", [], {})}


def _count(value: Any) -> int:
    return TypedValue(value).as_uint64()


def _read_consistency(transport: Transport, explicit: Optional[str]) -> str:
    """The explicit setting, else the transport config's, else eventual."""
    if explicit is not None:
        return explicit
    config = getattr(transport, "config", None)
    return getattr(config, "read_consistency", EVENTUAL_CONSISTENCY)


def _decode_all(cls: type[Record], items: Optional[Iterable[Any]]) -> list:
    return [cls.from_wire(item) for item in items or []]


class Collection:
    """Document operations on one vector collection."""

    def __init__(
        self,
        transport: Transport,
        database: str,
        name: str,
        *,
        read_consistency: Optional[str] = None,
    ):
        self._transport = transport
        self.database = database
        self.name = name
        self.read_consistency = _read_consistency(transport, read_consistency)

    def _envelope(self, **payload: Any) -> dict[str, Any]:
        return _compact({"database": self.database, "collection": self.name, **payload})

    def upsert(
        self,
        documents: Sequence[Document],
        *,
        build_index: Optional[bool] = None,
    ) -> UpsertResult:
        """Insert or replace documents by id."""
        payload = self._envelope(
            documents=[doc.to_wire() for doc in documents],
            buildIndex=build_index,
        )
        logger.debug("Upserting %d documents into %s.%s", len(documents), self.database, self.name)
        res = self._transport.request("/document/upsert", payload)
        return UpsertResult(
            affected_count=_count(res.get("affectedCount")),
            warning=res.get("warning", ""),
        )

    def query(
        self,
        document_ids: Optional[Sequence[str]] = None,
        *,
        filter: FilterLike = None,
        retrieve_vector: bool = False,
        output_fields: Optional[Sequence[str]] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        sort: Optional[Sequence[SortRule]] = None,
    ) -> QueryResult:
        """
        Fetch documents by id and/or filter.

        ``retrieve_vector`` returns the vectors too, at the cost of speed.
        """
        cond = _compact({
            "documentIds": list(document_ids or []),
            "filter": cond_of(filter),
            "retrieveVector": retrieve_vector or None,
            "outputFields": list(output_fields or []),
            "limit": limit,
            "offset": offset,
            "sort": [rule.to_wire() for rule in sort or []],
        })
        payload = self._envelope(query=cond, readConsistency=self.read_consistency)
        res = self._transport.request("/document/query", payload)
        return QueryResult(
            documents=_decode_all(Document, res.get("documents")),
            total=_count(res.get("count")),
        )

    def search(self, vectors: Sequence[Sequence[float]], **options: Any) -> SearchResult:
        """Nearest neighbours of each vector."""
        return self._search({"vectors": [list(v) for v in vectors]}, **options)

    def search_by_id(self, document_ids: Sequence[str], **options: Any) -> SearchResult:
        """Nearest neighbours of stored documents."""
        return self._search({"documentIds": list(document_ids)}, **options)

    def search_by_text(self, texts: Sequence[str], **options: Any) -> SearchResult:
        """Nearest neighbours of texts embedded server-side."""
        return self._search({"embeddingItems": list(texts)}, **options)

    def _search(
        self,
        target: dict[str, Any],
        *,
        filter: FilterLike = None,
        params: Optional[SearchParams] = None,
        retrieve_vector: bool = False,
        output_fields: Optional[Sequence[str]] = None,
        limit: Optional[int] = None,
        radius: Optional[float] = None,
    ) -> SearchResult:
        cond = _compact({
            **target,
            "params": params.to_wire() if params is not None else None,
            "retrieveVector": retrieve_vector or None,
            "outputFields": list(output_fields or []),
            "limit": limit,
            "filter": cond_of(filter),
            "radius": radius,
        })
        payload = self._envelope(search=cond, readConsistency=self.read_consistency)
        res = self._transport.request("/document/search", payload)
        return SearchResult(
            documents=[_decode_all(Document, hits) for hits in res.get("documents") or []],
            warning=res.get("warning", ""),
        )

    def update(
        self,
        document: Document,
        *,
        document_ids: Optional[Sequence[str]] = None,
        filter: FilterLike = None,
    ) -> AffectedResult:
        """
        Set fields on every document matched by id and/or filter.

        ``document`` carries the new values; its id is ignored by the store.
        """
        cond = _compact({"documentIds": list(document_ids or []), "filter": cond_of(filter)})
        payload = self._envelope(query=cond, update=document.to_wire())
        res = self._transport.request("/document/update", payload)
        return AffectedResult(
            affected_count=_count(res.get("affectedCount")),
            warning=res.get("warning", ""),
        )

    def delete(
        self,
        document_ids: Optional[Sequence[str]] = None,
        *,
        filter: FilterLike = None,
        limit: Optional[int] = None,
    ) -> AffectedResult:
        """Delete documents matched by id and/or filter."""
        cond = _compact({
            "documentIds": list(document_ids or []),
            "filter": cond_of(filter),
            "limit": limit,
        })
        payload = self._envelope(query=cond)
        res = self._transport.request("/document/delete", payload)
        return AffectedResult(affected_count=_count(res.get("affectedCount")))

    def count(self, filter: FilterLike = None) -> int:
        """Number of documents matching ``filter`` (all, if omitted)."""
        payload = self._envelope(
            query={"filter": cond_of(filter)} if cond_of(filter) else None,
            readConsistency=self.read_consistency,
        )
        res = self._transport.request("/document/count", payload)
        return _count(res.get("count"))


class AICollection:
    """Document-set operations on one AI collection."""

    def __init__(
        self,
        transport: Transport,
        database: str,
        name: str,
        *,
        read_consistency: Optional[str] = None,
    ):
        self._transport = transport
        self.database = database
        self.name = name
        self.read_consistency = _read_consistency(transport, read_consistency)

    def _envelope(self, **payload: Any) -> dict[str, Any]:
        return _compact({"database": self.database, "collectionView": self.name, **payload})

    @staticmethod
    def _selector(
        document_set_ids: Optional[Sequence[str]],
        document_set_names: Optional[Sequence[str]],
        filter: FilterLike,
    ) -> dict[str, Any]:
        return _compact({
            "documentSetId": list(document_set_ids or []),
            "documentSetName": list(document_set_names or []),
            "filter": cond_of(filter),
        })

    def query(
        self,
        document_set_ids: Optional[Sequence[str]] = None,
        document_set_names: Optional[Sequence[str]] = None,
        *,
        filter: FilterLike = None,
        output_fields: Optional[Sequence[str]] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> DocumentSetQueryResult:
        cond = self._selector(document_set_ids, document_set_names, filter)
        cond.update(_compact({
            "outputFields": list(output_fields or []),
            "limit": limit,
            "offset": offset,
        }))
        res = self._transport.request("/ai/documentSet/query", self._envelope(query=cond))
        return DocumentSetQueryResult(
            document_sets=_decode_all(QueryDocumentSet, res.get("documentSets")),
            count=_count(res.get("count")),
        )

    def search(
        self,
        content: str,
        *,
        document_set_names: Optional[Sequence[str]] = None,
        filter: FilterLike = None,
        limit: Optional[int] = None,
        chunk_expand: Optional[Sequence[int]] = None,
    ) -> list[SearchDocument]:
        """
        Semantic search over the chunks of all (or the named) document sets.

        ``chunk_expand`` is ``[before, after]``: how many neighbouring chunks
        to return around each hit.
        """
        cond = _compact({
            "content": content,
            "documentSetName": list(document_set_names or []),
            "options": _compact({"chunkExpand": list(chunk_expand or [])}),
            "filter": cond_of(filter),
            "limit": limit,
        })
        payload = self._envelope(search=cond, readConsistency=self.read_consistency)
        res = self._transport.request("/ai/documentSet/search", payload)
        return _decode_all(SearchDocument, res.get("documents"))

    def update(
        self,
        attributes: dict[str, Any],
        document_set_ids: Optional[Sequence[str]] = None,
        document_set_names: Optional[Sequence[str]] = None,
        *,
        filter: FilterLike = None,
    ) -> AffectedResult:
        """Set dynamic attributes on the selected document sets."""
        payload = self._envelope(
            query=self._selector(document_set_ids, document_set_names, filter),
            update=encode_attributes(attributes),
        )
        res = self._transport.request("/ai/documentSet/update", payload)
        return AffectedResult(affected_count=_count(res.get("affectedCount")))

    def delete(
        self,
        document_set_ids: Optional[Sequence[str]] = None,
        document_set_names: Optional[Sequence[str]] = None,
        *,
        filter: FilterLike = None,
    ) -> AffectedResult:
        payload = self._envelope(
            query=self._selector(document_set_ids, document_set_names, filter)
        )
        res = self._transport.request("/ai/documentSet/delete", payload)
        return AffectedResult(affected_count=_count(res.get("affectedCount")))
