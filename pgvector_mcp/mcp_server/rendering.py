"""Plain-text rendering of query results for MCP text content."""

import json

from pydantic import BaseModel

from pgvector_mcp.schemas import DatabaseStats, Document, ScoredDocument

DEFAULT_PREVIEW_CHARS = 200


def preview(content: str, max_chars: int = DEFAULT_PREVIEW_CHARS) -> str:
    if len(content) <= max_chars:
        return content
    return content[:max_chars] + "..."


def _metadata_block(document: Document) -> str:
    return json.dumps(document.metadata, indent=2, default=str)


def render_vector_results(results: list[ScoredDocument], max_chars: int = DEFAULT_PREVIEW_CHARS) -> str:
    lines = [f"Found {len(results)} similar documents:", ""]
    for index, doc in enumerate(results, start=1):
        lines.append(f"{index}. [Similarity: {doc.similarity * 100:.1f}%] ID: {doc.id}")
        lines.append(f"   Content: {preview(doc.content, max_chars)}")
        lines.append(f"   Metadata: {_metadata_block(doc)}")
        lines.append("")
    return "\n".join(lines).rstrip() + "\n"


def render_metadata_results(results: list[Document], max_chars: int = DEFAULT_PREVIEW_CHARS) -> str:
    lines = [f"Found {len(results)} documents matching filters:", ""]
    for index, doc in enumerate(results, start=1):
        lines.append(f"{index}. ID: {doc.id}")
        lines.append(f"   Content: {preview(doc.content, max_chars)}")
        lines.append(f"   Metadata: {_metadata_block(doc)}")
        lines.append("")
    return "\n".join(lines).rstrip() + "\n"


def render_insert(document_id) -> str:
    return f"Document inserted successfully with ID: {document_id}"


def render_stats(stats: DatabaseStats) -> str:
    lines = [
        "Database Statistics:",
        "",
        f"Total Documents: {stats.total_documents}",
        "",
        "Vector-enabled Tables:",
    ]
    if not stats.tables:
        lines.append("(none found)")
    for table in stats.tables:
        lines.append(
            f"- {table.name}: {table.document_count} documents ({table.embedding_column} column)"
        )
    return "\n".join(lines)


def render_json(model: BaseModel) -> str:
    return json.dumps(model.model_dump(mode="json"), indent=2, default=str)
