"""Text chunker — semantic paragraph → sentence → character splitting.

Single source of truth for chunking logic.  Used by:
  - ``indexer.py``  (``POST /vectors`` and ``python cli.py ingest``)
  - ``tests/test_chunker.py``

Strategy
--------
1. Split on blank lines to get natural paragraphs.
2. Every paragraph that fits within ``chunk_size`` is its own chunk;
   paragraphs are never merged with each other.
3. Paragraphs larger than ``chunk_size`` are sentence-split first.
4. Sentences (or fragments) larger than ``chunk_size`` fall back to
   character windows — only as a last resort.
5. Inside one oversized paragraph, consecutive sentences are merged up
   to ``chunk_size`` so we avoid many tiny fragments.
"""

from __future__ import annotations

import re
from dataclasses import dataclass


@dataclass(frozen=True)
class Chunk:
    """One slice of a source document, in document order."""
    content: str
    source_file: str
    sequence_index: int

    @property
    def id(self) -> str:
        """Stable embedding id — the join key between index and registry."""
        return f"{self.source_file}-{self.sequence_index}"


def _split_paragraph(para: str, size: int, overlap: int) -> list[str]:
    """Sentence-level atoms of an oversized paragraph."""
    atoms: list[str] = []
    sentences = [s.strip() for s in re.split(r"(?<=[.!?])\s+", para) if s.strip()]
    for sent in sentences:
        if len(sent) <= size:
            atoms.append(sent)
        else:
            stride = max(1, size - overlap)
            for i in range(0, len(sent), stride):
                fragment = sent[i : i + size]
                if fragment.strip():
                    atoms.append(fragment)
    return atoms


def _merge(atoms: list[str], size: int, overlap: int) -> list[str]:
    """Join consecutive atoms into chunks of at most ~``size`` characters."""
    chunks: list[str] = []
    current_parts: list[str] = []
    current_len = 0

    for atom in atoms:
        atom_len = len(atom)
        # +1 for the space separator
        if current_parts and current_len + 1 + atom_len > size:
            chunks.append(" ".join(current_parts))
            # Start next chunk with overlap: carry the tail of the last chunk
            if overlap > 0:
                tail = chunks[-1][-overlap:]
                current_parts = [tail]
                current_len = len(tail)
            else:
                current_parts = []
                current_len = 0
        current_parts.append(atom)
        current_len += (1 + atom_len) if len(current_parts) > 1 else atom_len

    if current_parts:
        chunks.append(" ".join(current_parts))
    return chunks


def chunk_text(
    text: str,
    chunk_size: int = 1000,
    chunk_overlap: int = 200,
) -> list[str]:
    """Split *text* into semantically meaningful chunks.

    Args:
        text:          Source text to chunk.
        chunk_size:    Maximum characters per chunk.
        chunk_overlap: Character overlap between consecutive pieces of
                       one oversized paragraph.

    Returns:
        List of non-empty chunk strings, in document order.
    """
    paragraphs = [p.strip() for p in re.split(r"\n{2,}", text) if p.strip()]

    chunks: list[str] = []
    for para in paragraphs:
        if len(para) <= chunk_size:
            chunks.append(para)
        else:
            chunks.extend(_merge(_split_paragraph(para, chunk_size, chunk_overlap), chunk_size, chunk_overlap))
    return [c.strip() for c in chunks if c.strip()]


def split_document(
    content: str,
    filename: str,
    chunk_size: int = 1000,
    chunk_overlap: int = 200,
) -> list[Chunk]:
    """Chunk *content* and tag every piece with its file and position."""
    return [
        Chunk(content=text, source_file=filename, sequence_index=i)
        for i, text in enumerate(chunk_text(content, chunk_size, chunk_overlap))
    ]
