"""Split document text into overlapping chunks sized for embedding.

Token counts are estimated at four characters per token. Paragraph mode
packs whole paragraphs and falls back to hard splits for oversized ones;
sentence mode packs sentences. Every chunk after the first is prefixed with
the tail of its predecessor (``overlap`` tokens) so retrieval keeps context
across chunk boundaries.
"""
import math
import re
from dataclasses import dataclass, replace
from typing import List

CHARS_PER_TOKEN = 4

_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")
_SENTENCE_END = re.compile(r"[.!?]+\s+")

@dataclass(frozen=True)
class ChunkOptions:
    max_chunk_size: int = 1000  # tokens
    overlap: int = 150  # tokens
    preserve_paragraphs: bool = True

@dataclass
class DocumentChunk:
    text: str
    index: int
    start_position: int
    end_position: int
    estimated_tokens: int

CATEGORY_OPTIONS = {
    # short chunks for precise product retrieval
    "products": ChunkOptions(max_chunk_size=800, overlap=100),
    "brand": ChunkOptions(max_chunk_size=1300, overlap=200),
    "audience": ChunkOptions(max_chunk_size=1000, overlap=150),
    "content": ChunkOptions(max_chunk_size=1200, overlap=150, preserve_paragraphs=False),
    "competitors": ChunkOptions(max_chunk_size=1000, overlap=150),
}

def estimate_tokens(text: str) -> int:
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN)

def options_for_category(category: str) -> ChunkOptions:
    return CATEGORY_OPTIONS.get(category, ChunkOptions())

def split_into_chunks(content: str, options: ChunkOptions = ChunkOptions()) -> List[DocumentChunk]:
    if not content or not content.strip():
        return []

    tokens = estimate_tokens(content)
    if tokens <= options.max_chunk_size:
        return [DocumentChunk(content, 0, 0, len(content), tokens)]

    if options.preserve_paragraphs:
        chunks = _chunk_by_paragraph(content, options)
    else:
        chunks = _chunk_by_sentence(content, options)
    return _add_overlap(chunks, options.overlap)

def _make_chunk(text: str, index: int, start: int) -> DocumentChunk:
    return DocumentChunk(text, index, start, start + len(text), estimate_tokens(text))

def _chunk_by_paragraph(content: str, options: ChunkOptions) -> List[DocumentChunk]:
    chunks: List[DocumentChunk] = []
    current = ""
    start = 0

    for paragraph in _PARAGRAPH_BREAK.split(content):
        paragraph = paragraph.strip()
        if not paragraph:
            continue

        candidate = f"{current}\n\n{paragraph}" if current else paragraph
        if estimate_tokens(candidate) <= options.max_chunk_size:
            current = candidate
            continue

        if current:
            chunks.append(_make_chunk(current, len(chunks), start))
            start += len(current)

        if estimate_tokens(paragraph) > options.max_chunk_size:
            for text, offset in _split_large_text(paragraph, options):
                chunks.append(_make_chunk(text, len(chunks), start + offset))
            current = ""
            start += len(paragraph)
        else:
            current = paragraph

    if current:
        chunks.append(_make_chunk(current, len(chunks), start))
    return chunks

def _chunk_by_sentence(content: str, options: ChunkOptions) -> List[DocumentChunk]:
    sentences = []
    last = 0
    for match in _SENTENCE_END.finditer(content):
        sentences.append(content[last:match.end()].strip())
        last = match.end()
    if last < len(content):
        sentences.append(content[last:].strip())

    chunks: List[DocumentChunk] = []
    current = ""
    start = 0
    for sentence in sentences:
        if not sentence:
            continue
        candidate = f"{current} {sentence}" if current else sentence
        if estimate_tokens(candidate) <= options.max_chunk_size:
            current = candidate
            continue
        if current:
            chunks.append(_make_chunk(current, len(chunks), start))
            start += len(current)
        current = sentence

    if current:
        chunks.append(_make_chunk(current, len(chunks), start))
    return chunks

def _split_large_text(text: str, options: ChunkOptions):
    """Hard-split text into ~90% of max size, preferring sentence then word boundaries."""
    approx = int(options.max_chunk_size * CHARS_PER_TOKEN * 0.9)
    pieces = []
    position = 0
    while position < len(text):
        end = min(position + approx, len(text))
        if end < len(text):
            sentence_end = text.rfind(".", 0, end + 1)
            if sentence_end > position + approx * 0.5:
                end = sentence_end + 1
            else:
                space = text.rfind(" ", 0, end + 1)
                if space > position + approx * 0.5:
                    end = space + 1
        piece = text[position:end].strip()
        if piece:
            pieces.append((piece, position))
        position = end
    return pieces

def _add_overlap(chunks: List[DocumentChunk], overlap_tokens: int) -> List[DocumentChunk]:
    if len(chunks) <= 1 or overlap_tokens <= 0:
        return chunks

    overlap_chars = overlap_tokens * CHARS_PER_TOKEN
    # each chunk borrows from its predecessor's original text
    originals = [c.text for c in chunks]
    out = [chunks[0]]
    for i in range(1, len(chunks)):
        prev = originals[i - 1]
        tail = prev[max(0, len(prev) - overlap_chars):]
        text = tail + chunks[i].text
        out.append(replace(
            chunks[i],
            text=text,
            start_position=chunks[i].start_position - len(tail),
            estimated_tokens=estimate_tokens(text),
        ))
    return [replace(c, index=i) for i, c in enumerate(out)]
