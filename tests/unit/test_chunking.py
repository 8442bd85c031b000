from app.services.chunking import (
    ChunkOptions,
    estimate_tokens,
    options_for_category,
    split_into_chunks,
)

def paragraph(word, chars):
    return (f"{word} " * (chars // (len(word) + 1))).strip() + "."

def test_estimate_tokens():
    assert estimate_tokens("") == 0
    assert estimate_tokens("abcd") == 1
    assert estimate_tokens("abcde") == 2

def test_empty_content_has_no_chunks():
    assert split_into_chunks("") == []
    assert split_into_chunks("   \n\n  ") == []

def test_short_content_is_a_single_chunk():
    chunks = split_into_chunks("A short brand description.")
    assert len(chunks) == 1
    assert chunks[0].text == "A short brand description."
    assert chunks[0].index == 0
    assert chunks[0].start_position == 0
    assert chunks[0].end_position == len("A short brand description.")

def test_paragraphs_are_packed_with_overlap():
    options = ChunkOptions(max_chunk_size=100, overlap=10)
    content = "\n\n".join(paragraph(w, 300) for w in ("alpha", "beta", "gamma"))

    chunks = split_into_chunks(content, options)

    assert [c.index for c in chunks] == list(range(len(chunks)))
    assert len(chunks) == 3
    assert chunks[0].text.startswith("alpha")
    # the second chunk carries the last 40 characters of the first
    assert chunks[1].text.startswith(chunks[0].text[-40:])
    assert "beta" in chunks[1].text
    assert "gamma" in chunks[2].text
    assert all(c.estimated_tokens == estimate_tokens(c.text) for c in chunks)

def test_oversized_paragraph_is_hard_split():
    options = ChunkOptions(max_chunk_size=50, overlap=0)
    content = paragraph("word", 1000) + "\n\n" + paragraph("tail", 100)

    chunks = split_into_chunks(content, options)

    assert len(chunks) > 2
    # hard splits stay under 90% of the limit
    assert all(len(c.text) <= 50 * 4 for c in chunks)
    assert chunks[-1].text.startswith("tail")

def test_sentence_mode():
    options = ChunkOptions(max_chunk_size=20, overlap=0, preserve_paragraphs=False)
    content = " ".join(f"Sentence number {i} talks about content." for i in range(10))

    chunks = split_into_chunks(content, options)

    assert len(chunks) > 1
    assert all(c.estimated_tokens <= 20 for c in chunks)
    assert all(c.text.endswith(".") for c in chunks)

def test_category_options():
    assert options_for_category("products").max_chunk_size == 800
    assert options_for_category("brand").overlap == 200
    assert options_for_category("content").preserve_paragraphs is False
    assert options_for_category("unknown") == ChunkOptions()
