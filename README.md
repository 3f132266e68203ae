# digrag

Building blocks for searching personal notes and changelog-style memo files.
Entries become documents. The documents are indexed for keyword (BM25) and
vector (cosine similarity) search, and every index is written as plain JSON.
That lets an index directory be compared with a new set of documents and
rebuilt incrementally.

The package has no dependencies outside the standard library.

## Modules

| Module             | Contents                                                          |
|--------------------|-------------------------------------------------------------------|
| `digrag.document`  | `Document`, `Metadata`, content hashing, title categories         |
| `digrag.changelog` | `ChangelogLoader` for `* Title YYYY-MM-DD HH:MM:SS [tag]:` files   |
| `digrag.jsonl`     | `load_from_stream`, `load_from_string`, `JsonlError`               |
| `digrag.metadata`  | `IndexMetadata` with schema version and per-document hashes       |
| `digrag.diff`      | `IncrementalDiff`: added, modified, removed, unchanged            |
| `digrag.docstore`  | `Docstore`: lookup by id, by tag, most recent                     |
| `digrag.vector`    | `VectorIndex` and `SearchResult`                                  |
| `digrag.bm25`      | `Bm25Index` keyword ranking with a built-in tokenizer             |
| `digrag.builder`   | `IndexBuilder` and `create_embedding_text`                        |

## Documents

A `Document` has an `id`, a `metadata` (`title`, `date`, `tags`) and a `text`.
The `title`, `date` and `tags` are also available as properties on the
document. Dates are stored as UTC datetimes.

- `Document.create(title, date, tags, text)` gives the document a random UUID.
- `Document.with_content_id(...)` uses `Document.compute_content_hash(title, text)` as the id. This hash is the first 16 hex characters of SHA-256 over the title, a NUL byte and the text.
- `category()` returns the part of a `" / "`-separated title before the first separator, or `None` for an empty title.
- `subcategory()` returns the second part, or `None` if the title has no separator.
- `to_dict()` and `Document.from_dict(data)` convert to and from the JSON layout `{"id", "metadata": {"title", "date", "tags"}, "text"}`. In that layout the date is written as an RFC 3339 string ending in `Z`.

## Loading documents

A changelog file is a sequence of entries. Each entry starts with a header line
that holds a title, a timestamp and any number of `[tag]:` markers. The lines
that follow form the body, with surrounding whitespace removed. Lines before
the first header are ignored.

```python
from digrag.changelog import ChangelogLoader

text = """* First Entry 2025-01-15 10:00:00 [memo]:[tips]:
First content
* Second Entry 2025-01-14 09:00:00 [worklog]:
Second content
"""

docs = ChangelogLoader().load_from_string(text)
docs[0].title           # "First Entry"
docs[0].tags            # ["memo", "tips"]
docs[0].has_tag("tips") # True
```

`ChangelogLoader().load_from_file(path)` reads a UTF-8 file. Document ids come
from the title and body, so the same entry gets the same id on every build.

JSONL input holds one serialised document per line. Blank lines and lines
starting with `#` are skipped. A malformed line raises `JsonlError`, a
`ValueError` subclass whose message names the line number.

```python
from digrag.jsonl import load_from_string

docs = load_from_string(
    '{"id":"doc1","metadata":{"title":"Claude Code / hooks",'
    '"date":"2025-01-15T10:00:00Z","tags":["tips"]},"text":"Content"}'
)
docs[0].category()      # "Claude Code"
docs[0].subcategory()   # "hooks"
```

`load_from_stream(stream)` accepts any text or binary line iterator, such as
`sys.stdin` or an open file.

## Searching

`Bm25Index.build(docs, tokenize=None)` indexes the title and text of each
document and ranks them with BM25 (k1 = 1.2, b = 0.75).

If no tokenizer is given, the built-in one splits text into word runs:

- ASCII letter and digit runs are lowercased. Their camel-case parts are added as extra tokens, so `VimConf` yields `vimconf`, `vim` and `conf`.
- Other runs are kept as single characters when one character long, and otherwise split into overlapping two-character tokens.

Any callable mapping a string to a list of tokens can be passed instead.

```python
from digrag.bm25 import Bm25Index

index = Bm25Index.build(docs)
for hit in index.search("content", 3):
    print(hit.doc_id, hit.score)
```

`search(query, top_k)` returns only documents with a positive score, best
first. `Bm25Index.from_corpus(doc_ids, corpus, tokenize=None)` indexes
documents that are already tokenized.

`VectorIndex` ranks stored embeddings by cosine similarity to a query vector.
Only positive similarities are returned.

```python
from digrag.vector import VectorIndex

vectors = VectorIndex(3)
vectors.add("doc1", [1.0, 0.0, 0.0])
vectors.add("doc2", [0.0, 1.0, 0.0])
vectors.search([0.9, 0.1, 0.0], 1)[0].doc_id   # "doc1"
```

An index created with dimension 0 takes the length of the first vector added.
`contains`, `remove` and `remove_batch` manage entries by document id.

`Docstore` keeps the full documents. It provides:

- `add`, `get` and `contains`
- `get_by_tag(tag)`
- `get_all_tags()`, sorted and without duplicates
- `get_recent(limit)`, newest first
- `remove` and `remove_batch`

## Building an index directory

`IndexBuilder` writes four files into an output directory:

- `bm25_index.json`
- `docstore.json`
- `faiss_index.json` (the vector index)
- `metadata.json`

Progress is reported through an optional `progress(step, total, message)`
callback.

```python
from digrag.builder import IndexBuilder

builder = IndexBuilder()
builder.build("changelog.txt", ".rag")                 # parse a changelog file
builder.build_from_documents(docs, ".rag")             # or use loaded documents
```

To fill the vector index, pass an embedding client to
`IndexBuilder(embedding_client, tokenize=None, batch_delay=0.5)`. The client
must have a `model` attribute and an async `embed_batch(texts)` method that
returns one vector per text. Then call one of the async methods:

- `await builder.build_with_embeddings(input_path, output_dir)`
- `await builder.build_from_documents_with_embeddings(documents, output_dir)`

Documents are embedded in batches of 10, with `batch_delay` seconds between
batches. Each document's input is produced by `create_embedding_text(doc)`:
its title, tags and text. Without a client, the vector index is saved empty.

The metadata records the embedding model name and a content hash for every
document. A later build can pass `metadata.doc_hashes` to
`IncrementalDiff.compute(new_docs, existing_hashes)` to see which documents
were added, modified, removed or unchanged. `IndexBuilder.load_existing_metadata(output_dir)`
and `IndexBuilder.has_incremental_support(output_dir)` return nothing for a
directory whose metadata is missing, unreadable or older than schema version
2.0.

Every index type can be written with `save(path)` and read back with
`load(path)`. The BM25 loader also accepts the `{"version", "doc_ids",
"corpus"}` layout and rebuilds the inverted index from the token lists.

## What this package does not do

- It does not call any embedding service. You supply the embedding client.
- It has no combined or hybrid search across the BM25 and vector indices.
- It does not rewrite queries.
- It has no command-line tool and no server. Everything is used as a library from Python code.

## Running the tests

Install the `test` extra, then run `pytest` from the project root.