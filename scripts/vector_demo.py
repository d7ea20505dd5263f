#!/usr/bin/env python3
"""
Vector storage walkthrough: create an index, store the sample documents with
their embeddings, then run plain and filtered similarity searches.

The embedding provider comes from EMBED_PROVIDER (hash, sentence_transformers
or openai). Hash embeddings carry no meaning, so use a real model to see
sensible rankings.
"""

import argparse
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from docvec.core import config
from docvec.core.samples import SAMPLE_DOCUMENTS
from docvec.core.search_service import ensure_index, index_documents, semantic_search
from docvec.vector.errors import VectorStoreError

DEFAULT_QUERIES = [
    "What is deep learning and neural networks?",
    "How do computers see and understand images?",
    "Learning through rewards and penalties",
]

FILTERED_SEARCHES = [
    ("artificial intelligence", {"author": {"$in": ["John Doe", "Jane Smith"]}}),
    ("learning", {"category": "AI", "author": {"$regex": "John|Jane"}}),
]


def print_results(results, preview: bool = True):
    if not results:
        print("No matching documents found\n")
        return

    print(f"Found {len(results)} documents:\n")
    for i, result in enumerate(results, start=1):
        print(f"{i}. {result.metadata.get('title')}")
        print(f"   Author: {result.metadata.get('author')}")
        print(f"   Category: {result.metadata.get('category')}")
        print(f"   Score: {result.score:.4f}")
        if preview:
            print(f"   Preview: {result.metadata.get('content', '')[:100]}...")
        print("")


def main():
    parser = argparse.ArgumentParser(description="Vector storage demo")
    parser.add_argument("--index", default=None, help="Index name (default: VECTOR_INDEX_NAME)")
    parser.add_argument("--top-k", type=int, default=3, help="Results per plain search")
    parser.add_argument("--min-score", type=float, default=0.5, help="Score threshold for plain searches")
    parser.add_argument("--filtered-min-score", type=float, default=0.3, help="Score threshold for filtered searches")
    parser.add_argument("--query", action="append", help="Extra query to run (repeatable)")
    args = parser.parse_args()

    issues = config.validate_config()
    if issues:
        for issue in issues:
            print(f"ERROR: {issue}")
        return 1

    index_name = args.index or config.get_index_name()
    print("Vector Storage Example")
    print("======================\n")

    try:
        embedder = config.get_embedding_service()
    except VectorStoreError as e:
        print(f"ERROR: Could not set up embedding provider: {e}")
        return 1

    store = config.get_vector_store()
    try:
        ensure_index(store, index_name, embedder.get_dimension(), config.get_vector_metric())
        print(f"✓ Vector index '{index_name}' ready ({embedder.get_dimension()} dims, {config.get_vector_metric()})")

        print(f"\nGenerating embeddings for {len(SAMPLE_DOCUMENTS)} documents...")
        ids = index_documents(store, embedder, index_name, SAMPLE_DOCUMENTS)
        print(f"✓ Stored {len(ids)} documents with embeddings\n")
        for doc in SAMPLE_DOCUMENTS:
            print(f"   - {doc['title']} (by {doc['author']})")

        for query in DEFAULT_QUERIES + (args.query or []):
            print(f"\nSearching for: \"{query}\"\n")
            results = semantic_search(store, embedder, index_name, query, top_k=args.top_k, min_score=args.min_score)
            print_results(results)

        for query, filters in FILTERED_SEARCHES:
            print(f"\nAdvanced search for: \"{query}\" with filters: {filters}\n")
            results = semantic_search(
                store, embedder, index_name, query,
                top_k=5, filter=filters, min_score=args.filtered_min_score,
            )
            print_results(results, preview=False)

        return 0

    except Exception as e:
        print(f"ERROR: Vector demo failed: {e}")
        return 1
    finally:
        store.close()
        print("\n✓ Closed vector store")


if __name__ == "__main__":
    sys.exit(main())
