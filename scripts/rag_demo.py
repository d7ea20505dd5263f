#!/usr/bin/env python3
"""
Integrated walkthrough: an assistant that answers from the vector knowledge
base and keeps the conversation and its memory in the document store.

Builds the knowledge base from the sample documents, starts a thread, answers
a question with retrieved context, stores the exchange and an agent memory
record, then runs a contextual search over a conversation history.
"""

import argparse
import sys
import uuid
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from docvec.core import config
from docvec.core.rag import (
    DEFAULT_RAG_MIN_SCORE,
    answer_question,
    contextual_search,
    start_conversation,
)
from docvec.core.samples import SAMPLE_DOCUMENTS
from docvec.core.search_service import ensure_index, index_documents
from docvec.vector.errors import VectorStoreError

DEFAULT_QUESTION = "Can you explain how machine learning differs from deep learning?"

CONVERSATION_HISTORY = [
    "Tell me about neural networks",
    "How do they learn?",
    "What about backpropagation?",
]
FOLLOW_UP = "Explain the mathematics behind it."


def main():
    parser = argparse.ArgumentParser(description="Retrieval-augmented conversation demo")
    parser.add_argument("--index", default=None, help="Index name (default: VECTOR_INDEX_NAME)")
    parser.add_argument("--question", default=DEFAULT_QUESTION, help="Question to answer")
    parser.add_argument("--min-score", type=float, default=DEFAULT_RAG_MIN_SCORE, help="Context score threshold")
    args = parser.parse_args()

    issues = config.validate_config()
    if issues:
        for issue in issues:
            print(f"ERROR: {issue}")
        return 1

    index_name = args.index or config.get_index_name()
    print("Integrated Example: AI Assistant with Memory and Knowledge Base")
    print("===============================================================\n")

    try:
        embedder = config.get_embedding_service()
    except VectorStoreError as e:
        print(f"ERROR: Could not set up embedding provider: {e}")
        return 1

    store = config.get_vector_store()
    doc_store = config.get_document_store()
    try:
        print("Step 1: Building knowledge base...")
        ensure_index(store, index_name, embedder.get_dimension(), config.get_vector_metric())
        ids = index_documents(store, embedder, index_name, SAMPLE_DOCUMENTS)
        print(f"✓ Knowledge base created with {len(ids)} documents\n")

        print("Step 2: Starting conversation...")
        thread = start_conversation(doc_store, f"resource-{uuid.uuid4()}", index_name)
        print(f"✓ Thread {thread.id}")
        print(f"\nUser: {args.question}\n")

        print("Step 3: Retrieving context and answering...")
        exchange = answer_question(
            store, embedder, doc_store, index_name, thread.id, args.question,
            min_score=args.min_score,
            user_intent="understanding_ml_concepts",
            topics=["machine learning", "deep learning"],
        )
        print(f"✓ Found {len(exchange.results)} relevant documents:")
        for i, result in enumerate(exchange.results, start=1):
            print(f"   {i}. {result.metadata.get('title')} (score: {result.score:.3f})")
        print(f"\nAssistant: {exchange.answer[:300]}...\n")

        print("Step 4: Stored conversation and memory")
        print(f"✓ {len(doc_store.get_messages(thread.id))} messages on thread {thread.id}")
        print(f"✓ Agent memory {exchange.memory.id} ({exchange.memory.type})\n")

        print("Advanced Feature: Contextual Search")
        print("===================================\n")
        print("Conversation history:")
        for i, message in enumerate(CONVERSATION_HISTORY, start=1):
            print(f"   {i}. {message}")
        print(f"\nContextual search query: \"{FOLLOW_UP}\"\n")

        results = contextual_search(store, embedder, index_name, CONVERSATION_HISTORY, FOLLOW_UP)
        print("✓ Context-aware results:")
        for i, result in enumerate(results, start=1):
            print(f"   {i}. {result.metadata.get('title')} (score: {result.score:.3f})")

        return 0

    except Exception as e:
        print(f"ERROR: RAG demo failed: {e}")
        return 1
    finally:
        doc_store.close()
        store.close()
        print("\n✓ Closed stores")


if __name__ == "__main__":
    sys.exit(main())
