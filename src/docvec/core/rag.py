"""
Retrieval-augmented conversation flow over the vector index and the
document store.

A question is embedded and matched against the knowledge base, an answer is
composed from the retrieved documents, and the exchange (user question,
retrieved context, assistant answer) is saved on the conversation thread
together with an agent memory record.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from ..util.logging import logger
from ..vector.errors import NotFoundError
from ..vector.index import IVectorStore
from ..vector.types import QueryResult
from .document_store import DocumentStore
from .schema import AppRecord, Message, MessagePart, Thread
from .search_service import semantic_search

DEFAULT_RAG_TOP_K = 3
DEFAULT_RAG_MIN_SCORE = 0.5
DEFAULT_CONTEXT_TOP_K = 2
DEFAULT_MODEL = "gpt-4"
DEFAULT_AGENT_ID = "agent-main"
SNIPPET_LENGTH = 150

AnswerFn = Callable[[str, List[QueryResult]], str]


@dataclass
class RagExchange:
    """Everything one answered question produced."""

    question: str
    """The user's question"""

    results: List[QueryResult]
    """Documents retrieved as context, best first"""

    answer: str
    """Assistant answer composed from the context"""

    messages: List[Message]
    """User, context and assistant messages saved on the thread"""

    memory: AppRecord
    """Agent memory record describing the exchange"""


def start_conversation(
    doc_store: DocumentStore,
    resource_id: str,
    index_name: str,
    title: str = "RAG-Enhanced AI Conversation",
    model: str = DEFAULT_MODEL,
    thread_id: Optional[str] = None,
) -> Thread:
    """Create a thread tagged with the knowledge base it draws on."""
    return doc_store.save_thread(Thread(
        id=thread_id or f"thread-{uuid.uuid4()}",
        resource_id=resource_id,
        title=title,
        metadata={
            "type": "rag_chat",
            "model": model,
            "knowledge_base": index_name,
        },
    ))


def compose_answer(question: str, results: Sequence[QueryResult]) -> str:
    """Answer built from retrieved document titles and content snippets."""
    if not results:
        return f"No documents in the knowledge base are relevant enough to answer: {question}"

    lines = []
    for result in results:
        title = result.metadata.get("title", result.id)
        content = str(result.metadata.get("content", ""))
        snippet = content[:SNIPPET_LENGTH] + ("..." if len(content) > SNIPPET_LENGTH else "")
        lines.append(f"• {title}: {snippet}")
    return "Based on the knowledge base:\n\n" + "\n".join(lines)


def retrieved_documents(results: Sequence[QueryResult]) -> List[Dict[str, Any]]:
    """Compact id/title/score view of results, as stored in context messages."""
    return [
        {"id": r.id, "title": r.metadata.get("title", r.id), "score": r.score}
        for r in results
    ]


def build_exchange_messages(
    thread_id: str,
    question: str,
    results: Sequence[QueryResult],
    answer: str,
    model: str = DEFAULT_MODEL,
) -> List[Message]:
    """User question, retrieved context and assistant answer, in that order."""
    # Distinct timestamps keep the three messages ordered within the thread
    now = datetime.now(timezone.utc)
    return [
        Message(
            id=f"msg-{uuid.uuid4()}",
            thread_id=thread_id,
            role="user",
            content=[MessagePart(text=question)],
            created_at=now,
        ),
        Message(
            id=f"msg-{uuid.uuid4()}",
            thread_id=thread_id,
            role="system",
            type="context",
            content=[MessagePart(type="retrieved_documents", documents=retrieved_documents(results))],
            created_at=now + timedelta(microseconds=1),
        ),
        Message(
            id=f"msg-{uuid.uuid4()}",
            thread_id=thread_id,
            role="assistant",
            content=[MessagePart(text=answer)],
            metadata={
                "used_rag": True,
                "documents_retrieved": len(results),
                "model": model,
            },
            created_at=now + timedelta(microseconds=2),
        ),
    ]


def remember_exchange(
    doc_store: DocumentStore,
    thread_id: str,
    results: Sequence[QueryResult],
    agent_id: str = DEFAULT_AGENT_ID,
    user_intent: Optional[str] = None,
    topics: Sequence[str] = (),
) -> AppRecord:
    """Save a conversation_insight record for the agent."""
    return doc_store.save_record(AppRecord(
        id=f"memory-{uuid.uuid4()}",
        type="conversation_insight",
        data={
            "agent_id": agent_id,
            "thread_id": thread_id,
            "user_intent": user_intent,
            "topics_discussed": list(topics),
            "documents_used": [r.id for r in results],
        },
    ))


def answer_question(
    store: IVectorStore,
    embedder,
    doc_store: DocumentStore,
    index_name: str,
    thread_id: str,
    question: str,
    top_k: int = DEFAULT_RAG_TOP_K,
    min_score: Optional[float] = DEFAULT_RAG_MIN_SCORE,
    filter: Optional[Mapping[str, Any]] = None,
    model: str = DEFAULT_MODEL,
    answer_fn: Optional[AnswerFn] = None,
    agent_id: str = DEFAULT_AGENT_ID,
    user_intent: Optional[str] = None,
    topics: Sequence[str] = (),
) -> RagExchange:
    """
    Answer a question from the knowledge base and record the exchange.

    Args:
        store: Vector store holding the knowledge base
        embedder: Anything with ``embed_text`` (provider or EmbeddingService)
        doc_store: Document store holding the conversation
        index_name: Knowledge base index
        thread_id: Existing thread the exchange is saved on
        question: User question
        top_k: Maximum number of context documents
        min_score: Drop context documents scoring below this value
        filter: Metadata filter applied to retrieval
        model: Model name recorded on the assistant message
        answer_fn: ``(question, results) -> answer``; defaults to compose_answer
        agent_id: Agent owning the memory record
        user_intent: Optional intent label stored in agent memory
        topics: Topics stored in agent memory

    Returns:
        The RagExchange with retrieved results, answer, messages and memory

    Raises:
        NotFoundError: If the thread or the index does not exist
    """
    if doc_store.get_thread(thread_id) is None:
        raise NotFoundError(f"thread '{thread_id}' does not exist; start a conversation first", name=thread_id)

    results = semantic_search(store, embedder, index_name, question, top_k=top_k, filter=filter, min_score=min_score)
    answer = (answer_fn or compose_answer)(question, results)

    messages = doc_store.save_messages(build_exchange_messages(thread_id, question, results, answer, model))
    memory = remember_exchange(doc_store, thread_id, results, agent_id, user_intent, topics)

    logger.log_operation("rag.answer", "success", {
        "thread_id": thread_id,
        "index": index_name,
        "documents_retrieved": len(results),
    })
    return RagExchange(question=question, results=results, answer=answer, messages=messages, memory=memory)


def contextual_query(history: Sequence[str], follow_up: str) -> str:
    """Fold the conversation so far into the follow-up question."""
    return " ".join([*[h for h in history if h and h.strip()], follow_up])


def contextual_search(
    store: IVectorStore,
    embedder,
    index_name: str,
    history: Sequence[str],
    follow_up: str,
    top_k: int = DEFAULT_CONTEXT_TOP_K,
    filter: Optional[Mapping[str, Any]] = None,
    min_score: Optional[float] = None,
) -> List[QueryResult]:
    """Search with the follow-up question read in the light of the conversation history."""
    return semantic_search(
        store, embedder, index_name, contextual_query(history, follow_up),
        top_k=top_k, filter=filter, min_score=min_score,
    )


def conversation_history(doc_store: DocumentStore, thread_id: str, limit: Optional[int] = None) -> List[str]:
    """Text of the user messages on a thread, oldest first."""
    return [m.text for m in doc_store.get_messages(thread_id, limit=limit) if m.role == "user" and m.text]
