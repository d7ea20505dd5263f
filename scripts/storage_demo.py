#!/usr/bin/env python3
"""
Document storage walkthrough: create a conversation thread, add messages,
read them back, then store user preferences and agent memory records.
"""

import argparse
import sys
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from docvec.core import config
from docvec.core.document_store import DocumentStore
from docvec.core.schema import AppRecord, Message, MessagePart, Thread

CONVERSATION = [
    ("user", "Hello! I need help understanding how vector databases work."),
    ("assistant", "I'd be happy to explain vector databases! Vector databases are specialized systems designed to store and efficiently search high-dimensional vectors, which are numerical representations of data like text, images, or audio."),
    ("user", "How do they differ from traditional databases?"),
    ("assistant", "Traditional databases use exact matching on structured data (like SQL queries), while vector databases use similarity search. They find items that are semantically similar based on the distance between vectors in high-dimensional space."),
]


def create_conversation_thread(store: DocumentStore):
    thread = store.save_thread(Thread(
        id=f"thread-{uuid.uuid4()}",
        resource_id=f"resource-{uuid.uuid4()}",
        title="AI Assistant Conversation",
        metadata={"type": "chat", "model": "gpt-4", "tags": ["support", "technical"]},
    ))
    print("✓ Thread created:")
    print(f"   ID: {thread.id}")
    print(f"   Title: {thread.title}")
    print(f"   Resource ID: {thread.resource_id}\n")
    return thread


def add_messages_to_thread(store: DocumentStore, thread: Thread):
    messages = store.save_messages([
        Message(
            id=f"msg-{uuid.uuid4()}",
            thread_id=thread.id,
            role=role,
            content=[MessagePart(text=text)],
        )
        for role, text in CONVERSATION
    ])
    print(f"✓ Added {len(messages)} messages to the thread\n")
    for msg in messages:
        speaker = "User" if msg.role == "user" else "Assistant"
        print(f"{speaker}: {msg.text}\n")
    return messages


def retrieve_conversation(store: DocumentStore, thread: Thread):
    threads = store.get_threads_by_resource_id(thread.resource_id)
    print(f"✓ Threads found for resource: {len(threads)}")
    if threads:
        print(f"   Title: {threads[0].title}")
        print(f"   Metadata: {threads[0].metadata}")

    messages = store.get_messages(thread.id)
    print(f"✓ Messages retrieved: {len(messages)}\n")
    return threads, messages


def store_application_data(store: DocumentStore):
    record = store.save_record(AppRecord(
        id=f"user-{uuid.uuid4()}",
        type="user_preferences",
        data={
            "theme": "dark",
            "language": "en",
            "notifications": {"email": True, "push": False},
            "aiSettings": {"model": "gpt-4", "temperature": 0.7, "maxTokens": 2000},
        },
    ))
    print("✓ Application data stored:")
    print(f"   User ID: {record.id}")
    print(f"   Theme: {record.data['theme']}")
    print(f"   AI Model: {record.data['aiSettings']['model']}\n")
    return record


def store_agent_memory(store: DocumentStore, ttl_days: int):
    record = store.save_record(AppRecord(
        id=f"memory-{uuid.uuid4()}",
        type="long_term_memory",
        data={
            "agentId": f"agent-{uuid.uuid4()}",
            "userContext": {
                "name": "John Doe",
                "preferences": ["technical discussions", "detailed explanations"],
                "previousTopics": ["vector databases", "machine learning", "NLP"],
            },
            "keyInsights": [
                "User prefers technical depth",
                "Has background in software development",
                "Learning about AI infrastructure",
            ],
        },
        expires_at=datetime.now(timezone.utc) + timedelta(days=ttl_days),
    ))
    print("✓ Agent memory stored:")
    print(f"   Memory ID: {record.id}")
    print(f"   Key Insights: {len(record.data['keyInsights'])} insights stored")
    print(f"   Expires: {record.expires_at.isoformat()}\n")
    return record


def main():
    parser = argparse.ArgumentParser(description="Document storage demo")
    parser.add_argument("--db-path", default=None, help="SQLite file (default: DB_PATH)")
    parser.add_argument("--memory-ttl-days", type=int, default=30, help="Agent memory lifetime in days")
    args = parser.parse_args()

    print("App Storage Example")
    print("===================\n")

    store = DocumentStore(args.db_path) if args.db_path else config.get_document_store()
    try:
        thread = create_conversation_thread(store)
        add_messages_to_thread(store, thread)
        retrieve_conversation(store, thread)
        store_application_data(store)
        store_agent_memory(store, args.memory_ttl_days)
        return 0
    except Exception as e:
        print(f"ERROR: Storage demo failed: {e}")
        return 1
    finally:
        store.close()
        print("✓ Closed document store")


if __name__ == "__main__":
    sys.exit(main())
