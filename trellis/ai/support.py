"""
Customer support chat grounded in a static knowledge base.

The chat log is append-only per identity. Each turn sends the system prompt
plus the last N messages (N = chat_context_messages) to the provider. This is
the support channel itself, so a provider failure answers with a fixed
"currently unable" reply instead of an error.
"""
from typing import Dict, List

from sqlalchemy.orm import Session

from trellis.ai.provider import AIProvider
from trellis.config import get_config
from trellis.errors import InvalidRequest, ProviderError
from trellis.identity import Identity, identity_key
from trellis.logger import get_logger
from trellis.models import ChatMessage

logger = get_logger("ai.support")

SYSTEM_PROMPT_TEMPLATE = (
    "You are a helpful customer support assistant for Trellis, an e-commerce store.\n"
    "Use the following knowledge base to answer customer questions:\n\n"
    "{knowledge_base}\n\n"
    "Be friendly, professional, and helpful. If you don't know something, "
    "suggest contacting support directly."
)


def _append(db: Session, session_key: str, role: str, content: str) -> ChatMessage:
    row = ChatMessage(session_id=session_key, role=role, content=content)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def context_window(db: Session, session_key: str, size: int) -> List[ChatMessage]:
    """The most recent ``size`` messages, oldest first."""
    recent = (
        db.query(ChatMessage)
        .filter(ChatMessage.session_id == session_key)
        .order_by(ChatMessage.created_at.desc(), ChatMessage.id.desc())
        .limit(size)
        .all()
    )
    return list(reversed(recent))


def build_messages(history: List[ChatMessage], knowledge_base: str) -> List[Dict[str, str]]:
    messages = [{"role": "system", "content": SYSTEM_PROMPT_TEMPLATE.format(knowledge_base=knowledge_base.strip())}]
    messages.extend({"role": m.role, "content": m.content} for m in history)
    return messages


def chat(db: Session, provider: AIProvider, identity: Identity, message: str) -> str:
    """Record the user's message, ask the provider, record and return the reply."""
    config = get_config()
    key = identity_key(identity)
    message = (message or "").strip()
    if not message:
        raise InvalidRequest("Message required")

    _append(db, key, "user", message)
    history = context_window(db, key, config.chat_context_messages)

    try:
        reply = provider.complete(
            build_messages(history, config.knowledge_base),
            max_tokens=config.chat_max_tokens,
        )
    except ProviderError as e:
        logger.warning("support: method=chat session=%s result=fallback error=%s", key, e)
        reply = config.support_fallback_message

    _append(db, key, "assistant", reply)
    logger.info("support: method=chat session=%s context=%s", key, len(history))
    return reply


def history(db: Session, identity: Identity) -> List[ChatMessage]:
    """Full chat log of the identity, oldest first."""
    key = identity_key(identity)
    return (
        db.query(ChatMessage)
        .filter(ChatMessage.session_id == key)
        .order_by(ChatMessage.created_at.asc(), ChatMessage.id.asc())
        .all()
    )
