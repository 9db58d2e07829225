"""
Cas d'usage 'messaging': validation des bodies et mise en forme des réponses.
"""
from typing import Any, Dict, List, Optional

from marketplace.errors import InvalidArgument, NotFound
from marketplace.utils.requests import optional_str, require_str
from .store import MessageStore, describe_age, expires_in_days, is_expiring_soon


def start_conversation(store: MessageStore, body: Dict[str, Any]) -> Dict[str, Any]:
    """Entrée: {buyerId, sellerId, productId?, productName?, buyerName?, sellerName?}"""
    buyer_id = require_str(body, "buyerId")
    seller_id = require_str(body, "sellerId")
    if buyer_id == seller_id:
        raise InvalidArgument("buyerId and sellerId must differ")
    return store.create_conversation(
        buyer_id=buyer_id,
        seller_id=seller_id,
        product_id=optional_str(body, "productId"),
        product_name=optional_str(body, "productName"),
        buyer_name=optional_str(body, "buyerName"),
        seller_name=optional_str(body, "sellerName"),
    )


def list_conversations(store: MessageStore, participant_id: Optional[str] = None) -> List[Dict[str, Any]]:
    now = store.now_ms()
    conversations = store.list_conversations(participant_id)
    for conv in conversations:
        conv["age"] = describe_age(conv["lastMessageTime"], now, store.retention_days)
        conv["expiresInDays"] = expires_in_days(conv["lastMessageTime"], now, store.retention_days)
        conv["expiringSoon"] = is_expiring_soon(conv["lastMessageTime"], now, store.retention_days)
    return conversations


def list_messages(store: MessageStore, conversation_id: str) -> List[Dict[str, Any]]:
    if store.get_conversation(conversation_id) is None:
        raise NotFound("Conversation not found")
    return store.list_messages(conversation_id)


def send_message(store: MessageStore, conversation_id: str, body: Dict[str, Any]) -> Dict[str, Any]:
    """Entrée: {sender: "buyer"|"seller", text, senderName?}"""
    return store.append_message(
        conversation_id,
        sender=optional_str(body, "sender") or "",
        text=body.get("text") if isinstance(body.get("text"), str) else "",
        sender_name=optional_str(body, "senderName"),
    )


def sweep(store: MessageStore) -> Dict[str, Any]:
    return {"success": True, **store.sweep()}
