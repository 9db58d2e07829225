"""
Stockage de la messagerie acheteur/vendeur (Redis).

Clés:
- conversation:<id>       hash (participants, produit, dernier message, version)
- conversations           sorted set id -> lastMessageTime (ms)
- participant:<userId>    sorted set id -> lastMessageTime (ms)
- messages:<id>           sorted set append-only, score = timestamp (ms), membre = message JSON

Règles:
- Les messages ne sont jamais réécrits: un envoi est un ZADD.
- La lecture filtre la fenêtre de rétention (30 jours) sans réécrire quoi que ce soit.
- La purge (sweep) est une opération séparée.
- La mise à jour du dernier message passe par WATCH/MULTI sur le champ version.
"""
import json
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import redis

from marketplace.config import MESSAGE_RETENTION_DAYS
from marketplace.errors import Conflict, InvalidArgument, NotFound

# module marketplace.messaging.store
logger = logging.getLogger(__name__)

DAY_MS = 24 * 60 * 60 * 1000
CONVERSATIONS_KEY = "conversations"
SENDER_ROLES = ("buyer", "seller")
EXPIRY_WARNING_DAYS = 5


def conversation_key(conversation_id: str) -> str:
    return f"conversation:{conversation_id}"


def messages_key(conversation_id: str) -> str:
    return f"messages:{conversation_id}"


def participant_key(user_id: str) -> str:
    return f"participant:{user_id}"


def describe_age(timestamp_ms: int, now_ms: int, retention_days: int = MESSAGE_RETENTION_DAYS) -> str:
    """
    Libellé d'âge affiché dans la liste des conversations.
    - même jour: "HH:MM" (UTC), veille: "Yesterday", puis "N days ago", "Expired" au-delà de la rétention
    """
    days = (now_ms - timestamp_ms) // DAY_MS
    if days <= 0:
        return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc).strftime("%H:%M")
    if days == 1:
        return "Yesterday"
    if days < retention_days:
        return f"{days} days ago"
    return "Expired"


def expires_in_days(timestamp_ms: int, now_ms: int, retention_days: int = MESSAGE_RETENTION_DAYS) -> int:
    """Jours pleins restants avant expiration (0 si déjà expirée)."""
    days = (now_ms - timestamp_ms) // DAY_MS
    return max(retention_days - max(days, 0), 0)


def is_expiring_soon(timestamp_ms: int, now_ms: int, retention_days: int = MESSAGE_RETENTION_DAYS) -> bool:
    # Avertissement affiché pendant les EXPIRY_WARNING_DAYS derniers jours
    return expires_in_days(timestamp_ms, now_ms, retention_days) <= EXPIRY_WARNING_DAYS


def _decode_conversation(raw: Dict[str, str]) -> Dict[str, Any]:
    conv: Dict[str, Any] = {k: (v or None) for k, v in raw.items()}
    conv["lastMessageTime"] = int(raw.get("lastMessageTime") or 0)
    conv["createdAt"] = int(raw.get("createdAt") or 0)
    conv["version"] = int(raw.get("version") or 0)
    return conv


class MessageStore:
    def __init__(
        self,
        client: redis.Redis,
        retention_days: int = MESSAGE_RETENTION_DAYS,
        clock: Callable[[], float] = time.time,
        max_retries: int = 5,
    ):
        self.redis = client
        self.retention_days = retention_days
        self.clock = clock
        self.max_retries = max_retries

    def now_ms(self) -> int:
        return int(self.clock() * 1000)

    def cutoff_ms(self, now_ms: Optional[int] = None) -> int:
        return (self.now_ms() if now_ms is None else now_ms) - self.retention_days * DAY_MS

    def create_conversation(
        self,
        *,
        buyer_id: str,
        seller_id: str,
        product_id: Optional[str] = None,
        product_name: Optional[str] = None,
        buyer_name: Optional[str] = None,
        seller_name: Optional[str] = None,
    ) -> Dict[str, Any]:
        now = self.now_ms()
        conversation_id = f"conv_{uuid.uuid4().hex}"
        raw = {
            "id": conversation_id,
            "buyerId": buyer_id,
            "sellerId": seller_id,
            "buyerName": buyer_name or "Buyer",
            "sellerName": seller_name or "Seller",
            "productId": product_id or "",
            "productName": product_name or "",
            "lastMessage": "New conversation",
            "lastMessageTime": str(now),
            "createdAt": str(now),
            "version": "1",
        }
        pipe = self.redis.pipeline(transaction=True)
        pipe.hset(conversation_key(conversation_id), mapping=raw)
        pipe.zadd(CONVERSATIONS_KEY, {conversation_id: now})
        pipe.zadd(participant_key(buyer_id), {conversation_id: now})
        pipe.zadd(participant_key(seller_id), {conversation_id: now})
        pipe.execute()
        logger.info("messaging.create_conversation id=%s buyer=%s seller=%s", conversation_id, buyer_id, seller_id)
        return _decode_conversation(raw)

    def get_conversation(self, conversation_id: str) -> Optional[Dict[str, Any]]:
        """Conversation active (dans la fenêtre de rétention), sinon None."""
        raw = self.redis.hgetall(conversation_key(conversation_id))
        if not raw:
            return None
        conv = _decode_conversation(raw)
        if conv["lastMessageTime"] < self.cutoff_ms():
            return None
        return conv

    def list_conversations(self, participant_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """Conversations actives, les plus récentes d'abord."""
        index = participant_key(participant_id) if participant_id else CONVERSATIONS_KEY
        ids = self.redis.zrevrangebyscore(index, "+inf", self.cutoff_ms())
        if not ids:
            return []
        pipe = self.redis.pipeline(transaction=False)
        for conversation_id in ids:
            pipe.hgetall(conversation_key(conversation_id))
        return [_decode_conversation(raw) for raw in pipe.execute() if raw]

    def append_message(
        self,
        conversation_id: str,
        *,
        sender: str,
        text: str,
        sender_name: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Ajoute un message (ZADD, jamais de réécriture) puis met à jour le dernier message.
        - sender: "buyer" | "seller"; text non vide
        - NotFound si la conversation est absente ou expirée
        """
        if sender not in SENDER_ROLES:
            raise InvalidArgument("sender must be 'buyer' or 'seller'")
        if not isinstance(text, str) or not text.strip():
            raise InvalidArgument("Message text is required")
        conv = self.get_conversation(conversation_id)
        if conv is None:
            raise NotFound("Conversation not found")

        now = self.now_ms()
        message = {
            "id": f"msg_{uuid.uuid4().hex}",
            "conversationId": conversation_id,
            "sender": sender,
            "senderName": sender_name or conv.get(f"{sender}Name"),
            "text": text,
            "timestamp": now,
        }
        self.redis.zadd(messages_key(conversation_id), {json.dumps(message, sort_keys=True): now})
        self.touch_conversation(conversation_id, last_message=text, timestamp=now)
        return message

    def list_messages(self, conversation_id: str) -> List[Dict[str, Any]]:
        """Messages de la fenêtre de rétention, du plus ancien au plus récent."""
        members = self.redis.zrangebyscore(messages_key(conversation_id), self.cutoff_ms(), "+inf")
        return [json.loads(m) for m in members]

    def touch_conversation(
        self,
        conversation_id: str,
        *,
        last_message: str,
        timestamp: int,
        expected_version: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Met à jour lastMessage/lastMessageTime en concurrence optimiste.
        - expected_version fourni et différent de la version stockée => Conflict
        - Écriture concurrente (WatchError): relance, sauf si expected_version est imposé
        - Un timestamp plus ancien que celui stocké n'écrase jamais le dernier message
        """
        key = conversation_key(conversation_id)
        for _ in range(self.max_retries):
            with self.redis.pipeline() as pipe:
                try:
                    pipe.watch(key)
                    raw = pipe.hgetall(key)
                    if not raw:
                        raise NotFound("Conversation not found")
                    current = _decode_conversation(raw)
                    if expected_version is not None and current["version"] != expected_version:
                        raise Conflict("Conversation was modified concurrently")
                    if timestamp < current["lastMessageTime"]:
                        pipe.unwatch()
                        return current
                    version = current["version"] + 1
                    pipe.multi()
                    pipe.hset(key, mapping={
                        "lastMessage": last_message,
                        "lastMessageTime": str(timestamp),
                        "version": str(version),
                    })
                    pipe.zadd(CONVERSATIONS_KEY, {conversation_id: timestamp})
                    for participant in (current.get("buyerId"), current.get("sellerId")):
                        if participant:
                            pipe.zadd(participant_key(participant), {conversation_id: timestamp})
                    pipe.execute()
                except redis.WatchError:
                    if expected_version is not None:
                        raise Conflict("Conversation was modified concurrently")
                    logger.debug("messaging.touch_conversation retry id=%s", conversation_id)
                    continue
            current.update({"lastMessage": last_message, "lastMessageTime": timestamp, "version": version})
            return current
        raise Conflict("Conversation is too busy, retry later")

    def sweep(self, now_ms: Optional[int] = None) -> Dict[str, int]:
        """
        Purge d'expiration (séparée des lectures).
        - Supprime les conversations inactives depuis plus de la rétention (et leurs messages)
        - Retire les messages expirés des conversations restantes
        Retour: {"conversationsRemoved": n, "messagesRemoved": m}
        """
        cutoff = self.cutoff_ms(now_ms)
        exclusive_cutoff = f"({cutoff}"
        conversations_removed = 0
        messages_removed = 0

        for conversation_id in self.redis.zrangebyscore(CONVERSATIONS_KEY, "-inf", exclusive_cutoff):
            removed = self._drop_conversation(conversation_id, cutoff)
            if removed is not None:
                conversations_removed += 1
                messages_removed += removed

        for conversation_id in self.redis.zrange(CONVERSATIONS_KEY, 0, -1):
            messages_removed += self.redis.zremrangebyscore(messages_key(conversation_id), "-inf", exclusive_cutoff)

        logger.info(
            "messaging.sweep cutoff=%s conversations_removed=%s messages_removed=%s",
            cutoff, conversations_removed, messages_removed,
        )
        return {"conversationsRemoved": conversations_removed, "messagesRemoved": messages_removed}

    def _drop_conversation(self, conversation_id: str, cutoff: int) -> Optional[int]:
        # Retourne le nombre de messages supprimés, ou None si la conversation a été réactivée entre-temps
        key = conversation_key(conversation_id)
        with self.redis.pipeline() as pipe:
            try:
                pipe.watch(key)
                raw = pipe.hgetall(key)
                if raw and int(raw.get("lastMessageTime") or 0) >= cutoff:
                    pipe.unwatch()
                    return None
                count = pipe.zcard(messages_key(conversation_id))
                pipe.multi()
                pipe.delete(key, messages_key(conversation_id))
                pipe.zrem(CONVERSATIONS_KEY, conversation_id)
                for participant in ((raw or {}).get("buyerId"), (raw or {}).get("sellerId")):
                    if participant:
                        pipe.zrem(participant_key(participant), conversation_id)
                pipe.execute()
                return int(count or 0)
            except redis.WatchError:
                logger.debug("messaging.sweep skip id=%s (modifiée pendant la purge)", conversation_id)
                return None
