"""
Endpoints Messagerie acheteur/vendeur.
- POST /conversations: ouvre une conversation
- GET /conversations?participantId=...: conversations actives (30 jours)
- GET|POST /conversations/{id}/messages: lecture / envoi
- POST /messages/sweep: purge des conversations et messages expirés
"""
import logging
from typing import Optional

from fastapi import APIRouter, Request, Depends
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from marketplace.dependencies import get_message_store
from marketplace.utils.requests import read_json
from marketplace.messaging import service as messaging_service

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Messaging"])


@router.post("/conversations")
async def create_conversation(request: Request, store=Depends(get_message_store)):
    body = await read_json(request)
    result = await run_in_threadpool(messaging_service.start_conversation, store, body)
    return JSONResponse(result, status_code=201)


@router.get("/conversations")
def list_conversations(participantId: Optional[str] = None, store=Depends(get_message_store)):
    return JSONResponse(messaging_service.list_conversations(store, participantId))


@router.get("/conversations/{conversation_id}/messages")
def list_messages(conversation_id: str, store=Depends(get_message_store)):
    return JSONResponse(messaging_service.list_messages(store, conversation_id))


@router.post("/conversations/{conversation_id}/messages")
async def send_message(conversation_id: str, request: Request, store=Depends(get_message_store)):
    """
    Envoi d'un message.
    - Entrée JSON: {sender: "buyer"|"seller", text, senderName?}
    - Erreurs: 400 si sender/text invalide, 404 si conversation absente ou expirée,
      409 si la conversation reste en conflit d'écriture
    """
    body = await read_json(request)
    result = await run_in_threadpool(messaging_service.send_message, store, conversation_id, body)
    return JSONResponse(result, status_code=201)


@router.post("/messages/sweep")
def sweep_messages(store=Depends(get_message_store)):
    return JSONResponse(messaging_service.sweep(store))
