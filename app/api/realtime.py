#app/api/realtime.py
from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect
from sqlalchemy.orm import Session
from typing import Optional
from app.services.realtime import manager
from app.crud.template import get_template
from app.core.exceptions import BaseAppException
from app.core.policy import Action, enforce
from app.dependencies import get_db, user_from_token
import logging

router = APIRouter(tags=["Realtime"])
logger = logging.getLogger("FormBuilder.RealtimeAPI")

ACTIONS = ("join", "leave")


def check_can_join(db: Session, template_id: int, token: Optional[str]) -> None:
    """
    Комната публичного шаблона открыта всем. Для приватного нужен токен
    пользователя, которому шаблон виден (владелец, допущенный, ADMIN).
    """
    template = get_template(db, template_id)
    if template.is_public:
        return
    enforce(user_from_token(db, token), template, Action.TEMPLATE_READ)


@router.websocket("/ws")
async def template_events(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    """
    Подписка на события шаблонов: {"action": "join"|"leave", "template_id": N}.
    Токен (для приватных шаблонов) передаётся в query: /ws?token=...
    """
    await websocket.accept()
    try:
        while True:
            try:
                message = await websocket.receive_json()
            except ValueError:
                await websocket.send_json({"event": "error", "detail": "Message must be JSON"})
                continue

            action = message.get("action") if isinstance(message, dict) else None
            template_id = message.get("template_id") if isinstance(message, dict) else None
            if action not in ACTIONS or not isinstance(template_id, int) or isinstance(template_id, bool):
                await websocket.send_json(
                    {"event": "error", "detail": "Expected {\"action\": \"join\"|\"leave\", \"template_id\": int}"}
                )
                continue

            if action == "join":
                try:
                    check_can_join(db, template_id, token)
                except BaseAppException as e:
                    logger.debug(f"Join to template {template_id} refused: {e.detail}")
                    await websocket.send_json(
                        {"event": "error", "template_id": template_id, "status": e.status_code, "detail": e.detail}
                    )
                    continue
                manager.join(websocket, template_id)
                await websocket.send_json({"event": "joined", "template_id": template_id})
            else:
                manager.leave(websocket, template_id)
                await websocket.send_json({"event": "left", "template_id": template_id})
    except WebSocketDisconnect:
        logger.debug("Subscriber disconnected")
    finally:
        manager.disconnect(websocket)
