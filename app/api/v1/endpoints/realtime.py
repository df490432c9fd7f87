"""
Realtime WebSocket API - live device_progress changes for one checklist
"""
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
import asyncio
import contextlib
import logging

from app.services.change_feed import ChangeFeed, get_change_feed
from app.services.gateway import PROGRESS_TABLE

router = APIRouter()
logger = logging.getLogger(__name__)


@router.websocket("/checklists/{checklist_id}/progress")
async def progress_feed(
    websocket: WebSocket,
    checklist_id: int,
    change_feed: ChangeFeed = Depends(get_change_feed),
):
    """
    WebSocket endpoint streaming progress changes for one checklist.
    Sends {"type": "subscribed"} once, then one {"type": "change", ...} per row change.
    Replies "pong" to "ping".
    """
    await websocket.accept()
    subscription = change_feed.subscribe(PROGRESS_TABLE, checklist_id)
    logger.info(f"Realtime client subscribed for checklist {checklist_id}")

    async def forward_changes():
        try:
            async for event in subscription:
                await websocket.send_json({"type": "change", **event.to_dict()})
        except Exception as e:
            logger.error(f"Failed to forward progress change for checklist {checklist_id}: {e}")

    forwarder = asyncio.create_task(forward_changes())
    try:
        await websocket.send_json({"type": "subscribed", "checklist_id": checklist_id})

        while True:
            data = await websocket.receive_text()
            if data == "ping":
                await websocket.send_text("pong")

    except WebSocketDisconnect:
        logger.info(f"Realtime client disconnected from checklist {checklist_id}")
    except Exception as e:
        logger.error(f"WebSocket error: {e}")
    finally:
        subscription.close()
        forwarder.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await forwarder
        logger.info(f"Realtime subscription for checklist {checklist_id} closed")
