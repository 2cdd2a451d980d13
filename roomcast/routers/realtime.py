from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ..realtime import Connection

router = APIRouter(tags=["realtime"])


@router.websocket("/ws")
async def room_events(websocket: WebSocket):
    broadcaster = websocket.app.state.broadcaster
    await websocket.accept()
    connection = Connection(websocket)
    broadcaster.connect(connection)
    try:
        while True:
            raw = await websocket.receive_text()
            await broadcaster.dispatch(connection, raw)
    except WebSocketDisconnect:
        pass
    finally:
        await broadcaster.disconnect(connection)
