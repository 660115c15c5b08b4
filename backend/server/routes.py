"""
Route registration for the kitchen API.

Responsibilities:
- Define HTTP and WebSocket endpoints
- Wire the observer gateway to the WebSocket lifecycle
- Pull dependencies from app.state
"""

from __future__ import annotations

import asyncio
import json
from typing import Any

from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect

from constants import DEFAULT_ESTIMATED_MINUTES
from kitchen.appliances import AUTOCOOKER_ID, OVEN_ID
from kitchen.events import BroadcastType
from kitchen.planner import estimate_minutes, plan, simulation_steps, steps_from_payload
from kitchen.status import snapshot
from kitchen.voice import VoiceCommands
from observability.logger import log_event
from session.context import KitchenContext
from session.gateway import ObserverGateway

from server.schemas import (
    PreheatRequest,
    PressureRequest,
    RecipeStepsRequest,
    StartCookingRequest,
    VoiceCommandRequest,
)


def _kitchen(request: Request) -> KitchenContext:
    return request.app.state.kitchen


def register_routes(app: FastAPI) -> None:
    """Register all routes on the FastAPI app."""

    # ------------------------------------------------------------------
    # Health / index
    # ------------------------------------------------------------------

    @app.get("/health")
    async def health() -> dict[str, str]: # pyright: ignore[reportUnusedFunction]
        return {"status": "ok"}

    @app.get("/api/health")
    async def api_health(request: Request) -> dict[str, Any]: # pyright: ignore[reportUnusedFunction]
        kitchen = _kitchen(request)
        return {
            "success": True,
            "message": "Smart Kitchen API is running",
            "version": request.app.state.config.api_version,
            **kitchen.health(),
        }

    @app.get("/")
    async def index() -> dict[str, Any]: # pyright: ignore[reportUnusedFunction]
        return {
            "message": "Smart Kitchen API",
            "endpoints": {
                "health": "/api/health",
                "startCooking": "/api/cooking/start",
                "cookingStatus": "/api/cooking/status/:sessionId",
                "stopCooking": "/api/cooking/:sessionId/stop",
                "cookingHistory": "/api/cooking/history",
                "recipe": "/kitchen/recipe",
                "kitchenStatus": "/kitchen/status",
                "discover": "/api/appliances/discover",
                "appliance": "/api/appliances/:id",
                "ovenPreheat": "/api/appliances/oven/preheat",
                "autocookerPressure": "/api/appliances/autocooker/pressure",
                "voiceCommand": "/api/voice/command",
                "testAppliances": "/api/test/appliances",
                "testWebsocket": "/api/test/websocket",
                "testAndroid": "/api/test/android",
                "websocket": "/ws",
            },
        }

    # ------------------------------------------------------------------
    # Cooking sessions
    # ------------------------------------------------------------------

    async def start_cooking(body: StartCookingRequest, request: Request) -> dict[str, Any]:
        kitchen = _kitchen(request)

        estimated = body.estimated_minutes
        if estimated is None:
            estimated = (
                estimate_minutes(body.ingredients, body.method)
                if body.ingredients
                else DEFAULT_ESTIMATED_MINUTES
            )

        if body.instructions is not None:
            steps = plan(body.instructions, estimated)
        else:
            steps = simulation_steps(body.recipe_name, estimated)

        session = kitchen.start_session(
            body.recipe_name,
            steps,
            session_id=body.session_id,
            device_id=body.device_id,
        )
        return {
            "success": True,
            "sessionId": session.id,
            "message": f"Started cooking {session.recipe_name}",
            "totalSteps": session.total_steps,
            "estimatedMinutes": estimated,
        }

    app.add_api_route("/api/test/simulate-cooking", start_cooking, methods=["POST"])
    app.add_api_route("/api/cooking/start", start_cooking, methods=["POST"])

    async def cooking_status(session_id: str, request: Request) -> dict[str, Any]:
        return {"success": True, "session": _kitchen(request).status.status(session_id)}

    app.add_api_route("/api/test/cooking-status/{session_id}", cooking_status, methods=["GET"])
    app.add_api_route("/api/cooking/status/{session_id}", cooking_status, methods=["GET"])

    @app.post("/api/cooking/{session_id}/stop")
    async def stop_cooking(session_id: str, request: Request) -> dict[str, Any]: # pyright: ignore[reportUnusedFunction]
        session = _kitchen(request).stop_session(session_id)
        return {"success": True, "session": snapshot(session)}

    @app.get("/api/cooking/history")
    async def cooking_history(request: Request) -> dict[str, Any]: # pyright: ignore[reportUnusedFunction]
        history = _kitchen(request).status.history()
        return {"success": True, "history": history, "totalSessions": len(history)}

    @app.get("/kitchen/status")
    async def kitchen_status(request: Request) -> dict[str, Any]: # pyright: ignore[reportUnusedFunction]
        return {"success": True, **_kitchen(request).status.kitchen()}

    @app.post("/kitchen/recipe")
    async def kitchen_recipe(body: RecipeStepsRequest, request: Request) -> dict[str, Any]: # pyright: ignore[reportUnusedFunction]
        steps = steps_from_payload(body.steps)
        session = _kitchen(request).start_session(
            body.recipe_name,
            steps,
            device_id=body.device_id,
        )
        return {
            "success": True,
            "sessionId": session.id,
            "message": f"Started cooking {session.recipe_name}",
            "totalSteps": session.total_steps,
            "steps": [s.to_dict() for s in session.steps],
        }

    # ------------------------------------------------------------------
    # Appliances
    # ------------------------------------------------------------------

    @app.get("/api/appliances/discover")
    async def discover(request: Request) -> dict[str, Any]: # pyright: ignore[reportUnusedFunction]
        appliances = _kitchen(request).appliances.discover()
        return {
            "success": True,
            "appliances": appliances,
            "message": f"Found {len(appliances)} appliances",
        }

    # Fixed paths are registered before /api/appliances/{appliance_id}
    @app.post("/api/appliances/oven/preheat")
    async def oven_preheat(body: PreheatRequest, request: Request) -> dict[str, Any]: # pyright: ignore[reportUnusedFunction]
        result = _kitchen(request).appliances.preheat(body.temperature, body.mode, body.unit)
        return {"success": True, **result}

    @app.post("/api/appliances/autocooker/pressure")
    async def autocooker_pressure(body: PressureRequest, request: Request) -> dict[str, Any]: # pyright: ignore[reportUnusedFunction]
        result = _kitchen(request).appliances.pressure_cook(body.pressure, body.duration)
        return {"success": True, **result}

    @app.get("/api/appliances/{appliance_id}")
    async def appliance_status(appliance_id: str, request: Request) -> dict[str, Any]: # pyright: ignore[reportUnusedFunction]
        appliance = _kitchen(request).appliances.get(appliance_id)
        return {"success": True, "appliance": appliance.to_dict()}

    # ------------------------------------------------------------------
    # Voice
    # ------------------------------------------------------------------

    @app.post("/api/voice/command")
    async def voice_command(body: VoiceCommandRequest, request: Request) -> dict[str, Any]: # pyright: ignore[reportUnusedFunction]
        reply = VoiceCommands(_kitchen(request)).handle(body.command, body.parameters)
        return reply.to_dict()

    # ------------------------------------------------------------------
    # Test endpoints
    # ------------------------------------------------------------------

    @app.get("/api/test/appliances")
    async def test_appliances(request: Request) -> dict[str, Any]: # pyright: ignore[reportUnusedFunction]
        return _kitchen(request).appliances.self_test()

    @app.get("/api/test/websocket")
    async def test_websocket(request: Request) -> dict[str, Any]: # pyright: ignore[reportUnusedFunction]
        kitchen = _kitchen(request)
        kitchen.broadcaster.broadcast(
            BroadcastType.TEST_MESSAGE,
            {
                "message": "WebSocket test message",
                "appliances": [OVEN_ID, AUTOCOOKER_ID],
            },
        )
        return {
            "success": True,
            "message": "Test message broadcast",
            "connectedClients": kitchen.broadcaster.observer_count,
        }

    @app.post("/api/test/android")
    async def test_android(request: Request) -> dict[str, Any]: # pyright: ignore[reportUnusedFunction]
        kitchen = _kitchen(request)
        clients = kitchen.broadcaster.observer_count
        kitchen.broadcaster.broadcast(
            BroadcastType.ANDROID_TEST,
            {"message": "Test message from server", "connectedClients": clients},
        )
        return {
            "success": True,
            "message": "Android test completed",
            "websocketClients": clients,
            "serverStatus": "running",
        }

    # ------------------------------------------------------------------
    # Push channel
    # ------------------------------------------------------------------

    @app.websocket("/ws")
    async def websocket_endpoint(ws: WebSocket) -> None: # pyright: ignore[reportUnusedFunction]
        await ws.accept()

        gateway = ObserverGateway(context=app.state.kitchen)
        sender: asyncio.Task[None] | None = None

        try:
            greeting = gateway.on_ws_connect()
            await ws.send_text(json.dumps(greeting))

            sender = asyncio.create_task(_pump_outbound(ws, gateway))

            while True:
                msg = await ws.receive()

                if msg["type"] == "websocket.disconnect":
                    raise WebSocketDisconnect(code=msg.get("code", 1000))

                if msg.get("text") is not None:
                    gateway.on_json_message(msg["text"])

        except WebSocketDisconnect:
            gateway.on_ws_disconnect(reason="client_disconnect")

        except Exception as exc:  # pylint: disable=broad-exception-caught
            log_event({
                "event_type": "WS_FATAL_ERROR",
                "observer_id": gateway.observer_id,
                "exception": type(exc).__name__,
                "message": str(exc),
            })
            gateway.on_ws_disconnect(reason="server_error")

        finally:
            if sender is not None:
                sender.cancel()
                await asyncio.gather(sender, return_exceptions=True)


async def _pump_outbound(ws: WebSocket, gateway: ObserverGateway) -> None:
    """
    Forward broadcasts to the socket until the observer closes.

    An observer closed by the broadcaster (backed-up mailbox, shutdown)
    closes the socket too, so the client sees the disconnect.
    """
    while True:
        message = await gateway.next_outbound()
        if message is None:
            gateway.on_ws_disconnect(reason="observer_dropped")
            try:
                await ws.close()
            except Exception as exc:  # pylint: disable=broad-exception-caught
                log_event({
                    "event_type": "WS_CLOSE_FAILED",
                    "observer_id": gateway.observer_id,
                    "exception": type(exc).__name__,
                    "message": str(exc),
                })
            return
        try:
            await ws.send_text(json.dumps(message))
        except Exception as exc:  # pylint: disable=broad-exception-caught
            log_event({
                "event_type": "WS_SEND_FAILED",
                "observer_id": gateway.observer_id,
                "exception": type(exc).__name__,
                "message": str(exc),
            })
            gateway.on_ws_disconnect(reason="send_failed")
            return
