from __future__ import annotations

import math
from collections.abc import Awaitable
from typing import Any

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, model_validator

from ...core.scoring import MODES, PRACTICE
from ...data.scenario_loader import DEFAULT_SCENARIO
from .service import SessionConfig, SessionManager

__all__ = [
    "ChoiceRequest",
    "ContinuityRequest",
    "CreateSessionRequest",
    "DeviceActionRequest",
    "IdentifyRequest",
    "NodeRequest",
    "create_session_router",
]


class CreateSessionRequest(BaseModel):
    scenario: str | None = None
    seed: int | None = None
    mode: str | None = None
    time_limit: float | None = None
    randomize: bool = False

    @model_validator(mode="before")
    @classmethod
    def _coerce(cls, data: dict[str, object]) -> dict[str, object]:
        if not isinstance(data, dict):
            return data
        cleaned: dict[str, object] = dict(data)
        for field, cast in (("seed", int), ("time_limit", float)):
            value = cleaned.get(field)
            if value in (None, ""):
                cleaned[field] = None
                continue
            if isinstance(value, str):
                try:
                    cleaned[field] = cast(value)
                except ValueError:
                    cleaned[field] = None
        return cleaned

    @model_validator(mode="after")
    def _normalize(self) -> CreateSessionRequest:
        scenario = (self.scenario or DEFAULT_SCENARIO).strip()
        mode = (self.mode or PRACTICE).strip().lower()
        if mode not in MODES:
            mode = PRACTICE
        time_limit = self.time_limit if self.time_limit is not None else 0.0
        if not math.isfinite(time_limit) or time_limit < 0:
            time_limit = 0.0
        self.scenario = scenario
        self.mode = mode
        self.time_limit = time_limit
        return self


class ChoiceRequest(BaseModel):
    choice: int


class NodeRequest(BaseModel):
    node: str


class ContinuityRequest(BaseModel):
    a: str
    b: str


class IdentifyRequest(BaseModel):
    node: str
    kind: str


class DeviceActionRequest(BaseModel):
    action: str


class _SessionController:
    def __init__(self, manager: SessionManager) -> None:
        self.manager = manager

    # ------------------------------------------------------------------ helpers
    async def _respond(self, pending: Awaitable[Any]) -> Response:
        try:
            payload = await pending
        except KeyError as exc:
            raise HTTPException(404, str(exc.args[0]) if exc.args else "not found") from exc
        except ValueError as exc:
            raise HTTPException(400, str(exc)) from exc
        return JSONResponse(payload.to_dict())

    # ------------------------------------------------------------------ actions
    async def create(self, body: CreateSessionRequest) -> Response:
        session_id = await self.manager.create_session_async(
            SessionConfig(
                scenario=body.scenario or DEFAULT_SCENARIO,
                seed=body.seed,
                mode=body.mode or PRACTICE,
                time_limit_seconds=body.time_limit or 0.0,
                randomize_fault=body.randomize,
            )
        )
        return await self._respond(self.manager.snapshot_async(session_id))

    async def snapshot(self, sid: str) -> Response:
        return await self._respond(self.manager.snapshot_async(sid))

    async def reset(self, sid: str) -> Response:
        return await self._respond(self.manager.reset_session_async(sid))

    async def dialogue(self, sid: str) -> Response:
        return await self._respond(self.manager.dialogue_async(sid))

    async def choose(self, sid: str, body: ChoiceRequest) -> Response:
        return await self._respond(self.manager.choose_async(sid, body.choice))

    async def advance(self, sid: str) -> Response:
        return await self._respond(self.manager.advance_async(sid))

    async def measure(self, sid: str, body: NodeRequest) -> Response:
        return await self._respond(self.manager.measure_voltage_async(sid, body.node))

    async def continuity(self, sid: str, body: ContinuityRequest) -> Response:
        return await self._respond(self.manager.check_continuity_async(sid, body.a, body.b))

    async def identify(self, sid: str, body: IdentifyRequest) -> Response:
        return await self._respond(self.manager.identify_async(sid, body.node, body.kind))

    async def repair(self, sid: str, body: NodeRequest) -> Response:
        return await self._respond(self.manager.repair_async(sid, body.node))

    async def circuit(self, sid: str) -> Response:
        return await self._respond(self.manager.circuit_async(sid))

    async def operate(self, sid: str, device_id: str, body: DeviceActionRequest) -> Response:
        return await self._respond(self.manager.operate_device_async(sid, device_id, body.action))

    async def summary(self, sid: str) -> Response:
        return await self._respond(self.manager.summary_async(sid))


def create_session_router(manager: SessionManager) -> APIRouter:
    controller = _SessionController(manager)
    router = APIRouter(prefix="/api/v1/session", tags=["session"])

    @router.post("")
    async def create_session(body: CreateSessionRequest) -> Response:
        return await controller.create(body)

    @router.get("/{sid}")
    async def get_session(sid: str) -> Response:
        return await controller.snapshot(sid)

    @router.post("/{sid}/reset")
    async def reset_session(sid: str) -> Response:
        return await controller.reset(sid)

    @router.get("/{sid}/dialogue")
    async def get_dialogue(sid: str) -> Response:
        return await controller.dialogue(sid)

    @router.post("/{sid}/dialogue/choose")
    async def post_choice(sid: str, body: ChoiceRequest) -> Response:
        return await controller.choose(sid, body)

    @router.post("/{sid}/dialogue/advance")
    async def post_advance(sid: str) -> Response:
        return await controller.advance(sid)

    @router.post("/{sid}/measure")
    async def post_measure(sid: str, body: NodeRequest) -> Response:
        return await controller.measure(sid, body)

    @router.post("/{sid}/continuity")
    async def post_continuity(sid: str, body: ContinuityRequest) -> Response:
        return await controller.continuity(sid, body)

    @router.post("/{sid}/identify")
    async def post_identify(sid: str, body: IdentifyRequest) -> Response:
        return await controller.identify(sid, body)

    @router.post("/{sid}/repair")
    async def post_repair(sid: str, body: NodeRequest) -> Response:
        return await controller.repair(sid, body)

    @router.get("/{sid}/circuit")
    async def get_circuit(sid: str) -> Response:
        return await controller.circuit(sid)

    @router.post("/{sid}/devices/{device_id}")
    async def post_device(sid: str, device_id: str, body: DeviceActionRequest) -> Response:
        return await controller.operate(sid, device_id, body)

    @router.get("/{sid}/summary")
    async def get_summary(sid: str) -> Response:
        return await controller.summary(sid)

    return router
