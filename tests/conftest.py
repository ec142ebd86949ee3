"""Shared fixtures: mock transports and an in-memory stub of the notes API."""

from __future__ import annotations

import json
import math
from datetime import UTC, datetime
from typing import Any, Optional

import httpx
import pytest
from fastapi import FastAPI, Header, HTTPException, Request, Response
from fastapi.responses import JSONResponse

from notes_client.executor import RequestExecutor
from notes_client.notes import NotesClient
from notes_client.session import SessionManager
from notes_client.token_store import MemoryTokenStore

BASE_URL = "http://testserver/api"
STUB_PAGE_SIZE = 6


# ---------------------------------------------------------------------------
# Mock transport helpers
# ---------------------------------------------------------------------------


class Recorder:
    """httpx.MockTransport handler that records requests and replays routes.

    Routes are keyed by ``(method, path)``; values are an httpx.Response or
    a callable taking the request. Unknown routes answer 404.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.routes: dict[tuple[str, str], Any] = {}

    def add(self, method: str, path: str, response: Any) -> None:
        self.routes[(method, path)] = response

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"detail": "Not found."})
        if callable(route):
            return route(request)
        return route

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]


def note_payload(note_id: int = 1, title: str = "T", description: str = "D") -> dict:
    return {
        "id": note_id,
        "title": title,
        "description": description,
        "created_at": "2026-10-16T15:04:05.123456Z",
        "updated_at": "2026-10-16T15:04:05.123456Z",
        "creator_name": "Alice Liddell",
        "creator_username": "alice",
    }


USER_PAYLOAD = {
    "id": 7,
    "username": "alice",
    "email": "alice@example.com",
    "first_name": "Alice",
    "last_name": "Liddell",
}


@pytest.fixture()
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture()
def executor(recorder: Recorder) -> RequestExecutor:
    return RequestExecutor(BASE_URL, transport=httpx.MockTransport(recorder))


@pytest.fixture()
def token_store() -> MemoryTokenStore:
    return MemoryTokenStore()


@pytest.fixture()
def session(executor: RequestExecutor, token_store: MemoryTokenStore) -> SessionManager:
    return SessionManager(executor, token_store)


@pytest.fixture()
def notes(executor: RequestExecutor, session: SessionManager) -> NotesClient:
    return NotesClient(executor, session)


# ---------------------------------------------------------------------------
# FastAPI stub of the notes backend
# ---------------------------------------------------------------------------


def _now() -> str:
    return datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def build_stub_api() -> FastAPI:
    """A small in-memory notes server speaking the real wire format."""
    app = FastAPI()
    state: dict[str, Any] = {
        "users": {},  # username -> dict(user + password)
        "tokens": {},  # access -> username
        "refresh": {},  # refresh -> username
        "notes": [],
        "next_id": 1,
        "counter": 0,
    }
    app.state.stub = state

    def _issue(username: str) -> dict[str, str]:
        state["counter"] += 1
        access = f"access-{username}-{state['counter']}"
        refresh = f"refresh-{username}-{state['counter']}"
        state["tokens"][access] = username
        state["refresh"][refresh] = username
        return {"access": access, "refresh": refresh}

    def _user(authorization: Optional[str]) -> dict:
        if not authorization or not authorization.startswith("Bearer "):
            raise HTTPException(401, "Authentication credentials were not provided.")
        username = state["tokens"].get(authorization.removeprefix("Bearer "))
        if username is None:
            raise HTTPException(401, "Given token not valid for any token type")
        return state["users"][username]

    def _public(user: dict) -> dict:
        return {k: user[k] for k in ("id", "username", "email", "first_name", "last_name")}

    def _page(items: list[dict], page: int) -> dict:
        pages = math.ceil(len(items) / STUB_PAGE_SIZE)
        if page < 1 or (items and page > pages):
            raise HTTPException(404, "Invalid page.")
        start = (page - 1) * STUB_PAGE_SIZE
        return {
            "count": len(items),
            "next": f"?page={page + 1}" if page < pages else None,
            "previous": f"?page={page - 1}" if page > 1 else None,
            "results": items[start : start + STUB_PAGE_SIZE],
        }

    def _create(user: dict, payload: dict) -> dict:
        if not payload.get("title"):
            raise HTTPException(400, "Title is required.")
        now = _now()
        note = {
            "id": state["next_id"],
            "title": payload["title"],
            "description": payload.get("description", ""),
            "created_at": now,
            "updated_at": now,
            "creator_name": f"{user['first_name']} {user['last_name']}".strip() or None,
            "creator_username": user["username"],
        }
        state["next_id"] += 1
        state["notes"].append(note)
        return note

    def _find(note_id: int) -> dict:
        for note in state["notes"]:
            if note["id"] == note_id:
                return note
        raise HTTPException(404, "No Note matches the given query.")

    @app.post("/api/auth/register/", status_code=201)
    async def register(request: Request):
        body = await request.json()
        if body["username"] in state["users"]:
            return JSONResponse(
                {"errors": [{"detail": "A user with that username already exists."}]},
                status_code=400,
            )
        user = {
            "id": len(state["users"]) + 1,
            "username": body["username"],
            "email": body["email"],
            "first_name": body.get("first_name") or "",
            "last_name": body.get("last_name") or "",
            "password": body["password"],
        }
        state["users"][user["username"]] = user
        return _public(user)

    @app.post("/api/auth/token/")
    async def token(request: Request) -> dict:
        body = await request.json()
        user = state["users"].get(body.get("username"))
        if user is None or user["password"] != body.get("password"):
            raise HTTPException(401, "No active account found with the given credentials")
        return _issue(user["username"])

    @app.post("/api/auth/token/refresh/")
    async def refresh(request: Request) -> dict:
        body = await request.json()
        username = state["refresh"].pop(body.get("refresh"), None)
        if username is None:
            raise HTTPException(401, "Token is invalid or expired")
        return _issue(username)

    @app.get("/api/auth/userinfo/")
    async def userinfo(authorization: Optional[str] = Header(None)) -> dict:
        return _public(_user(authorization))

    @app.post("/api/auth/change-password/")
    async def change_password(
        request: Request, authorization: Optional[str] = Header(None)
    ):
        user = _user(authorization)
        body = await request.json()
        if body["old_password"] != user["password"]:
            return JSONResponse(
                {"errors": [{"detail": "Old password is not correct."}]},
                status_code=400,
            )
        user["password"] = body["new_password"]
        return {"detail": "Password updated successfully."}

    @app.get("/api/notes/")
    async def list_notes(page: int = 1, authorization: Optional[str] = Header(None)) -> dict:
        _user(authorization)
        return _page(state["notes"], page)

    @app.post("/api/notes/", status_code=201)
    async def create_note(request: Request, authorization: Optional[str] = Header(None)) -> dict:
        return _create(_user(authorization), await request.json())

    @app.post("/api/notes/bulk", status_code=201)
    async def bulk_create(request: Request, authorization: Optional[str] = Header(None)) -> list:
        user = _user(authorization)
        return [_create(user, item) for item in await request.json()]

    @app.get("/api/notes/filter")
    async def filter_notes(
        page: int = 1, title: str = "", authorization: Optional[str] = Header(None)
    ) -> dict:
        _user(authorization)
        items = [n for n in state["notes"] if title.lower() in n["title"].lower()]
        return _page(items, page)

    @app.get("/api/notes/search")
    async def search_notes(
        page: int = 1, q: str = "", authorization: Optional[str] = Header(None)
    ) -> dict:
        _user(authorization)
        needle = q.lower()
        items = [
            n
            for n in state["notes"]
            if needle in n["title"].lower() or needle in n["description"].lower()
        ]
        return _page(items, page)

    @app.get("/api/notes/{note_id}/")
    async def get_note(note_id: int, authorization: Optional[str] = Header(None)) -> dict:
        _user(authorization)
        return _find(note_id)

    @app.put("/api/notes/{note_id}/")
    async def update_note(
        note_id: int, request: Request, authorization: Optional[str] = Header(None)
    ) -> dict:
        _user(authorization)
        note = _find(note_id)
        body = await request.json()
        note.update(title=body["title"], description=body["description"], updated_at=_now())
        return note

    @app.delete("/api/notes/{note_id}/", status_code=204)
    async def delete_note(note_id: int, authorization: Optional[str] = Header(None)) -> Response:
        _user(authorization)
        state["notes"].remove(_find(note_id))
        return Response(status_code=204)

    return app


@pytest.fixture()
def stub_api() -> FastAPI:
    return build_stub_api()


@pytest.fixture()
def stub_transport(stub_api: FastAPI) -> httpx.ASGITransport:
    return httpx.ASGITransport(app=stub_api)


def json_body(request: httpx.Request) -> Any:
    return json.loads(request.content)


def seed_user(app: FastAPI, username: str = "alice", password: str = "secret-pw") -> None:
    app.state.stub["users"][username] = {
        "id": len(app.state.stub["users"]) + 1,
        "username": username,
        "email": f"{username}@example.com",
        "first_name": "Alice",
        "last_name": "Liddell",
        "password": password,
    }


