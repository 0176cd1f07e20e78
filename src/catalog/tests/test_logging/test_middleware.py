import uuid

import pytest
from fastapi import FastAPI
from starlette.testclient import TestClient

from catalog.core.logging.filters import get_request_id
from catalog.core.logging.middleware import REQUEST_ID_HEADER, RequestIDMiddleware


@pytest.fixture
def app_client() -> TestClient:
    app = FastAPI()
    app.add_middleware(RequestIDMiddleware)

    @app.get("/rid")
    async def rid():
        return {"request_id": get_request_id()}

    return TestClient(app)


def test_generates_a_uuid_when_header_missing(app_client):
    resp = app_client.get("/rid")

    rid = resp.headers[REQUEST_ID_HEADER]
    assert uuid.UUID(rid)
    # the handler saw the same id the client got back
    assert resp.json() == {"request_id": rid}


def test_reuses_a_valid_incoming_id(app_client):
    incoming = str(uuid.uuid4())

    resp = app_client.get("/rid", headers={REQUEST_ID_HEADER: incoming})

    assert resp.headers[REQUEST_ID_HEADER] == incoming


@pytest.mark.parametrize("incoming", ["not-a-uuid", "abc", "' OR 1=1"])
def test_replaces_an_invalid_incoming_id(app_client, incoming):
    resp = app_client.get("/rid", headers={REQUEST_ID_HEADER: incoming})

    rid = resp.headers[REQUEST_ID_HEADER]
    assert rid != incoming
    assert uuid.UUID(rid)


def test_context_is_reset_after_the_request(app_client):
    app_client.get("/rid")
    assert get_request_id() is None
