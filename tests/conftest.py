"""
Pytest configuration and fixtures
"""

import json
import pytest
import pytest_asyncio
import httpx
from unittest.mock import AsyncMock, MagicMock
from backend.client import BackendClient
from schemas.connection import ColumnInfo, TableInfo

TEST_BASE_URL = "http://testserver/api"


def _table(name, *columns, primary_key="id"):
    return TableInfo(
        table_name=name,
        columns=[
            ColumnInfo(column_name=c, data_type="text", is_primary_key=(c == primary_key))
            for c in columns
        ]
    )


@pytest.fixture
def source_tables():
    """Source schema snapshot: users, orders and profiles"""
    return [
        _table("users", "id", "name", "email", "created_at"),
        _table("orders", "id", "user_id", "total"),
        _table("profiles", "user_id", "bio", primary_key="user_id"),
    ]


@pytest.fixture
def destination_tables():
    """Destination schema snapshot: customers"""
    return [
        _table("customers", "id", "name", "email", "signed_up_at"),
    ]


@pytest.fixture
def mock_client():
    """BackendClient stand-in with awaitable verbs"""
    client = MagicMock(spec=BackendClient)
    client.get = AsyncMock(return_value={"success": True})
    client.post = AsyncMock(return_value={"success": True})
    client.put = AsyncMock(return_value={"success": True})
    client.delete = AsyncMock(return_value={"success": True})
    return client


@pytest.fixture
def mock_scheduler():
    """AsyncIOScheduler stand-in that records job changes"""
    scheduler = MagicMock()
    scheduler.running = True
    jobs = {}
    
    def add_job(func, trigger=None, id=None, **kwargs):
        jobs[id] = MagicMock(func=func, trigger=trigger, kwargs=kwargs)
        return jobs[id]
    
    scheduler.add_job.side_effect = add_job
    scheduler.get_job.side_effect = lambda job_id: jobs.get(job_id)
    scheduler.remove_job.side_effect = lambda job_id: jobs.pop(job_id)
    scheduler.jobs = jobs
    return scheduler


class RecordingBackend:
    """
    Routes requests to canned responses and records what was sent.
    
    Routes are keyed by ``(method, path)`` with the path relative to the
    API root. A route value is either a response body (sent with 200) or
    a ``(status, body)`` tuple; callables receive the request.
    """
    
    def __init__(self):
        self.routes = {}
        self.requests = []
    
    def route(self, method, path, response):
        self.routes[(method, path)] = response
    
    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path[len("/api"):]
        self.requests.append(request)
        
        response = self.routes.get((request.method, path))
        if response is None:
            return httpx.Response(404, json={"success": False, "message": f"No route for {path}"})
        if callable(response):
            response = response(request)
        if isinstance(response, httpx.Response):
            return response
        if isinstance(response, tuple):
            status, body = response
            return httpx.Response(status, json=body)
        return httpx.Response(200, json=response)
    
    def sent_json(self, index=-1):
        return json.loads(self.requests[index].content)


@pytest.fixture
def backend():
    return RecordingBackend()


@pytest_asyncio.fixture
async def backend_client(backend):
    """Real BackendClient talking to RecordingBackend over httpx.MockTransport"""
    http = httpx.AsyncClient(
        base_url=TEST_BASE_URL,
        transport=httpx.MockTransport(backend.handler)
    )
    client = BackendClient(base_url=TEST_BASE_URL, api_key="test-key", http_client=http)
    yield client
    await http.aclose()
