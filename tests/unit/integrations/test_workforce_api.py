"""
Workforce API Client Unit Tests

The HTTP client is exercised against httpx.MockTransport.
"""

import json
from datetime import datetime, timezone
from decimal import Decimal

import httpx
import pytest

from integrations.base import ExternalAPIError
from integrations.workforce_api import (
    ExternalWorkforceClient,
    month_bounds,
    parse_contract_catalogue,
    parse_worker,
)

BASE_URL = "https://workforce.test/api"

COMPANIES = [
    {"id": 10, "name": "Acme Servicios"},
    {"id": "20", "description": "Beta Logística"},
    {"id": "30"},
]

CONTRACTS = [
    {"id": "k-1", "companyId": "10", "name": "Limpieza", "amount": "12,50", "type": 1},
    {"id": "k-2", "companyIdContract": 20, "contractTypeName": "Temporal"},
]

WORKERS = [
    {
        "id": 501,
        "name": "Ana García",
        "workerIdRelation": "r-501",
        "parameterRelations": [
            {"parameterRelationId": "k-1", "type": 1},
            {"parameterRelationId": "k-2", "type": "1", "hourlyRate": "10"},
            {"id": "a-1", "companyId": "10", "type": 3, "label": "Refuerzo"},
        ],
    },
    {"id": "502", "fullName": "Bruno Díaz", "email": "bruno@example.com"},
]


def make_handler(calls: list[httpx.Request], overrides: dict | None = None):
    overrides = overrides or {}

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        path = request.url.path.removeprefix("/api")
        key = (request.method, path)
        if key in overrides:
            return overrides[key](request)

        if key == ("GET", "/parameter/list"):
            params = request.url.params
            if params.get("types") == "1":
                return httpx.Response(200, json=COMPANIES)
            if params.get("types") == "7":
                return httpx.Response(200, json={"data": CONTRACTS})
            if params.get("types[0]") == "5":
                return httpx.Response(200, json={"data": WORKERS})
        if key == ("POST", "/User/login"):
            return httpx.Response(200, json={"accessToken": "ext-token"})
        if key == ("POST", "/ControlSchedule/List"):
            body = json.loads(request.content)
            if body["types"] == [1]:
                return httpx.Response(
                    200,
                    json=[{"id": "h-1", "dateTime": "2025-01-02T08:00:00Z", "value": 6, "companyId": "10"}],
                )
            return httpx.Response(
                200,
                json={"entries": [{"id": "n-1", "dateTime": "2025-01-02T08:00:00Z", "note": "Revisado"}]},
            )
        return httpx.Response(404)

    return handler


def make_client(calls: list[httpx.Request], overrides: dict | None = None, **kwargs) -> ExternalWorkforceClient:
    return ExternalWorkforceClient(
        BASE_URL,
        token="ext-token",
        retry_attempts=1,
        transport=httpx.MockTransport(make_handler(calls, overrides)),
        **kwargs,
    )


class TestParsing:
    """Test pure payload normalization."""

    def test_month_bounds(self):
        start, end = month_bounds(2024, 2)
        assert start == datetime(2024, 2, 1, tzinfo=timezone.utc)
        assert end.day == 29
        assert (end.hour, end.minute, end.second) == (23, 59, 59)

    def test_contract_catalogue(self):
        lookup = parse_contract_catalogue(CONTRACTS, {"10": "Acme Servicios"})

        assert lookup["k-1"].company_name == "Acme Servicios"
        assert lookup["k-1"].hourly_rate == Decimal("12.50")
        assert lookup["k-1"].relation_type == 1
        assert lookup["k-2"].company_id == "20"
        assert lookup["k-2"].type_label == "Temporal"

    def test_worker_relations(self):
        companies = {"10": "Acme Servicios", "20": "Beta Logística"}
        contracts = parse_contract_catalogue(CONTRACTS, companies)

        worker = parse_worker(WORKERS[0], companies, contracts)

        assert worker.id == "501"
        assert worker.relation_id == "r-501"
        assert worker.company_names == ["Acme Servicios", "Beta Logística"]

        acme = worker.company_contracts["Acme Servicios"]
        assert [c.has_contract for c in acme] == [True, False]
        assert acme[0].hourly_rate == Decimal("12.50")
        assert acme[0].label == "Limpieza"
        assert acme[1].label == "Refuerzo"

        beta = worker.company_contracts["Beta Logística"][0]
        assert beta.hourly_rate == Decimal("10")
        assert beta.type_label == "Temporal"

        stats = worker.company_stats["Acme Servicios"]
        assert (stats.contract_count, stats.assignment_count) == (1, 2)

    def test_worker_defaults(self):
        worker = parse_worker({"id": 7}, {}, {})
        assert worker.name == "Trabajador sin nombre"
        assert worker.role == "tecnico"
        assert worker.email is None

    def test_secondary_email_from_user_lookup(self):
        raw = {"id": 1, "workerIdRelation": "r-1", "email": "ana@example.com"}

        worker = parse_worker(raw, {}, {}, {"r-1": "ana.garcia@empresa.com"})
        assert worker.secondary_email == "ana.garcia@empresa.com"

        same = parse_worker(raw, {}, {}, {"r-1": "ANA@example.com"})
        assert same.secondary_email is None


class TestClient:
    """Test the HTTP client against a mock workforce API."""

    @pytest.mark.asyncio
    async def test_login_returns_token(self):
        calls: list[httpx.Request] = []
        async with make_client(calls) as client:
            token = await client.login("ana", "secreto")

        assert token == "ext-token"
        body = json.loads(calls[0].content)
        assert body == {"username": "ana", "password": "secreto", "appSource": "g6t-tasker"}

    @pytest.mark.asyncio
    async def test_login_rejected(self):
        calls: list[httpx.Request] = []
        overrides = {("POST", "/User/login"): lambda request: httpx.Response(401, text="bad")}
        async with make_client(calls, overrides) as client:
            with pytest.raises(ExternalAPIError) as exc_info:
                await client.login("ana", "mal")

        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_login_without_token_in_response(self):
        calls: list[httpx.Request] = []
        overrides = {("POST", "/User/login"): lambda request: httpx.Response(200, json={"ok": True})}
        async with make_client(calls, overrides) as client:
            with pytest.raises(ExternalAPIError):
                await client.login("ana", "secreto")

    @pytest.mark.asyncio
    async def test_bearer_token_is_sent(self):
        calls: list[httpx.Request] = []
        async with make_client(calls) as client:
            await client.fetch_companies()

        assert calls[0].headers["Authorization"] == "Bearer ext-token"

    @pytest.mark.asyncio
    async def test_fetch_workers(self):
        calls: list[httpx.Request] = []
        async with make_client(calls) as client:
            directory = await client.fetch_workers()

        assert directory.company_lookup == {"10": "Acme Servicios", "20": "Beta Logística"}
        assert [w.name for w in directory.workers] == ["Ana García", "Bruno Díaz"]
        assert directory.get("502").email == "bruno@example.com"
        assert not any(request.url.path.endswith("/User/GetAll") for request in calls)

    @pytest.mark.asyncio
    async def test_fetch_workers_survives_catalogue_failures(self):
        calls: list[httpx.Request] = []

        def parameter_list(request: httpx.Request) -> httpx.Response:
            if request.url.params.get("types[0]") == "5":
                return httpx.Response(200, json=WORKERS)
            return httpx.Response(500)

        overrides = {("GET", "/parameter/list"): parameter_list}
        async with make_client(calls, overrides) as client:
            directory = await client.fetch_workers()

        assert directory.company_lookup == {}
        assert len(directory.workers) == 2

    @pytest.mark.asyncio
    async def test_fetch_workers_requires_listing(self):
        calls: list[httpx.Request] = []
        overrides = {("GET", "/parameter/list"): lambda request: httpx.Response(503)}
        async with make_client(calls, overrides) as client:
            with pytest.raises(ExternalAPIError) as exc_info:
                await client.fetch_workers()

        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_user_lookup_falls_back_to_get(self):
        calls: list[httpx.Request] = []
        overrides = {
            ("POST", "/User/GetAll"): lambda request: httpx.Response(405),
            ("GET", "/User/GetAll"): lambda request: httpx.Response(
                200, json={"data": [{"workerIdRelation": "r-501", "email": "ana@empresa.com"}]}
            ),
        }
        async with make_client(calls, overrides, enable_users_lookup=True) as client:
            directory = await client.fetch_workers()

        assert directory.get("501").email == "ana@empresa.com"

    @pytest.mark.asyncio
    async def test_schedule_request_body(self):
        calls: list[httpx.Request] = []
        start, end = month_bounds(2025, 1)
        async with make_client(calls) as client:
            entries = await client.fetch_schedule_entries("501", start, end, [1])

        assert len(entries) == 1
        body = json.loads(calls[0].content)
        assert body == {
            "from": "2025-01-01T00:00:00.000Z",
            "to": "2025-01-31T23:59:59.999Z",
            "parametersId": ["501"],
            "companiesId": [],
            "types": [1],
        }

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [204, 404])
    async def test_schedule_empty_statuses(self, status_code):
        calls: list[httpx.Request] = []
        overrides = {("POST", "/ControlSchedule/List"): lambda request: httpx.Response(status_code)}
        start, end = month_bounds(2025, 1)
        async with make_client(calls, overrides) as client:
            assert await client.fetch_schedule_entries("501", start, end, [1]) == []

    @pytest.mark.asyncio
    async def test_hours_summary(self):
        calls: list[httpx.Request] = []
        async with make_client(calls) as client:
            summary = await client.fetch_worker_hours_summary(
                "501", 2025, 1, company_lookup={"10": "Acme Servicios"}
            )

        day = summary.hours_by_date["2025-01-02"]
        assert day.total_hours == Decimal("6")
        assert day.companies[0].name == "Acme Servicios"
        assert day.notes == ["Revisado"]

    @pytest.mark.asyncio
    async def test_hours_summary_without_notes(self):
        calls: list[httpx.Request] = []

        def schedule(request: httpx.Request) -> httpx.Response:
            if json.loads(request.content)["types"] == [7]:
                return httpx.Response(500)
            return httpx.Response(200, json=[])

        overrides = {("POST", "/ControlSchedule/List"): schedule}
        async with make_client(calls, overrides) as client:
            summary = await client.fetch_worker_hours_summary("501", 2025, 1)

        assert summary.hours_by_date == {}

    @pytest.mark.asyncio
    async def test_transport_error_becomes_api_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        client = ExternalWorkforceClient(
            BASE_URL, retry_attempts=1, transport=httpx.MockTransport(handler)
        )
        try:
            with pytest.raises(ExternalAPIError):
                await client.fetch_companies()
            assert await client.test_connection() is False
        finally:
            await client.close()
