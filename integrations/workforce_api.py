"""
Workforce API Integration

Client for the external workforce REST API that owns workers, companies,
contracts and control-schedule (attendance) records.
"""

import calendar
import logging
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from engines.schemas.contracts import WorkerContract
from engines.schemas.hours import WorkerHoursSummary
from integrations.base import (
    CONTRACT_RELATION_TYPE,
    HOURS_SCHEDULE_TYPE,
    NOTES_SCHEDULE_TYPE,
    ContractMeta,
    ExternalAPIError,
    WorkerCompanyStats,
    WorkerData,
    WorkerDirectory,
    WorkforceIntegration,
)
from integrations.normalizers import (
    extract_list,
    normalize_identifier,
    parse_numeric,
    parse_relation_type,
    pick_string,
)
from integrations.schedule import summarize_schedule

logger = logging.getLogger(__name__)

TOKEN_FIELDS = ("accessToken", "token", "jwt", "access_token")


def _first_present(source: dict, *keys: str) -> Any:
    for key in keys:
        if source.get(key) is not None:
            return source[key]
    return None


def month_bounds(year: int, month: int) -> tuple[datetime, datetime]:
    """First and last instant of a month, in UTC."""
    last_day = calendar.monthrange(year, month)[1]
    start = datetime(year, month, 1, tzinfo=timezone.utc)
    end = datetime(year, month, last_day, 23, 59, 59, 999000, tzinfo=timezone.utc)
    return start, end


def _iso_utc(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_contract_catalogue(
    payload: Any,
    company_lookup: dict[str, str],
) -> dict[str, ContractMeta]:
    """Index the contract catalogue (parameter type 7) by contract id."""
    lookup: dict[str, ContractMeta] = {}
    for contract in extract_list(payload):
        if not isinstance(contract, dict):
            continue
        identifier = pick_string(
            contract.get("id"), contract.get("contractId"), contract.get("contract_id")
        )
        if not identifier:
            continue

        company_id = pick_string(
            contract.get("companyId"),
            contract.get("company_id"),
            contract.get("companyIdContract"),
        )
        company_name = company_lookup.get(company_id) if company_id else None
        if not company_name:
            company_name = pick_string(
                contract.get("companyName"), contract.get("company"), contract.get("companyLabel")
            )

        lookup[identifier] = ContractMeta(
            id=identifier,
            company_id=company_id,
            company_name=company_name,
            relation_type=parse_relation_type(
                contract.get("relationType"), contract.get("type"), contract.get("contractType")
            ),
            label=pick_string(
                contract.get("name"),
                contract.get("contractName"),
                contract.get("title"),
                contract.get("alias"),
            ),
            description=pick_string(
                contract.get("description"),
                contract.get("contractDescription"),
                contract.get("notes"),
            ),
            status=pick_string(
                contract.get("status"), contract.get("state"), contract.get("contractStatus")
            ),
            type_label=pick_string(
                contract.get("contractTypeName"),
                contract.get("typeName"),
                contract.get("typeDescription"),
                contract.get("contractTypeLabel"),
            ),
            hourly_rate=parse_numeric(
                _first_present(
                    contract,
                    "amount",
                    "hourlyRate",
                    "rate",
                    "price",
                    "weeklyHours",
                    "hoursPerWeek",
                    "hours_week",
                )
            ),
            start_date=pick_string(
                contract.get("startDate"),
                contract.get("contractStartDate"),
                contract.get("dateStart"),
                contract.get("beginDate"),
            ),
            end_date=pick_string(
                contract.get("endDate"),
                contract.get("contractEndDate"),
                contract.get("dateEnd"),
                contract.get("finishDate"),
            ),
        )
    return lookup


def _relation_contract(
    relation: dict,
    worker_id: str,
    company_lookup: dict[str, str],
    contract_lookup: dict[str, ContractMeta],
) -> WorkerContract | None:
    relation_id = pick_string(
        relation.get("parameterRelationId"), relation.get("relationId"), relation.get("id")
    )
    meta = contract_lookup.get(relation_id) if relation_id else None

    relation_type = parse_relation_type(
        relation.get("type"),
        relation.get("relationType"),
        relation.get("contractType"),
        relation.get("typeId"),
        relation.get("type_id"),
        meta.relation_type if meta else None,
    )

    company_id = pick_string(
        meta.company_id if meta else None,
        relation.get("companyId"),
        relation.get("company_id"),
        relation.get("companyIdContract"),
    )
    pointer = normalize_identifier(relation.get("parameterRelationId"))
    if pointer and pointer in contract_lookup and contract_lookup[pointer].company_id:
        company_id = contract_lookup[pointer].company_id

    if company_id and company_id in company_lookup:
        company_name = company_lookup[company_id]
    else:
        company_name = (
            (meta.company_name if meta else None)
            or pick_string(
                relation.get("companyName"), relation.get("company"), relation.get("companyLabel")
            )
            or company_id
        )
    if not company_name:
        return None

    raw_rate = _first_present(relation, "hourlyRate", "amount", "rate")
    if raw_rate is not None:
        hourly_rate = parse_numeric(raw_rate)
    else:
        hourly_rate = meta.hourly_rate if meta else None

    return WorkerContract(
        id=relation_id or f"{worker_id}-{company_id}-{relation.get('type')}",
        company_id=company_id,
        company_name=company_name,
        relation_type=relation_type,
        has_contract=relation_type == CONTRACT_RELATION_TYPE,
        type_label=(meta.type_label if meta else None)
        or pick_string(
            relation.get("typeLabel"),
            relation.get("relationLabel"),
            relation.get("contractTypeLabel"),
        ),
        hourly_rate=hourly_rate,
        label=pick_string(
            relation.get("label"),
            relation.get("name"),
            relation.get("relationName"),
            relation.get("contractName"),
            meta.label if meta else None,
        ),
        position=pick_string(
            relation.get("position"),
            relation.get("jobTitle"),
            relation.get("role"),
            relation.get("relationPosition"),
        ),
        description=pick_string(
            relation.get("description"),
            relation.get("notes"),
            relation.get("contractDescription"),
            relation.get("detail"),
        ),
        start_date=pick_string(
            relation.get("startDate"),
            relation.get("contractStartDate"),
            relation.get("dateStart"),
            meta.start_date if meta else None,
        ),
        end_date=pick_string(
            relation.get("endDate"),
            relation.get("contractEndDate"),
            relation.get("dateEnd"),
            meta.end_date if meta else None,
        ),
        status=pick_string(
            relation.get("status"),
            relation.get("state"),
            relation.get("contractStatus"),
            meta.status if meta else None,
        ),
    )


def parse_worker(
    raw: dict,
    company_lookup: dict[str, str],
    contract_lookup: dict[str, ContractMeta],
    email_lookup: dict[str, str] | None = None,
) -> WorkerData:
    """Normalize one worker record (parameter types 4/5) with its relations."""
    email_lookup = email_lookup or {}
    worker_id = (
        normalize_identifier(raw.get("id"))
        or normalize_identifier(raw.get("parameterId"))
        or normalize_identifier(raw.get("workerId"))
        or normalize_identifier(raw.get("worker_id"))
        or uuid4().hex
    )
    relation_id = (
        pick_string(
            raw.get("workerIdRelation"),
            raw.get("workerRelationId"),
            raw.get("workerRelation"),
            raw.get("workerParameterId"),
            raw.get("relationId"),
            raw.get("id"),
        )
        or worker_id
    )

    user = raw.get("user") if isinstance(raw.get("user"), dict) else {}
    primary_email = pick_string(
        raw.get("email"),
        raw.get("workerEmail"),
        raw.get("contactEmail"),
        raw.get("parameterEmail"),
        raw.get("principalEmail"),
        raw.get("providerEmail"),
        raw.get("userEmail"),
        raw.get("mail"),
        raw.get("emailAddress"),
        user.get("email"),
    )
    looked_up = (email_lookup.get(relation_id) or "").strip() or None
    email = primary_email or looked_up
    secondary_email = None
    if looked_up and email and looked_up.lower() != email.lower():
        secondary_email = looked_up

    company_contracts: dict[str, list[WorkerContract]] = {}
    company_stats: dict[str, WorkerCompanyStats] = {}
    relations = raw.get("parameterRelations")
    for relation in relations if isinstance(relations, list) else []:
        if not isinstance(relation, dict):
            continue
        contract = _relation_contract(relation, worker_id, company_lookup, contract_lookup)
        if contract is None:
            continue

        name = contract.company_name
        company_contracts.setdefault(name, []).append(contract)
        stats = company_stats.setdefault(name, WorkerCompanyStats(company_id=contract.company_id))
        if contract.has_contract:
            stats.contract_count += 1
        stats.assignment_count += 1
        if contract.company_id and not stats.company_id:
            stats.company_id = contract.company_id

    return WorkerData(
        id=worker_id,
        relation_id=relation_id,
        name=pick_string(
            raw.get("name"),
            raw.get("fullName"),
            raw.get("label"),
            raw.get("description"),
            raw.get("workerName"),
            raw.get("firstName"),
        )
        or "Trabajador sin nombre",
        email=email,
        secondary_email=secondary_email,
        role=pick_string(raw.get("role"), raw.get("workerRole")) or "tecnico",
        phone=pick_string(
            raw.get("phone"),
            raw.get("workerPhone"),
            raw.get("contactPhone"),
            raw.get("mobile"),
            raw.get("telephone"),
            raw.get("phoneNumber"),
            raw.get("tel"),
        ),
        avatar_url=pick_string(raw.get("avatarUrl"), raw.get("picture"), raw.get("profileImage")),
        created_at=pick_string(raw.get("createdAt"), raw.get("creationDate"), raw.get("dateCreated")),
        updated_at=pick_string(raw.get("updatedAt"), raw.get("dateUpdated"), raw.get("modifiedAt")),
        base_salary=parse_numeric(_first_present(raw, "baseSalary", "salary")),
        hourly_rate=parse_numeric(_first_present(raw, "hourlyRate", "rate")),
        contract_type=pick_string(raw.get("contractType"), raw.get("type"), raw.get("employmentType")),
        department=pick_string(raw.get("department"), raw.get("area"), raw.get("departmentName")),
        position=pick_string(raw.get("position"), raw.get("jobTitle"), raw.get("roleName")),
        start_date=pick_string(raw.get("startDate"), raw.get("dateStart"), raw.get("beginDate")),
        companies=pick_string(raw.get("companies"), raw.get("companyList")),
        company_names=sorted(company_contracts, key=str.casefold),
        company_contracts=company_contracts,
        company_stats=company_stats,
    )


class ExternalWorkforceClient(WorkforceIntegration):
    """
    Async client for the workforce API.

    Transport failures are retried with exponential back-off; HTTP error
    statuses raise ExternalAPIError without retrying.
    """

    provider_name = "workforce_api"

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = 30.0,
        retry_attempts: int = 3,
        enable_users_lookup: bool = False,
        timezone_offset_hours: int = 2,
        app_source: str = "g6t-tasker",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.retry_attempts = retry_attempts
        self.enable_users_lookup = enable_users_lookup
        self.timezone_offset_hours = timezone_offset_hours
        self.app_source = app_source
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            headers = {
                "Content-Type": "application/json",
                "Accept": "application/json",
            }
            if self.token:
                headers["Authorization"] = f"Bearer {self.token}"
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=headers,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self):
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "ExternalWorkforceClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _send(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.retry_attempts),
                wait=wait_exponential(multiplier=1, min=2, max=10),
                retry=retry_if_exception_type(httpx.TransportError),
                reraise=True,
            ):
                with attempt:
                    return await self.client.request(method, path, **kwargs)
        except httpx.TransportError as e:
            logger.error(f"Workforce API unreachable ({method} {path}): {e}")
            raise ExternalAPIError(f"Workforce API unreachable: {e}") from e

    async def _json(self, method: str, path: str, **kwargs) -> Any:
        response = await self._send(method, path, **kwargs)
        if response.is_error:
            raise ExternalAPIError(
                f"{method} {path} failed: {response.status_code} - {response.text[:200]}",
                status_code=response.status_code,
            )
        return response.json()

    async def test_connection(self) -> bool:
        try:
            response = await self._send("GET", "/parameter/list", params={"types": 1})
        except ExternalAPIError:
            return False
        return response.status_code == 200

    async def login(self, username: str, password: str) -> str:
        """Exchange operator credentials for an external JWT."""
        data = await self._json(
            "POST",
            "/User/login",
            json={"username": username, "password": password, "appSource": self.app_source},
        )
        token = None
        if isinstance(data, dict):
            token = pick_string(*(data.get(field) for field in TOKEN_FIELDS))
        if not token:
            raise ExternalAPIError("Login response did not include an access token", status_code=502)
        return token

    async def fetch_companies(self) -> dict[str, str]:
        """Company id to name (parameter type 1)."""
        data = await self._json("GET", "/parameter/list", params={"types": 1})
        lookup = {}
        for company in extract_list(data):
            if not isinstance(company, dict):
                continue
            company_id = pick_string(company.get("id"), company.get("parameterId"))
            name = pick_string(company.get("name"), company.get("description"), company.get("label"))
            if company_id and name:
                lookup[company_id] = name
        return lookup

    async def fetch_contracts(self, company_lookup: dict[str, str] | None = None) -> dict[str, ContractMeta]:
        data = await self._json("GET", "/parameter/list", params={"types": 7})
        return parse_contract_catalogue(data, company_lookup or {})

    async def fetch_user_emails(self) -> dict[str, str]:
        """
        Worker relation id to user account email.

        The endpoint answers POST on some deployments and GET on others.
        """
        response = await self._send("POST", "/User/GetAll", json={})
        if response.is_error:
            response = await self._send("GET", "/User/GetAll")
        if response.is_error:
            raise ExternalAPIError(
                f"User listing failed: {response.status_code}", status_code=response.status_code
            )

        lookup = {}
        for user in extract_list(response.json(), "data", "items"):
            if not isinstance(user, dict):
                continue
            relation_id = pick_string(
                user.get("workerIdRelation"),
                user.get("workerRelationId"),
                user.get("workerId"),
                user.get("worker_id"),
            )
            email = pick_string(
                user.get("email"),
                user.get("userEmail"),
                user.get("contactEmail"),
                user.get("secondaryEmail"),
            )
            if relation_id and email:
                lookup[relation_id] = email
        return lookup

    async def fetch_workers(self) -> WorkerDirectory:
        """
        Fetch active workers (parameter types 5 and 4) with their company
        relations resolved against the company and contract catalogues.

        Catalogue and user lookups are best-effort; only the worker listing
        itself is required.
        """
        company_lookup: dict[str, str] = {}
        try:
            company_lookup = await self.fetch_companies()
        except ExternalAPIError as e:
            logger.warning(f"Could not fetch companies for worker data: {e.message}")

        email_lookup: dict[str, str] = {}
        if self.enable_users_lookup:
            try:
                email_lookup = await self.fetch_user_emails()
            except ExternalAPIError as e:
                logger.warning(f"Could not fetch user emails: {e.message}")

        contract_lookup: dict[str, ContractMeta] = {}
        try:
            contract_lookup = await self.fetch_contracts(company_lookup)
        except ExternalAPIError as e:
            logger.warning(f"Could not fetch contract catalogue: {e.message}")

        data = await self._json(
            "GET",
            "/parameter/list",
            params={"types[0]": 5, "types[1]": 4, "situation": 0},
        )
        workers = [
            parse_worker(raw, company_lookup, contract_lookup, email_lookup)
            for raw in extract_list(data, "data", "items")
            if isinstance(raw, dict)
        ]
        logger.info(f"Fetched {len(workers)} workers from workforce API")
        return WorkerDirectory(workers=workers, company_lookup=company_lookup)

    async def fetch_schedule_entries(
        self,
        worker_id: str,
        start: datetime,
        end: datetime,
        types: list[int],
    ) -> list[dict]:
        """Control-schedule records of a worker; 204 and 404 mean none."""
        response = await self._send(
            "POST",
            "/ControlSchedule/List",
            json={
                "from": _iso_utc(start),
                "to": _iso_utc(end),
                "parametersId": [worker_id],
                "companiesId": [],
                "types": types,
            },
        )
        if response.status_code in (204, 404):
            return []
        if response.is_error:
            raise ExternalAPIError(
                f"Error fetching schedule control (types: {','.join(map(str, types))}): "
                f"{response.status_code}",
                status_code=response.status_code,
            )
        return extract_list(response.json(), "entries")

    async def fetch_worker_hours_summary(
        self,
        worker_id: str,
        year: int,
        month: int,
        company_lookup: dict[str, str] | None = None,
    ) -> WorkerHoursSummary:
        start, end = month_bounds(year, month)
        hour_entries = await self.fetch_schedule_entries(worker_id, start, end, [HOURS_SCHEDULE_TYPE])

        note_entries: list[dict] = []
        try:
            note_entries = await self.fetch_schedule_entries(
                worker_id, start, end, [NOTES_SCHEDULE_TYPE]
            )
        except ExternalAPIError as e:
            logger.error(f"Error fetching notes for worker {worker_id}: {e.message}")

        return summarize_schedule(
            hour_entries,
            note_entries,
            company_lookup=company_lookup,
            timezone_offset_hours=self.timezone_offset_hours,
        )
