"""
Hours Auto-Fill

Distributes calendar hours over a company's contract entries and keeps
track of which hour inputs were written automatically versus typed by the
operator, so switching auto-fill off only clears what it wrote.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal

from engines.schemas.autofill import AutoFillRequest, AutoFillResponse, AutoFillState
from engines.schemas.contracts import ContractGroup, ContractGroupEntry, WorkerContract
from engines.schemas.hours import DayHoursSummary
from engines.schemas.salary import ContractInput, company_key_for
from engines.services.hours import calendar_hours_for_company
from engines.services.salary_calculator import CENT, ZERO, is_valid_company_name

logger = logging.getLogger(__name__)

Calendar = dict[str, DayHoursSummary]


def _entry_label(contract: WorkerContract, position: int) -> str:
    for candidate in (contract.label, contract.position, contract.description):
        if candidate and candidate.strip():
            return candidate.strip()
    if contract.has_contract:
        return f"Contrato {position}"
    return f"Asignación {position}"


def build_contract_groups(
    contracts: list[WorkerContract],
    company_lookup: dict[str, str] | None = None,
) -> list[ContractGroup]:
    """
    Group a worker's formal contracts per company for hour entry.

    Companies are ordered by name; placeholder names and companies without
    any formal contract are skipped. Contract keys are derived from the
    company id (or name) and the contract id, so they stay stable across
    reloads of the same worker.
    """
    company_lookup = company_lookup or {}
    by_name: dict[str, list[WorkerContract]] = {}
    for contract in contracts:
        name = contract.company_name.strip()
        if not name and contract.company_id:
            name = company_lookup.get(contract.company_id, "").strip()
        by_name.setdefault(name, []).append(contract)

    groups: list[ContractGroup] = []
    for name in sorted(by_name, key=str.casefold):
        if not is_valid_company_name(name):
            continue
        formal = [contract for contract in by_name[name] if contract.has_contract]
        if not formal:
            continue

        company_id = next((c.company_id for c in formal if c.company_id), None)
        key_base = company_id or name
        company_key = company_key_for(company_id, name)

        entries = []
        for position, contract in enumerate(formal, start=1):
            contract_id = (contract.id or "").strip() or None
            label = _entry_label(contract, position)
            description = (contract.description or contract.position or "").strip() or None
            entries.append(
                ContractGroupEntry(
                    contract_key=f"{key_base}-{contract_id or f'contract-{position}'}",
                    contract_id=contract_id,
                    label=label,
                    description=description if description != label else None,
                    hourly_rate=contract.hourly_rate,
                )
            )

        groups.append(
            ContractGroup(
                company_key=company_key,
                company_id=company_id,
                company_name=name,
                entries=entries,
            )
        )

    return groups


def group_calendar_hours(group: ContractGroup, calendar: Calendar) -> Decimal:
    return calendar_hours_for_company(calendar, group.company_id, group.company_name)


def clear_group(state: AutoFillState, group: ContractGroup) -> None:
    """Blank every hour input auto-fill wrote for the group."""
    for contract_key in state.auto_filled.pop(group.company_key, set()):
        state.hours.pop(contract_key, None)


def apply_group(state: AutoFillState, group: ContractGroup, calendar: Calendar) -> None:
    """
    Write calendar_hours / entry_count (rounded to 2 decimals) into every
    entry of the group the operator has not overridden.
    """
    calendar_hours = group_calendar_hours(group, calendar)
    if calendar_hours <= 0 or not group.entries:
        clear_group(state, group)
        return

    per_entry = (calendar_hours / Decimal(len(group.entries))).quantize(
        CENT, rounding=ROUND_HALF_UP
    )
    filled: set[str] = set()
    for entry in group.entries:
        if entry.contract_key in state.manual_overrides:
            continue
        if per_entry > 0:
            state.hours[entry.contract_key] = per_entry
        else:
            state.hours.pop(entry.contract_key, None)
        filled.add(entry.contract_key)

    state.auto_filled[group.company_key] = filled


def enable(state: AutoFillState, group: ContractGroup, calendar: Calendar) -> bool:
    """
    Switch auto-fill on for a group.

    Returns False, leaving the group disabled and cleared, when the calendar
    holds no hours for the company. Enabling drops the group's manual
    overrides.
    """
    if group_calendar_hours(group, calendar) <= 0:
        clear_group(state, group)
        state.enabled.discard(group.company_key)
        logger.debug("No calendar hours for %s, auto-fill stays off", group.company_key)
        return False

    state.enabled.add(group.company_key)
    for entry in group.entries:
        state.manual_overrides.discard(entry.contract_key)
    apply_group(state, group, calendar)
    return True


def disable(state: AutoFillState, group: ContractGroup) -> None:
    state.enabled.discard(group.company_key)
    clear_group(state, group)


def enable_all(state: AutoFillState, groups: list[ContractGroup], calendar: Calendar) -> None:
    state.enabled = set()
    for group in groups:
        enable(state, group, calendar)


def disable_all(state: AutoFillState, groups: list[ContractGroup]) -> None:
    state.enabled = set()
    for group in groups:
        clear_group(state, group)


def refresh(state: AutoFillState, groups: list[ContractGroup], calendar: Calendar) -> None:
    """Re-apply enabled groups after the calendar changed."""
    for group in groups:
        if group.company_key not in state.enabled:
            continue
        if group_calendar_hours(group, calendar) > 0:
            apply_group(state, group, calendar)
        else:
            disable(state, group)


def set_manual_hours(state: AutoFillState, contract_key: str, value: Decimal | None) -> None:
    """
    Record hours typed by the operator.

    A value marks the entry as a manual override that auto-fill will not
    touch; None (a blank input) clears both the hours and the override.
    """
    for filled in state.auto_filled.values():
        filled.discard(contract_key)

    if value is None:
        state.hours.pop(contract_key, None)
        state.manual_overrides.discard(contract_key)
        return

    state.hours[contract_key] = value
    state.manual_overrides.add(contract_key)


def contracts_from_state(state: AutoFillState, groups: list[ContractGroup]) -> list[ContractInput]:
    """Contract inputs for a salary calculation from the current hour inputs."""
    contracts = []
    for group in groups:
        for entry in group.entries:
            hours = state.hours.get(entry.contract_key, ZERO)
            contracts.append(
                ContractInput(
                    contract_key=entry.contract_key,
                    company_id=group.company_id,
                    company_name=group.company_name,
                    label=entry.label,
                    hours=hours,
                    hourly_rate=entry.hourly_rate,
                )
            )
    return contracts


class AutoFillError(ValueError):
    """Raised when an auto-fill action targets an unknown group or entry."""


def _find_group(groups: list[ContractGroup], company_key: str | None) -> ContractGroup:
    group = next((g for g in groups if g.company_key == company_key), None)
    if group is None:
        raise AutoFillError(f"Unknown company group: {company_key}")
    return group


def apply_action(request: AutoFillRequest) -> AutoFillResponse:
    """Apply one auto-fill action and return the new state with its contract inputs."""
    state = request.state.model_copy(deep=True)
    calendar = request.hours_by_date
    applied = True

    if request.action == "enable":
        applied = enable(state, _find_group(request.groups, request.company_key), calendar)
    elif request.action == "disable":
        disable(state, _find_group(request.groups, request.company_key))
    elif request.action == "enable_all":
        enable_all(state, request.groups, calendar)
    elif request.action == "disable_all":
        disable_all(state, request.groups)
    elif request.action == "set_hours":
        known = {entry.contract_key for group in request.groups for entry in group.entries}
        if request.contract_key not in known:
            raise AutoFillError(f"Unknown contract entry: {request.contract_key}")
        set_manual_hours(state, request.contract_key, request.value)
    else:
        refresh(state, request.groups, calendar)

    return AutoFillResponse(
        state=state,
        contracts=contracts_from_state(state, request.groups),
        applied=applied,
    )
