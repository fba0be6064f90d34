from fastapi import APIRouter, Query, status
from typing import List, Optional
from datetime import date

from lifeledger.core.deps import ScheduleEngineDep
from lifeledger.schemas.recurring_transaction import (
    RecurringTransactionCreate,
    RecurringTransactionUpdate,
    RecurringTransactionOut,
    LedgerEntryOut,
    ExecutionOut,
    RunDueOut,
    RecurringSummaryOut,
    OccurrencesOut,
)

router = APIRouter()


@router.get("/", response_model=List[RecurringTransactionOut])
async def list_recurring_transactions(
    engine: ScheduleEngineDep,
    ledger_id: Optional[int] = Query(None),
    enabled_only: bool = Query(False),
):
    """List recurring transactions, optionally for a single ledger"""
    return await engine.list_rules(ledger_id=ledger_id, enabled_only=enabled_only)


@router.post("/", response_model=RecurringTransactionOut, status_code=status.HTTP_201_CREATED)
async def create_recurring_transaction(engine: ScheduleEngineDep, data: RecurringTransactionCreate):
    """Create a recurring transaction; its first due date is seeded from the rule"""
    return await engine.create_rule(data)


@router.get("/due", response_model=List[RecurringTransactionOut])
async def list_due_recurring_transactions(
    engine: ScheduleEngineDep,
    today: Optional[date] = Query(None, description="Defaults to the server date"),
):
    return await engine.due_rules(today)


@router.post("/run-due", response_model=RunDueOut)
async def run_due_recurring_transactions(
    engine: ScheduleEngineDep,
    today: Optional[date] = Query(None, description="Defaults to the server date"),
):
    """Execute every due auto-executing rule once"""
    report = await engine.run_due(today)
    return RunDueOut.model_validate(report)


@router.get("/reminders", response_model=List[RecurringTransactionOut])
async def list_recurring_reminders(
    engine: ScheduleEngineDep,
    today: Optional[date] = Query(None),
):
    """Manual rules due within their reminder window"""
    return await engine.upcoming_reminders(today)


@router.get("/summary", response_model=List[RecurringSummaryOut])
async def recurring_summary(engine: ScheduleEngineDep):
    return await engine.summary()


@router.get("/{rule_id}", response_model=RecurringTransactionOut)
async def get_recurring_transaction(rule_id: int, engine: ScheduleEngineDep):
    return await engine.get_rule(rule_id)


@router.put("/{rule_id}", response_model=RecurringTransactionOut)
async def update_recurring_transaction(rule_id: int, engine: ScheduleEngineDep, data: RecurringTransactionUpdate):
    """Update a recurring transaction; the next due date is re-seeded from the new rule"""
    return await engine.edit_rule(rule_id, data)


@router.delete("/{rule_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_recurring_transaction(rule_id: int, engine: ScheduleEngineDep):
    """Delete a recurring transaction; entries it already booked are kept"""
    await engine.delete_rule(rule_id)


@router.post("/{rule_id}/pause", response_model=RecurringTransactionOut)
async def pause_recurring_transaction(rule_id: int, engine: ScheduleEngineDep):
    return await engine.pause(rule_id)


@router.post("/{rule_id}/resume", response_model=RecurringTransactionOut)
async def resume_recurring_transaction(rule_id: int, engine: ScheduleEngineDep):
    return await engine.resume(rule_id)


@router.post("/{rule_id}/execute", response_model=ExecutionOut)
async def execute_recurring_transaction(rule_id: int, engine: ScheduleEngineDep):
    """Book the current occurrence now and advance the rule"""
    outcome = await engine.execute(rule_id)
    return ExecutionOut.model_validate(outcome)


@router.get("/{rule_id}/occurrences", response_model=OccurrencesOut)
async def preview_occurrences(
    rule_id: int,
    engine: ScheduleEngineDep,
    count: int = Query(12, ge=1, le=120),
):
    dates = await engine.preview(rule_id, count)
    return OccurrencesOut(rule_id=rule_id, dates=dates)


@router.get("/{rule_id}/entries", response_model=List[LedgerEntryOut])
async def list_recurring_entries(rule_id: int, engine: ScheduleEngineDep):
    """Ledger entries booked by this rule, newest first"""
    return await engine.list_entries(rule_id)
