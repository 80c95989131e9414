"""
Schedule API Router.

REST endpoints over the scheduling core:
- Time blocks by day or range, create/update/complete/delete
- Recurring families: create, family delete, skip one instance
- Overlap check, day conflicts and day layout
- Daily plans, today's pomodoro sessions and schedule settings

The owner comes from the X-User-Id header. Without it, list endpoints
return empty results and mutations answer 401.
"""

import logging
from datetime import date, datetime

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from pydantic import BaseModel, Field

from api.response_models import DayLayoutResponse, DetailResponse, ListResponse, MutationResponse
from focusday import config
from focusday.focus.sessions import PomodoroSessionStore
from focusday.planning.daily_plan import DailyPlanStore
from focusday.planning.ritual import ritual_due
from focusday.settings import SettingsStore
from focusday.state_store import StateStore, get_store
from focusday.time_blocks.block_store import BlockStore
from focusday.time_blocks.conflicts import check_overlap, find_conflicts
from focusday.time_blocks.layout import initial_scroll_px, layout_day
from focusday.time_blocks.recurrence import RecurrenceMaterializer, RecurringBlockSpec

logger = logging.getLogger(__name__)

schedule_router = APIRouter(
    prefix="/api/schedule",
    tags=["Schedule"],
)


# ==== Dependencies ====


def get_state_store() -> StateStore:
    return get_store()


def get_owner(x_user_id: str | None = Header(default=None)) -> str | None:
    return x_user_id or None


def require_owner(owner: str | None = Depends(get_owner)) -> str:
    if not owner:
        raise HTTPException(status_code=401, detail="No authenticated user")
    return owner


def get_blocks(
    store: StateStore = Depends(get_state_store), owner: str | None = Depends(get_owner)
) -> BlockStore:
    return BlockStore(store, owner)


def _naive(value: datetime) -> datetime:
    """Blocks are stored in local wall-clock time."""
    return value.replace(tzinfo=None) if value.tzinfo else value


def _items(items: list) -> dict:
    return {"items": items, "total": len(items)}


# ==== Request Models ====


class BlockCreate(BaseModel):
    title: str = Field(min_length=1)
    start_time: datetime
    end_time: datetime
    block_type: str = "task"
    color: str | None = None
    description: str | None = None
    todo_id: str | None = None
    buffer_minutes: int = 0
    energy_level: str | None = None
    reminder_minutes_before: int = 0


class BlockUpdate(BaseModel):
    title: str | None = None
    description: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    block_type: str | None = None
    color: str | None = None
    todo_id: str | None = None
    buffer_minutes: int | None = None
    energy_level: str | None = None
    reminder_minutes_before: int | None = None


class TodoBlockCreate(BaseModel):
    todo_id: str
    title: str
    start_time: datetime
    duration_minutes: int = Field(default=60, ge=1)


class RecurrenceBody(BaseModel):
    frequency: str = "daily"
    interval: int = 1


class RecurringCreate(BaseModel):
    title: str = Field(min_length=1)
    start_time: datetime
    end_time: datetime
    block_type: str = "task"
    color: str | None = None
    description: str | None = None
    recurrence: RecurrenceBody = Field(default_factory=RecurrenceBody)
    reminder_minutes_before: int = 0


class PlanUpdate(BaseModel):
    top_priorities: list[str] | None = None
    intention: str | None = None
    reflection: str | None = None
    is_completed: bool | None = None


class ReflectionBody(BaseModel):
    reflection: str


# ==== Time Blocks ====


@schedule_router.get("/blocks", response_model=ListResponse)
def list_blocks(
    day: date | None = Query(default=None, alias="date"),
    blocks: BlockStore = Depends(get_blocks),
) -> dict:
    """Blocks starting on the given day."""
    return _items([b.to_dict() for b in blocks.fetch_by_date(day or date.today())])


@schedule_router.get("/blocks/range", response_model=ListResponse)
def list_blocks_in_range(
    start: date = Query(...),
    end: date = Query(...),
    blocks: BlockStore = Depends(get_blocks),
) -> dict:
    if end < start:
        raise HTTPException(status_code=400, detail="end must not be before start")
    return _items([b.to_dict() for b in blocks.fetch_by_range(start, end)])


@schedule_router.get("/blocks/{block_id}", response_model=DetailResponse)
def get_block(block_id: str, blocks: BlockStore = Depends(get_blocks)) -> dict:
    block = blocks.get(block_id)
    if block is None:
        raise HTTPException(status_code=404, detail="Block not found")
    return block.to_dict()


@schedule_router.post("/blocks", response_model=MutationResponse, dependencies=[Depends(require_owner)])
def create_block(body: BlockCreate, blocks: BlockStore = Depends(get_blocks)) -> dict:
    block, message = blocks.create_block(
        title=body.title,
        start_time=_naive(body.start_time),
        end_time=_naive(body.end_time),
        block_type=body.block_type,
        color=body.color,
        description=body.description,
        todo_id=body.todo_id,
        buffer_minutes=body.buffer_minutes,
        energy_level=body.energy_level,
        reminder_minutes_before=body.reminder_minutes_before,
    )
    if block is None:
        raise HTTPException(status_code=400, detail=message)
    # Advisory only; the block is saved regardless
    overlapping = check_overlap(blocks, block.start_time, block.end_time, exclude_id=block.id)
    return {
        "success": True,
        "message": message,
        "block": block.to_dict(),
        "overlapping_ids": [b.id for b in overlapping],
    }


@schedule_router.post(
    "/blocks/from-todo", response_model=MutationResponse, dependencies=[Depends(require_owner)]
)
def create_block_from_todo(body: TodoBlockCreate, blocks: BlockStore = Depends(get_blocks)) -> dict:
    block, message = blocks.create_from_todo(
        body.todo_id, body.title, _naive(body.start_time), body.duration_minutes
    )
    if block is None:
        raise HTTPException(status_code=400, detail=message)
    return {"success": True, "message": message, "block": block.to_dict()}


@schedule_router.patch(
    "/blocks/{block_id}", response_model=MutationResponse, dependencies=[Depends(require_owner)]
)
def update_block(block_id: str, body: BlockUpdate, blocks: BlockStore = Depends(get_blocks)) -> dict:
    changes = {
        k: _naive(v) if isinstance(v, datetime) else v
        for k, v in body.model_dump(exclude_unset=True).items()
    }
    if blocks.get(block_id) is None:
        raise HTTPException(status_code=404, detail="Block not found")
    block = blocks.update_block(block_id, **changes)
    if block is None:
        raise HTTPException(status_code=400, detail="Block update rejected")
    return {"success": True, "block": block.to_dict()}


@schedule_router.post(
    "/blocks/{block_id}/complete", response_model=MutationResponse, dependencies=[Depends(require_owner)]
)
def complete_block(block_id: str, blocks: BlockStore = Depends(get_blocks)) -> dict:
    block = blocks.complete_block(block_id)
    if block is None:
        raise HTTPException(status_code=404, detail="Block not found")
    return {"success": True, "block": block.to_dict()}


@schedule_router.delete(
    "/blocks/{block_id}/complete", response_model=MutationResponse, dependencies=[Depends(require_owner)]
)
def uncomplete_block(block_id: str, blocks: BlockStore = Depends(get_blocks)) -> dict:
    block = blocks.uncomplete_block(block_id)
    if block is None:
        raise HTTPException(status_code=404, detail="Block not found")
    return {"success": True, "block": block.to_dict()}


@schedule_router.delete(
    "/blocks/{block_id}", response_model=MutationResponse, dependencies=[Depends(require_owner)]
)
def delete_block(block_id: str, blocks: BlockStore = Depends(get_blocks)) -> dict:
    if not blocks.delete_block(block_id):
        raise HTTPException(status_code=404, detail="Block not found")
    return {"success": True, "id": block_id}


@schedule_router.get("/summary", response_model=DetailResponse)
def day_summary(
    day: date | None = Query(default=None, alias="date"),
    blocks: BlockStore = Depends(get_blocks),
) -> dict:
    return vars(blocks.day_summary(day or date.today()))


# ==== Recurring Families ====


@schedule_router.post("/recurring", response_model=MutationResponse, dependencies=[Depends(require_owner)])
def create_recurring(body: RecurringCreate, blocks: BlockStore = Depends(get_blocks)) -> dict:
    spec = RecurringBlockSpec(
        title=body.title,
        start_time=_naive(body.start_time),
        end_time=_naive(body.end_time),
        block_type=body.block_type,
        color=body.color,
        description=body.description,
        recurrence=body.recurrence.model_dump(),
        reminder_minutes_before=body.reminder_minutes_before,
    )
    result = RecurrenceMaterializer(blocks).create_recurring(spec)
    if not result.success:
        raise HTTPException(status_code=400, detail=result.error)
    return {"success": True, "instance_count": result.instance_count, "root_id": result.root_id}


@schedule_router.get("/recurring/templates", response_model=ListResponse)
def list_recurring_templates(blocks: BlockStore = Depends(get_blocks)) -> dict:
    return _items([b.to_dict() for b in RecurrenceMaterializer(blocks).list_templates()])


@schedule_router.get("/recurring/stats", response_model=DetailResponse)
def recurring_stats(blocks: BlockStore = Depends(get_blocks)) -> dict:
    return vars(RecurrenceMaterializer(blocks).recurring_stats())


@schedule_router.post(
    "/recurring/extend", response_model=MutationResponse, dependencies=[Depends(require_owner)]
)
def extend_recurring(
    horizon_days: int = Query(default=config.RECURRING_EXTEND_HORIZON_DAYS, ge=1, le=366),
    blocks: BlockStore = Depends(get_blocks),
) -> dict:
    created = RecurrenceMaterializer(blocks).extend_all(horizon_days=horizon_days)
    return {"success": True, "created": created}


@schedule_router.delete(
    "/recurring/{block_id}", response_model=MutationResponse, dependencies=[Depends(require_owner)]
)
def delete_recurring_family(block_id: str, blocks: BlockStore = Depends(get_blocks)) -> dict:
    result = RecurrenceMaterializer(blocks).delete_recurring_family(block_id)
    if not result.success and not result.partial and result.root_id is None:
        raise HTTPException(status_code=404, detail="Block not found")
    return {
        "success": result.success,
        "partial": result.partial,
        "root_id": result.root_id,
        "instances_deleted": result.instances_deleted,
        "root_deleted": result.root_deleted,
        "errors": result.errors,
    }


@schedule_router.post(
    "/recurring/{block_id}/skip", response_model=MutationResponse, dependencies=[Depends(require_owner)]
)
def skip_recurring_instance(block_id: str, blocks: BlockStore = Depends(get_blocks)) -> dict:
    if not RecurrenceMaterializer(blocks).skip_instance(block_id):
        raise HTTPException(status_code=404, detail="Block not found")
    return {"success": True, "id": block_id}


# ==== Overlap & Layout ====


@schedule_router.get("/overlap", response_model=ListResponse)
def overlap(
    start: datetime = Query(...),
    end: datetime = Query(...),
    exclude_id: str | None = Query(default=None),
    blocks: BlockStore = Depends(get_blocks),
) -> dict:
    """Blocks intersecting [start, end). Informational; saves are never refused."""
    found = check_overlap(blocks, _naive(start), _naive(end), exclude_id=exclude_id)
    return _items([b.to_dict() for b in found])


@schedule_router.get("/conflicts", response_model=ListResponse)
def day_conflicts(
    day: date | None = Query(default=None, alias="date"),
    blocks: BlockStore = Depends(get_blocks),
) -> dict:
    return _items([c.to_dict() for c in find_conflicts(blocks.fetch_by_date(day or date.today()))])


@schedule_router.get("/layout", response_model=DayLayoutResponse)
def day_layout(
    day: date | None = Query(default=None, alias="date"),
    hour_height: int = Query(default=config.HOUR_HEIGHT, ge=10, le=400),
    blocks: BlockStore = Depends(get_blocks),
) -> dict:
    now = datetime.now()
    day = day or now.date()
    layout = layout_day(blocks.fetch_by_date(day), day, now=now, hour_height=hour_height)
    data = layout.to_dict()
    data["initial_scroll_px"] = initial_scroll_px(day, now, hour_height)
    return data


# ==== Daily Plans ====


@schedule_router.get("/plans/{day}", response_model=DetailResponse)
def get_daily_plan(
    day: date,
    store: StateStore = Depends(get_state_store),
    owner: str | None = Depends(get_owner),
) -> dict:
    plan = DailyPlanStore(store, owner).fetch(day)
    if plan is None:
        raise HTTPException(status_code=404, detail="No plan for this date")
    return plan.to_dict()


@schedule_router.put("/plans/{day}", response_model=MutationResponse)
def upsert_daily_plan(
    day: date,
    body: PlanUpdate,
    store: StateStore = Depends(get_state_store),
    owner: str = Depends(require_owner),
) -> dict:
    fields = body.model_dump(exclude_unset=True)
    priorities = fields.get("top_priorities")
    if priorities is not None and len(priorities) > config.MAX_PRIORITIES:
        raise HTTPException(
            status_code=400, detail=f"At most {config.MAX_PRIORITIES} priorities allowed"
        )
    plan = DailyPlanStore(store, owner).upsert(day, **fields)
    if plan is None:
        raise HTTPException(status_code=500, detail="Failed to save daily plan")
    return {"success": True, "plan": plan.to_dict()}


@schedule_router.post("/plans/{day}/reflection", response_model=MutationResponse)
def record_reflection(
    day: date,
    body: ReflectionBody,
    store: StateStore = Depends(get_state_store),
    owner: str = Depends(require_owner),
) -> dict:
    plan = DailyPlanStore(store, owner).record_reflection(day, body.reflection)
    if plan is None:
        raise HTTPException(status_code=500, detail="Failed to save reflection")
    return {"success": True, "plan": plan.to_dict()}


@schedule_router.get("/ritual/due", response_model=DetailResponse)
def planning_ritual_due(
    store: StateStore = Depends(get_state_store),
    owner: str | None = Depends(get_owner),
) -> dict:
    now = datetime.now()
    settings = SettingsStore(store, owner).fetch()
    plan = DailyPlanStore(store, owner).fetch(now.date())
    return {"due": bool(owner) and ritual_due(now, settings, plan)}


# ==== Pomodoro Sessions ====


@schedule_router.get("/pomodoro/sessions", response_model=ListResponse)
def todays_pomodoro_sessions(
    store: StateStore = Depends(get_state_store),
    owner: str | None = Depends(get_owner),
) -> dict:
    return _items([s.to_dict() for s in PomodoroSessionStore(store, owner).todays_sessions()])


# ==== Settings ====


@schedule_router.get("/settings", response_model=DetailResponse)
def get_settings(
    store: StateStore = Depends(get_state_store),
    owner: str | None = Depends(get_owner),
) -> dict:
    return SettingsStore(store, owner).fetch().to_dict()


@schedule_router.put("/settings", response_model=MutationResponse)
def update_settings(
    body: dict,
    store: StateStore = Depends(get_state_store),
    owner: str = Depends(require_owner),
) -> dict:
    settings = SettingsStore(store, owner).upsert(**body)
    if settings is None:
        raise HTTPException(status_code=400, detail="Settings update rejected")
    return {"success": True, "settings": settings.to_dict()}
