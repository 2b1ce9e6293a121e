"""
Expense API Endpoints.

Fuel, maintenance, insurance, toll and other costs per vehicle. Expenses
can be edited and deleted at any time.
"""

from typing import Optional
from fastapi import APIRouter, Depends, status, Query, Path
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from fleetflow.app.db.session import get_db
from fleetflow.app.models.expense import Expense
from fleetflow.app.models.expense_enums import ExpenseCategory
from fleetflow.app.models.enums import PermissionModule, PermissionAction
from fleetflow.app.schemas.expense import ExpenseCreate, ExpenseUpdate, ExpenseResponse, ExpenseListResponse
from fleetflow.app.core.exceptions import ValidationError
from fleetflow.app.core.guards import require_permission
from fleetflow.app.services.audit import log_actor_event, AuditAction
from fleetflow.app.services.entity_store import get_vehicle, get_trip, get_expense, paginate

router = APIRouter(prefix="/expenses", tags=["Expenses"])


async def _check_references(db: AsyncSession, vehicle_id: int, trip_id: Optional[int]) -> None:
    """The vehicle must exist; a linked trip must exist and use that vehicle."""
    await get_vehicle(db, vehicle_id)
    if trip_id is not None:
        trip = await get_trip(db, trip_id)
        if trip.vehicle_id != vehicle_id:
            raise ValidationError(
                f"Trip {trip.id} was not run with vehicle {vehicle_id}",
                details={"trip_id": trip.id, "vehicle_id": vehicle_id}
            )


def _check_liters(category: ExpenseCategory, liters: float) -> None:
    if liters and category != ExpenseCategory.FUEL:
        raise ValidationError(
            "Liters can only be recorded on Fuel expenses",
            details={"category": category.value, "liters": liters}
        )


@router.post("", response_model=ExpenseResponse, status_code=status.HTTP_201_CREATED)
async def create_expense(
    expense_data: ExpenseCreate,
    current_user: dict = Depends(require_permission(PermissionModule.EXPENSES, PermissionAction.CREATE)),
    db: AsyncSession = Depends(get_db)
):
    await _check_references(db, expense_data.vehicle_id, expense_data.trip_id)

    expense = Expense(**expense_data.model_dump(), created_by=current_user["user_id"])
    db.add(expense)
    await db.flush()

    await log_actor_event(
        db, current_user, AuditAction.EXPENSE_CREATED, "expense", expense.id,
        metadata={"vehicle_id": expense.vehicle_id, "category": expense.category.value, "amount": expense.amount},
        commit=False
    )
    await db.commit()
    await db.refresh(expense)

    return ExpenseResponse.model_validate(expense)


@router.get("", response_model=ExpenseListResponse)
async def list_expenses(
    category: Optional[ExpenseCategory] = Query(None, description="Filter by category"),
    vehicle_id: Optional[int] = Query(None, description="Filter by vehicle"),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, description="Items per page"),
    current_user: dict = Depends(require_permission(PermissionModule.EXPENSES, PermissionAction.VIEW)),
    db: AsyncSession = Depends(get_db)
):
    query = select(Expense)

    if category:
        query = query.where(Expense.category == category)
    if vehicle_id:
        query = query.where(Expense.vehicle_id == vehicle_id)

    expenses, total = await paginate(db, query.order_by(Expense.date.desc(), Expense.id.desc()), page, page_size)

    return ExpenseListResponse(
        expenses=[ExpenseResponse.model_validate(e) for e in expenses],
        total=total,
        page=page,
        page_size=page_size
    )


@router.get("/{expense_id}", response_model=ExpenseResponse)
async def get_expense_detail(
    expense_id: int = Path(..., description="Expense ID"),
    current_user: dict = Depends(require_permission(PermissionModule.EXPENSES, PermissionAction.VIEW)),
    db: AsyncSession = Depends(get_db)
):
    return ExpenseResponse.model_validate(await get_expense(db, expense_id))


@router.patch("/{expense_id}", response_model=ExpenseResponse)
async def update_expense(
    expense_data: ExpenseUpdate,
    expense_id: int = Path(..., description="Expense ID"),
    current_user: dict = Depends(require_permission(PermissionModule.EXPENSES, PermissionAction.EDIT)),
    db: AsyncSession = Depends(get_db)
):
    """Update an expense; the merged record must still satisfy the fuel and trip rules."""
    expense = await get_expense(db, expense_id)
    changes = {k: v for k, v in expense_data.model_dump(exclude_unset=True).items() if v is not None}

    vehicle_id = changes.get("vehicle_id", expense.vehicle_id)
    trip_id = changes.get("trip_id", expense.trip_id)
    if "vehicle_id" in changes or "trip_id" in changes:
        await _check_references(db, vehicle_id, trip_id)

    _check_liters(changes.get("category", expense.category), changes.get("liters", expense.liters))

    for field, value in changes.items():
        setattr(expense, field, value)

    await log_actor_event(
        db, current_user, AuditAction.EXPENSE_UPDATED, "expense", expense.id,
        metadata={"fields": sorted(changes)},
        commit=False
    )
    await db.commit()
    await db.refresh(expense)

    return ExpenseResponse.model_validate(expense)


@router.delete("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_expense(
    expense_id: int = Path(..., description="Expense ID"),
    current_user: dict = Depends(require_permission(PermissionModule.EXPENSES, PermissionAction.DELETE)),
    db: AsyncSession = Depends(get_db)
):
    expense = await get_expense(db, expense_id)

    await log_actor_event(
        db, current_user, AuditAction.EXPENSE_DELETED, "expense", expense.id,
        metadata={"vehicle_id": expense.vehicle_id, "amount": expense.amount},
        commit=False
    )
    await db.delete(expense)
    await db.commit()
