from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from typing import Optional

from app.api.deps import get_staff_user, get_current_admin
from app.api.v1.endpoints.students import get_school_student
from app.core.database import get_db
from app.core.exceptions import ConflictError, ResourceNotFoundError, ValidationError
from app.core.logging_config import logger
from app.models.transport import TransportRoute, TransportVehicle, StudentTransport
from app.models.user import User
from app.schemas.transport import (
    RouteCreate,
    RouteUpdate,
    RouteResponse,
    VehicleCreate,
    VehicleUpdate,
    VehicleResponse,
    AssignmentCreate,
    AssignmentUpdate,
    AssignmentResponse,
)
from app.utils.pagination import paginate, pagination_params, PaginationParams
from app.utils.responses import success

router = APIRouter()


async def _get_scoped(db: AsyncSession, model, school_id: str, object_id: str, label: str):
    result = await db.execute(select(model).where(model.id == object_id, model.school_id == school_id))
    obj = result.scalar_one_or_none()
    if not obj:
        raise ResourceNotFoundError(label, object_id)
    return obj


async def _active_assignments(db: AsyncSession, **filters) -> int:
    query = select(func.count(StudentTransport.id)).where(StudentTransport.is_active.is_(True))
    for column, value in filters.items():
        query = query.where(getattr(StudentTransport, column) == value)
    return (await db.execute(query)).scalar() or 0


async def _check_vehicle_capacity(db: AsyncSession, vehicle: TransportVehicle, exclude_id: Optional[str] = None) -> None:
    query = select(func.count(StudentTransport.id)).where(
        StudentTransport.vehicle_id == vehicle.id,
        StudentTransport.is_active.is_(True),
    )
    if exclude_id:
        query = query.where(StudentTransport.id != exclude_id)
    riding = (await db.execute(query)).scalar() or 0
    if riding >= vehicle.capacity:
        raise ValidationError(
            f"Vehicle {vehicle.vehicle_number} is full ({vehicle.capacity} seats)",
            field="vehicle_id",
        )


async def _vehicle_number_taken(db: AsyncSession, school_id: str, number: str, exclude_id: Optional[str] = None) -> bool:
    query = select(TransportVehicle.id).where(
        TransportVehicle.school_id == school_id,
        TransportVehicle.vehicle_number == number,
    )
    if exclude_id:
        query = query.where(TransportVehicle.id != exclude_id)
    return (await db.execute(query)).scalar_one_or_none() is not None


# ==================== Routes ====================

@router.get("/routes")
async def list_routes(
    is_active: Optional[bool] = None,
    pagination: PaginationParams = Depends(pagination_params),
    current_user: User = Depends(get_staff_user),
    db: AsyncSession = Depends(get_db)
):
    query = select(TransportRoute).where(TransportRoute.school_id == str(current_user.school_id))
    if is_active is not None:
        query = query.where(TransportRoute.is_active.is_(is_active))
    query = query.order_by(TransportRoute.route_name)
    return success(await paginate(db, query, pagination.page, pagination.page_size, item_schema=RouteResponse))


@router.post("/routes", status_code=status.HTTP_201_CREATED)
async def create_route(
    data: RouteCreate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    route = TransportRoute(school_id=str(admin.school_id), **data.model_dump())
    db.add(route)
    await db.commit()
    await db.refresh(route)

    logger.info(f"[Transport] Route '{route.route_name}' created")
    return success(RouteResponse.model_validate(route).model_dump(mode="json"))


@router.get("/routes/{route_id}")
async def get_route(
    route_id: str,
    current_user: User = Depends(get_staff_user),
    db: AsyncSession = Depends(get_db)
):
    route = await _get_scoped(db, TransportRoute, str(current_user.school_id), route_id, "Route")
    payload = RouteResponse.model_validate(route).model_dump(mode="json")
    payload["students_assigned"] = await _active_assignments(db, route_id=route.id)
    return success(payload)


@router.put("/routes/{route_id}")
async def update_route(
    route_id: str,
    data: RouteUpdate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    route = await _get_scoped(db, TransportRoute, str(admin.school_id), route_id, "Route")
    values = data.model_dump(exclude_unset=True)
    for required in ("route_name", "monthly_fee", "pickup_points", "is_active"):
        if required in values and values[required] is None:
            raise ValidationError(f"{required} cannot be empty", field=required)

    for field, value in values.items():
        setattr(route, field, value)
    await db.commit()
    await db.refresh(route)
    return success(RouteResponse.model_validate(route).model_dump(mode="json"))


@router.delete("/routes/{route_id}")
async def delete_route(
    route_id: str,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    route = await _get_scoped(db, TransportRoute, str(admin.school_id), route_id, "Route")
    if await _active_assignments(db, route_id=route.id):
        raise ConflictError("Route has students assigned and cannot be deleted")

    await db.delete(route)
    await db.commit()
    return success(message="Route deleted")


# ==================== Vehicles ====================

@router.get("/vehicles")
async def list_vehicles(
    route_id: Optional[str] = None,
    is_active: Optional[bool] = None,
    pagination: PaginationParams = Depends(pagination_params),
    current_user: User = Depends(get_staff_user),
    db: AsyncSession = Depends(get_db)
):
    query = select(TransportVehicle).where(TransportVehicle.school_id == str(current_user.school_id))
    if route_id:
        query = query.where(TransportVehicle.route_id == route_id)
    if is_active is not None:
        query = query.where(TransportVehicle.is_active.is_(is_active))
    query = query.order_by(TransportVehicle.vehicle_number)
    return success(await paginate(db, query, pagination.page, pagination.page_size, item_schema=VehicleResponse))


@router.post("/vehicles", status_code=status.HTTP_201_CREATED)
async def create_vehicle(
    data: VehicleCreate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    school_id = str(admin.school_id)
    if await _vehicle_number_taken(db, school_id, data.vehicle_number):
        raise ConflictError(f"Vehicle '{data.vehicle_number}' already exists", field="vehicle_number")
    if data.route_id:
        await _get_scoped(db, TransportRoute, school_id, data.route_id, "Route")

    vehicle = TransportVehicle(school_id=school_id, **data.model_dump())
    db.add(vehicle)
    await db.commit()
    await db.refresh(vehicle)

    logger.info(f"[Transport] Vehicle {vehicle.vehicle_number} ({vehicle.capacity} seats) added")
    return success(VehicleResponse.model_validate(vehicle).model_dump(mode="json"))


@router.get("/vehicles/{vehicle_id}")
async def get_vehicle(
    vehicle_id: str,
    current_user: User = Depends(get_staff_user),
    db: AsyncSession = Depends(get_db)
):
    vehicle = await _get_scoped(db, TransportVehicle, str(current_user.school_id), vehicle_id, "Vehicle")
    payload = VehicleResponse.model_validate(vehicle).model_dump(mode="json")
    payload["students_assigned"] = await _active_assignments(db, vehicle_id=vehicle.id)
    return success(payload)


@router.put("/vehicles/{vehicle_id}")
async def update_vehicle(
    vehicle_id: str,
    data: VehicleUpdate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    school_id = str(admin.school_id)
    vehicle = await _get_scoped(db, TransportVehicle, school_id, vehicle_id, "Vehicle")
    values = data.model_dump(exclude_unset=True)

    for required in ("vehicle_number", "vehicle_type", "capacity", "is_active"):
        if required in values and values[required] is None:
            raise ValidationError(f"{required} cannot be empty", field=required)
    if values.get("vehicle_number") and await _vehicle_number_taken(
        db, school_id, values["vehicle_number"], exclude_id=vehicle.id
    ):
        raise ConflictError(f"Vehicle '{values['vehicle_number']}' already exists", field="vehicle_number")
    if values.get("route_id"):
        await _get_scoped(db, TransportRoute, school_id, values["route_id"], "Route")
    if values.get("capacity") is not None:
        riding = await _active_assignments(db, vehicle_id=vehicle.id)
        if values["capacity"] < riding:
            raise ValidationError(f"Capacity cannot be lower than the {riding} students assigned", field="capacity")

    for field, value in values.items():
        setattr(vehicle, field, value)
    await db.commit()
    await db.refresh(vehicle)
    return success(VehicleResponse.model_validate(vehicle).model_dump(mode="json"))


@router.delete("/vehicles/{vehicle_id}")
async def delete_vehicle(
    vehicle_id: str,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    vehicle = await _get_scoped(db, TransportVehicle, str(admin.school_id), vehicle_id, "Vehicle")
    await db.delete(vehicle)
    await db.commit()
    return success(message="Vehicle deleted")


# ==================== Student assignments ====================

@router.get("/assignments")
async def list_assignments(
    route_id: Optional[str] = None,
    vehicle_id: Optional[str] = None,
    student_id: Optional[str] = None,
    is_active: Optional[bool] = None,
    pagination: PaginationParams = Depends(pagination_params),
    current_user: User = Depends(get_staff_user),
    db: AsyncSession = Depends(get_db)
):
    query = select(StudentTransport).where(StudentTransport.school_id == str(current_user.school_id))
    if route_id:
        query = query.where(StudentTransport.route_id == route_id)
    if vehicle_id:
        query = query.where(StudentTransport.vehicle_id == vehicle_id)
    if student_id:
        query = query.where(StudentTransport.student_id == student_id)
    if is_active is not None:
        query = query.where(StudentTransport.is_active.is_(is_active))
    query = query.order_by(StudentTransport.created_at.desc())
    return success(await paginate(db, query, pagination.page, pagination.page_size, item_schema=AssignmentResponse))


@router.post("/assignments", status_code=status.HTTP_201_CREATED)
async def create_assignment(
    data: AssignmentCreate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Assign a student to a route; one active assignment per student"""
    school_id = str(admin.school_id)
    student = await get_school_student(db, school_id, data.student_id)
    route = await _get_scoped(db, TransportRoute, school_id, data.route_id, "Route")

    if await _active_assignments(db, student_id=student.id):
        raise ConflictError("Student already has an active transport assignment", field="student_id")
    if data.vehicle_id:
        vehicle = await _get_scoped(db, TransportVehicle, school_id, data.vehicle_id, "Vehicle")
        await _check_vehicle_capacity(db, vehicle)

    assignment = StudentTransport(
        school_id=school_id,
        student_id=student.id,
        route_id=route.id,
        vehicle_id=data.vehicle_id,
        pickup_point=data.pickup_point,
        drop_point=data.drop_point,
        monthly_fee=data.monthly_fee if data.monthly_fee is not None else route.monthly_fee,
        is_active=True,
    )
    db.add(assignment)
    await db.commit()
    await db.refresh(assignment)

    logger.info(f"[Transport] {student.student_id} assigned to '{route.route_name}'")
    return success(AssignmentResponse.model_validate(assignment).model_dump(mode="json"))


@router.put("/assignments/{assignment_id}")
async def update_assignment(
    assignment_id: str,
    data: AssignmentUpdate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    school_id = str(admin.school_id)
    assignment = await _get_scoped(db, StudentTransport, school_id, assignment_id, "Transport assignment")
    values = data.model_dump(exclude_unset=True)

    for required in ("route_id", "monthly_fee", "is_active"):
        if required in values and values[required] is None:
            raise ValidationError(f"{required} cannot be empty", field=required)
    if values.get("route_id"):
        await _get_scoped(db, TransportRoute, school_id, values["route_id"], "Route")

    becomes_active = values.get("is_active", assignment.is_active)
    if becomes_active and not assignment.is_active:
        if await _active_assignments(db, student_id=assignment.student_id):
            raise ConflictError("Student already has an active transport assignment", field="student_id")

    vehicle_id = values.get("vehicle_id", assignment.vehicle_id)
    if becomes_active and vehicle_id and (vehicle_id != assignment.vehicle_id or not assignment.is_active):
        vehicle = await _get_scoped(db, TransportVehicle, school_id, vehicle_id, "Vehicle")
        await _check_vehicle_capacity(db, vehicle, exclude_id=assignment.id)

    for field, value in values.items():
        setattr(assignment, field, value)
    await db.commit()
    await db.refresh(assignment)
    return success(AssignmentResponse.model_validate(assignment).model_dump(mode="json"))


@router.delete("/assignments/{assignment_id}")
async def delete_assignment(
    assignment_id: str,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    assignment = await _get_scoped(db, StudentTransport, str(admin.school_id), assignment_id, "Transport assignment")
    await db.delete(assignment)
    await db.commit()
    return success(message="Assignment deleted")


@router.get("/stats")
async def transport_stats(
    current_user: User = Depends(get_staff_user),
    db: AsyncSession = Depends(get_db)
):
    school_id = str(current_user.school_id)

    async def count(model, *conditions) -> int:
        result = await db.execute(select(func.count(model.id)).where(model.school_id == school_id, *conditions))
        return result.scalar() or 0

    revenue = await db.execute(
        select(func.coalesce(func.sum(StudentTransport.monthly_fee), 0)).where(
            StudentTransport.school_id == school_id,
            StudentTransport.is_active.is_(True),
        )
    )

    return success({
        "total_routes": await count(TransportRoute),
        "active_routes": await count(TransportRoute, TransportRoute.is_active.is_(True)),
        "total_vehicles": await count(TransportVehicle),
        "active_vehicles": await count(TransportVehicle, TransportVehicle.is_active.is_(True)),
        "students_assigned": await count(StudentTransport, StudentTransport.is_active.is_(True)),
        "monthly_revenue": round(float(revenue.scalar() or 0), 2),
    })
