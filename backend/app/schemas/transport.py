from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Dict, Any
from datetime import datetime


class RouteCreate(BaseModel):
    route_name: str = Field(..., min_length=1, max_length=255)
    route_name_bn: Optional[str] = None
    start_point: Optional[str] = None
    end_point: Optional[str] = None
    pickup_points: List[Dict[str, Any]] = []
    morning_time: Optional[str] = None
    afternoon_time: Optional[str] = None
    distance_km: Optional[float] = Field(None, ge=0)
    monthly_fee: float = Field(0, ge=0)
    is_active: bool = True


class RouteUpdate(BaseModel):
    route_name: Optional[str] = Field(None, min_length=1, max_length=255)
    route_name_bn: Optional[str] = None
    start_point: Optional[str] = None
    end_point: Optional[str] = None
    pickup_points: Optional[List[Dict[str, Any]]] = None
    morning_time: Optional[str] = None
    afternoon_time: Optional[str] = None
    distance_km: Optional[float] = Field(None, ge=0)
    monthly_fee: Optional[float] = Field(None, ge=0)
    is_active: Optional[bool] = None


class RouteResponse(RouteCreate):
    model_config = ConfigDict(from_attributes=True)

    id: str
    school_id: str
    created_at: datetime


class VehicleCreate(BaseModel):
    vehicle_number: str = Field(..., min_length=1, max_length=50)
    vehicle_type: str = "bus"
    capacity: int = Field(..., gt=0)
    driver_name: Optional[str] = None
    driver_phone: Optional[str] = None
    driver_license: Optional[str] = None
    helper_name: Optional[str] = None
    helper_phone: Optional[str] = None
    route_id: Optional[str] = None
    is_active: bool = True


class VehicleUpdate(BaseModel):
    vehicle_number: Optional[str] = Field(None, min_length=1, max_length=50)
    vehicle_type: Optional[str] = None
    capacity: Optional[int] = Field(None, gt=0)
    driver_name: Optional[str] = None
    driver_phone: Optional[str] = None
    driver_license: Optional[str] = None
    helper_name: Optional[str] = None
    helper_phone: Optional[str] = None
    route_id: Optional[str] = None
    is_active: Optional[bool] = None


class VehicleResponse(VehicleCreate):
    model_config = ConfigDict(from_attributes=True)

    id: str
    school_id: str
    created_at: datetime


class AssignmentCreate(BaseModel):
    student_id: str
    route_id: str
    vehicle_id: Optional[str] = None
    pickup_point: Optional[str] = None
    drop_point: Optional[str] = None
    monthly_fee: Optional[float] = Field(None, ge=0)


class AssignmentUpdate(BaseModel):
    route_id: Optional[str] = None
    vehicle_id: Optional[str] = None
    pickup_point: Optional[str] = None
    drop_point: Optional[str] = None
    monthly_fee: Optional[float] = Field(None, ge=0)
    is_active: Optional[bool] = None


class AssignmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    school_id: str
    student_id: str
    route_id: str
    vehicle_id: Optional[str] = None
    pickup_point: Optional[str] = None
    drop_point: Optional[str] = None
    monthly_fee: float
    is_active: bool
    created_at: datetime
