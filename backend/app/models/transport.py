from sqlalchemy import Column, String, DateTime, Integer, Float, Boolean, ForeignKey, JSON, UniqueConstraint
from datetime import datetime

from app.core.database import Base
from app.core.types import GUID, generate_uuid


class TransportRoute(Base):
    __tablename__ = "transport_routes"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    school_id = Column(GUID, ForeignKey("schools.id", ondelete="CASCADE"), nullable=False, index=True)

    route_name = Column(String(255), nullable=False)
    route_name_bn = Column(String(255), nullable=True)
    start_point = Column(String(255), nullable=True)
    end_point = Column(String(255), nullable=True)
    pickup_points = Column(JSON, default=list, nullable=False)  # [{"name": ..., "time": ...}]
    morning_time = Column(String(10), nullable=True)
    afternoon_time = Column(String(10), nullable=True)
    distance_km = Column(Float, nullable=True)
    monthly_fee = Column(Float, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<TransportRoute {self.route_name}>"


class TransportVehicle(Base):
    __tablename__ = "transport_vehicles"
    __table_args__ = (
        UniqueConstraint("school_id", "vehicle_number", name="uq_transport_vehicles_school_number"),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    school_id = Column(GUID, ForeignKey("schools.id", ondelete="CASCADE"), nullable=False, index=True)
    route_id = Column(GUID, ForeignKey("transport_routes.id", ondelete="SET NULL"), nullable=True, index=True)

    vehicle_number = Column(String(50), nullable=False)
    vehicle_type = Column(String(50), default="bus", nullable=False)
    capacity = Column(Integer, nullable=False)
    driver_name = Column(String(255), nullable=True)
    driver_phone = Column(String(20), nullable=True)
    driver_license = Column(String(50), nullable=True)
    helper_name = Column(String(255), nullable=True)
    helper_phone = Column(String(20), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<TransportVehicle {self.vehicle_number}>"


class StudentTransport(Base):
    """Student assigned to a route (and optionally a vehicle)"""
    __tablename__ = "transport_student_assignments"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    school_id = Column(GUID, ForeignKey("schools.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(GUID, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    route_id = Column(GUID, ForeignKey("transport_routes.id", ondelete="CASCADE"), nullable=False, index=True)
    vehicle_id = Column(GUID, ForeignKey("transport_vehicles.id", ondelete="SET NULL"), nullable=True, index=True)

    pickup_point = Column(String(255), nullable=True)
    drop_point = Column(String(255), nullable=True)
    monthly_fee = Column(Float, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<StudentTransport student={self.student_id} route={self.route_id}>"
