import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    String,
    Boolean,
    Integer,
    Numeric,
    DateTime,
    Text,
    ForeignKey,
    CheckConstraint,
    Index,
)
from sqlalchemy.dialects.postgresql import UUID, JSONB, ARRAY
from sqlalchemy.orm import Mapped, mapped_column

from civicconnect.database import Base

# 'tender' is the contractor role
USER_TYPES = ("user", "admin", "area_super_admin", "department_admin", "tender")
ADMIN_USER_TYPES = ("admin", "area_super_admin", "department_admin")


class Profile(Base):
    """One row per account. Rows are provisioned at sign-up, outside this service."""

    __tablename__ = "profiles"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    user_type: Mapped[str] = mapped_column(String(30), default="user", nullable=False)
    full_name: Mapped[Optional[str]] = mapped_column(String(200))
    first_name: Mapped[Optional[str]] = mapped_column(String(100))
    last_name: Mapped[Optional[str]] = mapped_column(String(100))
    phone: Mapped[Optional[str]] = mapped_column(String(50))
    address: Mapped[Optional[str]] = mapped_column(Text)
    city: Mapped[Optional[str]] = mapped_column(String(100))
    state: Mapped[Optional[str]] = mapped_column(String(100))
    postal_code: Mapped[Optional[str]] = mapped_column(String(20))
    avatar_url: Mapped[Optional[str]] = mapped_column(Text)
    points: Mapped[int] = mapped_column(Integer, default=0)
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    verified_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    last_login_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    assigned_area_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("areas.id")
    )
    assigned_department_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("departments.id")
    )
    contractor_license: Mapped[Optional[str]] = mapped_column(String(100))
    contractor_rating: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(3, 2), default=Decimal("0.00")
    )
    contractor_specializations: Mapped[Optional[list]] = mapped_column(ARRAY(Text))
    notification_settings: Mapped[Optional[dict]] = mapped_column(
        JSONB, default=lambda: {"email": True, "push": True, "sms": False}
    )
    preferences: Mapped[Optional[dict]] = mapped_column(JSONB, default=dict)
    # "metadata" is reserved on declarative classes
    extra_metadata: Mapped[Optional[dict]] = mapped_column(
        "metadata", JSONB, default=dict
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    __table_args__ = (
        CheckConstraint(
            "user_type IN ('user','admin','area_super_admin','department_admin','tender')",
            name="chk_profile_user_type",
        ),
        Index("idx_profiles_user_type", "user_type"),
        Index("idx_profiles_assigned_area", "assigned_area_id"),
        Index("idx_profiles_assigned_department", "assigned_department_id"),
    )
