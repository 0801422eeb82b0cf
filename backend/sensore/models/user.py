import uuid
from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, String, Uuid
from sqlalchemy.sql import expression, func
from sensore.database import Base

USER_TYPES = ("admin", "clinician", "patient")


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            "user_type IN ('admin', 'clinician', 'patient')",
            name="ck_users_user_type",
        ),
    )

    user_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    username = Column(String(50), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    user_type = Column(String(20), nullable=False, index=True)  # "admin" | "clinician" | "patient"
    email = Column(String(255), unique=True, nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    is_active = Column(Boolean, default=True, server_default=expression.true())
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
