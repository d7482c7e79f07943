"""Directory models: families, students, locations, services, enrollments.

Reference data for revenue recognition. Maintained by the operations console,
read-only from the billing side.
"""

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    ForeignKey,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.database.base import Base, BaseModel, BigIntPK, created_at_column


class Family(BaseModel):
    """Billing household. Invoices are issued to a family."""

    __tablename__ = "families"

    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    primary_email: Mapped[str | None] = mapped_column(String(255), nullable=True)

    students: Mapped[list["Student"]] = relationship("Student", back_populates="family")


class Student(BaseModel):
    """Student belonging to a family."""

    __tablename__ = "students"

    family_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("families.id", ondelete="CASCADE"), nullable=False, index=True
    )
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)

    family: Mapped["Family"] = relationship("Family", back_populates="students")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class Location(Base):
    """Physical business location (or "remote" for online services)."""

    __tablename__ = "locations"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)  # e.g. "kendall"
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = created_at_column()


class Service(Base):
    """Billable offering identified by a stable code (e.g. "learning_pod")."""

    __tablename__ = "services"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = created_at_column()


class Enrollment(BaseModel):
    """A student's subscription to a service."""

    __tablename__ = "enrollments"

    family_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("families.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # Nullable: some services (consulting) are sold to the family, not a student
    student_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("students.id", ondelete="CASCADE"), nullable=True, index=True
    )
    service_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("services.id"), nullable=False, index=True
    )
    class_title: Mapped[str | None] = mapped_column(String(255), nullable=True)

    family: Mapped["Family"] = relationship("Family")
    student: Mapped["Student | None"] = relationship("Student")
    service: Mapped["Service"] = relationship("Service")
