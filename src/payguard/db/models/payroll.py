"""Employee and payroll tables holding subject data."""

import datetime as dt

from sqlalchemy import Boolean, Date, DateTime, Float, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import ArchivableMixin, Base, CreatedAtMixin, IdMixin, TimestampMixin


class Employee(IdMixin, TimestampMixin, ArchivableMixin, Base):
    """Root record of a data subject."""

    __tablename__ = "employees"

    company_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    user_id: Mapped[str | None] = mapped_column(String(36), nullable=True)

    # Personal details
    first_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    date_of_birth: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    gender: Mapped[str | None] = mapped_column(String(20), nullable=True)
    national_insurance_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    address1: Mapped[str | None] = mapped_column(String(255), nullable=True)
    address2: Mapped[str | None] = mapped_column(String(255), nullable=True)
    address3: Mapped[str | None] = mapped_column(String(255), nullable=True)
    address4: Mapped[str | None] = mapped_column(String(255), nullable=True)
    postcode: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # Employment
    department: Mapped[str | None] = mapped_column(String(100), nullable=True)
    payroll_id: Mapped[str | None] = mapped_column(String(50), nullable=True)
    tax_code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    nic_code: Mapped[str | None] = mapped_column(String(5), nullable=True)
    hourly_rate: Mapped[float | None] = mapped_column(Float, nullable=True)
    hours_per_week: Mapped[float | None] = mapped_column(Float, nullable=True)
    hire_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    leave_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    status: Mapped[str | None] = mapped_column(String(20), nullable=True, default="active")

    __table_args__ = (
        Index("idx_employees_user", "user_id"),
        Index("idx_employees_status_leave", "status", "leave_date"),
    )


class PayrollResult(IdMixin, CreatedAtMixin, ArchivableMixin, Base):
    __tablename__ = "payroll_results"

    employee_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    tax_year: Mapped[str | None] = mapped_column(String(9), nullable=True)
    tax_period: Mapped[int | None] = mapped_column(Integer, nullable=True)
    tax_code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    gross_pay_this_period: Mapped[float | None] = mapped_column(Float, nullable=True)
    net_pay_this_period: Mapped[float | None] = mapped_column(Float, nullable=True)
    income_tax_this_period: Mapped[float | None] = mapped_column(Float, nullable=True)


class TimesheetEntry(IdMixin, CreatedAtMixin, ArchivableMixin, Base):
    __tablename__ = "timesheet_entries"

    employee_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    payroll_id: Mapped[str | None] = mapped_column(String(50), nullable=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    scheduled_start: Mapped[str | None] = mapped_column(String(8), nullable=True)
    scheduled_end: Mapped[str | None] = mapped_column(String(8), nullable=True)
    actual_start: Mapped[dt.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    actual_end: Mapped[dt.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class SicknessRecord(IdMixin, CreatedAtMixin, ArchivableMixin, Base):
    __tablename__ = "employee_sickness_records"

    employee_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    start_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    total_days: Mapped[float | None] = mapped_column(Float, nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)


class WorkPattern(IdMixin, ArchivableMixin, Base):
    __tablename__ = "work_patterns"

    employee_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    payroll_id: Mapped[str | None] = mapped_column(String(50), nullable=True)
    day: Mapped[str] = mapped_column(String(10), nullable=False)
    is_working: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    start_time: Mapped[str | None] = mapped_column(String(8), nullable=True)
    end_time: Mapped[str | None] = mapped_column(String(8), nullable=True)


class Document(IdMixin, CreatedAtMixin, ArchivableMixin, Base):
    __tablename__ = "documents"

    employee_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    company_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    file_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    file_path: Mapped[str | None] = mapped_column(Text, nullable=True)
    mime_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    file_size: Mapped[int | None] = mapped_column(Integer, nullable=True)
    uploaded_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
