from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

JOB_STATUSES = ("enquiry", "scheduled", "in_progress", "completed", "cancelled")
FREQUENCIES = ("daily", "weekly", "bi_weekly", "monthly")


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    auth_uid = Column(String(255), unique=True, index=True, nullable=False)  # Hosting platform user id
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(255), nullable=True)
    plan = Column(String(50), default="free", nullable=False)  # free, pro
    created_at = Column(DateTime, server_default=func.now())

    clients = relationship("Client", back_populates="user")
    recurring_jobs = relationship("RecurringJob", back_populates="user")
    jobs = relationship("Job", back_populates="user")


class Client(Base):
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="clients")
    recurring_jobs = relationship("RecurringJob", back_populates="client")
    jobs = relationship("Job", back_populates="client")


class RecurringJob(Base):
    """Template for a repeating service, expanded into Job rows over time"""

    __tablename__ = "recurring_jobs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)

    # Template copied onto each instance
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    agreed_hours = Column(Float, nullable=True)

    # Schedule
    frequency = Column(String(20), nullable=False)  # daily, weekly, bi_weekly, monthly
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    scheduled_time = Column(String(10), nullable=False)  # HH:MM format

    is_active = Column(Boolean, default=True, nullable=False, index=True)
    # Latest occurrence already materialized; dates up to here are never regenerated
    last_generated_date = Column(Date, nullable=True)

    version = Column(Integer, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="recurring_jobs")
    client = relationship("Client", back_populates="recurring_jobs")
    jobs = relationship("Job", back_populates="recurring_job", passive_deletes=True)

    __mapper_args__ = {"version_id_col": version}


class Job(Base):
    """A single concrete job: one-off, or an instance of a recurring job"""

    __tablename__ = "jobs"
    __table_args__ = (
        UniqueConstraint(
            "recurring_job_id", "recurring_instance_date", name="uq_jobs_recurring_instance"
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    recurring_job_id = Column(
        Integer, ForeignKey("recurring_jobs.id"), nullable=True, index=True
    )
    recurring_instance_date = Column(Date, nullable=True)  # Occurrence this row was generated for

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    agreed_hours = Column(Float, nullable=True)

    # Scheduling
    scheduled_date = Column(Date, nullable=False, index=True)
    scheduled_time = Column(String(10), nullable=True)  # HH:MM format
    end_time = Column(String(10), nullable=True)

    # Status workflow: enquiry → scheduled → in_progress → completed (or cancelled)
    status = Column(String(20), default="scheduled", nullable=False, index=True)

    # Time tracking
    timer_started_at = Column(DateTime, nullable=True)  # Set while the timer is running
    timer_ended_at = Column(DateTime, nullable=True)
    total_time_seconds = Column(Integer, default=0, nullable=False)

    version = Column(Integer, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="jobs")
    client = relationship("Client", back_populates="jobs")
    recurring_job = relationship("RecurringJob", back_populates="jobs")

    __mapper_args__ = {"version_id_col": version}
