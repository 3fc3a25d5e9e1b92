from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, Float, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


class UserModel(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True)
    email = Column(String, unique=True, nullable=True)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    profile_image_url = Column(String, nullable=True)
    role = Column(String, default="user", nullable=False)
    created_at = Column(DateTime)
    updated_at = Column(DateTime)


class CustomerModel(Base):
    __tablename__ = "customers"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    address = Column(Text, nullable=True)
    created_at = Column(DateTime)
    updated_at = Column(DateTime)


class FormModel(Base):
    __tablename__ = "forms"

    id = Column(String, primary_key=True)
    title = Column(String, nullable=False)
    description = Column(Text)
    fields_json = Column(Text, nullable=False)
    is_active = Column(Boolean, default=False)
    created_by = Column(String, nullable=True)
    created_at = Column(DateTime)
    updated_at = Column(DateTime)


class SubmissionModel(Base):
    __tablename__ = "form_submissions"

    id = Column(String, primary_key=True)
    form_id = Column(String, index=True)
    user_id = Column(String, index=True)
    customer_id = Column(String, nullable=True)
    data_json = Column(Text, nullable=False)
    collection_plan = Column(Float, nullable=True)
    water_plan = Column(Integer, nullable=True)
    submitted_at = Column(DateTime)


class UserFormMappingModel(Base):
    __tablename__ = "user_form_mappings"

    id = Column(String, primary_key=True)
    user_id = Column(String, index=True)
    form_id = Column(String, index=True)
    assigned_by = Column(String, nullable=True)
    assigned_at = Column(DateTime)
