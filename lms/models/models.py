from lms.config import Base
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, Boolean, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime

CONTENT_TYPES = ("text", "markdown", "external_link", "attachment")
ROLES = ("student", "instructor")


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    full_name = Column(String, nullable=True)
    role = Column(String, nullable=False, default="student")  # student|instructor

    progress = relationship("ModuleProgress", backref="user", cascade="all, delete-orphan")


class Phase(Base):
    __tablename__ = "phases"
    id = Column(String, primary_key=True, index=True)  # uuid
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    order_index = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    sections = relationship("Section", backref="phase", cascade="all, delete-orphan")


class Section(Base):
    __tablename__ = "sections"
    id = Column(String, primary_key=True, index=True)  # uuid
    phase_id = Column(String, ForeignKey("phases.id", ondelete="CASCADE"), index=True, nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    order_index = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    modules = relationship("Module", backref="section", cascade="all, delete-orphan")


class Module(Base):
    __tablename__ = "modules"
    id = Column(String, primary_key=True, index=True)  # uuid
    section_id = Column(String, ForeignKey("sections.id", ondelete="CASCADE"), index=True, nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    content = Column(Text, nullable=False, default="")
    content_type = Column(String, nullable=False, default="markdown")  # text|markdown|external_link|attachment
    external_url = Column(String, nullable=True)
    deadline = Column(DateTime, nullable=True)
    order_index = Column(Integer, nullable=False)
    is_published = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    progress = relationship("ModuleProgress", backref="module", cascade="all, delete-orphan")


class ModuleProgress(Base):
    __tablename__ = "module_progress"
    __table_args__ = (UniqueConstraint("user_id", "module_id", name="uq_module_progress_user_module"),)

    id = Column(String, primary_key=True, index=True)  # uuid
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    module_id = Column(String, ForeignKey("modules.id", ondelete="CASCADE"), index=True, nullable=False)
    is_completed = Column(Boolean, default=False, nullable=False)
    completed_at = Column(DateTime, nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)
