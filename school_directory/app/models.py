"""ORM models for school records, their sub-records, media and roles."""

import enum
import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


def _enum_values(enum_cls) -> List[str]:
    return [member.value for member in enum_cls]


class Role(str, enum.Enum):
    ADMIN = "admin"
    EMPLOYEE = "employee"


class MediaType(str, enum.Enum):
    PHOTO = "photo"
    VIDEO = "video"


class MediaAttachment(str, enum.Enum):
    SCHOOL = "school"
    PRIMARY = "primary"
    BASIC = "basic"
    SECONDARY = "secondary"


# Parent foreign key column per attachment tag.
MEDIA_PARENT_COLUMNS = {
    MediaAttachment.SCHOOL: "school_id",
    MediaAttachment.PRIMARY: "primary_level_id",
    MediaAttachment.BASIC: "basic_level_id",
    MediaAttachment.SECONDARY: "secondary_level_id",
}


def _single_media_parent_check() -> str:
    branches = []
    for attachment, parent_column in MEDIA_PARENT_COLUMNS.items():
        conditions = [f"attached_to = '{attachment.value}'", f"{parent_column} IS NOT NULL"]
        conditions.extend(
            f"{other} IS NULL" for other in MEDIA_PARENT_COLUMNS.values() if other != parent_column
        )
        branches.append("(" + " AND ".join(conditions) + ")")
    return " OR ".join(branches)


class User(Base):
    """Local mirror of an identity-provider account."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    email: Mapped[Optional[str]] = mapped_column(String(254), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )


class UserRole(Base):
    __tablename__ = "user_roles"

    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    role: Mapped[Role] = mapped_column(
        Enum(Role, name="user_role", values_callable=_enum_values), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


class School(Base):
    __tablename__ = "schools"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(1000), nullable=False)
    phone_number1: Mapped[Optional[str]] = mapped_column(String(20))
    phone_number2: Mapped[Optional[str]] = mapped_column(String(20))
    phone_number3: Mapped[Optional[str]] = mapped_column(String(20))
    schools_web_site: Mapped[Optional[str]] = mapped_column(String(500))
    facebook_profile_url: Mapped[Optional[str]] = mapped_column(String(500))
    instagram_profile_url: Mapped[Optional[str]] = mapped_column(String(500))
    founder: Mapped[Optional[str]] = mapped_column(Text)
    director: Mapped[Optional[str]] = mapped_column(Text)
    public_relations_manager: Mapped[Optional[str]] = mapped_column(Text)
    parent_relationship_manager: Mapped[Optional[str]] = mapped_column(Text)
    established_year: Mapped[Optional[int]] = mapped_column(Integer)
    accreditation_status: Mapped[Optional[str]] = mapped_column(Text)
    accreditation_comment: Mapped[Optional[str]] = mapped_column(Text)
    graduation_rate: Mapped[Optional[float]] = mapped_column(Float)
    average_national_exam_score: Mapped[Optional[float]] = mapped_column(Float)
    description: Mapped[Optional[str]] = mapped_column(Text)
    has_tutor: Mapped[Optional[bool]] = mapped_column(Boolean)
    tutor_description: Mapped[Optional[str]] = mapped_column(Text)
    has_scholarships_grants: Mapped[Optional[bool]] = mapped_column(Boolean)
    scholarships_grants: Mapped[Optional[str]] = mapped_column(Text)
    has_exchange_programs: Mapped[Optional[bool]] = mapped_column(Boolean)
    exchange_programs: Mapped[Optional[str]] = mapped_column(Text)
    has_outdoor_garden: Mapped[Optional[bool]] = mapped_column(Boolean)
    outdoor_garden: Mapped[Optional[str]] = mapped_column(Text)
    other_programs: Mapped[Optional[str]] = mapped_column(Text, default="")

    created_by: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    updated_by: Mapped[Optional[str]] = mapped_column(String(128))
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    creator: Mapped[User] = relationship("User")
    address: Mapped["Address"] = relationship(
        back_populates="school", uselist=False, cascade="all, delete-orphan"
    )
    infrastructure: Mapped["Infrastructure"] = relationship(
        back_populates="school", uselist=False, cascade="all, delete-orphan"
    )
    primary: Mapped["PrimaryLevel"] = relationship(
        back_populates="school", uselist=False, cascade="all, delete-orphan"
    )
    basic: Mapped["BasicLevel"] = relationship(
        back_populates="school", uselist=False, cascade="all, delete-orphan"
    )
    secondary: Mapped["SecondaryLevel"] = relationship(
        back_populates="school", uselist=False, cascade="all, delete-orphan"
    )
    media: Mapped[List["Media"]] = relationship(
        back_populates="school", cascade="all, delete-orphan"
    )


class Address(Base):
    __tablename__ = "addresses"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    school_id: Mapped[str] = mapped_column(
        ForeignKey("schools.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    city: Mapped[Optional[str]] = mapped_column(Text)
    district: Mapped[Optional[str]] = mapped_column(Text)
    street: Mapped[Optional[str]] = mapped_column(Text)
    zip_code: Mapped[Optional[str]] = mapped_column(String(32), default="")

    school: Mapped[School] = relationship(back_populates="address")


class Infrastructure(Base):
    __tablename__ = "infrastructures"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    school_id: Mapped[str] = mapped_column(
        ForeignKey("schools.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    buildings: Mapped[Optional[str]] = mapped_column(Text)
    number_of_floors: Mapped[Optional[int]] = mapped_column(Integer)
    squareness: Mapped[Optional[float]] = mapped_column(Float)
    stadiums: Mapped[Optional[str]] = mapped_column(Text)
    pools: Mapped[Optional[str]] = mapped_column(Text)
    courtyard: Mapped[Optional[str]] = mapped_column(Text)
    laboratories: Mapped[Optional[str]] = mapped_column(Text)
    library: Mapped[Optional[str]] = mapped_column(Text)
    cafe: Mapped[Optional[str]] = mapped_column(Text)

    school: Mapped[School] = relationship(back_populates="infrastructure")


class EducationLevelMixin:
    """Columns shared by the primary, basic and secondary stages."""

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    price: Mapped[Optional[float]] = mapped_column(Float)
    duration: Mapped[Optional[str]] = mapped_column(Text)
    discount_and_payment_terms: Mapped[Optional[str]] = mapped_column(Text)
    number_of_students: Mapped[Optional[int]] = mapped_column(Integer)
    meals: Mapped[Optional[bool]] = mapped_column(Boolean)
    meals_description: Mapped[Optional[str]] = mapped_column(Text)
    transportation: Mapped[Optional[str]] = mapped_column(Text)
    school_uniform: Mapped[Optional[bool]] = mapped_column(Boolean)
    mandatory_sports_clubs: Mapped[Optional[str]] = mapped_column(Text)
    foreign_languages: Mapped[Optional[str]] = mapped_column(Text)
    teaching_style_books: Mapped[Optional[str]] = mapped_column(Text)
    textbooks_price: Mapped[Optional[str]] = mapped_column(Text, default="")
    clubs_and_circles: Mapped[Optional[str]] = mapped_column(Text)


class PrimaryLevel(EducationLevelMixin, Base):
    __tablename__ = "primary_levels"

    school_id: Mapped[str] = mapped_column(
        ForeignKey("schools.id", ondelete="CASCADE"), unique=True, nullable=False
    )

    school: Mapped[School] = relationship(back_populates="primary")
    media: Mapped[List["Media"]] = relationship(
        back_populates="primary_level", cascade="all, delete-orphan"
    )


class BasicLevel(EducationLevelMixin, Base):
    __tablename__ = "basic_levels"

    school_id: Mapped[str] = mapped_column(
        ForeignKey("schools.id", ondelete="CASCADE"), unique=True, nullable=False
    )

    school: Mapped[School] = relationship(back_populates="basic")
    media: Mapped[List["Media"]] = relationship(
        back_populates="basic_level", cascade="all, delete-orphan"
    )


class SecondaryLevel(EducationLevelMixin, Base):
    __tablename__ = "secondary_levels"

    school_id: Mapped[str] = mapped_column(
        ForeignKey("schools.id", ondelete="CASCADE"), unique=True, nullable=False
    )

    school: Mapped[School] = relationship(back_populates="secondary")
    media: Mapped[List["Media"]] = relationship(
        back_populates="secondary_level", cascade="all, delete-orphan"
    )


class Media(Base):
    __tablename__ = "media"
    __table_args__ = (
        CheckConstraint(_single_media_parent_check(), name="media_single_parent"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    media_url: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    type: Mapped[MediaType] = mapped_column(
        Enum(MediaType, name="media_type", values_callable=_enum_values), nullable=False
    )
    attached_to: Mapped[MediaAttachment] = mapped_column(
        Enum(MediaAttachment, name="media_attachment", values_callable=_enum_values),
        nullable=False,
    )
    school_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("schools.id", ondelete="CASCADE"), index=True
    )
    primary_level_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("primary_levels.id", ondelete="CASCADE"), index=True
    )
    basic_level_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("basic_levels.id", ondelete="CASCADE"), index=True
    )
    secondary_level_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("secondary_levels.id", ondelete="CASCADE"), index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    school: Mapped[Optional[School]] = relationship(back_populates="media")
    primary_level: Mapped[Optional[PrimaryLevel]] = relationship(back_populates="media")
    basic_level: Mapped[Optional[BasicLevel]] = relationship(back_populates="media")
    secondary_level: Mapped[Optional[SecondaryLevel]] = relationship(back_populates="media")


EDUCATION_LEVEL_MODELS = {
    "primary": PrimaryLevel,
    "basic": BasicLevel,
    "secondary": SecondaryLevel,
}
