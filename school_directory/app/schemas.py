from __future__ import annotations

from datetime import datetime
from typing import Any, ClassVar, List, Optional, Tuple, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    StrictFloat,
    StrictInt,
    StrictStr,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from .models import MediaAttachment, MediaType, Role
from .phone import PHONE_FORMAT_MESSAGE, format_georgian_phone, is_valid_georgian_phone
from .sanitize import sanitize_number

LIST_SEPARATOR = ","


def _coerce_number(value: Any) -> Any:
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, (str, int, float)):
        return sanitize_number(value)
    return value


def _is_absent_number(value: Any) -> bool:
    """True for input that was sent but does not sanitize to a number."""

    if value is None or isinstance(value, bool) or not isinstance(value, (str, int, float)):
        return False
    return sanitize_number(value) is None


def _coerce_optional_text(value: Any) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


def _join_list(value: Any) -> Any:
    """Flatten list-typed fields into the delimited string stored on the level row."""

    if isinstance(value, (list, tuple)):
        return LIST_SEPARATOR.join(str(entry).strip() for entry in value if str(entry).strip())
    return value


def _validate_phone(value: Optional[str]) -> Optional[str]:
    if not value:
        return value
    if not is_valid_georgian_phone(value):
        raise ValueError(PHONE_FORMAT_MESSAGE)
    return format_georgian_phone(value) or value


class PayloadModel(BaseModel):
    """Request bodies accept camelCase keys (and snake_case for Python callers)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    numeric_fields: ClassVar[Tuple[str, ...]] = ()

    @model_validator(mode="before")
    @classmethod
    def _drop_absent_numbers(cls, data: Any) -> Any:
        # Empty or non-numeric input counts as "not sent"; only an explicit null clears a column.
        if not isinstance(data, dict) or not cls.numeric_fields:
            return data

        absent = set()
        for field_name in cls.numeric_fields:
            for key in (field_name, cls.model_fields[field_name].alias):
                if key in data and _is_absent_number(data[key]):
                    absent.add(key)
        return {key: value for key, value in data.items() if key not in absent}


class AddressPayload(PayloadModel):
    city: Optional[str] = None
    district: Optional[str] = None
    street: Optional[str] = None
    zip_code: Optional[str] = None

    @field_validator("zip_code", mode="before")
    @classmethod
    def _coerce_zip_code(cls, value: Any) -> Any:
        return _coerce_optional_text(value)


class InfrastructurePayload(PayloadModel):
    numeric_fields = ("number_of_floors", "squareness")

    buildings: Optional[str] = None
    number_of_floors: Optional[int] = None
    squareness: Optional[float] = None
    stadiums: Optional[str] = None
    pools: Optional[str] = None
    courtyard: Optional[str] = None
    laboratories: Optional[str] = None
    library: Optional[str] = None
    cafe: Optional[str] = None

    @field_validator("number_of_floors", "squareness", mode="before")
    @classmethod
    def _coerce_numbers(cls, value: Any) -> Any:
        return _coerce_number(value)

    @field_validator("buildings", mode="before")
    @classmethod
    def _coerce_buildings(cls, value: Any) -> Any:
        return _coerce_optional_text(value)


class EducationLevelPayload(PayloadModel):
    numeric_fields = ("price", "number_of_students")

    price: Optional[float] = None
    duration: Optional[str] = None
    discount_and_payment_terms: Optional[str] = None
    number_of_students: Optional[int] = None
    meals: Optional[bool] = None
    meals_description: Optional[str] = None
    transportation: Optional[str] = None
    school_uniform: Optional[bool] = None
    mandatory_sports_clubs: Optional[str] = None
    foreign_languages: Optional[str] = None
    teaching_style_books: Optional[str] = None
    textbooks_price: Optional[str] = None
    clubs_and_circles: Optional[str] = None
    school_uniform_photo_urls: List[StrictStr] = Field(default_factory=list)

    @field_validator("price", "number_of_students", mode="before")
    @classmethod
    def _coerce_numbers(cls, value: Any) -> Any:
        return _coerce_number(value)

    @field_validator("mandatory_sports_clubs", "foreign_languages", mode="before")
    @classmethod
    def _flatten_lists(cls, value: Any) -> Any:
        return _join_list(value)

    @field_validator("duration", "textbooks_price", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        return _coerce_optional_text(value)

    @field_validator("school_uniform_photo_urls", mode="before")
    @classmethod
    def _default_photo_urls(cls, value: Any) -> Any:
        return [] if value is None else value


class SchoolFields(PayloadModel):
    numeric_fields = ("established_year", "graduation_rate", "average_national_exam_score")

    phone_number1: Optional[str] = None
    phone_number2: Optional[str] = None
    phone_number3: Optional[str] = None
    schools_web_site: Optional[str] = None
    facebook_profile_url: Optional[str] = Field(default=None, alias="facebookProfileURL")
    instagram_profile_url: Optional[str] = Field(default=None, alias="instagramProfileURL")
    founder: Optional[str] = None
    director: Optional[str] = None
    public_relations_manager: Optional[str] = None
    parent_relationship_manager: Optional[str] = None
    established_year: Optional[int] = None
    accreditation_status: Optional[str] = None
    accreditation_comment: Optional[str] = None
    graduation_rate: Optional[float] = None
    average_national_exam_score: Optional[float] = None
    description: Optional[str] = None
    has_tutor: Optional[bool] = None
    tutor_description: Optional[str] = None
    has_scholarships_grants: Optional[bool] = None
    scholarships_grants: Optional[str] = None
    has_exchange_programs: Optional[bool] = None
    exchange_programs: Optional[str] = None
    has_outdoor_garden: Optional[bool] = None
    outdoor_garden: Optional[str] = None
    other_programs: Optional[str] = None

    @field_validator("phone_number1", "phone_number2", "phone_number3", mode="before")
    @classmethod
    def _validate_phone_numbers(cls, value: Any) -> Any:
        value = _coerce_optional_text(value)
        if isinstance(value, str):
            return _validate_phone(value)
        return value

    @field_validator(
        "established_year", "graduation_rate", "average_national_exam_score", mode="before"
    )
    @classmethod
    def _coerce_numbers(cls, value: Any) -> Any:
        return _coerce_number(value)


class SchoolCreatePayload(SchoolFields):
    name: str = Field(..., min_length=1)
    address: AddressPayload
    infrastructure: InfrastructurePayload
    primary: EducationLevelPayload
    basic: EducationLevelPayload
    secondary: EducationLevelPayload

    @field_validator("name")
    @classmethod
    def _require_visible_name(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Name is required")
        return value


class SchoolUpdatePayload(SchoolFields):
    name: Optional[str] = None
    address: Optional[AddressPayload] = None
    infrastructure: Optional[InfrastructurePayload] = None
    primary: Optional[EducationLevelPayload] = None
    basic: Optional[EducationLevelPayload] = None
    secondary: Optional[EducationLevelPayload] = None

    @field_validator("name")
    @classmethod
    def _reject_blank_name(cls, value: Optional[str]) -> str:
        if value is None or not value.strip():
            raise ValueError("Name cannot be empty")
        return value


class MediaItemPayload(PayloadModel):
    media_url: StrictStr
    description: Optional[str] = None
    type: MediaType
    attached_to: MediaAttachment
    attached_id: Union[StrictInt, StrictFloat, StrictStr]

    @field_validator("description", mode="before")
    @classmethod
    def _coerce_description(cls, value: Any) -> Any:
        if isinstance(value, bool):
            return str(value).lower()
        return _coerce_optional_text(value)


class EmployeeCreatePayload(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: Role


# Response models


class OutModel(BaseModel):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)


class MediaOut(OutModel):
    id: str
    media_url: str
    description: Optional[str] = None
    type: MediaType
    attached_to: MediaAttachment
    created_at: Optional[datetime] = None


class AddressSummary(OutModel):
    city: Optional[str] = None
    district: Optional[str] = None
    street: Optional[str] = None
    zip_code: Optional[str] = None


class AddressOut(AddressSummary):
    id: str


class InfrastructureOut(OutModel):
    id: str
    buildings: Optional[str] = None
    number_of_floors: Optional[int] = None
    squareness: Optional[float] = None
    stadiums: Optional[str] = None
    pools: Optional[str] = None
    courtyard: Optional[str] = None
    laboratories: Optional[str] = None
    library: Optional[str] = None
    cafe: Optional[str] = None


class EducationLevelOut(OutModel):
    id: str
    price: Optional[float] = None
    duration: Optional[str] = None
    discount_and_payment_terms: Optional[str] = None
    number_of_students: Optional[int] = None
    meals: Optional[bool] = None
    meals_description: Optional[str] = None
    transportation: Optional[str] = None
    school_uniform: Optional[bool] = None
    mandatory_sports_clubs: Optional[str] = None
    foreign_languages: Optional[str] = None
    teaching_style_books: Optional[str] = None
    textbooks_price: Optional[str] = None
    clubs_and_circles: Optional[str] = None
    media: List[MediaOut] = Field(default_factory=list)


class CreatorOut(OutModel):
    id: str
    email: Optional[str] = None


class SchoolBase(OutModel):
    id: str
    name: str
    phone_number1: Optional[str] = None
    phone_number2: Optional[str] = None
    phone_number3: Optional[str] = None
    schools_web_site: Optional[str] = None
    facebook_profile_url: Optional[str] = Field(default=None, alias="facebookProfileURL")
    instagram_profile_url: Optional[str] = Field(default=None, alias="instagramProfileURL")
    founder: Optional[str] = None
    director: Optional[str] = None
    public_relations_manager: Optional[str] = None
    parent_relationship_manager: Optional[str] = None
    established_year: Optional[int] = None
    accreditation_status: Optional[str] = None
    accreditation_comment: Optional[str] = None
    graduation_rate: Optional[float] = None
    average_national_exam_score: Optional[float] = None
    description: Optional[str] = None
    has_tutor: Optional[bool] = None
    tutor_description: Optional[str] = None
    has_scholarships_grants: Optional[bool] = None
    scholarships_grants: Optional[str] = None
    has_exchange_programs: Optional[bool] = None
    exchange_programs: Optional[str] = None
    has_outdoor_garden: Optional[bool] = None
    outdoor_garden: Optional[str] = None
    other_programs: Optional[str] = None
    created_by: str
    updated_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    creator: Optional[CreatorOut] = None


class SchoolSummary(SchoolBase):
    """Reduced shape used by grid listings."""

    address: Optional[AddressSummary] = None


class SchoolDetail(SchoolBase):
    address: Optional[AddressOut] = None
    infrastructure: Optional[InfrastructureOut] = None
    primary: Optional[EducationLevelOut] = None
    basic: Optional[EducationLevelOut] = None
    secondary: Optional[EducationLevelOut] = None
    media: List[MediaOut] = Field(default_factory=list)


class Pagination(OutModel):
    page: int
    page_size: int
    total_count: int
    total_pages: int


__all__ = [
    "AddressPayload",
    "EducationLevelPayload",
    "EmployeeCreatePayload",
    "InfrastructurePayload",
    "MediaItemPayload",
    "Pagination",
    "SchoolCreatePayload",
    "SchoolDetail",
    "SchoolSummary",
    "SchoolUpdatePayload",
]
