from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, EmailStr, Field, StringConstraints, computed_field, field_validator
from pydantic.alias_generators import to_camel

from htverse.utils import clean_str_list, dedup_keep_order, ensure_utc

TrimmedStr = Annotated[str, StringConstraints(strip_whitespace=True)]


# ─────────────────────────────────────────────────────────────
# Enumerations
# ─────────────────────────────────────────────────────────────

class Role(str, Enum):
    PARTICIPANT = "participant"
    JUDGE = "judge"
    ADMIN = "admin"
    # Never assigned by self-registration; provisioned by an admin.
    ORGANIZER = "organizer"


class HackathonStatus(str, Enum):
    UPCOMING = "upcoming"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Category(str, Enum):
    WEB_DEVELOPMENT = "Web Development"
    MOBILE_DEVELOPMENT = "Mobile Development"
    AI_ML = "AI/ML"
    BLOCKCHAIN = "Blockchain"
    IOT = "IoT"
    GAME_DEVELOPMENT = "Game Development"
    DATA_SCIENCE = "Data Science"
    CYBERSECURITY = "Cybersecurity"
    CLOUD_COMPUTING = "Cloud Computing"
    OTHER = "Other"


class SortOrder(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    PRIZE = "prize"
    DEADLINE = "deadline"


class CamelModel(BaseModel):
    """JSON field names are camelCase on the wire and in MongoDB."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )


# ─────────────────────────────────────────────────────────────
# Hackathon
# ─────────────────────────────────────────────────────────────

class JudgingCriterion(CamelModel):
    criterion: TrimmedStr = Field(..., min_length=1)
    # Weights are not required to add up to 100.
    weightage: float = Field(..., ge=0, le=100)


class HackathonFields(CamelModel):
    """
    Editable hackathon fields.
    Used as the create payload and to re-validate merged updates.
    """
    title: TrimmedStr = Field(..., min_length=1, max_length=100)
    description: TrimmedStr = Field(..., min_length=1, max_length=2000)
    start_date: datetime
    end_date: datetime
    registration_deadline: datetime
    max_team_size: int = Field(..., ge=1, le=10)
    prize_pool: float = Field(..., ge=0)
    categories: List[Category] = Field(..., min_length=1)
    max_participants: int = Field(100, ge=1)
    is_active: bool = True
    banner_image: str = ""
    rules: List[str] = Field(default_factory=list)
    judges_criteria: List[JudgingCriterion] = Field(default_factory=list)

    @field_validator("start_date", "end_date", "registration_deadline")
    @classmethod
    def _as_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @field_validator("categories")
    @classmethod
    def _unique_categories(cls, v: List[Category]) -> List[Category]:
        return dedup_keep_order(v)

    @field_validator("rules")
    @classmethod
    def _clean_rules(cls, v: List[str]) -> List[str]:
        return clean_str_list(v)


HackathonCreate = HackathonFields


class HackathonUpdate(CamelModel):
    """
    Partial update. Only fields present in the request body are applied
    (`model_dump(exclude_unset=True)`); the merged record is re-validated
    as `HackathonFields`.
    """
    title: Optional[str] = None
    description: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    registration_deadline: Optional[datetime] = None
    max_team_size: Optional[int] = None
    prize_pool: Optional[float] = None
    categories: Optional[List[Category]] = None
    max_participants: Optional[int] = None
    is_active: Optional[bool] = None
    banner_image: Optional[str] = None
    rules: Optional[List[str]] = None
    judges_criteria: Optional[List[JudgingCriterion]] = None
    status: Optional[HackathonStatus] = None


class Hackathon(HackathonFields):
    """Stored hackathon record."""
    id: str
    organizer: str
    participants: List[str] = Field(default_factory=list)
    status: HackathonStatus = HackathonStatus.UPCOMING
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("created_at", "updated_at")
    @classmethod
    def _ts_as_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)

    @computed_field(alias="registrationCount")
    @property
    def registration_count(self) -> int:
        return len(self.participants)

    @computed_field(alias="spotsRemaining")
    @property
    def spots_remaining(self) -> int:
        return self.max_participants - len(self.participants)

    def editable_fields(self) -> Dict[str, Any]:
        return self.model_dump(include=set(HackathonFields.model_fields))

    def is_registration_open(self, now: datetime) -> bool:
        return now < self.registration_deadline and len(self.participants) < self.max_participants


class HackathonQuery(BaseModel):
    category: Optional[str] = None
    status: Optional[HackathonStatus] = None
    sort: SortOrder = SortOrder.NEWEST
    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1, le=100)
    # Admin listing: do not restrict to active hackathons.
    include_inactive: bool = False


class HackathonPage(BaseModel):
    items: List[Hackathon]
    total: int
    page: int
    limit: int
    # (id, derived status) pairs whose stored status is out of date
    stale: List[Tuple[str, str]] = Field(default_factory=list)

    @property
    def pages(self) -> int:
        return -(-self.total // self.limit) if self.total else 0


class RegistrationResult(CamelModel):
    hackathon_id: str
    hackathon_title: str
    registration_count: int
    spots_remaining: int
    registration_deadline: datetime


class UnregistrationResult(CamelModel):
    hackathon_id: str
    hackathon_title: str
    remaining_participants: int


# ─────────────────────────────────────────────────────────────
# Users
# ─────────────────────────────────────────────────────────────

class UserCreate(CamelModel):
    name: TrimmedStr = Field(..., min_length=1, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6)
    college: TrimmedStr = Field(..., min_length=1)
    phone: TrimmedStr = Field(..., pattern=r"^[0-9]{10}$")
    skills: List[str] = Field(default_factory=list)

    @field_validator("email")
    @classmethod
    def _lower_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("skills")
    @classmethod
    def _clean_skills(cls, v: List[str]) -> List[str]:
        return clean_str_list(v)


class LoginRequest(CamelModel):
    # Missing values are reported by UserService.login.
    email: Optional[str] = None
    password: Optional[str] = None


class User(CamelModel):
    id: str
    name: str
    email: str
    role: Role = Role.PARTICIPANT
    college: str = ""
    phone: str = ""
    skills: List[str] = Field(default_factory=list)
    is_verified: bool = False
    profile_picture: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    password_hash: Optional[str] = Field(None, exclude=True)

    @field_validator("created_at", "updated_at")
    @classmethod
    def _ts_as_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)

    def public(self, *, detailed: bool = False) -> Dict[str, Any]:
        """Profile returned by the auth endpoints (never the password hash)."""
        fields = {"id", "name", "email", "role", "college", "phone", "skills"}
        if detailed:
            fields |= {"is_verified", "created_at"}
        return self.model_dump(include=fields, by_alias=True, mode="json")


class UserSummary(CamelModel):
    """Reduced user projection embedded in hackathon payloads."""
    id: str
    name: str
    email: str
    college: Optional[str] = None
