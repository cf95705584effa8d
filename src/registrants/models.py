"""Registrant models and Cassandra schema.

Provides:
- Registrant entity (a person whose certificate can be viewed)
- Cassandra table and secondary index definitions
- Reference list of Indian states and union territories
"""

from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from src.access_links.models import ensure_utc_aware


if TYPE_CHECKING:
    from cassandra.cluster import Row


INDIAN_STATES = (
    "Andhra Pradesh",
    "Arunachal Pradesh",
    "Assam",
    "Bihar",
    "Chhattisgarh",
    "Goa",
    "Gujarat",
    "Haryana",
    "Himachal Pradesh",
    "Jharkhand",
    "Karnataka",
    "Kerala",
    "Madhya Pradesh",
    "Maharashtra",
    "Manipur",
    "Meghalaya",
    "Mizoram",
    "Nagaland",
    "Odisha",
    "Punjab",
    "Rajasthan",
    "Sikkim",
    "Tamil Nadu",
    "Telangana",
    "Tripura",
    "Uttar Pradesh",
    "Uttarakhand",
    "West Bengal",
    "Andaman and Nicobar Islands",
    "Chandigarh",
    "Dadra and Nagar Haveli and Daman and Diu",
    "Delhi",
    "Jammu and Kashmir",
    "Ladakh",
    "Lakshadweep",
    "Puducherry",
)


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

REGISTRANTS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.registrants (
    id UUID PRIMARY KEY,
    registration_number TEXT,
    registration_form_title TEXT,
    title TEXT,
    name TEXT,
    father_husband_name TEXT,
    mobile_no TEXT,
    email_id TEXT,
    date_of_birth TEXT,
    passout_percentage DOUBLE,
    state TEXT,
    address TEXT,
    course_name TEXT,
    experience TEXT,
    college_name TEXT,
    photo_url TEXT,
    qr_code_url TEXT,
    hashed_password TEXT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP,
    deleted_at TIMESTAMP
)
"""

REGISTRANTS_REGNUM_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS registrants_registration_number_idx
ON {keyspace}.registrants (registration_number)
"""

REGISTRANTS_EMAIL_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS registrants_email_id_idx
ON {keyspace}.registrants (email_id)
"""

REGISTRANTS_MOBILE_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS registrants_mobile_no_idx
ON {keyspace}.registrants (mobile_no)
"""

REGISTRANTS_TABLES_CQL = [
    REGISTRANTS_TABLE_CQL,
    REGISTRANTS_REGNUM_INDEX_CQL,
    REGISTRANTS_EMAIL_INDEX_CQL,
    REGISTRANTS_MOBILE_INDEX_CQL,
]


# ==============================================================================
# Entity
# ==============================================================================


@dataclass
class Registrant:
    """A registered person and their certificate details."""

    registration_number: str
    name: str
    email_id: str
    mobile_no: str
    hashed_password: str
    title: str = ""
    registration_form_title: str = ""
    father_husband_name: str = ""
    date_of_birth: date | None = None
    passout_percentage: float = 0.0
    state: str = ""
    address: str = ""
    course_name: str = ""
    experience: str = ""
    college_name: str = ""
    photo_url: str = ""
    qr_code_url: str = ""
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    deleted_at: datetime | None = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @classmethod
    def from_row(cls, row: "Row") -> "Registrant":
        """Create instance from Cassandra row."""
        return cls(
            id=row.id,
            registration_number=row.registration_number,
            registration_form_title=row.registration_form_title or "",
            title=row.title or "",
            name=row.name,
            father_husband_name=row.father_husband_name or "",
            mobile_no=row.mobile_no,
            email_id=row.email_id,
            date_of_birth=(
                date.fromisoformat(row.date_of_birth) if row.date_of_birth else None
            ),
            passout_percentage=row.passout_percentage or 0.0,
            state=row.state or "",
            address=row.address or "",
            course_name=row.course_name or "",
            experience=row.experience or "",
            college_name=row.college_name or "",
            photo_url=row.photo_url or "",
            qr_code_url=row.qr_code_url or "",
            hashed_password=row.hashed_password,
            created_at=ensure_utc_aware(row.created_at) or datetime.now(UTC),
            updated_at=ensure_utc_aware(row.updated_at) or datetime.now(UTC),
            deleted_at=ensure_utc_aware(row.deleted_at),
        )

    def to_dict(self) -> dict:
        """Public representation. Never includes the password hash."""
        return {
            "id": self.id,
            "registration_number": self.registration_number,
            "registration_form_title": self.registration_form_title,
            "title": self.title,
            "name": self.name,
            "father_husband_name": self.father_husband_name,
            "mobile_no": self.mobile_no,
            "email_id": self.email_id,
            "date_of_birth": self.date_of_birth,
            "passout_percentage": self.passout_percentage,
            "state": self.state,
            "address": self.address,
            "course_name": self.course_name,
            "experience": self.experience,
            "college_name": self.college_name,
            "photo_url": self.photo_url,
            "qr_code_url": self.qr_code_url,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
