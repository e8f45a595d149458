from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Applicant(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    unique_id: str = Field(index=True, unique=True)
    name: str = Field(default="")
    email: str = Field(default="")
    role: str = Field(default="")
    original_github_url: Optional[str] = Field(default=None)
    github_username: Optional[str] = Field(default=None, index=True)

    # uploading -> processing -> analyzing -> completed | failed
    status: str = Field(default="processing", index=True)
    error: Optional[str] = Field(default=None)
    github_error: Optional[str] = Field(default=None)

    # Credibility score (0-100) from the oracle
    score: Optional[int] = Field(default=None, index=True)

    # Evidence bundles and results stored as JSON
    cv_data: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    linkedin_data: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    github_data: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    analysis_result: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    processing_options: Dict[str, Any] = Field(default={}, sa_column=Column(JSON))

    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
