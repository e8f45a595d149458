import logging
import secrets
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import BackgroundTasks, Depends, FastAPI, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy import desc
from sqlmodel import Session, select

# Import core logic modules
from credscan import config
from credscan.errors import (
    AnalysisCancelled,
    GitHubError,
    InvalidIdentity,
    RateLimitExceeded,
    UserNotFound,
)
from credscan.processor import process_github_account
from credscan.schemas import ProcessingOptions

# Import clients & DB
from credscan.services.llm_client import CredibilityClient
from credscan.database import create_db_and_tables, get_session
from credscan.models import Applicant

config.configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="credscan")
credibility_client = CredibilityClient()


@app.on_event("startup")
def on_startup():
    create_db_and_tables()


def default_applicant_options() -> ProcessingOptions:
    return ProcessingOptions(
        max_repos=config.APPLICANT_MAX_REPOS,
        include_organizations=True,
        analyze_content=True,
        max_content_analysis=config.APPLICANT_MAX_CONTENT_ANALYSIS,
        include_activity=True,
    )


def github_http_error(error: GitHubError) -> HTTPException:
    '''
    Map a fatal GitHub failure to the HTTP error shown to the user.
    '''
    detail = f"Could not analyze this GitHub account: {error.message}"
    if isinstance(error, InvalidIdentity):
        return HTTPException(status_code=400, detail=detail)
    if isinstance(error, UserNotFound):
        return HTTPException(status_code=404, detail=detail)
    if isinstance(error, RateLimitExceeded):
        return HTTPException(status_code=429, detail=detail)
    return HTTPException(status_code=502, detail=detail)


def _save(session: Session, applicant: Applicant) -> None:
    applicant.updated_at = datetime.now(timezone.utc)
    session.add(applicant)
    session.commit()
    session.refresh(applicant)


# Background processing
async def analyze_applicant(applicant_id: int, bind, options: ProcessingOptions) -> None:
    '''
    Run the GitHub scan and the credibility oracle for one applicant.

    Runs outside the request/response cycle. GitHub evidence is optional: a
    failed scan is recorded on the applicant and the oracle still runs on the
    CV/LinkedIn data when there is any.

    Args:
        applicant_id (int): Primary key of the applicant.
        bind: Engine the request session was bound to.
        options (ProcessingOptions): GitHub scan options.
    '''
    with Session(bind) as session:
        applicant = session.get(Applicant, applicant_id)
        if not applicant:
            return

        try:
            profile = None
            if applicant.original_github_url:
                try:
                    profile = await process_github_account(applicant.original_github_url, options)
                    applicant.github_username = profile.username
                    applicant.github_data = profile.model_dump(mode="json", by_alias=True)
                except (GitHubError, AnalysisCancelled) as e:
                    logger.warning("GitHub processing failed for %s: %s", applicant.unique_id, e)
                    applicant.github_error = f"Could not analyze this GitHub account: {e}"

            if profile is None and not applicant.cv_data:
                applicant.status = "failed"
                applicant.error = applicant.github_error or "No evidence to analyze."
                _save(session, applicant)
                return

            applicant.status = "analyzing"
            _save(session, applicant)

            result = await credibility_client.assess(
                profile, applicant.cv_data, applicant.linkedin_data, applicant.name, applicant.role
            )
            applicant.analysis_result = result.model_dump(mode="json", by_alias=True)
            applicant.score = result.credibility_score
            applicant.status = "completed"
            _save(session, applicant)
            logger.info("Analysis completed for applicant %s (score %d)", applicant.unique_id, result.credibility_score)
        except Exception:
            logger.error("Processing failed for applicant %s", applicant_id, exc_info=True)
            session.rollback()
            applicant = session.get(Applicant, applicant_id)
            if applicant:
                applicant.status = "failed"
                applicant.error = "Processing failed due to an internal error."
                _save(session, applicant)


# Applicant endpoints
class ApplicantCreate(BaseModel):
    '''
    Pydantic model for creating a new applicant.
    '''
    github: Optional[str] = None
    name: str = ""
    email: str = ""
    role: str = ""
    cv_data: Optional[Dict[str, Any]] = None
    linkedin_data: Optional[Dict[str, Any]] = None
    options: Optional[ProcessingOptions] = None


@app.post("/applicants/", response_model=Applicant)
def create_applicant(
    payload: ApplicantCreate,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
):
    '''
    Register an applicant and queue the credibility analysis.
    '''
    if not payload.github and not payload.cv_data:
        raise HTTPException(status_code=400, detail="A GitHub account or CV data is required.")

    options = payload.options or default_applicant_options()
    applicant = Applicant(
        unique_id=secrets.token_hex(4),
        name=payload.name,
        email=payload.email,
        role=payload.role,
        original_github_url=payload.github,
        cv_data=payload.cv_data,
        linkedin_data=payload.linkedin_data,
        processing_options=options.model_dump(by_alias=True),
        status="processing",
    )
    _save(session, applicant)

    background_tasks.add_task(analyze_applicant, applicant.id, session.get_bind(), options)
    return applicant


@app.get("/applicants/")
def list_applicants(session: Session = Depends(get_session)):
    '''
    List all applicants, best credibility score first.
    '''
    return session.exec(select(Applicant).order_by(desc(Applicant.score))).all()


@app.get("/applicants/{unique_id}", response_model=Applicant)
def get_applicant(unique_id: str, session: Session = Depends(get_session)):
    applicant = session.exec(select(Applicant).where(Applicant.unique_id == unique_id)).first()
    if not applicant:
        raise HTTPException(404, "Applicant not found")
    return applicant


# GitHub endpoints
class GitHubPreviewRequest(BaseModel):
    github: str
    max_repos: int = Field(default=30, ge=1, le=100)


@app.post("/github/preview")
async def preview_github_account(request: GitHubPreviewRequest):
    '''
    Quick synchronous scan: profile, repositories and languages only.

    Activity, content and organization analysis are skipped so the call stays
    short enough for the request path.
    '''
    options = ProcessingOptions(
        max_repos=request.max_repos,
        include_organizations=False,
        analyze_content=False,
        include_activity=False,
    )
    try:
        profile = await process_github_account(request.github, options)
    except GitHubError as e:
        raise github_http_error(e)
    return profile.model_dump(mode="json", by_alias=True)
