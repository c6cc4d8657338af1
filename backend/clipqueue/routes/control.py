"""
Control endpoints for the conversion queue.

HTTP adapter over the JobQueueOrchestrator. Handlers never touch the
ledger directly: reads go through the LedgerView, writes through the
orchestrator.

Error mapping:
    409  presets unavailable
    404  unknown job or preset
    400  invalid state transition
    502  encoder refused or failed
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, ConfigDict, Field

from ..deliver.paths import preview_output_path
from ..deliver.settings import AppSettings
from ..jobs.errors import (
    BatchSubmissionError,
    InvalidStateTransitionError,
    JobCancellationError,
    JobError,
    JobNotFoundError,
    JobSubmissionError,
)
from ..jobs.models import HistoryEntry, Job
from ..jobs.orchestrator import JobQueueOrchestrator
from ..naming.suggestions import accept_suggestion, suggest_completion
from ..naming.validation import effective_template, explain_template
from ..presets.errors import PresetNotFoundError, PresetUnavailableError
from ..presets.models import VideoPreset

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/queue", tags=["queue"])


# ============================================================================
# REQUEST / RESPONSE MODELS
# ============================================================================

class OperationResponse(BaseModel):
    """Generic operation result."""

    success: bool
    message: str


class PresetListResponse(BaseModel):
    presets: List[VideoPreset]
    selected: Optional[str] = None


class SelectPresetRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str


class AddJobRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    input_path: str = Field(min_length=1)


class AddJobResponse(BaseModel):
    job_id: Optional[str] = None
    duplicate: bool = False


class AddBatchRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    input_paths: List[str]


class AddBatchResponse(BaseModel):
    job_ids: List[str]


class JobListResponse(BaseModel):
    jobs: List[Job]


class HistoryListResponse(BaseModel):
    entries: List[HistoryEntry]


class SettingsUpdateRequest(BaseModel):
    """Partial settings update. Omitted fields are left unchanged."""

    model_config = ConfigDict(extra="forbid")

    output_directory: Optional[str] = None
    use_subdirectory: Optional[bool] = None
    subdirectory_name: Optional[str] = None
    file_name_pattern: Optional[str] = None
    zoomed_thumbnails: Optional[bool] = None


class SettingsResponse(BaseModel):
    settings: AppSettings
    preview_path: str
    hint: Optional[str] = None


class ValidatePatternRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    pattern: str


class ValidatePatternResponse(BaseModel):
    valid: bool
    hint: Optional[str] = None
    effective_pattern: str


class SuggestRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    text: str
    cursor: int = Field(ge=0)
    accept: bool = False


class SuggestResponse(BaseModel):
    suggestion: str
    text: str
    cursor: int


class PreviewRequest(BaseModel):
    """Settings overrides to preview; omitted fields use the current settings."""

    model_config = ConfigDict(extra="forbid")

    output_directory: Optional[str] = None
    use_subdirectory: Optional[bool] = None
    subdirectory_name: Optional[str] = None
    file_name_pattern: Optional[str] = None
    sample_input: str = "example.webm"


class PreviewResponse(BaseModel):
    path: str
    hint: Optional[str] = None


def _orchestrator(request: Request) -> JobQueueOrchestrator:
    return request.app.state.orchestrator


def _changes(body: BaseModel, exclude: Optional[set] = None) -> Dict[str, Any]:
    return {
        k: v for k, v in body.model_dump(exclude=exclude).items()
        if v is not None
    }


# ============================================================================
# PRESETS
# ============================================================================

@router.get("/presets", response_model=PresetListResponse)
async def list_presets_endpoint(request: Request):
    """
    List loaded presets, loading them on first use.

    Raises:
        409: Presets unavailable
    """
    orchestrator = _orchestrator(request)
    if not orchestrator.view.presets_loaded:
        try:
            await orchestrator.load_presets()
        except PresetUnavailableError as e:
            raise HTTPException(status_code=409, detail=str(e))

    view = orchestrator.view
    selected = view.selected_preset
    return PresetListResponse(
        presets=list(view.presets),
        selected=selected.name if selected else None,
    )


@router.post("/presets/select", response_model=OperationResponse)
async def select_preset_endpoint(body: SelectPresetRequest, request: Request):
    """
    Raises:
        404: No loaded preset with this name
    """
    try:
        preset = _orchestrator(request).set_selected_preset(body.name)
    except PresetNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return OperationResponse(success=True, message=f"Selected preset {preset.name}")


# ============================================================================
# JOBS
# ============================================================================

@router.get("/jobs", response_model=JobListResponse)
async def list_jobs_endpoint(request: Request):
    return JobListResponse(jobs=list(_orchestrator(request).view.jobs))


@router.post("/jobs", response_model=AddJobResponse)
async def add_job_endpoint(body: AddJobRequest, request: Request):
    """
    Submit one file.

    A file that already has an active job is not resubmitted
    (duplicate=True, no job id).

    Raises:
        409: Presets unavailable
        502: Encoder rejected the job
    """
    try:
        job_id = await _orchestrator(request).add_job(body.input_path)
    except PresetUnavailableError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except JobSubmissionError as e:
        raise HTTPException(status_code=502, detail=str(e))

    return AddJobResponse(job_id=job_id, duplicate=job_id is None)


@router.post("/jobs/batch", response_model=AddBatchResponse)
async def add_batch_endpoint(body: AddBatchRequest, request: Request):
    """
    Submit several files in order.

    Raises:
        409: Presets unavailable
        502: Encoder rejected a job; detail lists the jobs already submitted
    """
    try:
        job_ids = await _orchestrator(request).add_batch(body.input_paths)
    except PresetUnavailableError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except BatchSubmissionError as e:
        raise HTTPException(
            status_code=502,
            detail={"message": str(e), "submitted_job_ids": e.submitted_job_ids},
        )

    logger.info(f"[API] Batch of {len(body.input_paths)} file(s) -> {len(job_ids)} job(s)")
    return AddBatchResponse(job_ids=job_ids)


@router.post("/jobs/clear-completed", response_model=OperationResponse)
async def clear_completed_endpoint(request: Request):
    """
    Raises:
        502: Encoder refused
    """
    try:
        await _orchestrator(request).clear_completed_jobs()
    except JobError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return OperationResponse(success=True, message="Completed jobs cleared")


@router.post("/jobs/{job_id}/cancel", response_model=OperationResponse)
async def cancel_job_endpoint(job_id: str, request: Request):
    """
    Raises:
        404: Job not found
        400: Job cannot be cancelled in its current state
        502: Encoder refused
    """
    try:
        await _orchestrator(request).cancel_job(job_id)
    except JobNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidStateTransitionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except JobCancellationError as e:
        raise HTTPException(status_code=502, detail=str(e))

    return OperationResponse(success=True, message=f"Cancellation requested for job {job_id}")


# ============================================================================
# HISTORY
# ============================================================================

@router.get("/history", response_model=HistoryListResponse)
async def list_history_endpoint(request: Request):
    return HistoryListResponse(entries=list(_orchestrator(request).view.history))


@router.delete("/history", response_model=OperationResponse)
async def clear_history_endpoint(request: Request):
    """
    Raises:
        502: Encoder refused
    """
    try:
        await _orchestrator(request).clear_history()
    except JobError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return OperationResponse(success=True, message="History cleared")


# ============================================================================
# SETTINGS
# ============================================================================

@router.get("/settings", response_model=SettingsResponse)
async def get_settings_endpoint(request: Request):
    settings = _orchestrator(request).view.settings
    return SettingsResponse(settings=settings, preview_path=preview_output_path(settings))


@router.put("/settings", response_model=SettingsResponse)
async def update_settings_endpoint(body: SettingsUpdateRequest, request: Request):
    """
    Apply a partial settings update.

    An invalid naming pattern is stored as the default pattern; the
    response carries a hint explaining why.
    """
    orchestrator = _orchestrator(request)
    changes = _changes(body)

    hint = None
    if "file_name_pattern" in changes:
        hint = explain_template(changes["file_name_pattern"])

    if changes:
        orchestrator.update_settings(**changes)
        logger.info(f"[API] Settings updated: {', '.join(sorted(changes))}")

    settings = orchestrator.view.settings
    return SettingsResponse(
        settings=settings,
        preview_path=preview_output_path(settings),
        hint=hint,
    )


# ============================================================================
# NAMING
# ============================================================================

@router.post("/naming/validate", response_model=ValidatePatternResponse)
async def validate_pattern_endpoint(body: ValidatePatternRequest):
    hint = explain_template(body.pattern)
    return ValidatePatternResponse(
        valid=hint is None,
        hint=hint,
        effective_pattern=effective_template(body.pattern),
    )


@router.post("/naming/suggest", response_model=SuggestResponse)
async def suggest_endpoint(body: SuggestRequest):
    """
    Inline completion for a naming pattern being typed.

    With accept=True the suggestion is spliced in and the new text and
    cursor are returned.
    """
    cursor = min(body.cursor, len(body.text))
    suggestion = suggest_completion(body.text, cursor)
    text = body.text
    if body.accept and suggestion:
        text, cursor = accept_suggestion(text, cursor, suggestion)
    return SuggestResponse(suggestion=suggestion, text=text, cursor=cursor)


@router.post("/naming/preview", response_model=PreviewResponse)
async def preview_endpoint(body: PreviewRequest, request: Request):
    """Preview the output path for the current settings with optional overrides."""
    overrides = _changes(body, exclude={"sample_input"})
    current = _orchestrator(request).view.settings
    settings = current.model_copy(update=overrides)
    # model_copy skips validation; rebuild so overrides are normalized
    settings = AppSettings.from_dict(settings.to_dict())

    hint = None
    if "file_name_pattern" in overrides:
        hint = explain_template(overrides["file_name_pattern"])

    return PreviewResponse(path=preview_output_path(settings, body.sample_input), hint=hint)
