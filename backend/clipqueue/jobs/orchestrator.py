"""
Job queue orchestration.

The orchestrator owns the JobLedger and is the only writer to it.
It turns UI submissions into encoder jobs:

    submission → preset guard → duplicate check → output path
               → existence-check retry loop → encoder.add_job → re-fetch

Determinism:
- Submissions are serialized by one lock. Batches are processed strictly
  in submission order, so auto-numbering is reproducible
- Every path claimed in a batch joins the snapshot before the next input
  is resolved, so two inputs never share a destination

Failure semantics:
- Presets missing: one automatic load, then PresetUnavailableError
- Existence check errors: treated as "does not exist"
- Duplicate active job for an input: logged no-op
- Encoder rejects a job: JobSubmissionError / BatchSubmissionError,
  already-submitted batch items are kept
- Settings persistence errors: logged only
"""

import asyncio
import logging
from typing import TYPE_CHECKING, Callable, List, Optional, Sequence, Set

from ..deliver.paths import resolve_output_path
from ..deliver.settings import AppSettings
from ..naming.validation import explain_template, uses_number
from ..presets.errors import DuplicatePresetError, PresetUnavailableError
from ..presets.models import VideoPreset
from .errors import (
    BatchSubmissionError,
    JobCancellationError,
    JobError,
    JobSubmissionError,
)
from .ledger import JobLedger, LedgerView
from .models import Job, JobStatus
from .state import validate_job_transition

if TYPE_CHECKING:
    from ..encoder.base import EncoderCollaborator

logger = logging.getLogger(__name__)

# Status message shown once progress starts flowing
CONVERTING_MESSAGE = "Converting video..."

# Safety limit for the existence-check retry loop
MAX_PATH_ATTEMPTS = 10_000

Notifier = Callable[[str], None]


def _log_notice(message: str) -> None:
    logger.error(f"[QUEUE] NOTICE: {message}")


class JobQueueOrchestrator:
    """
    Single logical writer for the conversion queue.

    Args:
        encoder: Encoder collaborator
        ledger: Ledger to own (a fresh one by default)
        notifier: Receives user-facing blocking notices
    """

    def __init__(
        self,
        encoder: "EncoderCollaborator",
        ledger: Optional[JobLedger] = None,
        notifier: Optional[Notifier] = None,
    ):
        self.encoder = encoder
        self.ledger = ledger or JobLedger()
        self._notify = notifier or _log_notice
        self._submit_lock = asyncio.Lock()
        self._pending_saves: Set[asyncio.Task] = set()

    @property
    def view(self) -> LedgerView:
        """Read-only handle for UI and API readers."""
        return self.ledger.view()

    # ------------------------------------------------------------------
    # Presets
    # ------------------------------------------------------------------

    async def load_presets(self) -> VideoPreset:
        """
        Load presets from the encoder and select the default.

        Returns:
            The selected default preset

        Raises:
            PresetUnavailableError: If the encoder fails or returns no presets
        """
        logger.info("[QUEUE] Loading video presets...")
        try:
            presets = await self.encoder.get_presets()
        except Exception as e:
            logger.error(f"[QUEUE] Failed to load presets: {e}")
            self._notify("Failed to load video presets. Please restart the application.")
            raise PresetUnavailableError(str(e)) from e

        if not presets:
            logger.error("[QUEUE] No presets available from encoder")
            self._notify("No video presets are available. Please restart the application.")
            raise PresetUnavailableError("encoder returned no presets")

        try:
            default = self.ledger.set_presets(presets)
        except DuplicatePresetError as e:
            logger.error(f"[QUEUE] Rejected preset set: {e}")
            self._notify(f"Invalid video presets: {e}")
            raise PresetUnavailableError(str(e)) from e

        logger.info(f"[QUEUE] Loaded {len(presets)} presets, default: {default.name}")
        return default

    def set_selected_preset(self, name: str) -> VideoPreset:
        """
        Select a loaded preset by name.

        Raises:
            PresetNotFoundError: If no loaded preset has this name
        """
        preset = self.ledger.presets.get_or_raise(name)
        self.ledger.select_preset(preset)
        logger.info(f"[QUEUE] Selected preset: {name}")
        return preset

    async def _ensure_preset(self) -> VideoPreset:
        """
        Preset readiness guard shared by single and batch submission.

        Raises:
            PresetUnavailableError: If presets still cannot be loaded
        """
        if not self.ledger.presets_loaded:
            logger.warning("[QUEUE] Presets not loaded yet, attempting to load...")
            await self.load_presets()

        preset = self.ledger.selected_preset
        if preset is None or preset.name not in self.ledger.presets:
            default = self.ledger.presets.default_preset()
            if default is None:
                self._notify("No video presets are available.")
                raise PresetUnavailableError("no preset selected and none available")
            logger.warning(f"[QUEUE] No valid preset selected, auto-selecting {default.name}")
            self.ledger.select_preset(default)
            preset = default
        return preset

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    async def add_job(self, input_path: str) -> Optional[str]:
        """
        Submit one input file.

        Returns:
            The new job id, or None if an active job already exists for
            this input

        Raises:
            PresetUnavailableError: If no preset can be used
            JobSubmissionError: If the encoder rejects the job
        """
        async with self._submit_lock:
            preset = await self._ensure_preset()

            existing = self.ledger.find_active_job(input_path)
            if existing is not None:
                logger.info(
                    f"[QUEUE] Job already exists for {input_path} "
                    f"({existing.id}, {existing.status.value}), ignoring"
                )
                return None

            settings = self.ledger.settings.model_copy()
            snapshot = self.ledger.claimed_output_paths()

            try:
                output_path = await self._claim_output_path(input_path, settings, snapshot)
                job_id = await self._submit(input_path, output_path, preset)
            except JobSubmissionError as e:
                self._notify(f"Failed to add conversion job: {e.reason}")
                raise

        await self.refresh_jobs()
        return job_id

    async def add_batch(self, input_paths: Sequence[str]) -> List[str]:
        """
        Submit several input files as one batch.

        Inputs are processed strictly in order. With a {number} template
        each file's batch position is its explicit index.

        Returns:
            Ids of the submitted jobs, in submission order

        Raises:
            PresetUnavailableError: If no preset can be used
            BatchSubmissionError: If the encoder rejects one of the jobs;
                the remaining inputs are not submitted
        """
        async with self._submit_lock:
            preset = await self._ensure_preset()

            to_add: List[str] = []
            for input_path in input_paths:
                existing = self.ledger.find_active_job(input_path)
                if existing is not None:
                    logger.info(
                        f"[QUEUE] Job already exists for {input_path} ({existing.id}), skipping"
                    )
                    continue
                if input_path in to_add:
                    logger.info(f"[QUEUE] Duplicate input in batch, skipping: {input_path}")
                    continue
                to_add.append(input_path)

            if not to_add:
                logger.info("[QUEUE] No new files to add")
                return []

            settings = self.ledger.settings.model_copy()
            snapshot = self.ledger.claimed_output_paths()
            total_files = len(to_add)
            numbered = uses_number(settings.file_name_pattern)

            logger.info(
                f"[QUEUE] Starting batch of {total_files} file(s) "
                f"with preset {preset.name}"
            )

            submitted: List[str] = []
            try:
                for position, input_path in enumerate(to_add):
                    index = position if numbered else None
                    try:
                        output_path = await self._claim_output_path(
                            input_path, settings, snapshot, index, total_files
                        )
                        snapshot.append(output_path)
                        job_id = await self._submit(input_path, output_path, preset)
                    except JobSubmissionError as e:
                        self._notify(f"Failed to add batch conversion jobs: {e.reason}")
                        raise BatchSubmissionError(input_path, e.reason, submitted) from e
                    submitted.append(job_id)
            finally:
                if submitted:
                    await self.refresh_jobs()

        logger.info(f"[QUEUE] Batch added: {len(submitted)} job(s)")
        return submitted

    async def _path_exists(self, path: str) -> bool:
        """Live existence check. Errors count as "does not exist"."""
        try:
            return bool(await self.encoder.check_path_exists(path))
        except Exception as e:
            logger.warning(f"[QUEUE] Existence check failed for {path}, assuming free: {e}")
            return False

    async def _claim_output_path(
        self,
        input_path: str,
        settings: AppSettings,
        snapshot: List[str],
        index: Optional[int] = None,
        total_files: Optional[int] = None,
    ) -> str:
        """
        Resolve a destination that is neither claimed nor on disk.

        This is the ONLY place live filesystem state is consulted.

        Raises:
            JobSubmissionError: If no free path is found within MAX_PATH_ATTEMPTS
        """
        path = resolve_output_path(input_path, settings, snapshot, index, total_files)
        attempt = index if index is not None else 0

        for _ in range(MAX_PATH_ATTEMPTS):
            if path not in snapshot and not await self._path_exists(path):
                return path
            attempt += 1
            logger.debug(f"[QUEUE] {path} is taken, trying index {attempt}")
            path = resolve_output_path(input_path, settings, snapshot, attempt, total_files)

        raise JobSubmissionError(input_path, "no free output path found")

    async def _submit(self, input_path: str, output_path: str, preset: VideoPreset) -> str:
        """
        Hand one job to the encoder and record it in the ledger.

        Raises:
            JobSubmissionError: If the encoder rejects the job
        """
        snapshot = preset.model_copy(deep=True)
        try:
            job_id = await self.encoder.add_job(input_path, output_path, snapshot)
        except Exception as e:
            logger.error(f"[QUEUE] Failed to add job for {input_path} -> {output_path}: {e}")
            raise JobSubmissionError(input_path, str(e)) from e

        try:
            self.ledger.insert_job(
                Job(id=job_id, input_path=input_path, output_path=output_path, preset=snapshot)
            )
        except ValueError:
            # Already delivered by a job-updated re-fetch
            pass

        logger.info(f"[QUEUE] Job {job_id} added: {input_path} -> {output_path}")
        return job_id

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    async def clear_completed_jobs(self) -> None:
        """
        Remove completed, failed and cancelled jobs.

        Raises:
            JobError: If the encoder refuses
        """
        try:
            await self.encoder.clear_completed_jobs()
        except Exception as e:
            logger.error(f"[QUEUE] Failed to clear completed jobs: {e}")
            self._notify(f"Failed to clear completed jobs: {e}")
            raise JobError(f"Failed to clear completed jobs: {e}") from e
        logger.info("[QUEUE] Cleared completed/failed jobs")
        await self.refresh_jobs()

    async def clear_history(self) -> None:
        """
        Remove every history entry.

        Raises:
            JobError: If the encoder refuses
        """
        try:
            await self.encoder.clear_history()
        except Exception as e:
            logger.error(f"[QUEUE] Failed to clear history: {e}")
            self._notify(f"Failed to clear history: {e}")
            raise JobError(f"Failed to clear history: {e}") from e
        logger.info("[QUEUE] Cleared conversion history")
        await self.refresh_history()

    async def cancel_job(self, job_id: str) -> None:
        """
        Request cancellation of a queued, ready or processing job.

        The job shows as CANCELLING until the encoder reports the outcome.
        The local mark bumps the version, so a same-version re-fetch that
        lands during the request is ignored.

        Raises:
            JobNotFoundError: If the job is not in the ledger
            InvalidStateTransitionError: If the job cannot be cancelled
            JobCancellationError: If the encoder refuses
        """
        async with self._submit_lock:
            job = self.ledger.get_job_or_raise(job_id)
            previous = job.status
            validate_job_transition(previous, JobStatus.CANCELLING)
            job.status = JobStatus.CANCELLING
            job.version += 1
            marked_version = job.version

            try:
                accepted = await self.encoder.cancel_job(job_id)
                if not accepted:
                    raise JobCancellationError(job_id, "encoder does not support cancellation")
            except Exception as e:
                current = self.ledger.get_job(job_id)
                if (
                    current is not None
                    and current.status == JobStatus.CANCELLING
                    and current.version == marked_version
                ):
                    current.status = previous
                    current.version = marked_version - 1
                if isinstance(e, JobCancellationError):
                    raise
                raise JobCancellationError(job_id, str(e)) from e

        logger.info(f"[QUEUE] Cancellation requested for job {job_id}")
        await self.refresh_jobs()

    # ------------------------------------------------------------------
    # Synchronization (called by the EventSynchronizer)
    # ------------------------------------------------------------------

    async def refresh_jobs(self) -> bool:
        """
        Authoritative re-fetch of the job list.

        Returns:
            False if the fetch failed (ledger left unchanged)
        """
        try:
            jobs = await self.encoder.get_jobs()
        except Exception as e:
            logger.error(f"[QUEUE] Failed to load jobs: {e}")
            return False
        self.ledger.replace_jobs(jobs)
        logger.debug(f"[QUEUE] Loaded {len(jobs)} job(s)")
        return True

    async def refresh_history(self) -> bool:
        """
        Authoritative re-fetch of the history.

        Returns:
            False if the fetch failed (ledger left unchanged)
        """
        try:
            history = await self.encoder.get_history()
        except Exception as e:
            logger.error(f"[QUEUE] Failed to load history: {e}")
            return False
        self.ledger.replace_history(history)
        return True

    def apply_progress(self, job_id: str, percent: float) -> bool:
        """
        Merge a progress report into the ledger.

        Returns:
            False if the job is unknown or already finished
        """
        return self.ledger.apply_progress(job_id, percent, CONVERTING_MESSAGE)

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    async def load_settings(self) -> AppSettings:
        """
        Load persisted settings. Failures keep the current settings.
        """
        try:
            settings = await self.encoder.load_settings()
        except Exception as e:
            logger.error(f"[QUEUE] Failed to load persisted settings: {e}")
            return self.ledger.settings
        self.ledger.replace_settings(AppSettings.from_dict(settings.to_dict()))
        logger.info("[QUEUE] Loaded persisted settings")
        return self.ledger.settings

    def set_output_directory(self, directory: str) -> None:
        self._update_settings(output_directory=directory)

    def set_use_subdirectory(self, use: bool) -> None:
        self._update_settings(use_subdirectory=use)

    def set_subdirectory_name(self, name: str) -> None:
        self._update_settings(subdirectory_name=name)

    def set_file_name_pattern(self, pattern: str) -> Optional[str]:
        """
        Store a naming template. Invalid templates are replaced by the default.

        Returns:
            A hint explaining why the template was replaced, or None
        """
        hint = explain_template(pattern)
        if hint:
            logger.info(f"[QUEUE] Naming template replaced by default: {hint}")
        self._update_settings(file_name_pattern=pattern)
        return hint

    def set_zoomed_thumbnails(self, zoomed: bool) -> None:
        self._update_settings(zoomed_thumbnails=zoomed)

    def update_settings(self, **changes) -> AppSettings:
        """Apply several settings changes with a single save."""
        return self._update_settings(**changes)

    async def flush_settings(self) -> None:
        """Wait for every scheduled settings save."""
        if self._pending_saves:
            await asyncio.gather(*list(self._pending_saves))

    def _update_settings(self, **changes) -> AppSettings:
        settings = self.ledger.update_settings(**changes)
        self._schedule_save(settings.model_copy())
        return settings

    def _schedule_save(self, settings: AppSettings) -> None:
        """Persist in the background; the in-memory state is already updated."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(self._save_settings(settings))
            return
        task = loop.create_task(self._save_settings(settings))
        self._pending_saves.add(task)
        task.add_done_callback(self._pending_saves.discard)

    async def _save_settings(self, settings: AppSettings) -> None:
        try:
            await self.encoder.save_settings(settings)
        except Exception as e:
            logger.error(f"[QUEUE] Failed to save settings: {e}")
