from __future__ import annotations

import asyncio
import inspect
import logging
import mimetypes
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from ..models.config_models import ColumnSpec, UploadOptions
from ..models.error_record import ErrorRecord
from ..models.parse_result import ParseResult, ValidationStats
from ..models.session_state import SessionState, can_transition
from ..parsing.reader import ParseError
from .pipeline import parse_csv
from .validation import BlockingValidationError

"""Upload session: one CSV upload interaction from file pick to upload.

The session owns its state exclusively and exposes read-only views for a
renderer (state, visible errors + overflow count, column presence flags,
upload progress, can_upload).

Asynchronous results are applied only if they are still current: every file
selection, delete and upload bumps a monotonic generation counter, and a
parse or progress event carrying an older generation is dropped.
"""

__all__ = [
    "InputSelectionError",
    "InvalidTransitionError",
    "LocalFile",
    "MAX_VISIBLE_ERRORS",
    "NO_VALID_ROWS_MESSAGE",
    "PickedFile",
    "SELECT_SINGLE_FILE_MESSAGE",
    "UploadRequest",
    "UploadSession",
    "UploadTransportError",
    "accept_files",
    "check_selection",
]

logger = logging.getLogger(__name__)

MAX_VISIBLE_ERRORS = 9
SELECT_SINGLE_FILE_MESSAGE = "Please upload a single CSV file"
NO_VALID_ROWS_MESSAGE = "Please upload at least one valid row."
CSV_MIME_TYPES = {"text/csv", "application/csv"}


class InputSelectionError(Exception):
    """Wrong number or type of files selected."""


class InvalidTransitionError(Exception):
    """Requested action is not allowed in the current session state."""


class UploadTransportError(Exception):
    """The upload transport failed; the dataset is kept for a retry."""


class PickedFile(Protocol):
    name: str

    async def read(self) -> bytes: ...


@dataclass(frozen=True)
class LocalFile:
    """A file on disk, read off the event loop."""
    path: Path

    @property
    def name(self) -> str:
        return self.path.name

    async def read(self) -> bytes:
        return await asyncio.to_thread(self.path.read_bytes)


def accept_files(paths: Iterable[Path]) -> tuple[list[LocalFile], list[Path]]:
    """Split paths into accepted CSV files and rejected ones (by suffix / MIME type)."""
    accepted: list[LocalFile] = []
    rejected: list[Path] = []
    for p in paths:
        mime, _ = mimetypes.guess_type(p.name)
        if p.suffix.lower() == ".csv" or mime in CSV_MIME_TYPES:
            accepted.append(LocalFile(p))
        else:
            rejected.append(p)
    return accepted, rejected


def check_selection(accepted: Sequence[Any], rejected: Sequence[Any] = ()) -> Any:
    """Return the single selected file.

    Raises:
        InputSelectionError: zero files, several files or a rejected file
    """
    if rejected or len(accepted) + len(rejected) != 1:
        raise InputSelectionError(SELECT_SINGLE_FILE_MESSAGE)
    return accepted[0]


@dataclass(frozen=True)
class UploadRequest:
    """What the upload transport receives."""
    data: list[dict[str, Any]]
    file_name: str
    on_progress: Callable[[float], None] = field(compare=False)


UploadTransport = Callable[[UploadRequest], Any]  # sync or async


class UploadSession:
    """State machine for one CSV upload interaction.

    State transitions: idle → parsing → parsed → uploading → (idle | parsed)
    """

    def __init__(
        self,
        options: UploadOptions,
        transport: UploadTransport | None = None,
        *,
        initial_error: str | None = None,
        progress_sink: Callable[[float], None] | None = None,
    ) -> None:
        self.options = options
        self._transport = transport
        self._progress_sink = progress_sink
        self._state = SessionState.IDLE
        self._generation = 0
        self._errors: list[str] | None = [initial_error] if initial_error else None
        self._upload_error: UploadTransportError | None = None
        self._result: ParseResult | None = None
        self._upload_progress = 0.0
        self.error_records: list[ErrorRecord] = []

    # ------------------------------------------------------------------ #
    # Read-only views
    # ------------------------------------------------------------------ #

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def result(self) -> ParseResult | None:
        return self._result

    @property
    def validation_stats(self) -> ValidationStats | None:
        return self._result.validation_stats if self._result else None

    @property
    def fields(self) -> frozenset[str] | None:
        return self._result.fields if self._result else None

    @property
    def errors(self) -> list[str]:
        """All validation / input errors (blocking until a new file is picked)."""
        return list(self._errors or [])

    @property
    def upload_error(self) -> str | None:
        return str(self._upload_error) if self._upload_error else None

    @property
    def upload_progress(self) -> float:
        return self._upload_progress

    @property
    def visible_errors(self) -> list[str]:
        """Errors to display: the upload error alone, or the first 9 errors."""
        if self._upload_error is not None:
            return [str(self._upload_error)]
        return self.errors[:MAX_VISIBLE_ERRORS]

    @property
    def hidden_error_count(self) -> int:
        return max(len(self.errors) - MAX_VISIBLE_ERRORS, 0)

    @property
    def overflow_message(self) -> str | None:
        rest = self.hidden_error_count
        return f"...and {rest} more rows with errors" if rest else None

    def column_is_present(self, input_name: str) -> bool | None:
        """Presence flag for a column; None before any file was parsed."""
        if self._result is None:
            return None
        return input_name in self._result.fields

    def column_flags(self) -> dict[str, list[tuple[ColumnSpec, bool | None]]]:
        """Required / optional columns with their presence flags."""
        return {
            "required": [(c, self.column_is_present(c.input_name)) for c in self.options.required_columns],
            "optional": [(c, self.column_is_present(c.input_name)) for c in self.options.optional_columns],
        }

    @property
    def can_upload(self) -> bool:
        if self._state is not SessionState.PARSED or self._result is None:
            return False
        if not self._result.can_upload:
            return False
        return all(self.column_is_present(c.input_name) for c in self.options.required_columns)

    # ------------------------------------------------------------------ #
    # Actions
    # ------------------------------------------------------------------ #

    async def pick_files(
        self, accepted: Sequence[PickedFile], rejected: Sequence[Any] = ()
    ) -> ParseResult | None:
        """Select a file and parse it.

        Returns:
            The ParseResult applied to the session, or None when the selection
            was rejected, the parse failed, or a newer selection superseded it.
        """
        if self._state not in (SessionState.IDLE, SessionState.PARSING):
            raise InvalidTransitionError(f"cannot pick a file while {self._state.value}")
        try:
            picked = check_selection(accepted, rejected)
        except InputSelectionError as e:
            logger.warning("input selection rejected: accepted=%d rejected=%d", len(accepted), len(rejected))
            self._errors = [str(e)]
            self.error_records.append(ErrorRecord.create("-", -1, "INPUT_SELECTION", str(e)))
            return None

        self._generation += 1
        generation = self._generation
        self._errors = None
        self._upload_error = None
        self._result = None
        self._transition(SessionState.PARSING)
        logger.info("parse started file=%s generation=%d", picked.name, generation)

        try:
            content = await picked.read()
        except OSError as e:
            if generation != self._generation:
                return None
            return self._fail_parse(picked.name, f"Could not read file {picked.name}: {e}", "PARSE_ERROR")

        if generation != self._generation:
            logger.debug("dropping stale parse file=%s generation=%d current=%d", picked.name, generation, self._generation)
            return None

        try:
            result = parse_csv(content, picked.name, self.options)
        except ParseError as e:
            return self._fail_parse(picked.name, str(e), "PARSE_ERROR")
        except BlockingValidationError as e:
            return self._fail_parse(picked.name, str(e), "TRANSFORM_ABORTED")

        self._result = result
        self.error_records.extend(result.error_records)
        errors = list(result.errors)
        if not result.blocking and not result.data:
            errors.append(NO_VALID_ROWS_MESSAGE)
        self._errors = errors
        self._transition(SessionState.PARSED)
        return result

    def delete(self) -> None:
        """Discard the current selection (and any in-flight parse)."""
        if self._state is SessionState.UPLOADING:
            raise InvalidTransitionError("cannot discard the file while uploading")
        self._generation += 1
        self._reset()

    async def upload(self, progress_sink: Callable[[float], None] | None = None) -> bool:
        """Hand the cleaned dataset to the transport.

        Progress fractions go to `progress_sink` (or the sink given at
        construction) while the upload is current.

        Returns:
            True on success (session back to idle), False when the transport
            failed (session back to parsed, dataset kept for retry).

        Raises:
            asyncio.CancelledError: re-raised after the session is put back
                to parsed, so the dataset can be retried or discarded
        """
        if self._transport is None:
            raise InvalidTransitionError("no upload transport configured")
        if self._state is not SessionState.PARSED:
            raise InvalidTransitionError(f"cannot upload while {self._state.value}")
        if not self.can_upload or self._result is None:
            raise InvalidTransitionError("upload is blocked by validation errors")

        self._generation += 1
        generation = self._generation
        self._upload_error = None
        self._upload_progress = 0.0
        self._transition(SessionState.UPLOADING)
        request = UploadRequest(
            data=list(self._result.data),
            file_name=self._result.file_name,
            on_progress=self._progress_callback(generation, progress_sink or self._progress_sink),
        )
        logger.info("upload started file=%s rows=%d", request.file_name, len(request.data))

        try:
            outcome = self._transport(request)
            if inspect.isawaitable(outcome):
                await outcome
        except asyncio.CancelledError:
            logger.warning("upload cancelled file=%s", request.file_name)
            if generation == self._generation and self._state is SessionState.UPLOADING:
                self._upload_progress = 0.0
                self._transition(SessionState.PARSED)
            raise
        except Exception as e:
            logger.error("upload failed file=%s: %s", request.file_name, e)
            if generation == self._generation:
                self._upload_error = UploadTransportError(str(e))
                self._upload_error.__cause__ = e
                self.error_records.append(
                    ErrorRecord.create(request.file_name, -1, "UPLOAD_FAILED", str(e))
                )
                self._transition(SessionState.PARSED)
            return False

        logger.info("upload finished file=%s", request.file_name)
        if generation == self._generation:
            self._reset()
        return True

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _progress_callback(
        self, generation: int, sink: Callable[[float], None] | None
    ) -> Callable[[float], None]:
        def on_progress(fraction: float) -> None:
            if self._state is not SessionState.UPLOADING or generation != self._generation:
                logger.debug("ignoring stale progress event generation=%d", generation)
                return
            fraction = min(max(float(fraction), 0.0), 1.0)
            self._upload_progress = fraction
            if sink is not None:
                sink(fraction)
        return on_progress

    def _fail_parse(self, file_name: str, message: str, error_type: str) -> None:
        logger.error("parse failed file=%s: %s", file_name, message)
        self._errors = [message]
        self._result = None
        self.error_records.append(ErrorRecord.create(file_name, -1, error_type, message))
        self._transition(SessionState.IDLE)
        return None

    def _reset(self) -> None:
        self._errors = None
        self._upload_error = None
        self._result = None
        self._upload_progress = 0.0
        self._transition(SessionState.IDLE)

    def _transition(self, target: SessionState) -> None:
        if not can_transition(self._state, target):
            raise InvalidTransitionError(f"invalid transition {self._state.value} -> {target.value}")
        logger.debug("session %s -> %s", self._state.value, target.value)
        self._state = target
