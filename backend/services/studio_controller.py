import base64

from pydantic import ValidationError
from typing import Optional, Set, Union

from config.settings import settings
from models.studio import (
    EditorState,
    EditRequest,
    ErrorKind,
    GeneratorState,
    GenerationRequest,
    ImagePayload,
    OperationResult,
    ResultOutcome,
    StudioMode,
    StudioState,
    StyleVariant,
    WorkflowStatus,
)
from services.gemini_service import GeminiService

MISSING_EDIT_INPUT = "Please upload an image and enter a prompt."
MISSING_BLUEPRINT_INPUT = "Please enter a description for your blueprint."
REQUEST_IN_PROGRESS = "A request is already in progress. Please wait for it to finish."
READ_FAILED = "Failed to read the image file."
NO_IMAGE_RETURNED = "The model did not return an image. Please try a different prompt."
EDIT_FAILED = "An error occurred while generating the image. Please try again."
BLUEPRINT_FAILED = "An error occurred while generating the blueprint. Please try again."


class StudioController:
    """Owns the UI state of one browser session.

    Every user event (file selection, prompt edits, submissions, mode switches)
    goes through this class. The two workflows keep separate state and share
    only the loading flag and the error slot. A workflow with a request in
    flight is tracked in ``_pending``; that set, not ``is_loading``, decides
    whether a new submission is allowed, so two calls for the same workflow
    can never race on which result is shown.
    """

    def __init__(self, session_id: str, adapter: Optional[GeminiService] = None):
        self.session_id = session_id
        self.adapter = adapter or GeminiService()
        self.mode = StudioMode.EDITOR
        self.is_loading = False
        self.error: Optional[str] = None
        self.error_kind: Optional[ErrorKind] = None
        self.editor = EditorState()
        self.generator = GeneratorState()
        self._pending: Set[StudioMode] = set()

    def is_pending(self, mode: StudioMode) -> bool:
        return mode in self._pending

    # ---- Mode ----
    def switch_mode(self, mode: StudioMode) -> None:
        """Switch workflow; results of both workflows are kept"""
        self.mode = mode
        self.is_loading = False
        self._clear_error()

    # ---- Editor workflow ----
    def select_file(self, filename: Optional[str], content_type: Optional[str], data: Optional[bytes]) -> None:
        """Store an uploaded image as a base64 payload"""
        if not filename and data is None:
            return

        if self.is_pending(StudioMode.EDITOR):
            self._set_error(ErrorKind.VALIDATION, REQUEST_IN_PROGRESS)
            return

        self.editor.edited_image = None
        self.editor.last_outcome = None
        self.editor.status = WorkflowStatus.IDLE
        self.editor.source_image = None
        self.editor.source_filename = None
        self._clear_error()

        try:
            payload = self._read_upload(content_type, data)
        except ValueError as error:
            print(f"Error reading uploaded image {filename!r}: {error}")
            self._set_error(ErrorKind.READ, str(error))
            return

        self.editor.source_image = payload
        self.editor.source_filename = filename

    def set_edit_prompt(self, prompt: str) -> None:
        self.editor.prompt = prompt
        if not self.is_pending(StudioMode.EDITOR):
            self.editor.status = WorkflowStatus.IDLE

    async def submit_edit(self) -> Optional[OperationResult]:
        """Send the stored image and prompt for editing.

        Returns the adapter's result, or None when the submission was rejected
        before any network call.
        """
        source = self.editor.source_image
        if source is None:
            self._set_error(ErrorKind.VALIDATION, MISSING_EDIT_INPUT)
            return None
        try:
            request = EditRequest(image=source, instruction=self.editor.prompt)
        except ValidationError:
            self._set_error(ErrorKind.VALIDATION, MISSING_EDIT_INPUT)
            return None

        if not self._begin(StudioMode.EDITOR):
            return None

        self.editor.status = WorkflowStatus.SUBMITTING
        self.editor.edited_image = None
        self.editor.last_outcome = None

        try:
            result = await self.adapter.request_edit(request.image, request.instruction)
        except Exception as error:
            print(f"Error editing image: {error}")
            result = OperationResult.failure(str(error))
        finally:
            self._pending.discard(StudioMode.EDITOR)

        if result.outcome == ResultOutcome.IMAGE and result.image is not None:
            # Displayed with the uploaded file's media type
            self.editor.edited_image = ImagePayload(data=result.image.data, mime_type=source.mime_type)

        self._finish(StudioMode.EDITOR, self.editor, result, EDIT_FAILED)
        return result

    # ---- Generator workflow ----
    def set_blueprint_prompt(self, prompt: str) -> None:
        self.generator.prompt = prompt
        if not self.is_pending(StudioMode.GENERATOR):
            self.generator.status = WorkflowStatus.IDLE

    def set_style(self, style: StyleVariant) -> None:
        self.generator.style = style
        if not self.is_pending(StudioMode.GENERATOR):
            self.generator.status = WorkflowStatus.IDLE

    async def submit_generation(self) -> Optional[OperationResult]:
        """Generate a blueprint from the stored description and style"""
        try:
            request = GenerationRequest(description=self.generator.prompt, style=self.generator.style)
        except ValidationError:
            self._set_error(ErrorKind.VALIDATION, MISSING_BLUEPRINT_INPUT)
            return None

        if not self._begin(StudioMode.GENERATOR):
            return None

        self.generator.status = WorkflowStatus.SUBMITTING
        self.generator.generated_image = None
        self.generator.last_outcome = None

        try:
            result = await self.adapter.request_generation(request.description, request.style)
        except Exception as error:
            print(f"Error generating blueprint: {error}")
            result = OperationResult.failure(str(error))
        finally:
            self._pending.discard(StudioMode.GENERATOR)

        if result.outcome == ResultOutcome.IMAGE and result.image is not None:
            self.generator.generated_image = ImagePayload(
                data=result.image.data,
                mime_type=settings.GENERATED_IMAGE_MIME_TYPE
            )

        self._finish(StudioMode.GENERATOR, self.generator, result, BLUEPRINT_FAILED)
        return result

    # ---- Snapshot ----
    def snapshot(self) -> StudioState:
        return StudioState(
            session_id=self.session_id,
            mode=self.mode,
            is_loading=self.is_loading,
            error=self.error,
            error_kind=self.error_kind,
            editor=self.editor.model_copy(deep=True),
            generator=self.generator.model_copy(deep=True)
        )

    # ---- Helpers ----
    def _begin(self, workflow: StudioMode) -> bool:
        # Check and mark with no await in between
        if workflow in self._pending:
            self._set_error(ErrorKind.VALIDATION, REQUEST_IN_PROGRESS)
            return False
        self._pending.add(workflow)
        if workflow == self.mode:
            self.is_loading = True
            self._clear_error()
        return True

    def _finish(self, workflow: StudioMode, state: Union[EditorState, GeneratorState], result: OperationResult, failure_message: str) -> None:
        state.last_outcome = result.outcome
        if result.outcome == ResultOutcome.IMAGE:
            state.status = WorkflowStatus.SUCCEEDED
        else:
            state.status = WorkflowStatus.FAILED
            if result.outcome == ResultOutcome.FAILURE:
                print(f"Error in {workflow.value} request: {result.error}")

        if self.mode not in self._pending:
            self.is_loading = False

        # A late response must not touch the error slot of the mode now on screen
        if self.mode != workflow:
            return

        if result.outcome == ResultOutcome.IMAGE:
            self._clear_error()
        elif result.outcome == ResultOutcome.ABSENT:
            self._set_error(ErrorKind.GENERATION, NO_IMAGE_RETURNED)
        elif result.outcome == ResultOutcome.FAILURE:
            self._set_error(ErrorKind.GENERATION, failure_message)

    def _read_upload(self, content_type: Optional[str], data: Optional[bytes]) -> ImagePayload:
        if not data:
            raise ValueError(READ_FAILED)

        mime_type = (content_type or "").lower()
        if mime_type not in settings.ALLOWED_IMAGE_TYPES:
            raise ValueError(f"Unsupported image type: {content_type or 'unknown'}")

        if len(data) > settings.MAX_UPLOAD_SIZE:
            limit_mb = settings.MAX_UPLOAD_SIZE // (1024 * 1024)
            raise ValueError(f"The image file is too large (limit {limit_mb}MB).")

        encoded = base64.b64encode(data).decode("ascii")
        return ImagePayload(data=encoded, mime_type=mime_type)

    def _set_error(self, kind: ErrorKind, message: str) -> None:
        self.error_kind = kind
        self.error = message

    def _clear_error(self) -> None:
        self.error_kind = None
        self.error = None
