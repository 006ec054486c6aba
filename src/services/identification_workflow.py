"""Add-bottle workflow: capture, identify, confirm or pick a candidate, review, save.

The flow is a finite-state machine. `transition` is a pure reducer over
immutable states and events. `IdentificationWorkflow` performs the I/O
(AI calls, persistence) and feeds the outcomes back in as events.

    select -> photo | manual -> analyzing -> confirm | candidates -> review -> saved
    confirm --reject--> analyzing (same query, rejected name excluded) -> candidates
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import date
from enum import Enum

from pydantic import ValidationError

from src.schemas.alcohol import MAX_CANDIDATES, AlcoholInfo, AnalyzeResult, IdentifyRequest
from src.schemas.collection import CollectionEntryCreate
from src.services.collection_service import CollectionError, CollectionService
from src.services.identification import IdentificationError, IdentificationService

logger = logging.getLogger(__name__)

RATING_REQUIRED_MESSAGE = "Please choose a rating"
INVALID_ENTRY_MESSAGE = "Please check the memo and photo, then try again"


class Step(str, Enum):
    """Workflow steps."""

    SELECT = "select"
    PHOTO = "photo"
    MANUAL = "manual"
    ANALYZING = "analyzing"
    CONFIRM = "confirm"
    CANDIDATES = "candidates"
    REVIEW = "review"
    SAVED = "saved"


class InvalidTransition(ValueError):
    """Raised when an event is not allowed in the current step."""


@dataclass(frozen=True)
class WorkflowState:
    """Current step plus the data that step carries."""

    step: Step = Step.SELECT
    query: IdentifyRequest | None = None
    # photo or manual: the input step that produced the current query
    source: Step | None = None
    item: AlcoholInfo | None = None
    candidates: tuple[AlcoholInfo, ...] = ()
    from_candidates: bool = False
    existing_alcohol_id: int | None = None
    photo_url: str | None = None
    error: str | None = None
    saved_entry_id: int | None = None
    # Bumped for every AI call; results tagged with an older id are stale
    request_id: int = 0

    @property
    def is_requery(self) -> bool:
        """Check if the in-flight query excludes a rejected answer."""
        return bool(self.query and self.query.rejected_name)


# -- events ------------------------------------------------------------------


@dataclass(frozen=True)
class ChoosePhoto:
    pass


@dataclass(frozen=True)
class ChooseManual:
    pass


@dataclass(frozen=True)
class Submit:
    query: IdentifyRequest
    photo_url: str | None = None


@dataclass(frozen=True)
class AnalyzeSucceeded:
    result: AnalyzeResult
    request_id: int


@dataclass(frozen=True)
class AnalyzeFailed:
    message: str
    request_id: int


@dataclass(frozen=True)
class Confirm:
    pass


@dataclass(frozen=True)
class Reject:
    pass


@dataclass(frozen=True)
class SelectCandidate:
    index: int


@dataclass(frozen=True)
class ReviewExisting:
    alcohol: AlcoholInfo
    alcohol_id: int


@dataclass(frozen=True)
class Back:
    pass


@dataclass(frozen=True)
class SaveSucceeded:
    entry_id: int


@dataclass(frozen=True)
class SaveFailed:
    message: str


Event = (
    ChoosePhoto
    | ChooseManual
    | Submit
    | AnalyzeSucceeded
    | AnalyzeFailed
    | Confirm
    | Reject
    | SelectCandidate
    | ReviewExisting
    | Back
    | SaveSucceeded
    | SaveFailed
)


# -- reducer -----------------------------------------------------------------


def _with_rejected(
    candidates: list[AlcoholInfo], rejected: AlcoholInfo | None
) -> list[AlcoholInfo]:
    """Make sure the rejected answer stays selectable in case it was a mis-tap."""
    if rejected is None or any(c.name == rejected.name for c in candidates):
        return candidates
    return candidates[: MAX_CANDIDATES - 1] + [rejected]


def _back_to_input(state: WorkflowState) -> WorkflowState:
    """Return to the capture step that produced the query; a fresh capture is required."""
    return WorkflowState(step=state.source or Step.SELECT, request_id=state.request_id + 1)


def transition(state: WorkflowState, event: Event) -> WorkflowState:
    """Apply an event to a state and return the next state."""
    step = state.step

    if isinstance(event, AnalyzeSucceeded | AnalyzeFailed):
        if step != Step.ANALYZING or event.request_id != state.request_id:
            logger.debug(f"Discarding stale identification result {event.request_id}")
            return state

    if step == Step.SELECT:
        if isinstance(event, ChoosePhoto):
            return replace(state, step=Step.PHOTO, error=None)
        if isinstance(event, ChooseManual):
            return replace(state, step=Step.MANUAL, error=None)
        if isinstance(event, ReviewExisting):
            return WorkflowState(
                step=Step.REVIEW,
                item=event.alcohol,
                existing_alcohol_id=event.alcohol_id,
                request_id=state.request_id,
            )

    elif step in (Step.PHOTO, Step.MANUAL):
        if isinstance(event, Submit):
            if event.query.has_image != (step == Step.PHOTO):
                raise InvalidTransition(f"{step.value} step cannot submit this query")
            return WorkflowState(
                step=Step.ANALYZING,
                query=event.query,
                source=step,
                photo_url=event.photo_url if step == Step.PHOTO else None,
                request_id=state.request_id + 1,
            )
        if isinstance(event, Back):
            return WorkflowState(step=Step.SELECT, request_id=state.request_id)

    elif step == Step.ANALYZING:
        if isinstance(event, AnalyzeSucceeded):
            result = event.result
            if state.is_requery:
                # The user already distrusted a single confident answer
                found = [result.result] if result.unique else list(result.candidates)
                return replace(
                    state,
                    step=Step.CANDIDATES,
                    item=None,
                    candidates=tuple(_with_rejected(found, state.item)),
                    error=None,
                )
            if result.unique:
                return replace(
                    state, step=Step.CONFIRM, item=result.result, candidates=(), error=None
                )
            return replace(
                state,
                step=Step.CANDIDATES,
                item=None,
                candidates=tuple(result.candidates),
                error=None,
            )
        if isinstance(event, AnalyzeFailed):
            if state.is_requery:
                return replace(
                    state,
                    step=Step.CONFIRM,
                    query=state.query.model_copy(update={"rejected_name": None}),
                    error=event.message,
                )
            return replace(
                state, step=state.source, query=None, item=None, candidates=(), error=event.message
            )
        if isinstance(event, Back):
            return _back_to_input(state)

    elif step == Step.CONFIRM:
        if isinstance(event, Confirm):
            return replace(state, step=Step.REVIEW, from_candidates=False, error=None)
        if isinstance(event, Reject):
            return replace(
                state,
                step=Step.ANALYZING,
                query=state.query.model_copy(update={"rejected_name": state.item.name}),
                error=None,
                request_id=state.request_id + 1,
            )
        if isinstance(event, Back):
            return _back_to_input(state)

    elif step == Step.CANDIDATES:
        if isinstance(event, SelectCandidate):
            if not 0 <= event.index < len(state.candidates):
                raise InvalidTransition(f"No candidate at index {event.index}")
            return replace(
                state,
                step=Step.REVIEW,
                item=state.candidates[event.index],
                from_candidates=True,
                error=None,
            )
        if isinstance(event, Back):
            return _back_to_input(state)

    elif step == Step.REVIEW:
        if isinstance(event, Back):
            if state.existing_alcohol_id is not None:
                return WorkflowState(request_id=state.request_id)
            if state.from_candidates:
                return replace(state, step=Step.CANDIDATES, item=None, error=None)
            return replace(state, step=Step.CONFIRM, error=None)
        if isinstance(event, SaveFailed):
            return replace(state, error=event.message)
        if isinstance(event, SaveSucceeded):
            return replace(state, step=Step.SAVED, saved_entry_id=event.entry_id, error=None)

    raise InvalidTransition(f"{type(event).__name__} is not allowed in step {step.value}")


# -- driver ------------------------------------------------------------------


@dataclass
class IdentificationWorkflow:
    """Drives one add-bottle session for a user."""

    user_id: int
    identification_service: IdentificationService
    collection_service: CollectionService
    state: WorkflowState = field(default_factory=WorkflowState)

    def dispatch(self, event: Event) -> WorkflowState:
        """Apply an event and keep the resulting state."""
        self.state = transition(self.state, event)
        return self.state

    def choose_photo(self) -> WorkflowState:
        return self.dispatch(ChoosePhoto())

    def choose_manual(self) -> WorkflowState:
        return self.dispatch(ChooseManual())

    def back(self) -> WorkflowState:
        return self.dispatch(Back())

    def confirm(self) -> WorkflowState:
        return self.dispatch(Confirm())

    def select_candidate(self, index: int) -> WorkflowState:
        return self.dispatch(SelectCandidate(index))

    async def submit_photo(
        self,
        image_url: str | None = None,
        image_base64: str | None = None,
        media_type: str = "image/jpeg",
    ) -> WorkflowState:
        """Identify the bottle in an uploaded photo."""
        query = IdentifyRequest(
            image_url=image_url, image_base64=image_base64, media_type=media_type
        )
        self.dispatch(Submit(query, photo_url=image_url))
        return await self._analyze()

    async def submit_text(self, text: str, alcohol_type: str | None = None) -> WorkflowState:
        """Identify a bottle from its typed name."""
        self.dispatch(Submit(IdentifyRequest(text=text, type=alcohol_type)))
        return await self._analyze()

    async def reject(self) -> WorkflowState:
        """The confident answer is wrong: ask again, excluding it."""
        self.dispatch(Reject())
        return await self._analyze()

    async def _analyze(self) -> WorkflowState:
        request_id = self.state.request_id
        try:
            result = await self.identification_service.analyze(self.state.query)
        except IdentificationError as e:
            return self.dispatch(AnalyzeFailed(str(e), request_id))
        except Exception as e:
            logger.error(f"Unexpected identification failure: {e}", exc_info=True)
            return self.dispatch(AnalyzeFailed("Analysis failed, please try again", request_id))
        return self.dispatch(AnalyzeSucceeded(result, request_id))

    def review_existing(self, alcohol_id: int) -> WorkflowState:
        """Skip identification and review a bottle a friend already catalogued."""
        alcohol = self.collection_service.get_alcohol_info(alcohol_id, self.user_id)
        if alcohol is None:
            self.state = replace(self.state, error="Alcohol not found")
            return self.state
        return self.dispatch(ReviewExisting(alcohol, alcohol_id))

    def save(
        self,
        rating: int,
        drinking_date: date | None = None,
        memo: str | None = None,
        photo_url: str | None = None,
    ) -> WorkflowState:
        """Persist the reviewed bottle. Failures keep the workflow in review."""
        if self.state.step != Step.REVIEW:
            raise InvalidTransition(f"Cannot save in step {self.state.step.value}")

        if not isinstance(rating, int) or isinstance(rating, bool) or not 1 <= rating <= 5:
            return self.dispatch(SaveFailed(RATING_REQUIRED_MESSAGE))

        try:
            data = CollectionEntryCreate(
                alcohol_info=self.state.item,
                existing_alcohol_id=self.state.existing_alcohol_id,
                photo_url=photo_url or self.state.photo_url,
                drinking_date=drinking_date,
                rating=rating,
                memo=memo,
            )
        except ValidationError as e:
            logger.info(f"Rejected entry for user {self.user_id}: {e.error_count()} errors")
            return self.dispatch(SaveFailed(INVALID_ENTRY_MESSAGE))

        try:
            entry = self.collection_service.save_collection(self.user_id, data)
        except CollectionError as e:
            return self.dispatch(SaveFailed(str(e)))
        return self.dispatch(SaveSucceeded(entry.id))
