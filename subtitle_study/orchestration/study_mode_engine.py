"""Study mode engine: decides when to test a subtitle line and drives the test lifecycle."""

import asyncio
import logging
import random
import time
from dataclasses import replace
from typing import Awaitable, Callable, Sequence

from subtitle_study.config import StudyModeConfig
from subtitle_study.exceptions import StudyModeException
from subtitle_study.interfaces import (
    HostPlayer,
    KnowledgeGetter,
    RecognitionRepository,
    StudyOverlay,
    StudyRepository,
    Tokenizer,
)
from subtitle_study.models import (
    ContinueIntent,
    DismissIntent,
    EngineState,
    InputChangeIntent,
    LineAssessment,
    LineSelectionStrategy,
    LineStatus,
    LineTestInfo,
    OverlayIntent,
    RecognitionAttempt,
    ReplayIntent,
    StudyRecord,
    StudyTestDisplayState,
    SubmitIntent,
    SubtitleLine,
    TokenPart,
    VideoSession,
    flatten_token_groups,
)
from subtitle_study.services import (
    AnswerValidator,
    LineSelector,
    PriorityCalculator,
    TokenSelector,
)
from subtitle_study.services.answer_validator import expected_reading
from subtitle_study.utils import DetachedTaskGroup

logger = logging.getLogger(__name__)

NO_TOKENIZER_MESSAGE = "error.studyModeNoTokenizer"
TOKENIZE_FAILED_MESSAGE = "error.studyModeTokenizeFailed"

TokenizerFactory = Callable[[], Awaitable[Tokenizer]]


class StudyModeEngine:
    """Interrupt subtitle playback with fill-in-the-blank tests.

    Lifecycle: IDLE -> EVALUATING -> SHOWING -> RESULT_SHOWN -> IDLE. A test
    dismissed before it is finished goes straight back to IDLE and its line
    stays INCOMPLETE so it is retried the next time the line plays.

    All state (per-video line cache, session, pending test lines) belongs to
    one engine instance. Every coroutine runs on a single event loop; an
    evaluation that resumes after a dismissal sees a new epoch and discards
    its result.
    """

    def __init__(
        self,
        config: StudyModeConfig,
        host: HostPlayer,
        overlay: StudyOverlay,
        tokenizer: Tokenizer | None = None,
        study_repository: StudyRepository | None = None,
        recognition_repository: RecognitionRepository | None = None,
        knowledge_getter: KnowledgeGetter | None = None,
        tokenizer_factory: TokenizerFactory | None = None,
        clock: Callable[[], float] = time.time,
        rng: random.Random | None = None,
    ):
        """Initialize the engine.

        Args:
            config: Study mode settings
            host: Player the engine pauses, seeks and resumes
            overlay: Presentation layer for the test
            tokenizer: Tokenizer, or None to create one lazily with tokenizer_factory
            study_repository: Log of answered blanks
            recognition_repository: Recognition history store
            knowledge_getter: Deck/local knowledge source for knowledge-driven modes
            tokenizer_factory: Coroutine creating a tokenizer when none is set
            clock: Seconds clock used for rate limiting
            rng: Random source for blank selection
        """
        self.on_test_complete: Callable[[bool], None] | None = None
        self.on_line_assessed: Callable[[LineAssessment], None] | None = None
        self.last_assessment: LineAssessment | None = None

        self._host = host
        self._overlay = overlay
        self._study_repository = study_repository
        self._recognition_repository = recognition_repository
        self._tokenizer_factory = tokenizer_factory
        self._clock = clock

        self._calculator = PriorityCalculator(config.focus_mode)
        self._token_selector = TokenSelector(
            recognition_repository=recognition_repository,
            calculator=self._calculator,
            rng=rng,
        )
        self._validator = AnswerValidator()
        self._tokenizer: Tokenizer | None = None
        self.tokenizer = tokenizer

        self._knowledge_getter: KnowledgeGetter | None = None
        self._line_selector: LineSelector | None = None
        if knowledge_getter is not None:
            self.set_knowledge_getter(knowledge_getter)

        self._writes = DetachedTaskGroup("study-writes")
        self._playback = DetachedTaskGroup("playback")
        self._pause_task: asyncio.Task | None = None

        self._state = EngineState.IDLE
        self._epoch = 0
        self._line_count = 0
        self._current_session: VideoSession | None = None
        self._line_status_cache: dict[str, dict[int, LineTestInfo]] = {}
        self._test_line_indices: set[int] = set()
        self._evaluating_index: int | None = None
        self._current_subtitle: SubtitleLine | None = None
        self._display_state: StudyTestDisplayState | None = None
        self._answer_submitted = False

        self._apply_config(config)

    # === Settings ===

    def _apply_config(self, config: StudyModeConfig) -> None:
        self._config = config
        self._enabled = config.enabled
        self._frequency = config.frequency
        self._calculator.set_focus_mode(config.focus_mode)

    def update_settings(self, config: StudyModeConfig) -> None:
        """Apply a new configuration.

        Disabling study mode through the new settings hides any active test.
        """
        was_enabled = self._enabled
        self._apply_config(config)
        if was_enabled and not config.enabled:
            self.enabled = False
        logger.info(
            f"Study mode settings updated: enabled={config.enabled} "
            f"frequency={config.frequency} lines={config.line_selection.value} "
            f"tokens={config.token_selection.value} decks={len(config.enabled_decks)}"
        )

    @property
    def config(self) -> StudyModeConfig:
        return self._config

    @property
    def enabled(self) -> bool:
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool) -> None:
        self._enabled = value
        if not value:
            self.dismiss()
            self._line_count = 0
            self._test_line_indices.clear()

    @property
    def frequency(self) -> int:
        return self._frequency

    @frequency.setter
    def frequency(self, value: int) -> None:
        if value < 1:
            raise ValueError(f"frequency must be at least 1, got {value}")
        self._frequency = value

    @property
    def tokenizer(self) -> Tokenizer | None:
        return self._tokenizer

    @tokenizer.setter
    def tokenizer(self, tokenizer: Tokenizer | None) -> None:
        self._tokenizer = tokenizer
        self._validator.tokenizer = tokenizer

    def set_knowledge_getter(self, knowledge_getter: KnowledgeGetter | None) -> None:
        """Enable (or disable) knowledge-driven line and token selection."""
        self._knowledge_getter = knowledge_getter
        self._token_selector.set_knowledge_getter(knowledge_getter)
        if knowledge_getter is None:
            self._line_selector = None
        else:
            self._line_selector = LineSelector(
                knowledge_getter,
                recognition_repository=self._recognition_repository,
                calculator=self._calculator,
            )
        logger.info(f"Knowledge getter {'configured' if knowledge_getter else 'removed'}")

    async def initialize(self) -> bool:
        """Create the tokenizer if it is not set yet.

        Returns:
            True if a tokenizer is available
        """
        return await self._ensure_tokenizer() is not None

    async def _ensure_tokenizer(self) -> Tokenizer | None:
        if self._tokenizer is None and self._tokenizer_factory is not None:
            try:
                self.tokenizer = await self._tokenizer_factory()
            except StudyModeException as e:
                logger.warning(f"Failed to initialize tokenizer: {e}")
        return self._tokenizer

    # === Host-facing state ===

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def showing(self) -> bool:
        return self._state in (EngineState.SHOWING, EngineState.RESULT_SHOWN)

    @property
    def line_count(self) -> int:
        return self._line_count

    @property
    def display_state(self) -> StudyTestDisplayState | None:
        return self._display_state

    @property
    def current_session(self) -> VideoSession | None:
        return self._current_session

    @property
    def lines_until_test(self) -> int:
        """Countdown to the next cadence test, for an indicator badge."""
        if not self._enabled:
            return 0
        remaining = self._frequency - (self._line_count % self._frequency)
        return remaining

    @property
    def indicator_mode(self) -> str:
        """'smart' for knowledge-driven selection, 'regular' for cadence."""
        if self._config.line_selection is LineSelectionStrategy.PRIORITIZE_UNKNOWN:
            return "smart"
        return "regular"

    def is_test_line(self, subtitle_index: int) -> bool:
        """Check if a line is scheduled for a test, so the host can suppress it."""
        return subtitle_index in self._test_line_indices

    def get_line_status(self, subtitle_index: int) -> LineTestInfo | None:
        """Get the cached test of a line in the current video."""
        return self._line_status_cache.get(self._host.video_src, {}).get(subtitle_index)

    def _cache_line_status(self, info: LineTestInfo) -> None:
        video_cache = self._line_status_cache.setdefault(self._host.video_src, {})
        video_cache[info.subtitle_index] = info

    # === Session bookkeeping ===

    def _get_or_create_session(self) -> VideoSession:
        video_src = self._host.video_src
        if self._current_session is None or self._current_session.video_src != video_src:
            logger.debug(f"Starting study session for {video_src!r}")
            self._current_session = VideoSession(video_src=video_src)
        return self._current_session

    def _record_card_shown(self, subtitle_index: int) -> None:
        session = self._get_or_create_session()
        session.studied_line_indices.add(subtitle_index)
        session.cards_shown_count += 1
        session.last_card_time = self._clock()

    def _is_rate_limit_satisfied(self) -> bool:
        session = self._get_or_create_session()
        if session.cards_shown_count == 0:
            return True
        return self._clock() - session.last_card_time >= self._config.rate_limit_seconds

    def _is_priority_selection_ready(self) -> bool:
        return (
            self._tokenizer is not None
            and self._line_selector is not None
            and len(self._config.enabled_decks) > 0
        )

    # === Decision ===

    async def on_subtitle_shown(self, subtitle: SubtitleLine) -> bool:
        """Handle a subtitle line that is about to be displayed.

        Args:
            subtitle: The line; must carry a stable index to be testable

        Returns:
            True if the host must suppress normal subtitle display because a
            test is shown instead
        """
        if self._state is not EngineState.IDLE:
            return False
        if not self._enabled or not subtitle.text.strip() or subtitle.index is None:
            return False

        self._line_count += 1

        existing = self.get_line_status(subtitle.index)
        if existing is not None and existing.is_complete:
            logger.debug(f"Line {subtitle.index} already tested: {existing.status.value}")
            return False

        epoch = self._epoch
        self._state = EngineState.EVALUATING
        self._evaluating_index = subtitle.index
        try:
            # An unfinished test is always retried
            should_test = existing is not None or await self._should_test_line(subtitle)
            if not should_test or epoch != self._epoch:
                return False

            logger.info(
                f"Triggering test at line {self._line_count} (index {subtitle.index}, "
                f"strategy {self._config.line_selection.value})"
            )
            self._test_line_indices.add(subtitle.index)
            shown = await self._show_test(subtitle, existing, epoch)
            if shown:
                self._record_card_shown(subtitle.index)
            return shown
        finally:
            if epoch == self._epoch:
                self._evaluating_index = None
                if self._state is EngineState.EVALUATING:
                    self._state = EngineState.IDLE

    async def _should_test_line(self, subtitle: SubtitleLine) -> bool:
        session = self._get_or_create_session()
        if subtitle.index in session.studied_line_indices:
            return False

        if not self._is_rate_limit_satisfied():
            return False

        if self._config.line_selection is LineSelectionStrategy.RANDOM:
            return self._line_count % self._frequency == 0

        # No fallback to cadence: without knowledge sources, don't test at all
        if not self._is_priority_selection_ready():
            logger.debug("Priority selection not ready (missing tokenizer, knowledge getter or decks)")
            return False

        try:
            groups = await self._tokenizer.tokenize(subtitle.text)
            assessment = await self._line_selector.assess(
                flatten_token_groups(groups), self._config.intensity
            )
        except Exception as e:
            logger.warning(f"Priority scoring failed: {e}")
            return False

        if assessment is None:
            return False

        self.last_assessment = assessment
        if self.on_line_assessed is not None:
            self.on_line_assessed(assessment)
        return assessment.triggered

    # === Display ===

    async def _show_test(self, subtitle: SubtitleLine, existing: LineTestInfo | None, epoch: int) -> bool:
        index = subtitle.index

        if existing is not None and existing.tokens and existing.blanked_indices:
            tokens, blanked_indices = existing.tokens, existing.blanked_indices
        else:
            prepared = await self._prepare_test(subtitle, epoch)
            if prepared is None:
                # After a dismissal the marker may belong to a newer test of this line
                if epoch == self._epoch:
                    self._test_line_indices.discard(index)
                return False
            tokens, blanked_indices = prepared

        if epoch != self._epoch:
            return False

        self._cache_line_status(
            LineTestInfo(
                subtitle_index=index,
                status=LineStatus.INCOMPLETE,
                tokens=tokens,
                blanked_indices=blanked_indices,
            )
        )

        self._current_subtitle = subtitle
        self._display_state = StudyTestDisplayState.initial(tokens, blanked_indices)
        self._answer_submitted = False
        self._state = EngineState.SHOWING

        self._host.set_subtitles_hidden(True)
        self._host.set_overlays_hidden(True)
        self._overlay.show(self._display_state)

        # Let the line finish playing before the test takes over
        self._schedule_pause_at(subtitle.end)
        return True

    async def _prepare_test(
        self, subtitle: SubtitleLine, epoch: int
    ) -> tuple[tuple[TokenPart, ...], tuple[int, ...]] | None:
        """Tokenize a line and choose its blanks.

        Returns:
            (tokens, blanked indices), or None if no test can be built
        """
        tokenizer = await self._ensure_tokenizer()
        if tokenizer is None:
            logger.warning("Tokenizer not initialized, cannot show test")
            self._host.notify(NO_TOKENIZER_MESSAGE)
            return None

        try:
            groups = await tokenizer.tokenize(subtitle.text)
        except Exception:
            logger.exception(f"Failed to tokenize line {subtitle.index}")
            self._host.notify(TOKENIZE_FAILED_MESSAGE)
            return None

        if epoch != self._epoch:
            return None

        tokens = flatten_token_groups(groups)
        if self._config.include_conjugations:
            tokens = TokenSelector.group_conjugations(tokens)
        if not tokens:
            return None

        try:
            blanked_indices = await self._token_selector.select_tokens_to_blank(
                tokens,
                strategy=self._config.token_selection,
                max_blanks=self._config.max_blanks,
            )
        except Exception:
            logger.exception(f"Failed to select blanks for line {subtitle.index}")
            return None

        if not blanked_indices:
            logger.debug(f"Line {subtitle.index} has no testable tokens")
            return None

        return tuple(tokens), tuple(blanked_indices)

    # === Playback control ===

    def _schedule_pause_at(self, end_time: float) -> None:
        self._cancel_pause_watch()
        self._pause_task = self._playback.spawn(self._pause_when_reached(end_time), "pause-at-end")

    async def _pause_when_reached(self, end_time: float) -> None:
        while self._host.current_time < end_time:
            await asyncio.sleep(self._config.playback_poll_interval)
        self._host.pause()

    def _cancel_pause_watch(self) -> None:
        if self._pause_task is not None and not self._pause_task.done():
            self._pause_task.cancel()
        self._pause_task = None

    # === Overlay intents ===

    async def handle_intent(self, intent: OverlayIntent) -> None:
        """Dispatch an intent emitted by the overlay."""
        if isinstance(intent, SubmitIntent):
            await self.on_submit(list(intent.answers))
        elif isinstance(intent, ContinueIntent):
            self.on_continue(intent.passed)
        elif isinstance(intent, ReplayIntent):
            self.on_replay()
        elif isinstance(intent, InputChangeIntent):
            self.on_input_change(intent.index, intent.value)
        elif isinstance(intent, DismissIntent):
            self.dismiss()
        else:
            logger.warning(f"Ignoring unknown overlay intent: {intent!r}")

    def on_replay(self) -> None:
        """Replay the current line from its start, pausing again at its end."""
        if self._current_subtitle is None:
            return
        self._host.seek(self._current_subtitle.start)
        self._host.play()
        self._schedule_pause_at(self._current_subtitle.end)

    def on_input_change(self, index: int, value: str) -> None:
        if self._state is not EngineState.SHOWING or self._answer_submitted:
            return
        if self._display_state is None or not 0 <= index < len(self._display_state.user_answers):
            return
        self._display_state = self._display_state.with_answer(index, value)

    async def on_submit(self, answers: Sequence[str]) -> bool:
        """Validate one answer per blank and show the result.

        Returns:
            False if the submission was refused (no active test, already
            submitted, wrong answer count or an empty answer)
        """
        if self._state is not EngineState.SHOWING or self._display_state is None:
            return False
        if self._answer_submitted:
            return False

        answers = list(answers)
        display = self._display_state
        if len(answers) != len(display.blanked_indices) or any(not a.strip() for a in answers):
            logger.debug("Submission refused: every blank needs an answer")
            return False

        self._answer_submitted = True
        epoch = self._epoch
        subtitle = self._current_subtitle

        answer_results = await self._validator.validate(display.tokens, display.blanked_indices, answers)

        if epoch != self._epoch or self._state is not EngineState.SHOWING:
            return False

        if self._config.track_results:
            self._writes.spawn(
                self._save_study_records(
                    display.tokens,
                    display.blanked_indices,
                    answer_results,
                    self._host.video_src,
                ),
                f"line-{subtitle.index if subtitle else '?'}",
            )

        self._display_state = display.with_result(answers, answer_results)
        self._state = EngineState.RESULT_SHOWN
        self._overlay.update(self._display_state)
        logger.info(f"Test answered: {sum(answer_results)}/{len(answer_results)} correct")
        return True

    async def _save_study_records(
        self,
        tokens: tuple[TokenPart, ...],
        blanked_indices: tuple[int, ...],
        answer_results: list[bool],
        media_source: str,
    ) -> None:
        """Persist one study record per blank plus a batched recognition write.

        Failures are logged and never retried.
        """
        sentence_context = "".join(token.text for token in tokens)
        attempts: list[RecognitionAttempt] = []

        for index, success in zip(blanked_indices, answer_results):
            token = tokens[index]
            reading = expected_reading(token)
            attempts.append(RecognitionAttempt(lemma=token.lemma, reading=reading, success=success))

            if self._study_repository is None:
                continue
            try:
                await self._study_repository.save(
                    StudyRecord(
                        lemma=token.lemma,
                        reading=reading,
                        surface_form=token.text,
                        correct=success,
                        sentence_context=sentence_context,
                        media_source=media_source,
                    )
                )
            except StudyModeException as e:
                logger.warning(f"Failed to save study record: {e}")

        if self._recognition_repository is None:
            return
        try:
            await self._recognition_repository.record_attempts_batch(attempts)
        except StudyModeException as e:
            logger.warning(f"Failed to record recognition attempts: {e}")

    def on_continue(self, passed: bool | None = None) -> None:
        """Finish the test and resume playback.

        Args:
            passed: Outcome reported by the overlay; defaults to the validated result
        """
        if self._state is not EngineState.RESULT_SHOWN or self._current_subtitle is None:
            return

        if passed is None:
            passed = self._display_state.result_correct if self._display_state else False

        existing = self.get_line_status(self._current_subtitle.index)
        if existing is not None:
            self._cache_line_status(replace(existing, status=LineStatus.PASS if passed else LineStatus.FAIL))

        self._finish_test()

        if self.on_test_complete is not None:
            self.on_test_complete(passed)
        self._host.play()

    def dismiss(self) -> None:
        """Abort the active test or evaluation without recording a result.

        The line stays INCOMPLETE and will be retried on its next appearance.
        In-flight lookups finish on their own and their results are discarded.
        """
        if self._state is EngineState.IDLE:
            return

        self._epoch += 1
        if self._evaluating_index is not None:
            self._test_line_indices.discard(self._evaluating_index)
            self._evaluating_index = None

        if self._current_subtitle is not None:
            existing = self.get_line_status(self._current_subtitle.index)
            if existing is not None and existing.status is not LineStatus.INCOMPLETE:
                self._cache_line_status(replace(existing, status=LineStatus.INCOMPLETE))
            logger.info(f"Test for line {self._current_subtitle.index} dismissed")

        self._finish_test()

    def _finish_test(self) -> None:
        self._cancel_pause_watch()
        self._host.set_subtitles_hidden(False)
        self._host.set_overlays_hidden(False)
        self._overlay.hide()

        if self._current_subtitle is not None:
            self._test_line_indices.discard(self._current_subtitle.index)
        self._current_subtitle = None
        self._display_state = None
        self._answer_submitted = False
        self._state = EngineState.IDLE

    # === Lifecycle ===

    def bind(self) -> None:
        """Start receiving overlay intents."""
        self._overlay.set_intent_handler(self.handle_intent)

    def unbind(self) -> None:
        """Stop receiving intents, abort any test and stop playback watchers."""
        self.dismiss()
        self._overlay.set_intent_handler(None)
        self._playback.cancel_all()

    async def drain(self, include_playback: bool = False) -> None:
        """Wait for background result writes (and optionally playback watchers)."""
        await self._writes.drain()
        if include_playback:
            await self._playback.drain()
