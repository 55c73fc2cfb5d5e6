"""Tests for StudyModeEngine."""

import asyncio
import random
from dataclasses import replace
from unittest.mock import patch

import pytest

from subtitle_study.exceptions import RepositoryError
from subtitle_study.models import (
    ContinueIntent,
    DismissIntent,
    EngineState,
    FocusMode,
    InputChangeIntent,
    KnowledgeStatus,
    LineSelectionStrategy,
    LineStatus,
    StudyDeckConfig,
    StudyIntensity,
    SubmitIntent,
    SubtitleLine,
    TokenPart,
)
from subtitle_study.orchestration import (
    NO_TOKENIZER_MESSAGE,
    TOKENIZE_FAILED_MESSAGE,
    StudyModeEngine,
    create_services,
)
from subtitle_study.services import AnkiService, SQLiteRecognitionRepository, SQLiteStudyRepository

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class BlockingTokenizer:
    """Tokenizer that waits until released, to hold the engine mid-evaluation."""

    def __init__(self, groups):
        self.groups = groups
        self.release = asyncio.Event()

    async def tokenize(self, text):
        await self.release.wait()
        return self.groups

    async def is_ready(self):
        return True

    def reset_cache(self):
        pass

    def dispose(self):
        pass


class FirstCallBlockingTokenizer:
    """Tokenizer whose first call waits until released; later calls return at once."""

    def __init__(self, groups):
        self.groups = groups
        self.release = asyncio.Event()
        self.calls = 0

    async def tokenize(self, text):
        self.calls += 1
        if self.calls == 1:
            await self.release.wait()
        return self.groups

    async def is_ready(self):
        return True

    def reset_cache(self):
        pass

    def dispose(self):
        pass


class FailingStudyRepository:
    async def save(self, record):
        raise RepositoryError("disk full")

    async def get_stats(self, lemma):
        raise RepositoryError("disk full")


@pytest.fixture
async def make_engine(fake_host, overlay, fake_tokenizer, fake_clock):
    """Factory fixture for bound engines, unbound again after the test."""
    created = []

    def _make(config, **kwargs):
        kwargs.setdefault("tokenizer", fake_tokenizer)
        kwargs.setdefault("clock", fake_clock)
        kwargs.setdefault("rng", random.Random(0))
        engine = StudyModeEngine(config, fake_host, overlay, **kwargs)
        engine.bind()
        created.append(engine)
        return engine

    yield _make

    for engine in created:
        engine.unbind()
        await engine.drain(include_playback=True)


@pytest.fixture
def engine(make_engine, test_config):
    """Cadence engine testing every 10th line."""
    return make_engine(test_config)


@pytest.fixture
def every_line_engine(make_engine, test_config):
    """Cadence engine testing every line."""
    return make_engine(replace(test_config, frequency=1))


@pytest.fixture
def knowledge_config(test_config):
    return replace(
        test_config,
        line_selection=LineSelectionStrategy.PRIORITIZE_UNKNOWN,
        study_decks=(StudyDeckConfig(deck_name="Core"),),
        intensity=StudyIntensity.MEDIUM,
    )


async def play_lines(engine, make_line, count):
    """Show lines 0..count-1, dismissing every test; return the tested indices."""
    triggered = []
    for index in range(count):
        if await engine.on_subtitle_shown(make_line(index)):
            triggered.append(index)
            engine.dismiss()
    return triggered


# ---------------------------------------------------------------------------
# Line selection
# ---------------------------------------------------------------------------


class TestCadenceSelection:
    """Tests for the every-Nth-line strategy."""

    async def test_triggers_on_every_nth_line(self, engine, make_line):
        """Should test the 10th and 20th of 25 lines."""
        triggered = await play_lines(engine, make_line, 25)

        assert triggered == [9, 19]
        assert engine.line_count == 25

    async def test_ignores_empty_and_unindexed_lines(self, every_line_engine):
        """Should not count blank lines or lines without an index."""
        assert await every_line_engine.on_subtitle_shown(SubtitleLine(text="  ", start=0, end=1, index=0)) is False
        assert await every_line_engine.on_subtitle_shown(SubtitleLine(text="私", start=0, end=1)) is False
        assert every_line_engine.line_count == 0

    async def test_disabled_engine_never_tests(self, make_engine, test_config, make_line):
        """Should ignore lines while study mode is off."""
        engine = make_engine(replace(test_config, enabled=False, frequency=1))

        assert await play_lines(engine, make_line, 5) == []
        assert engine.line_count == 0

    async def test_lines_until_test_counts_down(self, engine, make_line):
        """Should report lines remaining before the next cadence test."""
        await play_lines(engine, make_line, 3)
        assert engine.lines_until_test == 7

    async def test_indicator_mode(self, make_engine, test_config, knowledge_config):
        """Should report regular for cadence and smart for knowledge-driven selection."""
        assert make_engine(test_config).indicator_mode == "regular"
        assert make_engine(knowledge_config).indicator_mode == "smart"


class TestLineCache:
    """Tests for per-video line status caching."""

    async def test_completed_line_is_not_retested(self, every_line_engine, make_line, overlay):
        """Should skip a line that already passed."""
        assert await every_line_engine.on_subtitle_shown(make_line(0))
        await every_line_engine.on_submit(["私", "学生"])
        every_line_engine.on_continue()

        assert every_line_engine.get_line_status(0).status is LineStatus.PASS
        assert await every_line_engine.on_subtitle_shown(make_line(0)) is False
        assert len(overlay.shown) == 1

    async def test_dismissed_line_is_retried_with_same_test(self, every_line_engine, make_line, overlay, fake_tokenizer):
        """Should show the cached tokens and blanks again, regardless of cadence."""
        assert await every_line_engine.on_subtitle_shown(make_line(0))
        first = overlay.shown[-1]
        every_line_engine.dismiss()
        assert every_line_engine.get_line_status(0).status is LineStatus.INCOMPLETE

        every_line_engine.frequency = 3
        assert await every_line_engine.on_subtitle_shown(make_line(0))

        second = overlay.shown[-1]
        assert second.tokens == first.tokens
        assert second.blanked_indices == first.blanked_indices
        assert fake_tokenizer.calls == [make_line(0).text]

    async def test_cache_is_per_video(self, every_line_engine, make_line, fake_host):
        """Should start over when the video changes."""
        await every_line_engine.on_subtitle_shown(make_line(0))
        await every_line_engine.on_submit(["私", "学生"])
        every_line_engine.on_continue()

        fake_host.video_src = "episode02.mkv"

        assert every_line_engine.get_line_status(0) is None
        assert await every_line_engine.on_subtitle_shown(make_line(0))
        assert every_line_engine.current_session.video_src == "episode02.mkv"
        assert every_line_engine.current_session.studied_line_indices == {0}


class TestRateLimit:
    """Tests for the minimum gap between tests."""

    async def test_blocks_tests_inside_window(self, make_engine, test_config, make_line, fake_clock):
        """Should refuse a test until rate_limit_seconds have passed."""
        engine = make_engine(replace(test_config, frequency=1, rate_limit_seconds=10.0))

        assert await engine.on_subtitle_shown(make_line(0))
        await engine.on_submit(["私", "学生"])
        engine.on_continue()

        fake_clock.advance(5)
        assert await engine.on_subtitle_shown(make_line(1)) is False

        fake_clock.advance(6)
        assert await engine.on_subtitle_shown(make_line(2))
        assert engine.current_session.cards_shown_count == 2


class TestKnowledgeDrivenSelection:
    """Tests for the prioritize-unknown strategy."""

    async def test_triggers_when_score_reaches_threshold(self, make_engine, knowledge_config, make_knowledge_getter, make_line):
        """Should test a line of uncollected words at medium intensity."""
        assessments = []
        engine = make_engine(knowledge_config, knowledge_getter=make_knowledge_getter())
        engine.on_line_assessed = assessments.append

        assert await engine.on_subtitle_shown(make_line(0))

        # 私, は, 学生, です at 0.8 each; punctuation is not scored
        assert assessments[0].score == pytest.approx(3.2)
        assert assessments[0].threshold == 2.5
        assert assessments[0].token_count == 4

    async def test_low_intensity_skips_same_line(self, make_engine, knowledge_config, make_knowledge_getter, make_line):
        """Should not test a 3.2 line against the 4.0 threshold."""
        config = replace(knowledge_config, intensity=StudyIntensity.LOW)
        engine = make_engine(config, knowledge_getter=make_knowledge_getter())

        assert await engine.on_subtitle_shown(make_line(0)) is False
        assert engine.last_assessment.threshold == 4.0
        assert engine.last_assessment.triggered is False

    async def test_known_words_do_not_trigger(self, make_engine, knowledge_config, make_knowledge_getter, make_line):
        """Should skip lines made of mature vocabulary."""
        getter = make_knowledge_getter(default=KnowledgeStatus.MATURE)
        engine = make_engine(knowledge_config, knowledge_getter=getter)

        assert await engine.on_subtitle_shown(make_line(0)) is False
        assert engine.last_assessment.score < 2.5

    async def test_never_tests_without_decks(self, make_engine, knowledge_config, make_knowledge_getter, make_line):
        """Should not fall back to cadence when no deck is configured."""
        getter = make_knowledge_getter()
        engine = make_engine(replace(knowledge_config, study_decks=()), knowledge_getter=getter)

        assert await play_lines(engine, make_line, 30) == []
        assert getter.calls == []

    async def test_never_tests_without_knowledge_getter(self, make_engine, knowledge_config, make_line):
        """Should not test when knowledge sources are missing."""
        engine = make_engine(knowledge_config)
        assert await play_lines(engine, make_line, 30) == []

    async def test_scoring_failure_skips_line(self, make_engine, knowledge_config, make_knowledge_getter, make_tokenizer, make_line, fake_host):
        """Should treat a failed assessment as not worth testing."""
        engine = make_engine(
            knowledge_config,
            tokenizer=make_tokenizer(fail=True),
            knowledge_getter=make_knowledge_getter(),
        )

        assert await engine.on_subtitle_shown(make_line(0)) is False
        assert fake_host.notifications == []
        assert engine.state is EngineState.IDLE

    async def test_knowledge_getter_can_be_set_later(self, make_engine, knowledge_config, make_knowledge_getter, make_line):
        """Should start scoring once a knowledge getter is configured."""
        engine = make_engine(knowledge_config)
        assert await engine.on_subtitle_shown(make_line(0)) is False

        engine.set_knowledge_getter(make_knowledge_getter())
        assert await engine.on_subtitle_shown(make_line(1))


# ---------------------------------------------------------------------------
# Showing a test
# ---------------------------------------------------------------------------


class TestShowTest:
    """Tests for building and displaying a test."""

    async def test_takes_over_display(self, every_line_engine, make_line, fake_host, overlay):
        """Should hide subtitles and overlays and show blanks for testable words."""
        assert await every_line_engine.on_subtitle_shown(make_line(0))

        assert every_line_engine.state is EngineState.SHOWING
        assert every_line_engine.showing
        assert every_line_engine.is_test_line(0)
        assert fake_host.subtitles_hidden and fake_host.overlays_hidden
        assert overlay.visible
        assert overlay.shown[0].blanked_indices == (0, 2)
        assert overlay.shown[0].user_answers == ("", "")

    async def test_caches_line_as_incomplete(self, every_line_engine, make_line):
        """Should remember the test before it is answered."""
        await every_line_engine.on_subtitle_shown(make_line(0))

        info = every_line_engine.get_line_status(0)
        assert info.status is LineStatus.INCOMPLETE
        assert info.blanked_indices == (0, 2)
        assert [t.text for t in info.tokens] == ["私", "は", "学生", "です", "。"]

    async def test_missing_tokenizer_notifies(self, make_engine, test_config, make_line, fake_host):
        """Should notify the host and abort when no tokenizer is available."""
        engine = make_engine(replace(test_config, frequency=1), tokenizer=None)

        assert await engine.on_subtitle_shown(make_line(0)) is False
        assert fake_host.notifications == [NO_TOKENIZER_MESSAGE]
        assert not engine.is_test_line(0)
        assert engine.get_line_status(0) is None
        assert engine.state is EngineState.IDLE

    async def test_tokenizer_created_lazily(self, make_engine, test_config, make_line, fake_tokenizer):
        """Should create the tokenizer through the factory on first use."""

        async def factory():
            return fake_tokenizer

        engine = make_engine(replace(test_config, frequency=1), tokenizer=None, tokenizer_factory=factory)

        assert await engine.on_subtitle_shown(make_line(0))
        assert engine.tokenizer is fake_tokenizer

    async def test_tokenize_failure_notifies(self, make_engine, test_config, make_tokenizer, make_line, fake_host):
        """Should notify the host when tokenization fails."""
        engine = make_engine(replace(test_config, frequency=1), tokenizer=make_tokenizer(fail=True))

        assert await engine.on_subtitle_shown(make_line(0)) is False
        assert fake_host.notifications == [TOKENIZE_FAILED_MESSAGE]
        assert not engine.is_test_line(0)

    async def test_line_without_testable_words_is_skipped(self, make_engine, test_config, make_tokenizer, make_line, overlay):
        """Should not show a test for punctuation-only lines."""
        tokenizer = make_tokenizer({"……": [[TokenPart(text="……", reading="……", pos="補助記号")]]})
        engine = make_engine(replace(test_config, frequency=1), tokenizer=tokenizer)

        assert await engine.on_subtitle_shown(make_line(0, text="……")) is False
        assert overlay.shown == []
        assert engine.state is EngineState.IDLE

    async def test_refuses_lines_while_showing(self, every_line_engine, make_line):
        """Should ignore new lines while a test is active."""
        await every_line_engine.on_subtitle_shown(make_line(0))

        assert await every_line_engine.on_subtitle_shown(make_line(1)) is False
        assert every_line_engine.line_count == 1

    async def test_conjugation_blanked_as_one_word(self, make_engine, test_config, make_tokenizer, make_line, overlay):
        """Should merge 食べ + まし + た into one blank."""
        groups = [
            [TokenPart(text="食べ", reading="タベ", pos="動詞", basic_form="食べる")],
            [TokenPart(text="まし", reading="マシ", pos="助動詞", basic_form="ます")],
            [TokenPart(text="た", reading="タ", pos="助動詞", basic_form="た")],
        ]
        tokenizer = make_tokenizer({"食べました": groups})
        engine = make_engine(replace(test_config, frequency=1), tokenizer=tokenizer)

        assert await engine.on_subtitle_shown(make_line(0, text="食べました"))

        state = overlay.shown[0]
        assert [t.text for t in state.tokens] == ["食べました"]
        assert state.blanked_indices == (0,)
        assert state.tokens[0].lemma == "食べる"

    async def test_conjugations_kept_separate_when_disabled(self, make_engine, test_config, make_tokenizer, make_line, overlay):
        """Should blank only the stem when conjugation grouping is off."""
        groups = [
            [TokenPart(text="食べ", reading="タベ", pos="動詞", basic_form="食べる")],
            [TokenPart(text="た", reading="タ", pos="助動詞", basic_form="た")],
        ]
        tokenizer = make_tokenizer({"食べた": groups})
        engine = make_engine(replace(test_config, frequency=1, include_conjugations=False), tokenizer=tokenizer)

        await engine.on_subtitle_shown(make_line(0, text="食べた"))

        assert len(overlay.shown[0].tokens) == 2
        assert overlay.shown[0].blanked_indices == (0,)

    async def test_pauses_at_line_end(self, every_line_engine, make_line, fake_host):
        """Should pause playback once the line has finished."""
        line = make_line(0)
        await every_line_engine.on_subtitle_shown(line)

        fake_host.current_time = line.end
        await every_line_engine.drain(include_playback=True)

        assert fake_host.pause_count == 1

    async def test_dismiss_during_evaluation_discards_result(self, make_engine, test_config, make_line, overlay, sentence_groups):
        """Should drop a test whose tokenization finishes after a dismissal."""
        tokenizer = BlockingTokenizer(sentence_groups)
        engine = make_engine(replace(test_config, frequency=1), tokenizer=tokenizer)

        task = asyncio.create_task(engine.on_subtitle_shown(make_line(0)))
        await asyncio.sleep(0)
        assert engine.state is EngineState.EVALUATING
        assert engine.is_test_line(0)

        engine.dismiss()
        tokenizer.release.set()

        assert await task is False
        assert overlay.shown == []
        assert not engine.is_test_line(0)
        assert engine.state is EngineState.IDLE

    async def test_abandoned_evaluation_keeps_newer_test_marker(self, make_engine, test_config, make_line, sentence_groups):
        """Should leave the marker of a replayed line alone when an older evaluation finishes late."""
        tokenizer = FirstCallBlockingTokenizer(sentence_groups)
        engine = make_engine(replace(test_config, frequency=1), tokenizer=tokenizer)

        stale = asyncio.create_task(engine.on_subtitle_shown(make_line(5)))
        await asyncio.sleep(0)
        engine.dismiss()

        assert await engine.on_subtitle_shown(make_line(5))
        assert engine.is_test_line(5)

        tokenizer.release.set()

        assert await stale is False
        assert engine.is_test_line(5)
        assert engine.state is EngineState.SHOWING


# ---------------------------------------------------------------------------
# Answering
# ---------------------------------------------------------------------------


class TestSubmit:
    """Tests for answer submission."""

    async def test_correct_answers(self, every_line_engine, make_line, overlay):
        """Should accept the surface form and the hiragana reading."""
        await every_line_engine.on_subtitle_shown(make_line(0))

        assert await every_line_engine.on_submit(["私", "がくせい"])

        result = overlay.updates[-1]
        assert every_line_engine.state is EngineState.RESULT_SHOWN
        assert result.showing_result
        assert result.answer_results == (True, True)
        assert result.result_correct

    async def test_wrong_answer_fails_line(self, every_line_engine, make_line, overlay):
        """Should mark the whole test failed when any blank is wrong."""
        await every_line_engine.on_subtitle_shown(make_line(0))

        await every_line_engine.on_submit(["私", "せんせい"])

        assert overlay.updates[-1].answer_results == (True, False)
        assert overlay.updates[-1].result_correct is False

    async def test_refuses_incomplete_submission(self, every_line_engine, make_line):
        """Should require one non-blank answer per blank."""
        await every_line_engine.on_subtitle_shown(make_line(0))

        assert await every_line_engine.on_submit(["私"]) is False
        assert await every_line_engine.on_submit(["私", "  "]) is False
        assert every_line_engine.state is EngineState.SHOWING

    async def test_refuses_second_submission(self, every_line_engine, make_line):
        """Should accept only one submission per test."""
        await every_line_engine.on_subtitle_shown(make_line(0))
        await every_line_engine.on_submit(["私", "学生"])

        assert await every_line_engine.on_submit(["私", "学生"]) is False

    async def test_refuses_without_active_test(self, every_line_engine):
        """Should ignore submissions when nothing is shown."""
        assert await every_line_engine.on_submit(["私"]) is False

    async def test_records_results(self, make_engine, test_config, make_line, temp_dir):
        """Should log every blank and its recognition outcome."""
        study_repo = SQLiteStudyRepository(temp_dir / "study.db")
        recognition_repo = SQLiteRecognitionRepository(temp_dir / "study.db")
        engine = make_engine(
            replace(test_config, frequency=1),
            study_repository=study_repo,
            recognition_repository=recognition_repo,
        )

        await engine.on_subtitle_shown(make_line(0))
        await engine.on_submit(["私", "せんせい"])
        await engine.drain()

        student = await study_repo.get_stats("学生")
        assert student.total_attempts == 1
        assert student.incorrect == 1

        record = study_repo.get_recent_records(1)[0]
        assert record.sentence_context == "私は学生です。"
        assert record.media_source == "episode01.mkv"
        assert record.reading == "がくせい"

        me = await recognition_repo.get_stats("私")
        assert me.successes == 1
        assert me.consecutive_successes == 1

    async def test_no_records_when_tracking_disabled(self, make_engine, test_config, make_line, temp_dir):
        """Should not write anything with track_results off."""
        study_repo = SQLiteStudyRepository(temp_dir / "study.db")
        engine = make_engine(
            replace(test_config, frequency=1, track_results=False),
            study_repository=study_repo,
        )

        await engine.on_subtitle_shown(make_line(0))
        await engine.on_submit(["私", "学生"])
        await engine.drain()

        assert (await study_repo.get_stats("私")).total_attempts == 0

    async def test_storage_failure_does_not_block_test(self, make_engine, test_config, make_line, fake_host):
        """Should finish the test even if saving results fails."""
        engine = make_engine(replace(test_config, frequency=1), study_repository=FailingStudyRepository())

        await engine.on_subtitle_shown(make_line(0))
        assert await engine.on_submit(["私", "学生"])
        await engine.drain()
        engine.on_continue()

        assert engine.get_line_status(0).status is LineStatus.PASS
        assert fake_host.play_count == 1


class TestContinueAndDismiss:
    """Tests for leaving a test."""

    async def test_continue_passes_line_and_resumes(self, every_line_engine, make_line, fake_host, overlay):
        """Should record a pass, restore the display and resume playback."""
        completed = []
        every_line_engine.on_test_complete = completed.append

        await every_line_engine.on_subtitle_shown(make_line(0))
        await every_line_engine.on_submit(["私", "学生"])
        every_line_engine.on_continue()

        assert every_line_engine.get_line_status(0).status is LineStatus.PASS
        assert every_line_engine.state is EngineState.IDLE
        assert completed == [True]
        assert fake_host.play_count == 1
        assert not fake_host.subtitles_hidden and not fake_host.overlays_hidden
        assert not overlay.visible
        assert not every_line_engine.is_test_line(0)

    async def test_continue_after_wrong_answer_fails_line(self, every_line_engine, make_line):
        """Should record a failure."""
        completed = []
        every_line_engine.on_test_complete = completed.append

        await every_line_engine.on_subtitle_shown(make_line(0))
        await every_line_engine.on_submit(["あなた", "学生"])
        every_line_engine.on_continue()

        assert every_line_engine.get_line_status(0).status is LineStatus.FAIL
        assert completed == [False]

    async def test_continue_ignored_before_result(self, every_line_engine, make_line, fake_host):
        """Should do nothing until the answers are graded."""
        await every_line_engine.on_subtitle_shown(make_line(0))
        every_line_engine.on_continue()

        assert every_line_engine.state is EngineState.SHOWING
        assert fake_host.play_count == 0

    async def test_dismiss_after_result_keeps_line_incomplete(self, every_line_engine, make_line, fake_host):
        """Should not finalize a test that was dismissed."""
        await every_line_engine.on_subtitle_shown(make_line(0))
        await every_line_engine.on_submit(["私", "学生"])
        every_line_engine.dismiss()

        assert every_line_engine.get_line_status(0).status is LineStatus.INCOMPLETE
        assert every_line_engine.state is EngineState.IDLE
        assert fake_host.play_count == 0
        assert not fake_host.subtitles_hidden

    async def test_disabling_hides_active_test(self, every_line_engine, make_line, overlay):
        """Should hide the test and reset the line count."""
        await every_line_engine.on_subtitle_shown(make_line(0))

        every_line_engine.enabled = False

        assert not overlay.visible
        assert every_line_engine.state is EngineState.IDLE
        assert every_line_engine.line_count == 0

    async def test_update_settings_can_disable(self, every_line_engine, test_config, make_line, overlay):
        """Should hide the test when new settings turn study mode off."""
        await every_line_engine.on_subtitle_shown(make_line(0))

        every_line_engine.update_settings(replace(test_config, enabled=False))

        assert not every_line_engine.enabled
        assert not overlay.visible


class TestReplay:
    """Tests for replaying the tested line."""

    async def test_replay_seeks_plays_and_pauses_again(self, every_line_engine, make_line, fake_host):
        """Should play the line from its start and pause at its end."""
        line = make_line(3)
        await every_line_engine.on_subtitle_shown(line)

        every_line_engine.on_replay()
        assert fake_host.seeks == [line.start]
        assert fake_host.play_count == 1

        fake_host.current_time = line.end
        await every_line_engine.drain(include_playback=True)
        assert fake_host.pause_count == 1

    async def test_replay_without_test_does_nothing(self, every_line_engine, fake_host):
        every_line_engine.on_replay()
        assert fake_host.seeks == []


class TestIntents:
    """Tests for intents forwarded by the overlay."""

    async def test_intents_drive_lifecycle(self, every_line_engine, make_line, overlay):
        """Should route input, submit and continue intents."""
        await every_line_engine.on_subtitle_shown(make_line(0))

        await overlay.emit(InputChangeIntent(index=0, value="私"))
        assert every_line_engine.display_state.user_answers == ("私", "")

        await overlay.emit(SubmitIntent(answers=("私", "学生")))
        assert every_line_engine.state is EngineState.RESULT_SHOWN

        await overlay.emit(ContinueIntent(passed=True))
        assert every_line_engine.state is EngineState.IDLE

    async def test_dismiss_intent(self, every_line_engine, make_line):
        await every_line_engine.on_subtitle_shown(make_line(0))
        await every_line_engine.handle_intent(DismissIntent())
        assert every_line_engine.state is EngineState.IDLE

    async def test_unbind_removes_handler(self, every_line_engine, overlay):
        assert overlay.has_handler
        every_line_engine.unbind()
        assert not overlay.has_handler


class TestSettings:
    """Tests for runtime settings."""

    async def test_frequency_must_be_positive(self, engine):
        with pytest.raises(ValueError):
            engine.frequency = 0

    async def test_update_settings_applies_frequency(self, engine, test_config):
        engine.update_settings(replace(test_config, frequency=4))
        assert engine.frequency == 4
        assert engine.config.frequency == 4

    async def test_update_settings_applies_focus_mode(self, make_engine, knowledge_config, make_knowledge_getter, make_line):
        """Should rescore lines with the new focus weights."""
        engine = make_engine(knowledge_config, knowledge_getter=make_knowledge_getter())
        await engine.on_subtitle_shown(make_line(0))
        engine.dismiss()
        assert engine.last_assessment.score == pytest.approx(3.2)

        engine.update_settings(replace(knowledge_config, focus_mode=FocusMode.PRIORITIZE_NEW))
        await engine.on_subtitle_shown(make_line(1))

        # 0.85 * 1.0 + 0.15 * 0.5 per uncollected word without history
        assert engine.last_assessment.score == pytest.approx(3.7)

    async def test_update_settings_reaches_deck_lookup(self, make_engine, knowledge_config, make_line):
        """Should query Anki with the decks of the current settings."""
        initial = replace(knowledge_config, study_decks=(StudyDeckConfig("Core", enabled=False),))
        queried = []

        def card_status(service, decks, candidates):
            queried.append([deck.deck_name for deck in decks if deck.enabled])
            return KnowledgeStatus.MATURE

        with patch.object(AnkiService, "get_card_status", card_status):
            services = create_services(initial, decks=lambda: engine.config.study_decks)
            engine = make_engine(
                initial,
                knowledge_getter=services.knowledge_getter,
                recognition_repository=services.recognition_repository,
            )
            engine.update_settings(knowledge_config)

            assert await engine.on_subtitle_shown(make_line(0)) is False

        assert queried
        assert all(names == ["Core"] for names in queried)
        assert engine.last_assessment.score < 2.5
