"""Pytest configuration and shared fixtures."""

import pytest

from subtitle_study.config import StudyModeConfig
from subtitle_study.exceptions import TokenizerError
from subtitle_study.models import KnowledgeStatus, SubtitleLine, TokenPart
from subtitle_study.presenters import NullPresenter, NullStudyOverlay

SENTENCE = "私は学生です。"

# 私 / は / 学生 / です / 。  -> testable indices 0 and 2
SENTENCE_GROUPS = [
    [TokenPart(text="私", reading="ワタシ", pos="代名詞", basic_form="私")],
    [TokenPart(text="は", reading="ハ", pos="助詞", pos_detail="係助詞", basic_form="は")],
    [TokenPart(text="学生", reading="ガクセイ", pos="名詞", pos_detail="普通名詞", basic_form="学生")],
    [TokenPart(text="です", reading="デス", pos="助動詞", basic_form="です")],
    [TokenPart(text="。", reading="。", pos="補助記号", pos_detail="句点")],
]


class FakeTokenizer:
    """Tokenizer returning canned token groups per text.

    Unknown text is split into one noun token per character.
    """

    def __init__(self, responses=None, fail=False):
        self.responses = dict(responses or {})
        self.fail = fail
        self.calls = []
        self.disposed = False

    async def tokenize(self, text):
        self.calls.append(text)
        if self.fail:
            raise TokenizerError(f"Cannot tokenize {text!r}")
        if text in self.responses:
            return self.responses[text]
        return [[TokenPart(text=char, reading=char, pos="名詞")] for char in text]

    async def is_ready(self):
        return not self.fail

    def reset_cache(self):
        pass

    def dispose(self):
        self.disposed = True


class FakeHost:
    """Host player recording every call made by the engine."""

    def __init__(self, video_src="episode01.mkv"):
        self.video_src = video_src
        self.current_time = 0.0
        self.playing = True
        self.play_count = 0
        self.pause_count = 0
        self.seeks = []
        self.subtitles_hidden = False
        self.overlays_hidden = False
        self.notifications = []

    def play(self):
        self.playing = True
        self.play_count += 1

    def pause(self):
        self.playing = False
        self.pause_count += 1

    def seek(self, seconds):
        self.seeks.append(seconds)
        self.current_time = seconds

    def set_subtitles_hidden(self, hidden):
        self.subtitles_hidden = hidden

    def set_overlays_hidden(self, hidden):
        self.overlays_hidden = hidden

    def notify(self, message_key):
        self.notifications.append(message_key)


class FakeKnowledgeGetter:
    """Knowledge getter backed by a dict of candidate -> status."""

    def __init__(self, statuses=None, default=KnowledgeStatus.UNCOLLECTED):
        self.statuses = dict(statuses or {})
        self.default = default
        self.calls = []

    async def get(self, candidates):
        self.calls.append(list(candidates))
        for candidate in candidates:
            if candidate in self.statuses:
                return self.statuses[candidate]
        return self.default


class FakeClock:
    """Manually advanced seconds clock."""

    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def temp_dir(tmp_path):
    """Provide a temporary directory for test files."""
    return tmp_path


@pytest.fixture
def test_config(temp_dir):
    """Provide an enabled cadence configuration with temporary paths."""
    return StudyModeConfig(
        enabled=True,
        frequency=10,
        rate_limit_seconds=0.0,
        study_db_path=temp_dir / "study.db",
        playback_poll_interval=0.001,  # Fast polling for tests
    )


@pytest.fixture
def fake_tokenizer():
    """Provide a tokenizer that knows the sample sentence."""
    return FakeTokenizer({SENTENCE: SENTENCE_GROUPS})


@pytest.fixture
def fake_host():
    """Provide a recording host player."""
    return FakeHost()


@pytest.fixture
def fake_clock():
    """Provide a manually advanced clock."""
    return FakeClock()


@pytest.fixture
def overlay():
    """Provide a recording study overlay."""
    return NullStudyOverlay()


@pytest.fixture
def null_presenter():
    """Provide a null presenter for testing (no output)."""
    return NullPresenter()


@pytest.fixture
def make_line():
    """Factory fixture for subtitle lines two seconds apart."""

    def _make(index, text=SENTENCE):
        start = index * 2.0
        return SubtitleLine(text=text, start=start, end=start + 1.5, index=index)

    return _make


@pytest.fixture
def sentence_tokens():
    """Provide the flattened tokens of the sample sentence."""
    return [group[0] for group in SENTENCE_GROUPS]


@pytest.fixture
def make_tokenizer():
    """Factory fixture for FakeTokenizer instances."""
    return FakeTokenizer


@pytest.fixture
def make_knowledge_getter():
    """Factory fixture for FakeKnowledgeGetter instances."""
    return FakeKnowledgeGetter


@pytest.fixture
def sentence_groups():
    """Provide the tokenizer output for the sample sentence."""
    return SENTENCE_GROUPS
