"""Console presenter and study overlay for CLI output."""

import asyncio
from typing import Callable

from subtitle_study.interfaces import IntentHandler
from subtitle_study.models import (
    ContinueIntent,
    DismissIntent,
    InputChangeIntent,
    LineAssessment,
    RecognitionStats,
    ReplayIntent,
    StudyTestDisplayState,
    StudyStats,
    SubmitIntent,
    SubtitleLine,
)

REPLAY_COMMAND = "/r"
SKIP_COMMAND = "/s"


def render_cloze(state: StudyTestDisplayState) -> str:
    """Render a line with numbered blanks, or with graded answers once the result is in."""
    blank_numbers = {index: number for number, index in enumerate(state.blanked_indices, 1)}
    parts = []
    for i, token in enumerate(state.tokens):
        number = blank_numbers.get(i)
        if number is None:
            parts.append(token.text)
        elif state.showing_result and state.answer_results is not None:
            mark = "o" if state.answer_results[number - 1] else "x"
            parts.append(f"[{token.text} {mark}]")
        else:
            parts.append(f"[ {number} ]")
    return "".join(parts)


class ConsolePresenter:
    """Present output to console (CLI implementation)."""

    def show_info(self, message: str) -> None:
        """Display an informational message."""
        print(message)

    def show_success(self, message: str) -> None:
        """Display a success message."""
        print(f"[OK] {message}")

    def show_warning(self, message: str) -> None:
        """Display a warning message."""
        print(f"[WARN] {message}")

    def show_error(self, message: str) -> None:
        """Display an error message."""
        print(f"[ERROR] {message}")

    def show_subtitle(self, line: SubtitleLine) -> None:
        """Display a subtitle line as it plays."""
        print(f"  {line.start:7.2f}s  {line.text}")

    def show_line_assessment(self, assessment: LineAssessment) -> None:
        """Display the knowledge score of a line."""
        verdict = "test" if assessment.triggered else "skip"
        print(
            f"          score {assessment.score:.2f} / {assessment.threshold:.2f} "
            f"({assessment.token_count} tokens) -> {verdict}"
        )

    def show_session_summary(self, tested: int, passed: int, lines: int) -> None:
        """Display totals at the end of a study session."""
        print("\nSession Complete:")
        print(f"  Lines played: {lines}")
        print(f"  Lines tested: {tested}")
        print(f"  Passed: {passed}")

    def show_ranked_lines(self, lines: list[SubtitleLine], ranking: list[tuple[int, float]], limit: int) -> None:
        """Display lines ordered by study priority."""
        print(f"\nTop {min(limit, len(ranking))} lines by study priority:")
        print("=" * 60)
        for rank, (position, score) in enumerate(ranking[:limit], 1):
            line = lines[position]
            print(f"{rank:3d}. {score:5.2f}  {line.start:7.2f}s  {line.text}")

    def show_word_stats(self, study: StudyStats, recognition: RecognitionStats) -> None:
        """Display the study and recognition history of a word."""
        print(f"\nStats for {study.lemma}:")
        print(f"  Answers: {study.total_attempts} ({study.correct} correct, {study.incorrect} incorrect)")
        print(f"  Accuracy: {study.accuracy:.0%}")
        if study.last_studied:
            print(f"  Last studied: {study.last_studied:%Y-%m-%d %H:%M}")
        print(f"  Recognition streak: {recognition.consecutive_successes}")
        print(f"  Failure rate: {recognition.failure_rate:.0%}")


class ConsoleStudyOverlay:
    """Study overlay that renders tests in the terminal.

    Answers are read one blank at a time. Typing /r at a prompt replays the
    line, /s skips the test and leaves it unfinished.
    """

    def __init__(self, input_fn: Callable[[str], str] = input):
        """Initialize the overlay.

        Args:
            input_fn: Blocking line reader, run in a worker thread
        """
        self._input_fn = input_fn
        self._handler: IntentHandler | None = None
        self._state: StudyTestDisplayState | None = None
        self._visible = False

    @property
    def visible(self) -> bool:
        return self._visible

    def set_intent_handler(self, handler: IntentHandler | None) -> None:
        self._handler = handler

    def show(self, state: StudyTestDisplayState) -> None:
        self._state = state
        self._visible = True
        print("\n--- Study test ---")
        print(f"  {render_cloze(state)}")
        print(f"  Fill in {len(state.blanked_indices)} blank(s). {REPLAY_COMMAND} = replay, {SKIP_COMMAND} = skip")

    def update(self, state: StudyTestDisplayState) -> None:
        self._state = state
        if not state.showing_result:
            return
        print(f"  {render_cloze(state)}")
        for number, (token, answer) in enumerate(zip(state.blanked_tokens, state.user_answers), 1):
            correct = state.answer_results[number - 1] if state.answer_results else False
            status = "[OK]" if correct else "[MISS]"
            reading = f" ({token.reading})" if token.reading and token.reading != token.text else ""
            print(f"  {status} {number}. {answer} -> {token.text}{reading}")
        print("  Passed!" if state.result_correct else "  Not quite.")

    def hide(self) -> None:
        self._visible = False
        self._state = None

    async def _emit(self, intent) -> None:
        if self._handler is not None:
            await self._handler(intent)

    async def _read(self, prompt: str) -> str:
        return await asyncio.to_thread(self._input_fn, prompt)

    async def run_interaction(self) -> None:
        """Drive the visible test until the engine hides the overlay."""
        while self._visible and self._state is not None:
            if self._state.showing_result:
                await self._read("  Press Enter to continue ")
                await self._emit(ContinueIntent(passed=self._state.result_correct))
                continue

            answers = []
            for number in range(1, len(self._state.blanked_indices) + 1):
                answer = await self._prompt_blank(number)
                if answer is None:
                    return
                answers.append(answer)
                await self._emit(InputChangeIntent(index=number - 1, value=answer))

            if not self._visible:
                return
            await self._emit(SubmitIntent(answers=tuple(answers)))

    async def _prompt_blank(self, number: int) -> str | None:
        while True:
            answer = (await self._read(f"  [{number}] > ")).strip()
            if answer == REPLAY_COMMAND:
                await self._emit(ReplayIntent())
                continue
            if answer == SKIP_COMMAND:
                await self._emit(DismissIntent())
                return None
            if answer:
                return answer
