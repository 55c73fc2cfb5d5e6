"""Load subtitle files into indexed lines."""

from pathlib import Path

import pysubs2

from subtitle_study.exceptions import SubtitleLoadError
from subtitle_study.models import SubtitleLine
from subtitle_study.utils import clean_subtitle_text


class SubtitleLoader:
    """Parse subtitle files (.ass, .srt, .ssa, .vtt) into SubtitleLine objects."""

    def __init__(self, offset: float = 0.0):
        """Initialize the loader.

        Args:
            offset: Seconds to shift subtitles (+ later, - earlier)
        """
        self.offset = offset

    def load(self, subtitle_file: Path) -> list[SubtitleLine]:
        """Load a subtitle file.

        Lines that are empty after cleaning are skipped; the remaining lines
        are indexed 0..n-1 in file order.

        Raises:
            SubtitleLoadError: If the file is missing or cannot be parsed
        """
        try:
            subs = pysubs2.load(str(subtitle_file))
        except FileNotFoundError as e:
            raise SubtitleLoadError(f"Subtitle file not found: {subtitle_file}") from e
        except Exception as e:
            raise SubtitleLoadError(f"Failed to parse subtitle file: {e}") from e

        lines = []
        for event in subs:
            if getattr(event, "is_comment", False):
                continue
            text = clean_subtitle_text(event.text)
            if not text:
                continue

            start = max(0.0, (event.start / 1000.0) + self.offset)
            end = max(start, (event.end / 1000.0) + self.offset)
            lines.append(SubtitleLine(text=text, start=start, end=end, index=len(lines)))

        return lines
