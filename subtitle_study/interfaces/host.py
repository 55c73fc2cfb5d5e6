"""Protocol for the video player hosting the study overlay."""

from typing import Protocol


class HostPlayer(Protocol):
    """Player capabilities consumed by the study mode engine."""

    @property
    def video_src(self) -> str:
        """Identity of the media currently loaded."""
        ...

    @property
    def current_time(self) -> float:
        """Playback position in seconds."""
        ...

    def play(self) -> None: ...

    def pause(self) -> None: ...

    def seek(self, seconds: float) -> None: ...

    def set_subtitles_hidden(self, hidden: bool) -> None:
        """Force-hide (or restore) normal subtitle rendering."""
        ...

    def set_overlays_hidden(self, hidden: bool) -> None:
        """Force-hide (or restore) other player overlays."""
        ...

    def notify(self, message_key: str) -> None:
        """Show a localized notification identified by message_key."""
        ...
