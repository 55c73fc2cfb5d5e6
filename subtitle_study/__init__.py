"""
Subtitle Study - In-video study mode for Japanese subtitles

Interrupts subtitle playback with fill-in-the-blank tests built from the
current line, choosing lines and words from Anki deck knowledge and local
recognition history.
"""

__version__ = "1.0.0"
__author__ = "Subtitle Study Contributors"
