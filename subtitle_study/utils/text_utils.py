"""Text processing utilities."""

import re


def clean_subtitle_text(text: str) -> str:
    """Remove formatting tags and clean up subtitle text.

    Args:
        text: Raw subtitle text with possible formatting tags

    Returns:
        Cleaned text without formatting tags
    """
    # Remove ASS/SSA style tags like {\pos(x,y)}, {\fad(100,200)}, etc.
    text = re.sub(r"\{[^}]*\}", "", text)

    # Remove line break tags
    text = re.sub(r"\\[nN]", " ", text)

    # Remove HTML tags if present
    text = re.sub(r"<[^>]+>", "", text)

    # Normalize whitespace
    text = " ".join(text.split())

    return text.strip()


def katakana_to_hiragana(text: str) -> str:
    """Convert katakana characters to hiragana.

    Tokenizers report readings in katakana while learners usually type
    hiragana, so readings are folded before comparison.

    Args:
        text: Text potentially containing katakana

    Returns:
        Text with katakana converted to hiragana
    """
    result = []
    for ch in text:
        if "ァ" <= ch <= "ヶ":
            result.append(chr(ord(ch) - 0x60))
        else:
            result.append(ch)
    return "".join(result)


def has_word_characters(text: str) -> bool:
    """Check whether text contains anything other than punctuation and whitespace.

    Args:
        text: Token surface text

    Returns:
        True if at least one kana, kanji, letter or digit is present
    """
    # The prolonged sound mark is a letter to Unicode but carries no word on its own
    return any(char.isalnum() and char != "ー" for char in text)
