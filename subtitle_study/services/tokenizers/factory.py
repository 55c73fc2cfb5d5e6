"""Create tokenizer instances from configuration."""

from subtitle_study.exceptions import TokenizerUnavailableError
from subtitle_study.interfaces import Tokenizer
from subtitle_study.models import TokenizerType

from .fugashi_tokenizer import FugashiTokenizer


async def create_tokenizer(tokenizer_type: TokenizerType = TokenizerType.FUGASHI, **options) -> Tokenizer:
    """Create a ready-to-use tokenizer.

    Args:
        tokenizer_type: Backend to create
        **options: Backend-specific constructor arguments

    Returns:
        A tokenizer that reported itself ready

    Raises:
        TokenizerUnavailableError: If the backend fails to initialize
    """
    tokenizer_type = TokenizerType(tokenizer_type)

    if tokenizer_type is TokenizerType.FUGASHI:
        tokenizer = FugashiTokenizer(**options)
    else:
        raise TokenizerUnavailableError(f"Unsupported tokenizer backend: {tokenizer_type}")

    if not await tokenizer.is_ready():
        raise TokenizerUnavailableError(f"Failed to initialize {tokenizer_type.value} tokenizer")
    return tokenizer
