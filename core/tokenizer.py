import tiktoken

TOKEN_ENCODING_NAME = "cl100k_base"

_encoding = None


def get_encoding():
    """Returns a singleton tiktoken encoding."""
    global _encoding
    if _encoding is None:
        _encoding = tiktoken.get_encoding(TOKEN_ENCODING_NAME)
    return _encoding


def calculate_tokens(text: str) -> int:
    """Calculates the number of tokens in a string, 0 if the encoder is unavailable."""
    if not text:
        return 0
    try:
        return len(get_encoding().encode(text, disallowed_special=()))
    except Exception as e:
        print(f"[TOKENS] ⚠️ Could not calculate tokens using '{TOKEN_ENCODING_NAME}': {e}")
        return 0
