"""
Tokenizer selection and token counting.

Models whose prompt format matches the o200k family are counted with that
encoding; every other model falls back to cl100k. This is an estimate, not a
per-model exact tokenization.
"""

from functools import lru_cache
from typing import Callable

import tiktoken

from ..models import TokenizerFamily

# Flat cost of one image input
IMAGE_TOKENS = 765

O200K_MODEL_PREFIXES = (
    "gpt-4o",
    "chatgpt-4o",
    "gpt-4.1",
    "gpt-4.5",
    "gpt-5",
    "o1",
    "o3",
    "o4",
)

TokenEncoder = Callable[[str], int]


def tokenizer_family(provider_id: str, model_id: str) -> TokenizerFamily:
    """Pick the tokenizer family for a provider/model pair."""
    model = model_id.lower()
    if provider_id == "openrouter" and model.startswith("openai/"):
        model = model.split("/", 1)[1]
    elif provider_id != "openai":
        return TokenizerFamily.CL100K

    if model.startswith(O200K_MODEL_PREFIXES):
        return TokenizerFamily.O200K
    return TokenizerFamily.CL100K


@lru_cache(maxsize=None)
def _load_encoding(name: str) -> "tiktoken.Encoding":
    return tiktoken.get_encoding(name)


def tiktoken_encoder(family: TokenizerFamily) -> TokenEncoder:
    """Token counter backed by a tiktoken encoding."""
    encoding = _load_encoding(family.value)
    return lambda text: len(encoding.encode(text, disallowed_special=()))


class TokenCounter:
    """
    Counts tokens per tokenizer family.

    Encoders may be injected; missing families are loaded from tiktoken on
    first use.
    """

    def __init__(self, encoders: dict[TokenizerFamily, TokenEncoder] | None = None):
        self._encoders: dict[TokenizerFamily, TokenEncoder] = dict(encoders or {})

    def count(self, text: str, family: TokenizerFamily) -> int:
        if not text:
            return 0
        encoder = self._encoders.get(family)
        if encoder is None:
            encoder = tiktoken_encoder(family)
            self._encoders[family] = encoder
        return encoder(text)
