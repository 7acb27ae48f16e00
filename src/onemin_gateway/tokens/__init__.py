"""
Token counting module for onemin-gateway.
"""

from onemin_gateway.tokens.counter import (
    CharacterEstimator,
    TiktokenCounter,
    TokenCounter,
    counter_from_settings,
    get_token_counter,
)

__all__ = [
    "CharacterEstimator",
    "TiktokenCounter",
    "TokenCounter",
    "counter_from_settings",
    "get_token_counter",
]
