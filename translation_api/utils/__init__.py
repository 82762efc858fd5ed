"""Shared utilities for the translation service routes."""

from translation_api.utils.auth import token_required
from translation_api.utils.validation import (
    get_json_body,
    pagination_args,
    parse_bool,
    parse_int,
    reject_unknown_params,
)

__all__ = [
    'token_required',
    'get_json_body',
    'pagination_args',
    'parse_bool',
    'parse_int',
    'reject_unknown_params',
]
