"""Internal type definitions and type aliases for reverseproxy-auth."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, Union

# Configured header name -> raw request value (None when absent)
RawHeaders = dict[str, Union[str, None]]

# Identity key (alias or header name) -> extracted value
IdentityRecord = dict[str, str]

# verify(headers, identity, done): a plain function or a coroutine function
VerifyHook = Callable[..., Union[Awaitable[Any], None]]
