"""Request context management for observability.

Context variables carry per-request identity across async boundaries so the
JSON log formatter can attach them to every record.
"""

from contextvars import ContextVar

# Request ID - unique per HTTP request
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

# Authenticated caller (asserted by the upstream auth layer)
user_id_var: ContextVar[str] = ContextVar("user_id", default="")

# Studio the caller is acting for, if any
studio_id_var: ContextVar[str] = ContextVar("studio_id", default="")
