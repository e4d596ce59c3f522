"""Secret redaction for adapter error strings.

httpx error messages embed the request URL, and Apify tokens travel as a
query parameter, so anything reported back to callers or logged goes
through ``redact_secrets`` first.
"""

import re

REDACTED = "[REDACTED]"

_PATTERNS = (
    # ?token=...&api_key=... style query parameters
    (re.compile(r"\b((?:access_)?token|api_?key|key|secret|password)=[^&\s'\"]+", re.IGNORECASE), rf"\1={REDACTED}"),
    # user:password@host in URLs
    (re.compile(r"(https?://)[^/\s:@]+:[^/\s@]+@", re.IGNORECASE), rf"\1{REDACTED}@"),
    # Authorization headers echoed into messages
    (re.compile(r"\b(Bearer)\s+[A-Za-z0-9._~+/=-]+", re.IGNORECASE), rf"\1 {REDACTED}"),
)


def redact_secrets(text: str) -> str:
    if not text:
        return text
    for pattern, replacement in _PATTERNS:
        text = pattern.sub(replacement, text)
    return text
