from __future__ import annotations


class LLMError(Exception):
    """Base error for LLM-related failures."""


class LLMProviderError(LLMError):
    """The configured provider is unknown or misconfigured."""


class SummaryValidationError(LLMError):
    """The model output was not JSON or did not match the issue schema."""

    def __init__(self, message: str, raw: str = "") -> None:
        super().__init__(message)
        self.raw = raw


def parse_error_message(error: Exception) -> str:
    """
    Map raw exceptions into short, human-readable messages.
    Used for owner notifications and logs.
    """
    s, t = str(error), type(error).__name__
    if isinstance(error, SummaryValidationError):
        return f"❌ Invalid model output: {s.split(chr(10))[0][:100]}"
    if "429" in s or t == "RateLimitError":
        return "⚠️ Rate Limited: API provider is temporarily rate-limited. Please retry shortly."
    if "401" in s or "Unauthorized" in s:
        return "❌ Authentication Error: Invalid API key or credentials."
    if "404" in s or t == "NotFound":
        return "❌ Not Found: The requested resource was not found."
    if "403" in s or t == "Forbidden":
        return "❌ Forbidden: You don't have permission to access this resource."
    if "Connection" in t or "ECONNREFUSED" in s or "ETIMEDOUT" in s:
        return "❌ Connection Error: Unable to connect to the API provider."
    return f"❌ {t}: {s.split(chr(10))[0][:100]}"
