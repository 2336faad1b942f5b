"""
Error taxonomy for the LLM routing system.

Every error carries a short classification and a human-readable detail
string so that callers (and the HTTP layer) can surface failures as a
structured object.
"""

from typing import Dict, Any, Optional


class LLMRouterError(Exception):
    """Base exception for all routing and provider errors"""

    classification = "router_error"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail

    def to_dict(self) -> Dict[str, Any]:
        """Structured representation for API responses"""
        return {"error": self.classification, "detail": self.detail}


class ConfigurationError(LLMRouterError):
    """Raised when the system is not configured well enough to route"""

    classification = "configuration_error"


class NoProviderConfiguredError(ConfigurationError):
    """Raised when no provider has a credential configured"""

    def __init__(self, detail: str = "No AI providers configured. Please add API keys."):
        super().__init__(detail)


class ProviderError(LLMRouterError):
    """Raised when a vendor API returns a non-success response"""

    classification = "provider_error"

    def __init__(
        self,
        detail: str,
        provider: str,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
    ):
        super().__init__(detail)
        self.provider = provider
        self.status_code = status_code
        self.error_code = error_code

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["provider"] = self.provider
        if self.status_code is not None:
            data["status_code"] = self.status_code
        return data


class RateLimitError(ProviderError):
    """Raised when rate limits are exceeded"""

    classification = "rate_limited"


class AuthenticationError(ProviderError):
    """Raised when authentication fails"""

    classification = "authentication_failed"


class ModelNotFoundError(ProviderError):
    """Raised when requested model is not available"""

    classification = "model_not_found"


class ResponseParseError(LLMRouterError):
    """Raised when a vendor payload cannot be normalized"""

    classification = "response_parse_error"

    def __init__(self, detail: str, provider: Optional[str] = None):
        super().__init__(detail)
        self.provider = provider


class DecodeError(LLMRouterError):
    """Raised when a generated or persisted document cannot be decoded"""

    classification = "decode_error"


def provider_error_for_status(status_code: int, detail: str, provider: str) -> ProviderError:
    """
    Map a vendor HTTP status onto the matching ProviderError subclass.

    Args:
        status_code: HTTP status returned by the vendor
        detail: Error message including the vendor's raw error text
        provider: Provider tag

    Returns:
        ProviderError: Standardized error
    """
    if status_code == 429:
        return RateLimitError(detail, provider, status_code=status_code)
    if status_code in (401, 403):
        return AuthenticationError(detail, provider, status_code=status_code)
    if status_code == 404:
        return ModelNotFoundError(detail, provider, status_code=status_code)
    return ProviderError(detail, provider, status_code=status_code)
