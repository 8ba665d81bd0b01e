"""
Error taxonomy for the Harvest bridge.

Every failure surfaces through a single channel: a `HarvestBridgeError`
carrying a machine-readable code and a human-readable message. Nothing is
recovered internally; the host relays the code and message unchanged.

Error payload:
```json
{
  "error": {
    "code": "MISSING_REQUIRED_PARAMETER",
    "message": "A project_id is required for the 'Task Assignments' structure",
    "details": {"structure": "Task Assignments", "parameter": "project_id"}
  }
}
```
"""

from enum import Enum
from typing import Any, Dict, List, Optional


class HarvestErrorCode(str, Enum):
    """Kinds of error the bridge can report."""
    INVALID_STRUCTURE = "INVALID_STRUCTURE"
    DUPLICATE_PARAMETER = "DUPLICATE_PARAMETER"
    PARAMETER_RESOLUTION = "PARAMETER_RESOLUTION"
    MISSING_REQUIRED_PARAMETER = "MISSING_REQUIRED_PARAMETER"
    AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    MALFORMED_ENVELOPE = "MALFORMED_ENVELOPE"
    EMPTY_FIELD_DISCOVERY = "EMPTY_FIELD_DISCOVERY"


class HarvestBridgeError(Exception):
    """
    Base exception for every bridge failure.

    Usage:
        raise HarvestBridgeError(
            code=HarvestErrorCode.CONNECTION_ERROR,
            message="Unable to reach Harvest",
            details={"url": url},
        )
    """

    def __init__(
        self,
        code: HarvestErrorCode,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.code = code if isinstance(code, HarvestErrorCode) else HarvestErrorCode(code)
        self.message = message
        self.details = details
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Error in envelope form, suitable for JSON serialization."""
        return {
            "error": {
                "code": self.code.value,
                "message": self.message,
                "details": self.details,
            }
        }

    def to_tool_result(self) -> Dict[str, Any]:
        """Flat form returned by tool handlers."""
        result: Dict[str, Any] = {
            "error": self.code.value,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


# ============================================================================
# SPECIFIC ERRORS
# ============================================================================

class InvalidStructureError(HarvestBridgeError):
    """Raised when the requested structure is not one the bridge serves."""

    def __init__(self, structure: str, valid_structures: Optional[List[str]] = None):
        details: Dict[str, Any] = {"structure": structure}
        if valid_structures:
            details["valid_structures"] = valid_structures
        super().__init__(
            code=HarvestErrorCode.INVALID_STRUCTURE,
            message=f"Invalid Structure: '{structure}' is not a valid structure",
            details=details,
        )


class DuplicateParameterError(HarvestBridgeError):
    """Raised when a query names the same key twice."""

    def __init__(self, key: str):
        super().__init__(
            code=HarvestErrorCode.DUPLICATE_PARAMETER,
            message=f"A query can only contain one {key} parameter.",
            details={"parameter": key},
        )


class ParameterResolutionError(HarvestBridgeError):
    """Raised when a qualification references a parameter that was not bound."""

    def __init__(self, name: str):
        super().__init__(
            code=HarvestErrorCode.PARAMETER_RESOLUTION,
            message=f"Unable to resolve parameter '{name}': no value was supplied",
            details={"parameter": name},
        )


class MissingRequiredParameterError(HarvestBridgeError):
    """Raised when a path parameter needed to address the resource is absent."""

    def __init__(self, structure: str, missing: List[str], mode: str):
        names = " and ".join(missing)
        super().__init__(
            code=HarvestErrorCode.MISSING_REQUIRED_PARAMETER,
            message=f"A {names} is required to {mode} the '{structure}' structure",
            details={"structure": structure, "missing": missing, "mode": mode},
        )


class AuthenticationError(HarvestBridgeError):
    """Raised on a 401 from Harvest."""

    def __init__(self, url: str):
        super().__init__(
            code=HarvestErrorCode.AUTHENTICATION_ERROR,
            message="401 Access not valid. Check the Harvest username and password.",
            details={"url": url, "status_code": 401},
        )


class ResourceNotFoundError(HarvestBridgeError):
    """Raised on a 404 from Harvest."""

    def __init__(self, url: str):
        super().__init__(
            code=HarvestErrorCode.RESOURCE_NOT_FOUND,
            message=f"404 Page not found at {url}.",
            details={"url": url, "status_code": 404},
        )


class ServiceConnectionError(HarvestBridgeError):
    """Raised on a transport failure or any other non-2xx status."""

    def __init__(self, url: str, reason: str, status_code: Optional[int] = None):
        details: Dict[str, Any] = {"url": url}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(
            code=HarvestErrorCode.CONNECTION_ERROR,
            message=f"Unable to make a connection to Harvest: {reason}",
            details=details,
        )


class MalformedEnvelopeError(HarvestBridgeError):
    """Raised when a response body cannot be parsed or unwrapped."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            code=HarvestErrorCode.MALFORMED_ENVELOPE,
            message=message,
            details=details,
        )


class EmptyFieldDiscoveryError(HarvestBridgeError):
    """Raised when no fields were requested and the response offers none to infer."""

    def __init__(self, wrapper_key: Optional[str] = None):
        super().__init__(
            code=HarvestErrorCode.EMPTY_FIELD_DISCOVERY,
            message="No fields were requested and the response object has no fields to return",
            details={"wrapper_key": wrapper_key} if wrapper_key else None,
        )
