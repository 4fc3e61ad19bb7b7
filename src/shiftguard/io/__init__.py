"""JSON input for conflict evaluation."""

from shiftguard.io.loader import EvaluationRequest, InputError, load_request, parse_request

__all__ = [
    "EvaluationRequest",
    "InputError",
    "load_request",
    "parse_request",
]
