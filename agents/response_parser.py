# agents/response_parser.py
"""
Normalisation of the gateway envelope.

An agent reply reaches us in one of two shapes:
  {"response": "<json string with a 'result' key>"}   string-encoded
  {"result": {...}}                                     direct object
Both collapse to the inner ``result`` dict here; nothing further inward
needs to know which shape arrived.
"""

import json
from typing import Any, Dict, Type, TypeVar

from pydantic import BaseModel, ValidationError

T = TypeVar("T", bound=BaseModel)


class InvalidResponseStructure(ValueError):
    def __init__(self, message: str = "Invalid response structure"):
        super().__init__(message)


def extract_result(envelope: Dict[str, Any]) -> Dict[str, Any]:
    if not isinstance(envelope, dict):
        raise InvalidResponseStructure()

    inner = envelope.get("response")
    if isinstance(inner, str):
        try:
            decoded = json.loads(inner)
        except json.JSONDecodeError as e:
            raise InvalidResponseStructure() from e
        result = decoded.get("result") if isinstance(decoded, dict) else None
    else:
        result = envelope.get("result")

    if not isinstance(result, dict):
        raise InvalidResponseStructure()
    return result


def parse_result(envelope: Dict[str, Any], model: Type[T]) -> T:
    """Extract the result and load it into ``model``."""
    result = extract_result(envelope)
    try:
        return model.model_validate(result)
    except ValidationError as e:
        raise InvalidResponseStructure() from e
