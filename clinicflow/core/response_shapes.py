"""Known response bodies of the text-generation gateway.

The gateway is a third-party service and its schema drifts between versions,
so the body is matched against the shapes below in order. Anything that
matches none of them is kept as unstructured text.
"""
import json
from enum import Enum
from typing import Any
from pydantic import BaseModel


class ResponseShape(str, Enum):
    CANDIDATES = "candidates[0].content"
    OUTPUT = "output[0].content"
    OUTPUTS = "outputs[0].content[0].text"
    RAW_STRING = "raw_string"
    UNSTRUCTURED = "unstructured"
    EMPTY = "empty"


class ResolvedResponse(BaseModel):
    shape: ResponseShape
    text: str


def _content_text(content: Any) -> str:
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    # Gemini style: {"parts": [{"text": ...}, ...]}
    if isinstance(content, dict) and isinstance(content.get("parts"), list):
        return "".join(str(p.get("text", "")) for p in content["parts"] if isinstance(p, dict))
    return json.dumps(content)


def _first(body: Any, key: str) -> Any:
    items = body.get(key) if isinstance(body, dict) else None
    if isinstance(items, list) and items:
        return items[0]
    return None


def resolve_response_shape(body: Any) -> ResolvedResponse:
    if body is None or body == "":
        return ResolvedResponse(shape=ResponseShape.EMPTY, text="")

    candidate = _first(body, "candidates")
    if candidate is not None:
        content = candidate.get("content") if isinstance(candidate, dict) else candidate
        return ResolvedResponse(shape=ResponseShape.CANDIDATES, text=_content_text(content))

    output = _first(body, "output")
    if isinstance(output, dict) and output.get("content"):
        return ResolvedResponse(shape=ResponseShape.OUTPUT, text=_content_text(output["content"]))

    outputs = _first(body, "outputs")
    if isinstance(outputs, dict) and outputs.get("content"):
        content = outputs["content"]
        if isinstance(content, list) and content and isinstance(content[0], dict) and "text" in content[0]:
            return ResolvedResponse(shape=ResponseShape.OUTPUTS, text=_content_text(content[0]["text"]))
        return ResolvedResponse(shape=ResponseShape.OUTPUTS, text=_content_text(content))

    if isinstance(body, str):
        return ResolvedResponse(shape=ResponseShape.RAW_STRING, text=body)

    return ResolvedResponse(shape=ResponseShape.UNSTRUCTURED, text=json.dumps(body))
