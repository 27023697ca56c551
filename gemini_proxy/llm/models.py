"""
Proxy Models

Inbound prompt request, outbound generateContent payload, and the
platform-neutral response returned by the handler.
"""

import json
from dataclasses import dataclass, field
from typing import Optional, Dict, List, Any, Union

from pydantic import BaseModel, ConfigDict, Field


JSON_HEADERS = {"Content-Type": "application/json"}


def parse_body(raw: Optional[Union[str, bytes, Dict[str, Any]]]) -> Dict[str, Any]:
    """
    Parse a request body into a dict.

    Hosts that hand over an already-decoded object are accepted as-is.
    Absent, empty, malformed, or non-object bodies all become {}.
    """
    if not raw:
        return {}
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError:
            return {}
    try:
        data = json.loads(raw)
    except (TypeError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


@dataclass
class PromptRequest:
    """A validated inbound request."""
    prompt: Optional[str] = None
    system_instruction: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PromptRequest":
        """Pick known fields, dropping anything that is not non-empty text."""
        prompt = data.get("prompt")
        system_instruction = data.get("systemInstruction")
        return cls(
            prompt=prompt if isinstance(prompt, str) and prompt else None,
            system_instruction=(
                system_instruction
                if isinstance(system_instruction, str) and system_instruction
                else None
            ),
        )


# =============================================================================
# Upstream payload
# =============================================================================

class Part(BaseModel):
    text: str


class Content(BaseModel):
    parts: List[Part]

    @classmethod
    def from_text(cls, text: str) -> "Content":
        return cls(parts=[Part(text=text)])


class GenerateContentRequest(BaseModel):
    """Body of a generateContent call."""
    model_config = ConfigDict(populate_by_name=True)

    contents: List[Content]
    system_instruction: Optional[Content] = Field(None, alias="systemInstruction")

    @classmethod
    def from_prompt(cls, request: PromptRequest) -> "GenerateContentRequest":
        return cls(
            contents=[Content.from_text(request.prompt)],
            system_instruction=(
                Content.from_text(request.system_instruction)
                if request.system_instruction
                else None
            ),
        )

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


# =============================================================================
# Handler response
# =============================================================================

@dataclass
class ProxyResponse:
    """Status, JSON body and headers handed back to the hosting platform."""
    status_code: int
    body: Any
    headers: Dict[str, str] = field(default_factory=lambda: dict(JSON_HEADERS))

    def to_json(self) -> str:
        return json.dumps(self.body, separators=(",", ":"), ensure_ascii=False)

    def to_event(self) -> Dict[str, Any]:
        """Serverless response shape: statusCode, string body, headers."""
        return {
            "statusCode": self.status_code,
            "body": self.to_json(),
            "headers": dict(self.headers),
        }
