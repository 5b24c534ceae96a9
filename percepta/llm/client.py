"""Shared helpers for handling LLM responses."""

import json


def parse_llm_json_response(raw_text: str) -> dict:
    """Parse a model reply that should be a single JSON object.

    The prompts ask for bare JSON, but Gemini still wraps replies in a
    ```json fence now and then. An opening fence line and a closing fence
    are dropped before parsing; anything else is parsed as-is.

    Raises:
        json.JSONDecodeError: If the remaining text is not JSON
        ValueError: If the JSON is valid but not an object
    """
    content = raw_text.strip()

    if content.startswith("```"):
        content = content.split("\n", 1)[1] if "\n" in content else content[3:]
    if content.endswith("```"):
        content = content[:-3]

    parsed = json.loads(content.strip())
    if not isinstance(parsed, dict):
        raise ValueError(f"Expected a JSON object, got {type(parsed).__name__}")
    return parsed
