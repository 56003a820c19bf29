import json
import re
from typing import Any, Dict, List, Union, Optional

from callsheet_ai.utils.logging import get_logger

LOGGER = get_logger(__name__)

_FENCE_RE = re.compile(r"^```(?:json|JSON)?\s*|\s*```$")


def strip_code_fences(text: str) -> str:
    """Remove a surrounding markdown code block (```json ... ```)."""
    return _FENCE_RE.sub("", text.strip()).strip()


def parse_json_safely(text: str) -> Union[Dict[str, Any], List[Any], None]:
    """Parse JSON from text, handling common LLM formatting issues.

    Handles:
    - Markdown code blocks (```json ... ```)
    - Leading/trailing prose around a JSON object
    - Concatenated JSON objects (e.g., {...}\\n{...}), merged into one result

    Args:
        text: The text containing JSON

    Returns:
        Parsed JSON object or None if parsing fails
    """
    if not text:
        return None

    cleaned_text = strip_code_fences(text)

    try:
        return json.loads(cleaned_text)
    except json.JSONDecodeError as e:
        LOGGER.warning(f"Initial JSON parse failed: {e}, attempting repairs...")

    objects = _decode_all(cleaned_text)
    if objects:
        if len(objects) > 1:
            LOGGER.info(f"Parsed {len(objects)} concatenated JSON values, merging")
        return _merge_json_objects(objects)

    LOGGER.error("Failed to parse JSON from LLM response", extra={"preview": cleaned_text[:200]})
    return None


def _decode_all(text: str) -> List[Any]:
    """Decode every JSON object/array embedded in text, skipping prose between them."""
    decoder = json.JSONDecoder()
    results: List[Any] = []
    idx = 0

    while idx < len(text):
        starts = [pos for pos in (text.find("{", idx), text.find("[", idx)) if pos != -1]
        if not starts:
            break
        start = min(starts)
        try:
            obj, end_idx = decoder.raw_decode(text, start)
        except json.JSONDecodeError:
            idx = start + 1
            continue
        results.append(obj)
        idx = end_idx

    return results


def _merge_json_objects(objects: List[Any]) -> Union[Dict[str, Any], List[Any], None]:
    """Merge a list of parsed JSON values into a single result.

    Dicts are merged key by key (lists concatenated, nested dicts updated,
    later scalars win); lists are flattened; mixed input is returned as a list.
    """
    if not objects:
        return None

    if len(objects) == 1:
        return objects[0]

    if all(isinstance(obj, dict) for obj in objects):
        merged: Dict[str, Any] = {}
        for obj in objects:
            for key, value in obj.items():
                existing = merged.get(key)
                if isinstance(existing, list) and isinstance(value, list):
                    merged[key] = existing + value
                elif isinstance(existing, dict) and isinstance(value, dict):
                    merged[key] = {**existing, **value}
                else:
                    merged[key] = value
        return merged

    if all(isinstance(obj, list) for obj in objects):
        flattened: List[Any] = []
        for obj in objects:
            flattened.extend(obj)
        return flattened

    return objects


def parse_json_object(text: str) -> Optional[Dict[str, Any]]:
    """Parse text into a JSON object; a bare top-level array is wrapped as ``{"contacts": [...]}``."""
    parsed = parse_json_safely(text)
    if isinstance(parsed, dict):
        return parsed
    if isinstance(parsed, list):
        return {"contacts": parsed}
    return None
