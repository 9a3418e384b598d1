from typing import Any

from digitalme.core.constants import MAX_BATCH_CHARS, MAX_BATCH_MESSAGES, MAX_MESSAGE_CHARS


def validate_refine_request(body: Any) -> str | None:
    """
    Check a refinement request body.

    Returns:
        A message describing the first problem found, or None if the body is acceptable
    """
    if not isinstance(body, dict):
        return "Request body must be a JSON object"

    profile = body.get("currentProfile")
    if not isinstance(profile, dict):
        return "currentProfile is required and must be an object"
    if not isinstance(profile.get("writing"), dict):
        return "currentProfile.writing is required and must be an object"

    messages = body.get("newMessages")
    if not isinstance(messages, list):
        return "newMessages is required and must be an array"
    if not messages:
        return "newMessages must contain at least one message"
    if len(messages) > MAX_BATCH_MESSAGES:
        return f"newMessages cannot exceed {MAX_BATCH_MESSAGES} messages"

    total = 0
    for index, message in enumerate(messages):
        if not isinstance(message, str):
            return f"newMessages[{index}] must be a string"
        if len(message) > MAX_MESSAGE_CHARS:
            return f"newMessages[{index}] exceeds {MAX_MESSAGE_CHARS} characters"
        total += len(message)
    if total > MAX_BATCH_CHARS:
        return f"Total message length cannot exceed {MAX_BATCH_CHARS} characters"
    return None
