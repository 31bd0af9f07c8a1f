from typing import List, Tuple

from fastapi import Request

FLASH_KEY = "_flashes"


def flash(request: Request, message: str, category: str = "info") -> None:
    """Queue a one-time message for the next rendered page."""
    messages = request.session.get(FLASH_KEY, [])
    messages.append([category, message])
    request.session[FLASH_KEY] = messages


def get_flashed_messages(request: Request) -> List[Tuple[str, str]]:
    return [tuple(item) for item in request.session.pop(FLASH_KEY, [])]
