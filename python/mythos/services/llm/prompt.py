"""Prompt-format translation for model calls.

Callers hand a ModelAdapter either a plain string or a structured message
list. Backends receive a single user turn:
- String prompts are used verbatim.
- Message lists contribute the text of their LAST user-role message.
  Content may be a string or a list of typed parts ({"type": "text", "text": ...}).
"""

from collections.abc import Sequence
from typing import Any, Union

from mythos.services.llm.errors import ValidationError
from mythos.services.llm.normalizer import message_text
from mythos.services.llm.types import Turn

PromptInput = Union[str, Sequence[Union[Turn, dict[str, Any]]]]


def extract_prompt_text(prompt: PromptInput) -> str:
    """Reduce a prompt input to the text sent upstream.

    Args:
        prompt: A string, or a list of Turn objects / {"role", "content"} dicts.

    Returns:
        The prompt text.

    Raises:
        ValidationError: If a message list contains no user message.
    """
    if isinstance(prompt, str):
        return prompt

    for message in reversed(list(prompt)):
        if isinstance(message, Turn):
            role, content = message.role, message.content
        elif isinstance(message, dict):
            role, content = message.get("role"), message.get("content")
        else:
            continue

        if role == "user":
            return message_text(content)

    raise ValidationError("Prompt contains no user message", field="prompt")


def to_user_turns(prompt_text: str) -> list[Turn]:
    """Wrap prompt text as the single-turn message list sent to backends."""
    return [Turn(role="user", content=prompt_text)]
