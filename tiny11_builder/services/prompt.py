"""Operator prompts on the controlling terminal."""

from __future__ import annotations

from typing import Callable

from tiny11_builder.domain.models import WimInfo
from tiny11_builder.logging import get_logger
from tiny11_builder.storage.exceptions import InvalidImageIndexError

log = get_logger(source=__name__)

InputFunc = Callable[[str], str]


def parse_index(raw: str) -> int:
    """Parse an image index typed by the operator.

    Only plain decimal digits are accepted; surrounding whitespace is
    ignored the way a shell ``read`` strips it.

    Raises:
        InvalidImageIndexError: If the text is not a non-negative integer
    """
    value = raw.strip()
    if not value or not value.isascii() or not value.isdigit():
        raise InvalidImageIndexError(raw)
    return int(value)


class Prompter:
    """Blocking prompts. ``input_func`` defaults to :func:`input`."""

    def __init__(self, input_func: InputFunc = input):
        self.input_func = input_func

    def ask(self, message: str) -> str:
        return self.input_func(message)

    def ask_export_index(self) -> int:
        """Single prompt for the index to export from a compressed container.

        Raises:
            InvalidImageIndexError: If the answer is not a number
        """
        return parse_index(self.ask("Enter image index: "))

    def ask_image_index(self, info: WimInfo) -> int:
        """Prompt until the operator enters an index ``info`` contains."""
        while True:
            raw = self.ask("Enter image index to customize: ")
            try:
                index = parse_index(raw)
            except InvalidImageIndexError:
                log.error("Please enter a valid number")
                continue
            if info.contains(index):
                return index
            log.error(f"Index must be between 1 and {info.image_count}")
