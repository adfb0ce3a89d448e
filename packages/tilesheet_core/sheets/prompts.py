"""Operator interaction points used by the synchronizer."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable

CONFIRM_TOKEN = "continue"

InputFn = Callable[[str], str]


class ConfirmationProvider(ABC):
    @abstractmethod
    def confirm(self, prompt: str) -> bool:
        raise NotImplementedError


class ConsoleConfirmationProvider(ConfirmationProvider):
    """Blocks on stdin until the operator types the confirmation token."""

    def __init__(self, input_fn: InputFn = input, token: str = CONFIRM_TOKEN) -> None:
        self._input = input_fn
        self._token = token

    def confirm(self, prompt: str) -> bool:
        print(prompt)
        print(f'Type "{self._token}" to proceed, anything else aborts.')
        try:
            answer = self._input("> ")
        except EOFError:
            return False
        return answer.strip() == self._token


class StaticConfirmationProvider(ConfirmationProvider):
    """Answers every prompt the same way and remembers what it was asked."""

    def __init__(self, answer: bool) -> None:
        self.answer = answer
        self.prompts: list[str] = []

    def confirm(self, prompt: str) -> bool:
        self.prompts.append(prompt)
        return self.answer


SizesProvider = Callable[[str], list[int]]


def parse_sizes(text: str) -> list[int]:
    sizes: list[int] = []
    for chunk in text.replace(",", " ").split():
        value = int(chunk)
        if value < 1:
            raise ValueError(f"Sheet size must be positive: {value}")
        if value not in sizes:
            sizes.append(value)
    if not sizes:
        raise ValueError("At least one sheet size is required")
    return sizes


def console_sizes_provider(input_fn: InputFn = input) -> SizesProvider:
    def ask(namespace: str) -> list[int]:
        print(f"No tilesheet exists for {namespace}. Enter the sizes to create (e.g. 16 32):")
        while True:
            try:
                return parse_sizes(input_fn("> "))
            except ValueError as exc:
                print(f"Invalid sizes: {exc}")

    return ask
