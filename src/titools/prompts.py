from __future__ import annotations

from dataclasses import dataclass

import questionary


class Cancelled:
    """Outcome of a prompt the user aborted (Ctrl-C / Esc)."""

    _instance: "Cancelled | None" = None

    def __new__(cls) -> "Cancelled":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "CANCELLED"


CANCELLED = Cancelled()


@dataclass(frozen=True)
class Choice:
    title: str
    value: str
    checked: bool = False


def select_one(message: str, choices: list[Choice]) -> str | Cancelled:
    answer = questionary.select(
        message,
        choices=[questionary.Choice(title=c.title, value=c.value) for c in choices],
    ).ask()
    if answer is None:
        return CANCELLED
    return answer


def select_many(message: str, choices: list[Choice]) -> list[str] | Cancelled:
    answer = questionary.checkbox(
        message,
        choices=[questionary.Choice(title=c.title, value=c.value, checked=c.checked) for c in choices],
    ).ask()
    if answer is None:
        return CANCELLED
    return list(answer)
