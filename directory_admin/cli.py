"""Helpers shared by the scripts in ``scripts/``."""
import logging

from directory_admin.exceptions import OperationCancelled


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(level=level, format="%(message)s")


def confirm(phrase: str, prompt: str, input_fn=input) -> None:
    """Raise OperationCancelled unless the user types ``phrase`` exactly."""
    answer = input_fn(f'\n{prompt}\nType "{phrase}" to continue: ')
    if answer.strip() != phrase:
        raise OperationCancelled(f"{phrase.capitalize()} cancelled")


def parse_collections(value: str | None) -> list[str] | None:
    if not value:
        return None
    names = [name.strip() for name in value.split(",") if name.strip()]
    return names or None
