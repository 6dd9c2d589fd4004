"""Interactive prompt helpers for the CLI."""


def parse_yes_no(answer: str) -> bool:
    """Parse a yes/no answer.

    Accepts common variants (y/yes, n/no), case- and whitespace-insensitive.
    """
    normalized = answer.strip().lower()
    if normalized in {"y", "yes"}:
        return True
    if normalized in {"n", "no"}:
        return False
    raise ValueError("Expected yes/no answer")


def prompt_yes_no(question: str) -> bool:
    """Prompt the user for a yes/no response until valid."""
    while True:
        answer = input(f"{question} (y/n) > ")
        try:
            return parse_yes_no(answer)
        except ValueError:
            print("Please answer with 'y'/'yes' or 'n'/'no'.")


def parse_feature(value: str) -> tuple[str, str]:
    """Split a ``TYPE:TEXT`` feature argument.

    A value without a type prefix is filed as ``other``.
    """
    kind, sep, text = value.partition(":")
    if not sep:
        return "other", value.strip()
    return kind.strip().lower() or "other", text.strip()
