# taskboard_client/confirmation.py — Typed confirmation before destructive actions
from dataclasses import dataclass


@dataclass
class DeleteConfirmation:
    """Enabled only once the typed text equals ``phrase`` (case-insensitive)."""
    phrase: str = "delete"
    typed: str = ""

    def type(self, text: str) -> bool:
        self.typed = text
        return self.enabled

    @property
    def enabled(self) -> bool:
        return matches(self.typed, self.phrase)


def matches(text: str, phrase: str = "delete") -> bool:
    return text.lower() == phrase.lower()
