"""Domain entity representing a board member."""

from dataclasses import dataclass


@dataclass
class User:
    """Attributes of a user that the notification pipeline relies on."""

    id: str
    name: str | None
    email: str | None
    custom_name: str | None = None
    is_active: bool = True

    @property
    def display_name(self) -> str:
        """Return the name shown to other board members."""

        return self.custom_name or self.name or self.email or self.id
