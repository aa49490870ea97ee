"""Per-connection session state."""

from dataclasses import dataclass
from typing import Any


@dataclass
class SessionState:
    """The project a caller has selected and the credentials obtained for it.

    Both fields change together: ``select`` sets them, ``reset`` clears them.
    Each connection owns one instance and hands it to the dispatcher on
    every call.
    """

    selected_project_id: str | None = None
    credentials: Any = None

    @property
    def has_selection(self) -> bool:
        return self.selected_project_id is not None

    def select(self, project_id: str, credentials: Any) -> None:
        self.selected_project_id = project_id
        self.credentials = credentials

    def reset(self) -> None:
        self.selected_project_id = None
        self.credentials = None
