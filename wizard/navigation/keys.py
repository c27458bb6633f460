from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class WizardSessionKeys:
    """Namespaced session-state keys for one wizard instance."""

    wizard_id: str

    @property
    def prefix(self) -> str:
        return f"wiz:{self.wizard_id}:"

    def namespace(self, key: str) -> str:
        return f"{self.prefix}{key}"

    @property
    def navigation_state(self) -> str:
        return self.namespace("navigation_state")

    @property
    def record(self) -> str:
        return self.namespace("record")

    @property
    def field_errors(self) -> str:
        return self.namespace("field_errors")

    @property
    def image_store(self) -> str:
        return self.namespace("image_store")
