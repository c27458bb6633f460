"""Navigation helpers for the Streamlit wizard."""

from __future__ import annotations

from wizard.navigation.router import NavigationResult, WizardController, WizardSnapshot
from wizard.navigation.ui import (
    inject_navigation_style,
    maybe_scroll_to_top,
    render_image_slots,
    render_navigation,
    render_step_header,
    render_validation_warnings,
)

__all__ = [
    "NavigationResult",
    "WizardController",
    "WizardSnapshot",
    "inject_navigation_style",
    "maybe_scroll_to_top",
    "render_image_slots",
    "render_navigation",
    "render_step_header",
    "render_validation_warnings",
]
