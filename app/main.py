"""
HTTP entry point for the Personal Finance Tracker.

Run locally with:

    uvicorn app.main:app --reload

or `python -m app.main`. Collaborators (storage backend, assistant) are
chosen from the environment; see `finance_tracker.config`.
"""

import structlog
import uvicorn

from finance_tracker.api import create_app
from finance_tracker.config import get_settings, validate_all_settings


logger = structlog.get_logger()


def build_app():
    checks = validate_all_settings()
    for section, error in checks.items():
        if section.endswith("_error"):
            logger.warning("settings_section_invalid", section=section[:-6], error=error)
    return create_app()


app = build_app()


if __name__ == "__main__":
    settings = get_settings().app
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug_mode,
    )
