"""
Prompt resolution for work items.

An item's upload prompt overrides the model profile's default prompt, and
``{{columnName}}`` placeholders are filled from the item's metadata.
"""

from .config.settings import settings
from .models import ModelProfile, WorkItem


def interpolate(template: str | None, metadata: dict[str, str] | None) -> str:
    """
    Replace ``{{key}}`` placeholders with metadata values.

    Keys must match exactly; placeholders without a metadata entry are left
    as they are.
    """
    if not template:
        return ""
    if not metadata:
        return template

    result = template
    for key, value in metadata.items():
        result = result.replace("{{" + key + "}}", "" if value is None else str(value))
    return result


def effective_prompt(item: WorkItem, profile: ModelProfile | None = None) -> str:
    """Get the interpolated prompt used for one (item, profile) pair."""
    template = item.upload_prompt or (profile.default_prompt if profile else None)
    return interpolate(template, item.metadata)


def request_prompt(item: WorkItem, profile: ModelProfile | None = None) -> str:
    """Get the prompt actually sent, falling back to the default system prompt."""
    return effective_prompt(item, profile) or settings.default_system_prompt
