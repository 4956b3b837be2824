"""Deterministic spintax expansion.

A template such as ``"Great deal|Best price|Top offer"`` holds alternatives
separated by ``|``. Which alternatives an entry shows is chosen once, when
the entry is created, and stored as a list of indices under the same key in
``content_data``. Rendering concatenates the alternative at every stored
index and substitutes the result for ``{key}`` in the content.
"""

import random
from collections.abc import Mapping
from typing import Any

from seo_engine.modules.seo.models import SeoUrlEntry

SEPARATOR = "|"


def _apply_indices(template: str, indices: list[Any]) -> str:
    parts = template.split(SEPARATOR)
    result = ""
    for index in indices:
        if isinstance(index, bool) or not isinstance(index, int):
            continue
        if 0 <= index < len(parts):
            result += parts[index]
    return result


def process_spintax(
    content: str | None,
    content_templates: Mapping[str, str] | None,
    content_data: Mapping[str, Any] | None,
) -> str | None:
    """Expand ``{key}`` placeholders from the stored choices.

    Keys without a list of indices are left untouched, as are out-of-range
    or non-integer indices.
    """
    if not content or not content_templates:
        return content

    data = content_data or {}
    for key, template in content_templates.items():
        indices = data.get(key)
        if isinstance(indices, list):
            content = content.replace("{" + key + "}", _apply_indices(template, indices))

    return content


def render_entry_text(
    entry: SeoUrlEntry,
    content: str | None,
    content_data: Mapping[str, Any] | None = None,
) -> str | None:
    """Expand content with the entry's own templates and stored choices."""
    return process_spintax(
        content,
        entry.content_templates,
        content_data if content_data is not None else entry.content_data,
    )


def choose_spintax_indices(
    content_templates: Mapping[str, str],
    rng: random.Random | None = None,
) -> dict[str, list[int]]:
    """Pick one alternative per template, to be persisted as content_data."""
    rng = rng or random.Random()
    return {
        key: [rng.randrange(len(template.split(SEPARATOR)))]
        for key, template in content_templates.items()
    }
