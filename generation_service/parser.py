from __future__ import annotations

import re

from common.schemas import GeneratedContent

TITLE_MARKER = "Title:"
DESCRIPTION_MARKER = "Description:"

# first "Title:" followed somewhere later by "Description:"
_MARKED = re.compile(
    re.escape(TITLE_MARKER) + r"(.*?)" + re.escape(DESCRIPTION_MARKER) + r"(.*)\Z",
    re.DOTALL,
)


def parse(raw: str) -> GeneratedContent:
    """Split generated text into title and description. Never raises."""
    if not raw:
        return GeneratedContent()

    match = _MARKED.search(raw)
    if match:
        return GeneratedContent(title=match.group(1).strip(), description=match.group(2).strip())

    first, _, rest = raw.partition("\n")
    return GeneratedContent(title=first.strip(), description=rest.strip())
