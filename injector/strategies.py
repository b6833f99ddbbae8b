"""Cascading locators for the Studio title and description editors.

Each tier is a plain ``Document -> Element | None`` coroutine; ``locate``
tries them in order and the first hit wins.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from common.errors import FieldNotFound
from injector.document import Document, Element

logger = logging.getLogger(__name__)

Locator = Callable[[Document], Awaitable[Optional[Element]]]

EDITABLE_SELECTOR = '[contenteditable="true"], textarea, input[type="text"], input:not([type])'
LABEL_ATTRIBUTES = ("aria-label", "placeholder", "label", "title")


@dataclass(frozen=True)
class FieldTarget:
    name: str
    # exact path for the current Studio layout; breaks when the layout changes
    structural_path: str
    selectors: tuple[str, ...]
    keywords: tuple[str, ...]


TITLE = FieldTarget(
    name="title",
    structural_path=(
        '.input-container.title ytcp-social-suggestions-textbox[required] [contenteditable="true"]'
    ),
    selectors=(
        '#title-textarea [contenteditable="true"]',
        'ytcp-social-suggestions-textbox[label*="title" i] [contenteditable="true"]',
        '[contenteditable="true"][aria-label*="title" i]',
        'textarea[aria-label*="title" i]',
        'input[aria-label*="title" i]',
    ),
    keywords=("title",),
)

DESCRIPTION = FieldTarget(
    name="description",
    structural_path=(
        '.input-container.description ytcp-social-suggestions-textbox:not([required]) '
        '[contenteditable="true"]'
    ),
    selectors=(
        '#description-textarea [contenteditable="true"]',
        'ytcp-social-suggestions-textbox[label*="description" i] [contenteditable="true"]',
        '[contenteditable="true"][aria-label*="description" i]',
        '[contenteditable="true"][aria-label*="tell viewers" i]',
        'textarea[aria-label*="description" i]',
    ),
    keywords=("description", "tell viewers"),
)


def structural_path(target: FieldTarget) -> Locator:
    async def locate_by_path(document: Document) -> Optional[Element]:
        return await document.select_one(target.structural_path)

    return locate_by_path


def selector_set(target: FieldTarget) -> Locator:
    async def locate_by_selectors(document: Document) -> Optional[Element]:
        for selector in target.selectors:
            element = await document.select_one(selector)
            if element is not None:
                logger.debug("%s matched selector %s", target.name, selector)
                return element
        return None

    return locate_by_selectors


def keyword_scan(target: FieldTarget) -> Locator:
    async def locate_by_keyword(document: Document) -> Optional[Element]:
        candidates = await document.select_all(EDITABLE_SELECTOR)

        # labels first: visible text may be a previously written value
        for element in candidates:
            for name in LABEL_ATTRIBUTES:
                label = (await element.attribute(name) or "").lower()
                if any(keyword in label for keyword in target.keywords):
                    return element

        for element in candidates:
            text = (await element.text()).lower()
            if any(keyword in text for keyword in target.keywords):
                return element
        return None

    return locate_by_keyword


def strategies_for(target: FieldTarget) -> list[tuple[str, Locator]]:
    return [
        ("structural-path", structural_path(target)),
        ("selector-set", selector_set(target)),
        ("keyword-scan", keyword_scan(target)),
    ]


async def locate(document: Document, target: FieldTarget) -> tuple[str, Element]:
    """Return ``(tier_name, element)`` for the first tier that finds the field."""
    for tier, locator in strategies_for(target):
        element = await locator(document)
        if element is not None:
            logger.info("Located %s field via %s", target.name, tier)
            return tier, element
        logger.info("%s field: %s found nothing", target.name, tier)
    raise FieldNotFound(f"{target.name.capitalize()} field not found")
