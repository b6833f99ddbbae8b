"""Minimal async view of a host page: CSS queries, reads, and notified writes.

Two backends share the protocol: ``HtmlDocument`` works on parsed HTML
(offline copies of a page, tests) and ``PlaywrightDocument`` drives a live
browser tab.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

from bs4 import BeautifulSoup, Tag

NOTIFY_EVENT = "input"

_VALUE_TAGS = ("input", "textarea")


class Element(Protocol):
    async def text(self) -> str: ...

    async def attribute(self, name: str) -> Optional[str]: ...

    async def write(self, value: str) -> None: ...


class Document(Protocol):
    async def select_one(self, selector: str) -> Optional[Element]: ...

    async def select_all(self, selector: str) -> list[Element]: ...


# --- Offline HTML backend ---

@dataclass
class DispatchedEvent:
    type: str
    target: Tag
    bubbles: bool = True


class HtmlElement:
    def __init__(self, tag: Tag, document: HtmlDocument) -> None:
        self.tag = tag
        self._document = document

    async def text(self) -> str:
        if self.tag.name in _VALUE_TAGS:
            return str(self.tag.get("value", "")) or self.tag.get_text()
        return self.tag.get_text(" ", strip=True)

    async def attribute(self, name: str) -> Optional[str]:
        value = self.tag.get(name)
        if isinstance(value, list):
            return " ".join(value)
        return value

    async def write(self, value: str) -> None:
        if self.tag.name == "input":
            self.tag["value"] = value
        else:
            self.tag.string = value
        self._document.events.append(DispatchedEvent(type=NOTIFY_EVENT, target=self.tag))

    def __eq__(self, other: object) -> bool:
        return isinstance(other, HtmlElement) and other.tag is self.tag

    def __hash__(self) -> int:
        return id(self.tag)


class HtmlDocument:
    def __init__(self, markup: str) -> None:
        self.soup = BeautifulSoup(markup, "html.parser")
        self.events: list[DispatchedEvent] = []

    async def select_one(self, selector: str) -> Optional[HtmlElement]:
        tag = self.soup.select_one(selector)
        return HtmlElement(tag, self) if tag is not None else None

    async def select_all(self, selector: str) -> list[HtmlElement]:
        return [HtmlElement(tag, self) for tag in self.soup.select(selector)]

    def render(self) -> str:
        return str(self.soup)


# --- Live browser backend ---

_WRITE_SCRIPT = """(el, value) => {
  if (el.tagName === 'INPUT' || el.tagName === 'TEXTAREA') {
    el.value = value;
  } else {
    el.textContent = value;
  }
  el.dispatchEvent(new Event('%s', { bubbles: true }));
}""" % NOTIFY_EVENT


class PlaywrightElement:
    def __init__(self, handle) -> None:
        self.handle = handle  # playwright.async_api.ElementHandle

    async def text(self) -> str:
        tag = await self.handle.evaluate("el => el.tagName.toLowerCase()")
        if tag in _VALUE_TAGS:
            return await self.handle.input_value()
        return await self.handle.inner_text()

    async def attribute(self, name: str) -> Optional[str]:
        return await self.handle.get_attribute(name)

    async def write(self, value: str) -> None:
        await self.handle.evaluate(_WRITE_SCRIPT, value)


class PlaywrightDocument:
    def __init__(self, page) -> None:
        self.page = page  # playwright.async_api.Page

    async def select_one(self, selector: str) -> Optional[PlaywrightElement]:
        handle = await self.page.query_selector(selector)
        return PlaywrightElement(handle) if handle is not None else None

    async def select_all(self, selector: str) -> list[PlaywrightElement]:
        return [PlaywrightElement(h) for h in await self.page.query_selector_all(selector)]
