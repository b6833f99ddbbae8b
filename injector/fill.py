from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from common.errors import FieldNotFound
from common.schemas import GeneratedContent
from injector.document import Document
from injector.strategies import DESCRIPTION, TITLE, FieldTarget, locate

logger = logging.getLogger(__name__)


@dataclass
class InjectionResult:
    field: str
    success: bool
    strategy: Optional[str] = None
    error: Optional[str] = None


async def inject_field(document: Document, target: FieldTarget, value: str) -> InjectionResult:
    """Write ``value`` into one field and notify the page. Raises ``FieldNotFound``."""
    tier, element = await locate(document, target)
    await element.write(value)
    logger.info("%s filled successfully", target.name.capitalize())
    return InjectionResult(field=target.name, success=True, strategy=tier)


async def inject(document: Document, content: GeneratedContent) -> list[InjectionResult]:
    """Fill title and description independently; one missing field does not stop the other."""
    results = []
    for target, value in ((TITLE, content.title), (DESCRIPTION, content.description)):
        try:
            results.append(await inject_field(document, target, value))
        except FieldNotFound as exc:
            logger.error("%s", exc.message)
            results.append(InjectionResult(field=target.name, success=False, error=exc.message))
    return results
