"""Selector resolution — maps a SelectorSpec onto a Playwright locator."""

from __future__ import annotations

import logging

from playwright.async_api import Locator, Page

from screenboard.models.config import (
    CssSelector,
    RoleSelector,
    SelectorSpec,
    TestIdSelector,
    TextSelector,
)

logger = logging.getLogger(__name__)


def locator_for(page: Page, selector: SelectorSpec) -> Locator:
    """Build a lazy locator for a selector spec.

    No DOM lookup happens until an action (count, click, fill, press,
    wait_for) is invoked on the returned locator.
    """
    match selector:
        case TestIdSelector(test_id=test_id):
            return page.get_by_test_id(test_id)
        case RoleSelector(role=role, name=name):
            if name:
                return page.get_by_role(role, name=name)
            return page.get_by_role(role)
        case TextSelector(text=text):
            return page.get_by_text(text)
        case CssSelector(css=css):
            return page.locator(css)
        case _:
            raise TypeError(f"Unsupported selector spec: {selector!r}")


async def count_matches(page: Page, selector: SelectorSpec) -> int:
    """Count elements matched by a selector without acting on them."""
    count = await locator_for(page, selector).count()
    logger.debug("Selector %s matched %d element(s)", selector.to_json_dict(), count)
    return count
