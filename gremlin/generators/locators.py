"""Element locator resolution shared by every generator.

Priority: test id, then accessibility label, then visible text (with a
role for buttons and links), then a structural selector (CSS, XPath),
then raw coordinates. Coordinates are flagged fragile.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..spec.refs import ElementKind, ElementRef


class LocatorStrategy(str, Enum):
    TEST_ID = "test_id"
    LABEL = "label"
    ROLE = "role"
    TEXT = "text"
    CSS = "css"
    XPATH = "xpath"
    COORDINATES = "coordinates"
    NONE = "none"


ROLE_KINDS = {
    ElementKind.BUTTON: "button",
    ElementKind.LINK: "link",
}


@dataclass(frozen=True)
class Locator:
    """The chosen way to find an element."""

    strategy: LocatorStrategy
    value: str = ""
    role: Optional[str] = None
    coordinates: Optional[tuple[float, float]] = None

    @property
    def fragile(self) -> bool:
        return self.strategy in (LocatorStrategy.COORDINATES, LocatorStrategy.NONE)

    @property
    def is_wildcard(self) -> bool:
        """Test ids like ``product-card-*`` match a family of elements."""
        return self.strategy == LocatorStrategy.TEST_ID and "*" in self.value


NO_LOCATOR = Locator(strategy=LocatorStrategy.NONE)


def resolve_locator(element: Optional[ElementRef], structural: bool = True) -> Locator:
    """Pick the most stable locator for an element reference.

    Args:
        element: Element to locate, or None for page-level events
        structural: Whether CSS/XPath selectors are usable by the target

    Returns:
        Locator describing the chosen strategy
    """
    if element is None:
        return NO_LOCATOR

    if element.test_id:
        return Locator(strategy=LocatorStrategy.TEST_ID, value=element.test_id)

    if element.accessibility_label:
        return Locator(strategy=LocatorStrategy.LABEL, value=element.accessibility_label)

    if element.text:
        role = ROLE_KINDS.get(element.type)
        if role:
            return Locator(strategy=LocatorStrategy.ROLE, value=element.text, role=role)
        return Locator(strategy=LocatorStrategy.TEXT, value=element.text)

    if structural:
        if element.css_selector:
            return Locator(strategy=LocatorStrategy.CSS, value=element.css_selector)
        if element.xpath:
            return Locator(strategy=LocatorStrategy.XPATH, value=element.xpath)

    if element.coordinates is not None:
        return Locator(strategy=LocatorStrategy.COORDINATES, coordinates=element.coordinates)

    return NO_LOCATOR
