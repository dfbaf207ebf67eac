from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


def is_xpath(selector: str) -> bool:
    """Candidates starting with '//' are absolute path expressions, everything else is CSS."""
    return selector.startswith("//")


class SelectorDescriptor(BaseModel):
    """Ranked ways to locate one element. The last candidate is always the positional XPath."""
    primary: str
    fallbacks: List[str] = Field(default_factory=list)

    @property
    def candidates(self) -> List[str]:
        return [self.primary, *self.fallbacks]


class PathSegment(BaseModel):
    """One level of the root-to-element path captured in the page."""
    model_config = ConfigDict(populate_by_name=True)

    tag: str
    id: Optional[str] = None
    id_resolves: bool = Field(default=False, alias="idResolves")
    index: int = 1  # 1-based position among same-tag siblings
    same_tag_count: int = Field(default=1, alias="sameTagCount")


class ElementSnapshot(BaseModel):
    """Identity facts about an element, extracted synchronously in the page.

    Match counts are computed against the live document at capture time so that
    uniqueness decisions do not depend on a later, possibly mutated, DOM.
    """
    model_config = ConfigDict(populate_by_name=True)

    tag: str
    id: Optional[str] = None
    id_resolves: bool = Field(default=False, alias="idResolves")
    test_id: Optional[str] = Field(default=None, alias="testId")
    test_id_matches: int = Field(default=0, alias="testIdMatches")
    data_id: Optional[str] = Field(default=None, alias="dataId")
    data_id_matches: int = Field(default=0, alias="dataIdMatches")
    classes: List[str] = Field(default_factory=list)
    class_matches: int = Field(default=0, alias="classMatches")
    text: str = ""
    input_type: Optional[str] = Field(default=None, alias="inputType")
    path: List[PathSegment] = Field(default_factory=list)
