from collections.abc import Iterable

from bs4 import BeautifulSoup

from src.migration.domain.rules import ROOT_WRAPPER_ID

NON_CONTENT_TAGS = ("script", "style", "meta", "link", "noscript")
ALLOWED_ATTRIBUTES = frozenset(
    {
        "href",
        "src",
        "alt",
        "title",
        "colspan",
        "rowspan",
        "target",
        "rel",
        "width",
        "height",
        "aria-label",
        "aria-hidden",
        "name",
        "style",
    }
)


def strip_noise(
    soup: BeautifulSoup,
    keep_ids: bool = False,
    protected_ids: Iterable[str] = (),
) -> None:
    protected = set(protected_ids)

    for element in soup.find_all(NON_CONTENT_TAGS):
        if not element.decomposed:
            element.decompose()

    for element in soup.find_all(True):
        for name in list(element.attrs):
            if name == "id":
                value = str(element.attrs["id"])
                if value == ROOT_WRAPPER_ID or keep_ids or value in protected:
                    continue
                del element.attrs[name]
            elif name == "class" or name.startswith("data-"):
                del element.attrs[name]
            elif name not in ALLOWED_ATTRIBUTES:
                del element.attrs[name]
