import asyncio

from fake_session import fast_settings

from screen_pilot.agent.browser import BrowserSession, LiveElement
from screen_pilot.agent.dom_tree import HANDLE_ATTR


class FakeLocator:
    def __init__(self, page, selector: str):
        self.page = page
        self.selector = selector

    async def count(self):
        return self.page.counts.get(self.selector, 0)

    @property
    def first(self):
        return self


class FakePage:
    def __init__(self, counts=None, payload=None):
        self.counts = counts or {}
        self.payload = payload
        self.selectors: list[str] = []
        self.evaluations: list[tuple[str, object]] = []

    def locator(self, selector: str):
        self.selectors.append(selector)
        return FakeLocator(self, selector)

    async def evaluate(self, script, arg=None):
        self.evaluations.append((script, arg))
        return self.payload


def _session(page: FakePage) -> BrowserSession:
    session = BrowserSession(config=fast_settings())
    session.page = page
    return session


def test_element_matches_only_the_stamped_handle():
    stamped = f'[{HANDLE_ATTR}="3_7"]'
    cloned = f'[{HANDLE_ATTR}="3_8"]'
    page = FakePage(counts={stamped: 1, cloned: 2})
    session = _session(page)

    async def scenario():
        return (
            await session.element("3_7"),
            await session.element("3_8"),
            await session.element("3_9"),
        )

    found, duplicated, missing = asyncio.run(scenario())

    assert isinstance(found, LiveElement)
    assert duplicated is None
    assert missing is None
    assert page.selectors[0] == stamped
    assert not any(selector.startswith("xpath=") for selector in page.selectors)


def test_each_capture_stamps_a_new_generation():
    payload = {"tagName": "BODY", "box": {"width": 10, "height": 10}, "handle": "1_1", "children": []}
    page = FakePage(payload=payload)
    session = _session(page)

    async def scenario():
        await session.capture_dom_tree()
        return await session.capture_dom_tree()

    tree = asyncio.run(scenario())

    first, second = (arg for _, arg in page.evaluations)
    assert first["handleAttr"] == HANDLE_ATTR
    assert first["generation"] != second["generation"]
    assert tree.handle == "1_1"
