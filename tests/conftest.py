from typing import List, Sequence, Tuple, Union

import pytest
from telegram.error import Forbidden

from house_tg.notifier import Notifier
from house_tg.stores import RecipientStore, SeenListingStore


class FakeBot:
    """Records send_message calls; chats in ``blocked`` raise Forbidden."""

    def __init__(self, blocked: Sequence[int] = ()) -> None:
        self.blocked = set(blocked)
        self.sent: List[Tuple[int, str]] = []

    async def send_message(self, chat_id: int, text: str, **kwargs) -> None:
        if chat_id in self.blocked:
            raise Forbidden("Forbidden: bot was blocked by the user")
        self.sent.append((chat_id, text))


class FakeFeed:
    """Returns queued snapshots in order; queued exceptions are raised."""

    def __init__(self, *snapshots: Union[List[int], Exception]) -> None:
        self.snapshots = list(snapshots)
        self.calls = 0

    async def fetch(self) -> List[int]:
        self.calls += 1
        result = self.snapshots.pop(0)
        if isinstance(result, Exception):
            raise result
        return list(result)


@pytest.fixture
def seen(tmp_path) -> SeenListingStore:
    return SeenListingStore(tmp_path / "houses.db")


@pytest.fixture
def recipients(tmp_path) -> RecipientStore:
    return RecipientStore(tmp_path / "chats.db")


@pytest.fixture
def bot() -> FakeBot:
    return FakeBot()


@pytest.fixture
def notifier(bot) -> Notifier:
    return Notifier(bot)
