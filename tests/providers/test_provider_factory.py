import pytest

from tasklink.providers.factory import create_provider, register
from tasklink.providers.todoist.provider import TodoistProvider
from tests.fakes.provider import FakeProvider


def test_create_provider_for_todoist() -> None:
    provider = create_provider("todoist", token="token", api_url="https://example.test/api/v1")

    assert isinstance(provider, TodoistProvider)


def test_create_provider_raises_for_unknown_provider() -> None:
    with pytest.raises(ValueError, match="Unknown provider: 'asana'. Available: todoist"):
        create_provider("asana", token="token")


def test_registered_provider_is_created_by_name(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("tasklink.providers.factory._REGISTRY", {"todoist": TodoistProvider})
    register("fake", FakeProvider)

    assert isinstance(create_provider("fake"), FakeProvider)
