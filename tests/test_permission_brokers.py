from __future__ import annotations

from route_obstacles.domain.providers.permissions import Permission
from route_obstacles.infrastructure.providers.permission_brokers import (
    ConfiguredPermissionBroker,
    PromptPermissionBroker,
)


def test_configured_broker_grants_only_listed_permissions():
    broker = ConfiguredPermissionBroker([Permission.CAMERA])

    assert broker.request(Permission.CAMERA)
    assert not broker.request(Permission.LOCATION)
    assert not broker.request(Permission.MEDIA_LIBRARY)


def test_prompt_broker_asks_once_and_remembers():
    questions = []

    def ask(question):
        questions.append(question)
        return True

    broker = PromptPermissionBroker(ask)

    assert broker.request(Permission.LOCATION)
    assert broker.request(Permission.LOCATION)
    assert questions == [PromptPermissionBroker.PROMPTS[Permission.LOCATION]]


def test_prompt_broker_remembers_refusal():
    answers = iter([False, True])
    broker = PromptPermissionBroker(lambda question: next(answers))

    assert not broker.request(Permission.CAMERA)
    assert not broker.request(Permission.CAMERA)


def test_prompt_broker_skips_pre_granted_permissions():
    def ask(question):
        raise AssertionError("should not prompt")

    broker = PromptPermissionBroker(ask, granted=[Permission.MEDIA_LIBRARY])

    assert broker.request(Permission.MEDIA_LIBRARY)
