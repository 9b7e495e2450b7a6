"""测试 CompanionAgent 的请求流水线。"""

import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from cheer_chat.agents.companion_agent import AgentConfig, CompanionAgent
from cheer_chat.domain.conversation import ConversationTurn
from cheer_chat.domain.exceptions import NetworkError, PersistenceError, StoreError, ValidationError
from cheer_chat.domain.models import GenerationResult
from cheer_chat.infrastructure.storage.sql_store import SqlConversationStore
from cheer_chat.prompts import build_prompt, load_system_prompt


class FakeProvider:
    """模拟的 Provider，记录收到的请求。"""
    name = "fake"

    def __init__(self, text="这是测试回复", error=None):
        self.text = text
        self.error = error
        self.requests = []

    def generate(self, req):
        self.requests.append(req)
        if self.error is not None:
            raise self.error
        return GenerationResult(provider="fake", model=req.model, generated_text=self.text, raw={})


class FakeStore:
    def __init__(self, turns=None, append_error=None, find_error=None):
        self.turns = list(turns or [])
        self.append_error = append_error
        self.find_error = find_error
        self.find_calls = []
        self.append_calls = []

    def find_recent(self, user_id, limit):
        self.find_calls.append((user_id, limit))
        if self.find_error is not None:
            raise self.find_error
        own = sorted((t for t in self.turns if t.user_id == user_id), key=lambda t: t.created_at, reverse=True)
        return own[:limit]

    def append(self, user_id, message, turn_id=None):
        self.append_calls.append((user_id, message, turn_id))
        if self.append_error is not None:
            raise self.append_error
        turn = ConversationTurn(
            id=turn_id or f"t{len(self.turns)}",
            user_id=user_id,
            message=message,
            created_at=datetime.now(timezone.utc),
        )
        self.turns.append(turn)
        return turn


CONFIG = AgentConfig(provider="huggingface", model="companion-chat", context_window=3)


def _agent(store, provider, config=CONFIG):
    return CompanionAgent(store=store, provider_client=provider, config=config)


@pytest.mark.parametrize("message", ["", "   ", "\n\t", None])
def test_empty_message_rejected_without_side_effects(message):
    store, provider = FakeStore(), FakeProvider()
    with pytest.raises(ValidationError) as err:
        _agent(store, provider).reply(user_id="u1", message=message)
    assert err.value.code == "MISSING_FIELDS"
    assert store.find_calls == []
    assert store.append_calls == []
    assert provider.requests == []


@pytest.mark.parametrize("user_id", [None, "", "  "])
def test_missing_user_id_rejected_without_side_effects(user_id):
    store, provider = FakeStore(), FakeProvider()
    with pytest.raises(ValidationError):
        _agent(store, provider).reply(user_id=user_id, message="hello")
    assert store.find_calls == []
    assert store.append_calls == []
    assert provider.requests == []


def test_first_turn_with_empty_context():
    store, provider = FakeStore(), FakeProvider(text="  Welcome. How are you feeling today?\n")
    reply = _agent(store, provider).reply(user_id="u1", message="hi")

    assert reply.text == "Welcome. How are you feeling today?"
    assert store.find_calls == [("u1", 3)]
    prompt = provider.requests[0].prompt
    assert prompt == build_prompt(load_system_prompt(), [], "hi")
    assert store.append_calls == [("u1", "hi", None)]


def test_only_recent_turns_in_prompt_oldest_first():
    base = datetime(2024, 5, 1, tzinfo=timezone.utc)
    turns = [
        ConversationTurn(id=f"t{i}", user_id="u1", message=f"turn-{i}", created_at=base + timedelta(minutes=i))
        for i in range(5)
    ]
    turns.append(ConversationTurn(id="x", user_id="u2", message="other-user", created_at=base + timedelta(hours=1)))
    store, provider = FakeStore(turns), FakeProvider()

    _agent(store, provider).reply(user_id="u1", message="now")

    prompt = provider.requests[0].prompt
    assert prompt == build_prompt(load_system_prompt(), ["turn-2", "turn-3", "turn-4"], "now")
    assert "turn-0" not in prompt
    assert "turn-1" not in prompt
    assert "other-user" not in prompt


def test_fixed_generation_params():
    store, provider = FakeStore(), FakeProvider()
    _agent(store, provider).reply(user_id="u1", message="hello")
    req = provider.requests[0]
    assert req.model == "companion-chat"
    assert req.params.max_new_tokens == 200
    assert req.params.return_full_text is False
    assert req.params.temperature == 0.7


def test_upstream_failure_skips_persistence():
    store = FakeStore()
    provider = FakeProvider(error=NetworkError(code="NETWORK_ERROR", message="connection refused"))
    with pytest.raises(NetworkError):
        _agent(store, provider).reply(user_id="u1", message="hello")
    assert store.find_calls == [("u1", 3)]
    assert store.append_calls == []


def test_context_fetch_failure_stops_request():
    store = FakeStore(find_error=StoreError(code="STORE_READ_ERROR", message="database is locked"))
    provider = FakeProvider()
    with pytest.raises(StoreError) as err:
        _agent(store, provider).reply(user_id="u1", message="hello")
    assert err.value.code == "STORE_READ_ERROR"
    assert store.find_calls == [("u1", 3)]
    assert provider.requests == []
    assert store.append_calls == []


def test_persistence_failure_after_reply():
    store = FakeStore(append_error=PersistenceError(code="STORE_WRITE_ERROR", message="disk full"))
    provider = FakeProvider(text="a reply that gets discarded")
    with pytest.raises(PersistenceError):
        _agent(store, provider).reply(user_id="u1", message="hello")
    assert len(provider.requests) == 1
    assert len(store.append_calls) == 1


def test_only_user_message_is_stored():
    store, provider = FakeStore(), FakeProvider(text="assistant words")
    reply = _agent(store, provider).reply(user_id="u1", message="  keep raw text ", turn_id="turn-9")
    assert reply.turn.message == "  keep raw text "
    assert reply.turn.id == "turn-9"
    assert [t.message for t in store.turns] == ["  keep raw text "]


def test_zero_context_window():
    store = FakeStore([ConversationTurn(id="t", user_id="u1", message="old", created_at=datetime.now(timezone.utc))])
    provider = FakeProvider()
    config = AgentConfig(provider="huggingface", model="companion-chat", context_window=0)
    _agent(store, provider, config).reply(user_id="u1", message="new")
    prompt = provider.requests[0].prompt
    assert "- old\n" not in prompt
    assert "(oldest first):\nnone\n" in prompt


def test_agent_with_sql_store_builds_context():
    """与真实 SQL 存储配合：第二轮的 prompt 包含第一轮的用户消息，但不包含助手回复。"""
    with tempfile.TemporaryDirectory() as d:
        store = SqlConversationStore(url=f"sqlite:///{Path(d) / 'chat.db'}")
        provider = FakeProvider(text="assistant reply")
        agent = _agent(store, provider)

        agent.reply(user_id="u1", message="I can't sleep")
        agent.reply(user_id="u1", message="still awake")

        second_prompt = provider.requests[1].prompt
        assert "- I can't sleep" in second_prompt
        assert "assistant reply" not in second_prompt
        assert [t.message for t in store.find_recent("u1", 5)] == ["still awake", "I can't sleep"]
        store.close()
