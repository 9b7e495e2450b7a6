import pytest

from cheer_chat.providers import create_provider
from cheer_chat.providers.huggingface_client import HuggingFaceClient
from cheer_chat.providers.registry import get_model_config, get_provider_config


def test_create_provider_default(monkeypatch):
    class DummySettings:
        default_provider = "huggingface"
        huggingface_token = "hf_dummy_token"
        http_timeout = 1.0
        hf_base_url = "https://router.huggingface.co/hf-inference"

    monkeypatch.setattr("cheer_chat.providers.settings", DummySettings())
    provider = create_provider()
    assert isinstance(provider, HuggingFaceClient)


def test_create_provider_unknown():
    with pytest.raises(KeyError):
        create_provider("nope")


def test_registry_fixed_params():
    assert get_provider_config("HuggingFace").name == "huggingface"
    cfg = get_model_config("huggingface", "companion-chat")
    assert cfg.provider_model == "HuggingFaceH4/zephyr-7b-beta"
    assert cfg.params.max_new_tokens == 200
    assert cfg.params.return_full_text is False
    assert cfg.params.temperature == 0.7
    with pytest.raises(KeyError):
        get_model_config("huggingface", "unknown-model")
