import pytest

from framework.llm.client import is_model_not_found_error
from framework.llm.model_cache import ModelSelectionCache
from framework.llm.model_selection import (
    ModelSelectingInvoker,
    ModelUnavailableError,
    select_best_model,
)


def test_select_best_model_prefers_flash():
    names = ["models/gemini-1.5-pro", "models/gemini-2.5-flash", "models/gemini-2.0-flash"]
    assert select_best_model(names) == "gemini-2.5-flash"


def test_select_best_model_falls_back_to_first():
    assert select_best_model(["publishers/google/models/gemini-pro"]) == "gemini-pro"
    assert select_best_model([]) is None
    assert select_best_model(["", "models/"]) is None


def test_is_model_not_found_error():
    assert is_model_not_found_error(RuntimeError("404 Model not found"))
    assert is_model_not_found_error(ValueError("model is not supported for generateContent"))
    assert not is_model_not_found_error(RuntimeError("503 Service Unavailable"))


def test_cache_starts_empty_and_overwrites():
    cache = ModelSelectionCache()
    assert cache.get() is None
    cache.set("a")
    cache.set("b")
    cache.set("")
    assert cache.get() == "b"
    cache.clear()
    assert cache.get() is None


def test_resolution_order(fake_client_cls):
    cache = ModelSelectionCache()
    invoker = ModelSelectingInvoker(fake_client_cls(), cache, default_model="gemini-2.0-flash")
    assert invoker.resolve_model_name() == "gemini-2.0-flash"

    cache.set("gemini-2.5-flash")
    assert invoker.resolve_model_name() == "gemini-2.5-flash"

    preferred = ModelSelectingInvoker(fake_client_cls(), cache, preferred_model="gemini-2.5-pro")
    assert preferred.resolve_model_name() == "gemini-2.5-pro"


def test_success_caches_model(fake_client_cls):
    client = fake_client_cls(responses=["{}"])
    cache = ModelSelectionCache()
    invoker = ModelSelectingInvoker(client, cache, default_model="gemini-2.0-flash")

    result = invoker.invoke("prompt")

    assert result.text == "{}"
    assert result.model_name == "gemini-2.0-flash"
    assert not result.used_fallback
    assert cache.get() == "gemini-2.0-flash"
    assert client.list_calls == 0


def test_missing_model_triggers_single_discovery(fake_client_cls):
    client = fake_client_cls(
        responses=["first", "second"],
        missing_models=["gemini-2.0-flash"],
        available_models=["models/gemini-2.0-flash", "models/gemini-1.5-pro", "models/gemini-2.5-flash"],
    )
    cache = ModelSelectionCache()
    invoker = ModelSelectingInvoker(client, cache, default_model="gemini-2.0-flash")

    first = invoker.invoke("prompt")
    second = invoker.invoke("prompt")

    assert first.used_fallback
    assert first.model_name == "gemini-2.5-flash"
    assert second.model_name == "gemini-2.5-flash"
    assert not second.used_fallback
    assert cache.get() == "gemini-2.5-flash"
    assert client.list_calls == 1
    assert [call["model_name"] for call in client.calls] == [
        "gemini-2.0-flash",
        "gemini-2.5-flash",
        "gemini-2.5-flash",
    ]


def test_no_candidates_raises_model_unavailable(fake_client_cls):
    client = fake_client_cls(missing_models=["gemini-2.0-flash"], available_models=[])
    cache = ModelSelectionCache()
    invoker = ModelSelectingInvoker(client, cache, default_model="gemini-2.0-flash")

    with pytest.raises(ModelUnavailableError):
        invoker.invoke("prompt")
    assert cache.get() is None


def test_failed_fallback_model_does_not_poison_cache(fake_client_cls):
    client = fake_client_cls(
        missing_models=["gemini-2.0-flash", "gemini-2.5-flash"],
        available_models=["models/gemini-2.5-flash"],
    )
    cache = ModelSelectionCache()
    invoker = ModelSelectingInvoker(client, cache, default_model="gemini-2.0-flash")

    with pytest.raises(ModelUnavailableError):
        invoker.invoke("prompt")
    assert cache.get() is None


def test_other_errors_propagate(fake_client_cls):
    client = fake_client_cls(responses=[RuntimeError("503 backend overloaded")])
    invoker = ModelSelectingInvoker(client, ModelSelectionCache())

    with pytest.raises(RuntimeError, match="503"):
        invoker.invoke("prompt")
    assert client.list_calls == 0
