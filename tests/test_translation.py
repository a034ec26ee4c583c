import asyncio
import json
from types import SimpleNamespace

import pytest

from checkmenu.errors import EmptyTextError, TranslationFailed
from checkmenu.llm import (
    OpenRouterBackend,
    TranslationService,
    extract_translation,
    get_translation_service,
    set_translation_service,
    translate_text_openrouter,
)
from checkmenu.llm import service as service_module
from checkmenu.llm.client import check_model_health, load_model_choice
from checkmenu.llm.translate import _fill_prompt_template, build_translation_prompt


class FakeCompletions:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.requests = []

    def create(self, model, messages, timeout):
        self.requests.append({"model": model, "messages": messages, "timeout": timeout})
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def fake_client(content=None, error=None):
    completions = FakeCompletions(content, error)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions)), completions


class EchoBackend:
    def __init__(self):
        self.calls = []

    def translate(self, text):
        self.calls.append(text)
        return text.upper()


def test_service_rejects_empty_text_before_dispatch():
    backend = EchoBackend()
    service = TranslationService(backend)
    for text in ("", "   \n"):
        with pytest.raises(EmptyTextError):
            asyncio.run(service.translate(text))
    assert backend.calls == []


def test_service_runs_backend_and_returns_text():
    service = TranslationService(EchoBackend())
    assert asyncio.run(service.translate("bonjour")) == "BONJOUR"


def test_service_wraps_backend_errors():
    class Broken:
        def translate(self, text):
            raise ConnectionError("offline")

    with pytest.raises(TranslationFailed):
        asyncio.run(TranslationService(Broken()).translate("hola"))


def test_service_rejects_non_string_result():
    class Weird:
        def translate(self, text):
            return None

    with pytest.raises(TranslationFailed):
        asyncio.run(TranslationService(Weird()).translate("hola"))


def test_extract_translation_from_fenced_json():
    body = json.dumps({"total_lines": 2, "translated_lines": ["Onion soup", "Beef stew"]}, ensure_ascii=False)
    assert extract_translation(f"```json\n{body}\n```") == "Onion soup\nBeef stew"
    assert extract_translation("no json here") is None
    assert extract_translation('{"something": "else"}') is None


def test_fill_prompt_template_keeps_literal_braces():
    out = _fill_prompt_template("Return [{id: n}] for {source_text}", source_text="SOUPE")
    assert out == "Return [{id: n}] for SOUPE"


def test_build_translation_prompt_names_languages():
    prompt = build_translation_prompt("Soupe à l'oignon gratinée avec du fromage", "english")
    assert "english" in prompt
    assert "Soupe à l'oignon" in prompt


def test_translate_text_openrouter_parses_json_reply():
    client, completions = fake_client('{"total_lines": 1, "translated_lines": ["Onion soup"]}')
    out = translate_text_openrouter(client, "some/model", "Soupe à l'oignon", "english", timeout=5.0)
    assert out == "Onion soup"
    assert completions.requests[0]["model"] == "some/model"
    assert completions.requests[0]["timeout"] == 5.0


def test_translate_text_openrouter_falls_back_to_raw_reply():
    client, _ = fake_client("Onion soup")
    assert translate_text_openrouter(client, "m", "Soupe à l'oignon") == "Onion soup"


def test_translate_text_openrouter_failures():
    client, _ = fake_client(error=TimeoutError("slow"))
    with pytest.raises(TranslationFailed):
        translate_text_openrouter(client, "m", "Soupe")

    client, _ = fake_client(content=None)
    with pytest.raises(TranslationFailed):
        translate_text_openrouter(client, "m", "Soupe")

    with pytest.raises(EmptyTextError):
        translate_text_openrouter(client, "m", " ")


def test_openrouter_backend_uses_configured_target(tmp_path):
    client, completions = fake_client('{"translated_lines": ["Hallo"]}')
    backend = OpenRouterBackend(client=client, model="m", target_language="german", timeout=None)
    assert backend.translate("Hello there, how are you today?") == "Hallo"
    prompt = completions.requests[0]["messages"][0]["content"]
    assert "german" in prompt
    assert completions.requests[0]["timeout"] is None


def _write_models(path, picked, models):
    path.write_text(json.dumps({"model_number_picked": picked, "models": models}), encoding="utf-8")


def test_load_model_choice_picks_entry_and_endpoint(tmp_path):
    path = tmp_path / "models.json"
    _write_models(path, 1, [
        {"provider": "openrouter", "model": "a", "api_key": "k1"},
        {"provider": "OpenRouter", "model": "b", "api_key": "k2"},
    ])
    choice = load_model_choice(str(path))
    assert (choice.model, choice.api_key, choice.provider) == ("b", "k2", "openrouter")
    assert choice.base_url == "https://openrouter.ai/api/v1"
    assert "k2" not in repr(choice)

    _write_models(path, 0, [{"provider": "local", "model": "m", "api_key": "k", "base_url": "http://localhost:8000/v1"}])
    assert load_model_choice(str(path)).base_url == "http://localhost:8000/v1"


@pytest.mark.parametrize("picked, models", [
    (5, []),
    ("0", [{"model": "a", "api_key": "k"}]),
    (0, [{"model": "a"}]),
    (0, [{"provider": "nowhere", "model": "a", "api_key": "k"}]),
])
def test_load_model_choice_rejects_bad_config(tmp_path, picked, models):
    path = tmp_path / "models.json"
    _write_models(path, picked, models)
    with pytest.raises(ValueError):
        load_model_choice(str(path))


def test_check_model_health_sends_short_request():
    client, completions = fake_client("pong")
    check_model_health(client, "m", timeout=3.0)
    assert completions.requests[0]["timeout"] == 3.0
    assert completions.requests[0]["messages"][0]["content"] == "ping"

    client, _ = fake_client(error=ConnectionError("offline"))
    with pytest.raises(TranslationFailed):
        check_model_health(client, "m")


def test_backend_health_check_caps_timeout():
    client, completions = fake_client("pong")
    OpenRouterBackend(client=client, model="m", timeout=60.0).check_health()
    OpenRouterBackend(client=client, model="m", timeout=None).check_health()
    OpenRouterBackend(client=client, model="m", timeout=2.0).check_health()
    assert [r["timeout"] for r in completions.requests] == [10.0, 10.0, 2.0]


def test_shared_service_checks_model_when_asked(monkeypatch):
    from checkmenu.config import Settings

    client, completions = fake_client("pong")
    built = []

    def fake_backend(**kwargs):
        backend = OpenRouterBackend(client=client, model="m", **kwargs)
        built.append(backend)
        return backend

    monkeypatch.setattr(service_module, "load_settings", lambda: Settings(recognition_languages=("fr", "en")))
    monkeypatch.setattr(service_module, "OpenRouterBackend", fake_backend)
    set_translation_service(None)
    try:
        service = get_translation_service(check_health=True)
        assert service.backend is built[0]
        assert built[0].source_languages == ("fr", "en")
        assert len(completions.requests) == 1

        # already built: no second check
        assert get_translation_service(check_health=True) is service
        assert len(completions.requests) == 1
    finally:
        set_translation_service(None)


def test_failed_health_check_does_not_install_service(monkeypatch):
    from checkmenu.config import Settings

    client, completions = fake_client(error=ConnectionError("offline"))
    monkeypatch.setattr(service_module, "load_settings", lambda: Settings())
    monkeypatch.setattr(
        service_module, "OpenRouterBackend", lambda **kwargs: OpenRouterBackend(client=client, model="m", **kwargs)
    )
    set_translation_service(None)
    try:
        with pytest.raises(TranslationFailed):
            get_translation_service(check_health=True)
        completions.error = None
        completions.content = "pong"
        assert get_translation_service(check_health=True) is not None
        assert len(completions.requests) == 2
    finally:
        set_translation_service(None)


def test_prompt_names_only_configured_source_languages():
    text = "This is a simple English sentence about the soup of the day."
    assert "from english to german" in build_translation_prompt(text, "german", source_languages=["en", "fr"])
    assert "auto-detected source language" in build_translation_prompt(text, "german", source_languages=["ja"])


def test_shared_service_can_be_installed():
    service = TranslationService(EchoBackend())
    set_translation_service(service)
    try:
        assert get_translation_service() is service
        assert get_translation_service() is get_translation_service()
    finally:
        set_translation_service(None)
