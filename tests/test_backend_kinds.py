import pytest

from aiden_gateway.backend_kinds import (
    DEFAULT_TRANSLATOR,
    LlamaCppTranslator,
    OllamaTranslator,
    ResolvedParams,
    TextGenTranslator,
    resolve_params,
    translator_for,
)
from aiden_gateway.errors import UpstreamError
from aiden_gateway.models import GenerationDefaults, normalize_kind

PARAMS = ResolvedParams(max_tokens=64, temperature=0.2, top_p=0.5, timeout_ms=1000)


class TestResolveParams:
    def test_fallback_constants(self):
        params = resolve_params(None, None, timeout_ms=60000)

        assert params == ResolvedParams(max_tokens=1000, temperature=0.7, top_p=0.9, timeout_ms=60000)

    def test_entry_defaults_override_fallbacks(self):
        params = resolve_params(GenerationDefaults(), GenerationDefaults(max_tokens=4000, temperature=0.1))

        assert params.max_tokens == 4000
        assert params.temperature == 0.1
        assert params.top_p == 0.9

    def test_request_params_override_entry_defaults(self):
        params = resolve_params(
            GenerationDefaults(max_tokens=10, top_p=0.3, timeout_ms=250),
            GenerationDefaults(max_tokens=4000, top_p=0.8, timeout_ms=30000),
        )

        assert (params.max_tokens, params.top_p, params.timeout_ms) == (10, 0.3, 250)

    def test_explicit_zero_temperature_is_kept(self):
        params = resolve_params(GenerationDefaults(temperature=0.0), GenerationDefaults(temperature=0.9))

        assert params.temperature == 0.0


class TestKinds:
    @pytest.mark.parametrize(
        ("raw", "kind"),
        [
            ("ollama", "ollama"),
            ("Ollama-Like", "ollama"),
            ("llamacpp-like", "llamacpp"),
            ("llama.cpp", "llamacpp"),
            ("text-generation-webui", "textgen"),
            ("custom", "generic-http"),
            ("generic-http", "generic-http"),
        ],
    )
    def test_aliases(self, raw, kind):
        assert normalize_kind(raw) == kind

    def test_unknown_kind_rejected(self):
        with pytest.raises(ValueError):
            normalize_kind("vllm-cluster")

    def test_dispatch(self):
        assert isinstance(translator_for("ollama"), OllamaTranslator)
        assert isinstance(translator_for("llamacpp"), LlamaCppTranslator)
        assert isinstance(translator_for("textgen"), TextGenTranslator)
        assert translator_for("generic-http") is DEFAULT_TRANSLATOR
        assert translator_for("something-else") is DEFAULT_TRANSLATOR


class TestOllama:
    def test_request_shape(self):
        body = OllamaTranslator().build_request("llama2", "hi", PARAMS)

        assert body == {
            "model": "llama2",
            "prompt": "hi",
            "stream": False,
            "options": {"temperature": 0.2, "num_predict": 64, "top_p": 0.5},
        }

    def test_response_fields(self):
        parsed = OllamaTranslator().parse_response(
            {"model": "llama2", "response": "hello", "eval_count": 3, "total_duration": 2_500_000_000}
        )

        assert parsed.text == "hello"
        assert parsed.token_count == 3
        assert parsed.backend_duration_ms == 2500
        assert parsed.model == "llama2"

    def test_missing_response_is_upstream_error(self):
        with pytest.raises(UpstreamError):
            OllamaTranslator().parse_response({"error": "model not found"})


class TestLlamaCpp:
    def test_request_shape(self):
        body = LlamaCppTranslator().build_request("ignored", "hi", PARAMS)

        assert body == {"prompt": "hi", "n_predict": 64, "temperature": 0.2, "top_p": 0.5}

    def test_response_fields(self):
        parsed = LlamaCppTranslator().parse_response(
            {"content": "world", "tokens_predicted": 7, "timings": {"predicted_ms": 120.4}}
        )

        assert (parsed.text, parsed.token_count, parsed.backend_duration_ms) == ("world", 7, 120)


class TestTextGen:
    def test_paths(self):
        translator = TextGenTranslator()

        assert translator.generate_url("http://tg:5000") == "http://tg:5000/v1/completions"
        assert translator.health_url("http://tg:5000") == "http://tg:5000/v1/models"

    def test_response_fields(self):
        parsed = TextGenTranslator().parse_response(
            {"model": "mistral", "choices": [{"text": "ok"}], "usage": {"completion_tokens": 2}}
        )

        assert (parsed.text, parsed.token_count, parsed.model) == ("ok", 2, "mistral")

    def test_empty_choices_is_upstream_error(self):
        with pytest.raises(UpstreamError):
            TextGenTranslator().parse_response({"choices": []})


class TestGenericHttp:
    def test_request_shape(self):
        body = DEFAULT_TRANSLATOR.build_request("m", "hi", PARAMS)

        assert body == {"model": "m", "prompt": "hi", "max_tokens": 64, "temperature": 0.2, "top_p": 0.5}

    def test_model_omitted_when_blank(self):
        assert "model" not in DEFAULT_TRANSLATOR.build_request("", "hi", PARAMS)

    @pytest.mark.parametrize("field", ["text", "response", "content"])
    def test_text_field_fallbacks(self, field):
        parsed = DEFAULT_TRANSLATOR.parse_response({field: "out", "tokens": 5})

        assert parsed.text == "out"
        assert parsed.token_count == 5

    def test_bogus_token_count_dropped(self):
        parsed = DEFAULT_TRANSLATOR.parse_response({"text": "out", "tokens": "many"})

        assert parsed.token_count is None
