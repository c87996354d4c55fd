from __future__ import annotations

import pytest

from codedoctor.ai.prompt_builder import DIAGNOSIS_SCHEMA, PromptBuildConfig
from codedoctor.domain.errors import AnalysisFailedError, EmptyInputError, EmptyResponseError, MissingCredentialError
from codedoctor.engine.diagnosis_pipeline import DiagnosisPipeline, RetryPolicy
from conftest import FakeGenerator, diagnosis_payload


def test_success_on_first_attempt(sleep) -> None:
    gen = FakeGenerator(diagnosis_payload())
    result = DiagnosisPipeline(gen, sleep=sleep).submit("x = 1")
    assert result.raw_error
    assert len(gen.calls) == 1
    assert sleep.delays == []


def test_request_carries_schema_instruction_and_temperature(sleep) -> None:
    gen = FakeGenerator(diagnosis_payload())
    DiagnosisPipeline(gen, temperature=0.4, sleep=sleep).submit("print(1)")
    prompt, system_instruction, schema, temperature = gen.calls[0]
    assert "print(1)" in prompt
    assert "Code Doctor" in system_instruction
    assert schema is DIAGNOSIS_SCHEMA
    assert temperature == 0.4


def test_code_is_sanitized_before_sending(sleep) -> None:
    gen = FakeGenerator(diagnosis_payload())
    DiagnosisPipeline(gen, sleep=sleep).submit("\u00a0 y\u00a0= 2  ")
    assert "y = 2" in gen.calls[0][0]
    assert "\u00a0" not in gen.calls[0][0]


@pytest.mark.parametrize("code", ["", "   ", "\n\t\n"])
def test_empty_input_never_calls_generator(code, sleep) -> None:
    gen = FakeGenerator(diagnosis_payload())
    with pytest.raises(EmptyInputError):
        DiagnosisPipeline(gen, sleep=sleep).submit(code)
    assert gen.calls == []


def test_backoff_delays_then_success(sleep) -> None:
    gen = FakeGenerator(
        ConnectionError("down"),
        EmptyResponseError("empty"),
        "not json",
        {"trace": []},
        diagnosis_payload(),
    )
    result = DiagnosisPipeline(gen, sleep=sleep).submit("x = 1")
    assert result.raw_error
    assert len(gen.calls) == 5
    assert sleep.delays == [1.0, 2.0, 4.0, 8.0]


def test_fails_after_exactly_five_attempts(sleep) -> None:
    gen = FakeGenerator(TimeoutError("slow"))
    with pytest.raises(AnalysisFailedError) as info:
        DiagnosisPipeline(gen, sleep=sleep).submit("x = 1")
    assert len(gen.calls) == 5
    assert info.value.attempts == 5
    assert sleep.delays == [1.0, 2.0, 4.0, 8.0]
    assert isinstance(info.value.__cause__, TimeoutError)


def test_malformed_json_uses_the_same_retry_path(sleep, capsys) -> None:
    gen = FakeGenerator("{broken")
    with pytest.raises(AnalysisFailedError):
        DiagnosisPipeline(gen, sleep=sleep).submit("x = 1")
    assert len(gen.calls) == 5
    assert "Risposta non valida" in capsys.readouterr().out


def test_missing_credential_is_not_retried(sleep) -> None:
    gen = FakeGenerator(MissingCredentialError("no key"))
    with pytest.raises(MissingCredentialError):
        DiagnosisPipeline(gen, sleep=sleep).submit("x = 1")
    assert len(gen.calls) == 1
    assert sleep.delays == []


def test_custom_retry_policy(sleep) -> None:
    gen = FakeGenerator(OSError("x"))
    policy = RetryPolicy(max_attempts=3, base_delay_ms=10)
    with pytest.raises(AnalysisFailedError):
        DiagnosisPipeline(gen, retry=policy, sleep=sleep).submit("x = 1")
    assert len(gen.calls) == 3
    assert sleep.delays == [0.01, 0.02]


def test_retry_policy_delays() -> None:
    policy = RetryPolicy()
    assert [policy.delay_ms(n) for n in range(1, 5)] == [1000, 2000, 4000, 8000]


def test_prompt_language_is_configurable(sleep) -> None:
    gen = FakeGenerator(diagnosis_payload())
    DiagnosisPipeline(gen, prompt_cfg=PromptBuildConfig(language="中文"), sleep=sleep).submit("x = 1")
    assert "中文" in gen.calls[0][0]
