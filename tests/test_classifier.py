import json

import httpx

from image_mixer.providers.base import ProviderNotConfigured, VendorError
from image_mixer.services.classifier import (
    FAL_PROFILE,
    GEMINI_PROFILE,
    OPENROUTER_PROFILE,
    ErrorClassifier,
    ErrorRule,
    SubstringMatcher,
    classify_finish_reason,
)
from image_mixer.services.errors import ErrorKind, error_payload

fal = ErrorClassifier(FAL_PROFILE)
chat = ErrorClassifier(OPENROUTER_PROFILE)


def test_fal_422_joins_structured_detail() -> None:
    exc = VendorError(
        "fal",
        422,
        body={
            "detail": [
                {"loc": ["body", "image_urls"], "msg": "field required", "type": "missing"},
                {"loc": ["body", "prompt"], "msg": "too short"},
            ]
        },
    )
    err = fal.classify_exception(exc)
    assert err.kind is ErrorKind.VALIDATION
    assert err.code == "FAL_VALIDATION_ERROR"
    assert err.http_status == 422
    assert err.retryable is False
    assert err.details == "body.image_urls - field required, body.prompt - too short"
    assert err.message == "Invalid request parameters for FAL AI"


def test_fal_422_without_list_uses_top_level_message() -> None:
    exc = VendorError("fal", 422, body={"message": "image_urls must not be empty"})
    err = fal.classify_exception(exc)
    assert err.message == "image_urls must not be empty"
    assert err.details == "image_urls must not be empty"


def test_chat_422_is_not_validation() -> None:
    err = chat.classify_exception(VendorError("openrouter", 422, body=None))
    assert err.kind is ErrorKind.UNKNOWN
    assert err.http_status == 422
    assert err.retryable is False


def test_status_table() -> None:
    cases = {
        401: (ErrorKind.AUTHENTICATION, 401, False),
        403: (ErrorKind.AUTHORIZATION, 403, False),
        429: (ErrorKind.RATE_LIMIT, 429, True),
        500: (ErrorKind.SERVER, 500, True),
        503: (ErrorKind.SERVER, 503, True),
    }
    for classifier in (fal, chat, ErrorClassifier(GEMINI_PROFILE)):
        for status, (kind, http_status, retryable) in cases.items():
            err = classifier.classify_exception(VendorError("x", status))
            assert (err.kind, err.http_status, err.retryable) == (kind, http_status, retryable)


def test_chat_429_keeps_vendor_code_and_message() -> None:
    exc = VendorError(
        "openrouter",
        429,
        body={"error": {"message": "Rate limit exceeded: free-models-per-day", "code": "rate_limited"}},
    )
    err = chat.classify_exception(exc)
    assert err.kind is ErrorKind.RATE_LIMIT
    assert err.code == "rate_limited"
    assert err.message == "Rate limit exceeded: free-models-per-day"
    assert err.retryable is True


def test_numeric_vendor_code_is_ignored() -> None:
    exc = VendorError("openrouter", 429, body={"error": {"message": "slow down", "code": 429}})
    assert chat.classify_exception(exc).code == "RATE_LIMIT"


def test_httpx_status_error_is_classified_by_status() -> None:
    request = httpx.Request("POST", "https://openrouter.ai/api/v1/chat/completions")
    response = httpx.Response(401, json={"error": {"message": "No auth"}}, request=request)
    exc = httpx.HTTPStatusError("401", request=request, response=response)
    err = chat.classify_exception(exc)
    assert err.kind is ErrorKind.AUTHENTICATION
    assert err.code == "UNAUTHORIZED"
    assert err.details == "No auth"


def test_status_beats_message_matching() -> None:
    exc = VendorError("openrouter", 500, message="upstream says: invalid API key")
    err = chat.classify_exception(exc)
    assert err.kind is ErrorKind.SERVER


def test_message_matching_without_status() -> None:
    auth = chat.classify_exception(ProviderNotConfigured("no OpenRouter API key configured"))
    assert (auth.kind, auth.code, auth.http_status, auth.retryable) == (
        ErrorKind.AUTHENTICATION,
        "INVALID_API_KEY",
        401,
        False,
    )

    net = chat.classify_exception(RuntimeError("socket hang up: ECONNRESET"))
    assert (net.kind, net.http_status, net.retryable) == (ErrorKind.NETWORK, 503, True)
    assert chat.classify_exception(RuntimeError("request timeout")).kind is ErrorKind.NETWORK

    rl = chat.classify_exception(RuntimeError("rate limit reached"))
    assert (rl.kind, rl.http_status, rl.retryable) == (ErrorKind.RATE_LIMIT, 429, True)


def test_httpx_transport_errors_are_network() -> None:
    request = httpx.Request("POST", "https://fal.run/fal-ai/nano-banana/edit")
    timeout = fal.classify_exception(httpx.ReadTimeout("timed out", request=request))
    assert (timeout.kind, timeout.code, timeout.http_status) == (
        ErrorKind.NETWORK,
        "NETWORK_TIMEOUT",
        503,
    )
    refused = fal.classify_exception(httpx.ConnectError("connection refused", request=request))
    assert refused.code == "NETWORK_ERROR"
    assert refused.retryable is True


def test_unknown_fallback() -> None:
    err = fal.classify_exception(RuntimeError("boom"))
    assert err.kind is ErrorKind.UNKNOWN
    assert err.code == "UNKNOWN_ERROR"
    assert err.http_status == 500
    assert err.retryable is True
    assert err.details == "boom"


def test_message_matcher_is_replaceable() -> None:
    matcher = SubstringMatcher(
        rules=((("quota",), ErrorRule(ErrorKind.RATE_LIMIT, "Quota", "QUOTA")),),
    )
    classifier = ErrorClassifier(OPENROUTER_PROFILE, matcher)
    assert classifier.classify_exception(RuntimeError("quota exhausted")).code == "QUOTA"
    # стандартные подстроки больше не действуют
    assert classifier.classify_exception(RuntimeError("bad API key")).kind is ErrorKind.UNKNOWN


def test_classification_is_idempotent() -> None:
    exc = VendorError("fal", 422, body={"detail": [{"loc": ["body"], "msg": "bad"}]})
    first = fal.classify_exception(exc)
    second = fal.classify_exception(exc)
    assert first == second
    assert json.dumps(error_payload(first)) == json.dumps(error_payload(second))


def test_finish_reason_stop_is_success() -> None:
    assert classify_finish_reason("stop") is None
    assert chat.inspect_result({"choices": [{"finish_reason": "stop"}]}) is None


def test_finish_reason_content_filter() -> None:
    err = classify_finish_reason("content_filter", "PROHIBITED_CONTENT")
    assert err.kind is ErrorKind.CONTENT_FILTER
    assert err.http_status == 422
    assert err.retryable is False
    assert err.message == "prohibited content"
    assert err.details == "Model finish reason: content_filter (PROHIBITED_CONTENT)"

    plain = classify_finish_reason("content_filter")
    assert plain.message == "content is prohibited"
    assert plain.details == "Model finish reason: content_filter"


def test_finish_reason_other_kinds() -> None:
    length = classify_finish_reason("length")
    assert (length.kind, length.http_status, length.retryable) == (ErrorKind.LENGTH_LIMIT, 500, True)
    for reason in ("function_call", "tool_calls"):
        assert classify_finish_reason(reason).kind is ErrorKind.TOOL_CALL
    weird = classify_finish_reason("error")
    assert weird.kind is ErrorKind.MODEL
    assert weird.title == "Processing Issue"
    assert classify_finish_reason(None).kind is ErrorKind.MODEL


def test_image_edit_vendor_has_no_finish_check() -> None:
    assert fal.inspect_result({"images": []}) is None


def test_non_string_native_finish_reason() -> None:
    body = {"choices": [{"finish_reason": "content_filter", "native_finish_reason": {"x": 1}}]}
    err = chat.inspect_result(body)
    assert err.kind is ErrorKind.CONTENT_FILTER
    assert err.message == "content is prohibited"
    assert err.details == "Model finish reason: content_filter"


def test_chat_200_with_error_body_keeps_vendor_message() -> None:
    body = {"error": {"message": "Provider returned error", "code": 502}}
    err = chat.inspect_result(body)
    assert err.kind is ErrorKind.MODEL
    assert err.code == "MODEL_ISSUE"
    assert err.details == "Provider returned error"

    # Без тела ошибки details остаётся прежним.
    assert chat.inspect_result({"choices": []}).details == "Model finish reason: None"
