"""Выбор провайдера по идентификатору модели (упорядоченные правила, первое совпадение)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Sequence

from image_mixer.providers.base import ProviderClient, ProviderResult
from image_mixer.providers.factory import VendorClients
from image_mixer.services.classifier import (
    DEFAULT_MESSAGE_MATCHER,
    FAL_PROFILE,
    GEMINI_PROFILE,
    OPENROUTER_PROFILE,
    ErrorClassifier,
    MessageMatcher,
)
from image_mixer.services.envelope import SuccessData
from image_mixer.services.normalizer import (
    normalize_chat_completion,
    normalize_image_edit,
    normalize_text_generation,
)
from image_mixer.services.validation import RequestInput

Normalizer = Callable[[ProviderResult, RequestInput, str], SuccessData]


@dataclass(frozen=True)
class Route:
    """Провайдер + нормализатор успеха + классификатор ошибок.

    `vendor_model` задаёт модель, которая реально уходит провайдеру; `model_id`
    клиента тогда служит только для выбора маршрута.
    """

    provider: ProviderClient
    normalize: Normalizer
    classifier: ErrorClassifier
    vendor_model: str | None = None

    @property
    def provider_id(self) -> str:
        return self.provider.name


@dataclass(frozen=True)
class RouteRule:
    name: str
    matches: Callable[[str], bool]
    route: Route


class UnknownModel(LookupError):
    def __init__(self, model_id: str) -> None:
        self.model_id = model_id
        super().__init__(f"Unknown model: {model_id}")


def is_image_edit_model(model_id: str) -> bool:
    return model_id.startswith("fal-ai/")


def is_chat_model(model_id: str) -> bool:
    return "google/gemini" in model_id or "openrouter" in model_id


class DispatchRouter:
    """Новый провайдер добавляется ещё одним правилом в конец списка."""

    def __init__(self, rules: Sequence[RouteRule], text_route: Route | None = None) -> None:
        self._rules = tuple(rules)
        self.text_route = text_route

    @property
    def rules(self) -> tuple[RouteRule, ...]:
        return self._rules

    def resolve(self, model_id: str) -> Route | None:
        for rule in self._rules:
            if rule.matches(model_id):
                return rule.route
        return None

    def is_known(self, model_id: str) -> bool:
        return self.resolve(model_id) is not None

    def dispatch(self, model_id: str) -> Route:
        route = self.resolve(model_id)
        if route is None:
            raise UnknownModel(model_id)
        return route

    def route_for(self, provider_id: str) -> Route:
        """Маршрут по имени провайдера (для эндпоинтов с фиксированной моделью)."""
        for rule in self._rules:
            if rule.route.provider_id == provider_id:
                return rule.route
        if self.text_route is not None and self.text_route.provider_id == provider_id:
            return self.text_route
        raise LookupError(f"No route for provider: {provider_id}")


def build_router(
    clients: VendorClients,
    matcher: MessageMatcher = DEFAULT_MESSAGE_MATCHER,
    *,
    image_edit_model: str | None = None,
    chat_model: str | None = None,
    text_model: str | None = None,
) -> DispatchRouter:
    """Стандартные правила: `fal-ai/*` -> fal.ai, `google/gemini*`/`*openrouter*` -> OpenRouter."""
    image_edit = Route(
        provider=clients.image_edit,
        normalize=normalize_image_edit,
        classifier=ErrorClassifier(FAL_PROFILE, matcher),
        vendor_model=image_edit_model,
    )
    chat = Route(
        provider=clients.chat,
        normalize=normalize_chat_completion,
        classifier=ErrorClassifier(OPENROUTER_PROFILE, matcher),
        vendor_model=chat_model,
    )
    text = Route(
        provider=clients.text,
        normalize=normalize_text_generation,
        classifier=ErrorClassifier(GEMINI_PROFILE, matcher),
        vendor_model=text_model,
    )
    return DispatchRouter(
        rules=[
            RouteRule("image_edit", is_image_edit_model, image_edit),
            RouteRule("chat_completion", is_chat_model, chat),
        ],
        text_route=text,
    )
