from __future__ import annotations

import importlib

from django.conf import settings

from apps.payments.domain.errors import PaymentGatewayError
from apps.payments.domain.ports import PaymentGatewayPort


class PaymentGatewayFacade:
    _registry: dict[str, str] = {
        "razorpay": "apps.payments.infrastructure.gateways.razorpay_gateway.RazorpayGateway",
        "dummy": "apps.payments.infrastructure.gateways.dummy_gateway.DummyGateway",
    }

    @classmethod
    def get(cls, provider_code: str | None = None) -> PaymentGatewayPort:
        key = (provider_code or getattr(settings, "PAYMENT_GATEWAY_PROVIDER", "") or "").strip().lower()
        if key not in cls._registry:
            raise PaymentGatewayError(f"Unknown payment provider: {key or '<unset>'}")
        module_path, class_name = cls._registry[key].rsplit(".", 1)
        gateway_cls = getattr(importlib.import_module(module_path), class_name)
        return gateway_cls()

    @classmethod
    def available_providers(cls) -> list[str]:
        return sorted(cls._registry)
