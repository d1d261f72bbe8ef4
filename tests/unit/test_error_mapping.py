"""Domain error to HTTP status mapping."""

from __future__ import annotations

import pytest

from finquest import errors
from finquest.errors import (
    FinQuestError,
    MalformedGenerationError,
    NotFoundError,
    ProviderError,
    ProviderNotConfiguredError,
    ValidationError,
)
from finquest.middleware.error_handler import status_for


class TestStatusFor:
    @pytest.mark.parametrize(
        ("exc", "status"),
        [
            (NotFoundError("gone"), 404),
            (ValidationError("bad"), 400),
            (ProviderNotConfiguredError(), 503),
            (ProviderError("upstream", status=500), 502),
            (MalformedGenerationError("shape", raw="{}"), 502),
            (FinQuestError("other"), 500),
        ],
    )
    def test_mapping(self, exc: FinQuestError, status: int) -> None:
        assert status_for(exc) == status

    def test_every_domain_error_is_mapped(self) -> None:
        domain = [
            obj
            for obj in vars(errors).values()
            if isinstance(obj, type) and issubclass(obj, FinQuestError) and obj is not FinQuestError
        ]
        assert {cls.__name__ for cls in domain} == {
            "NotFoundError",
            "ValidationError",
            "GenerationError",
            "ProviderNotConfiguredError",
            "ProviderError",
            "MalformedGenerationError",
        }
