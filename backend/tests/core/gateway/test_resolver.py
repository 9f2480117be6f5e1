"""Unit tests for gateway resolver: resolve_endpoints_config, normalize_base_path, match_base_path."""

from dataclasses import FrozenInstanceError

import pytest
from pydantic import ValidationError

from endpoint_gateway.core.gateway.resolver import (
    RateLimitConfig,
    match_base_path,
    normalize_base_path,
    resolve_endpoints_config,
)
from endpoint_gateway.schemas_endpoints import EndpointsConfig


def _raw(**kwargs) -> EndpointsConfig:
    return EndpointsConfig.model_validate(kwargs)


# --- enabled / empty ---


def test_resolve_none_config() -> None:
    assert resolve_endpoints_config(None) is None


@pytest.mark.parametrize("enabled", [None, False])
def test_resolve_not_enabled(enabled: bool | None) -> None:
    raw = _raw(enabled=enabled, entries=[{"id": "support"}])
    assert resolve_endpoints_config(raw) is None


def test_resolve_enabled_without_entries() -> None:
    assert resolve_endpoints_config(_raw(enabled=True)) is None
    assert resolve_endpoints_config(_raw(enabled=True, entries=[])) is None


def test_resolve_only_blank_ids() -> None:
    raw = _raw(enabled=True, entries=[{"id": "   "}, {"id": "\t"}])
    assert resolve_endpoints_config(raw) is None


# --- entries ---


def test_resolve_trims_ids_and_skips_blank() -> None:
    raw = _raw(enabled=True, entries=[{"id": "  support "}, {"id": " "}, {"id": "ops"}])
    snap = resolve_endpoints_config(raw)
    assert snap is not None
    assert set(snap.entries) == {"support", "ops"}
    assert snap.entries["support"].id == "support"


def test_resolve_ids_are_case_sensitive() -> None:
    snap = resolve_endpoints_config(
        _raw(enabled=True, entries=[{"id": "Support"}, {"id": "support"}])
    )
    assert snap is not None
    assert set(snap.entries) == {"Support", "support"}


def test_resolve_copies_entry_fields() -> None:
    snap = resolve_endpoints_config(
        _raw(
            enabled=True,
            entries=[
                {
                    "id": "triage",
                    "instructions": "Be brief.",
                    "mode": "async",
                    "model": "m-large",
                    "thinking": "low",
                    "timeoutSeconds": 120,
                }
            ],
        )
    )
    assert snap is not None
    e = snap.entries["triage"]
    assert e.instructions == "Be brief."
    assert e.mode == "async"
    assert e.model == "m-large"
    assert e.thinking == "low"
    assert e.timeout_seconds == 120


def test_resolve_mode_defaults_to_sync() -> None:
    snap = resolve_endpoints_config(_raw(enabled=True, entries=[{"id": "a"}]))
    assert snap is not None
    assert snap.entries["a"].mode == "sync"
    assert snap.entries["a"].tokens == {}
    assert snap.entries["a"].requires_auth is False


# --- tokens ---


def test_resolve_tokens_trim_skip_and_label() -> None:
    snap = resolve_endpoints_config(
        _raw(
            enabled=True,
            entries=[
                {
                    "id": "a",
                    "tokens": [
                        {"value": " alpha ", "name": " ci "},
                        {"value": "   "},
                        {"value": "beta"},
                        {"value": "gamma", "name": "  "},
                    ],
                }
            ],
        )
    )
    assert snap is not None
    assert dict(snap.entries["a"].tokens) == {
        "alpha": "ci",
        "beta": "unnamed",
        "gamma": "unnamed",
    }
    assert snap.entries["a"].requires_auth is True


def test_resolve_duplicate_token_last_label_wins() -> None:
    snap = resolve_endpoints_config(
        _raw(
            enabled=True,
            entries=[
                {
                    "id": "a",
                    "tokens": [
                        {"value": "same", "name": "first"},
                        {"value": "same", "name": "second"},
                    ],
                }
            ],
        )
    )
    assert snap is not None
    assert dict(snap.entries["a"].tokens) == {"same": "second"}


# --- base path ---


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (None, "/endpoints"),
        ("", "/endpoints"),
        ("   ", "/endpoints"),
        ("hooks", "/hooks"),
        ("/hooks/", "/hooks"),
        (" /api/agents// ", "/api/agents"),
    ],
)
def test_normalize_base_path(raw: str | None, expected: str) -> None:
    assert normalize_base_path(raw) == expected


def test_resolve_base_path() -> None:
    snap = resolve_endpoints_config(
        _raw(enabled=True, basePath="agents/", entries=[{"id": "a"}])
    )
    assert snap is not None
    assert snap.base_path == "/agents"


# --- rate limit ---


def test_resolve_rate_limit_absent() -> None:
    snap = resolve_endpoints_config(_raw(enabled=True, entries=[{"id": "a"}]))
    assert snap is not None
    assert snap.rate_limit is None


def test_resolve_rate_limit_present_but_empty_is_disabled() -> None:
    snap = resolve_endpoints_config(
        _raw(enabled=True, rateLimit={}, entries=[{"id": "a"}])
    )
    assert snap is not None
    assert snap.rate_limit is None


def test_resolve_rate_limit_defaults_missing_fields() -> None:
    only_max = resolve_endpoints_config(
        _raw(enabled=True, rateLimit={"maxRequests": 5}, entries=[{"id": "a"}])
    )
    only_window = resolve_endpoints_config(
        _raw(enabled=True, rateLimit={"windowSeconds": 10}, entries=[{"id": "a"}])
    )
    assert only_max is not None and only_window is not None
    assert only_max.rate_limit == RateLimitConfig(max_requests=5, window_seconds=60)
    assert only_window.rate_limit == RateLimitConfig(max_requests=60, window_seconds=10)


def test_resolve_rate_limit_both_fields() -> None:
    snap = resolve_endpoints_config(
        _raw(
            enabled=True,
            rateLimit={"maxRequests": 3, "windowSeconds": 1},
            entries=[{"id": "a"}],
        )
    )
    assert snap is not None
    assert snap.rate_limit == RateLimitConfig(max_requests=3, window_seconds=1)


# --- immutability ---


def test_snapshot_is_immutable() -> None:
    snap = resolve_endpoints_config(
        _raw(enabled=True, entries=[{"id": "a", "tokens": [{"value": "t"}]}])
    )
    assert snap is not None
    with pytest.raises(TypeError):
        snap.entries["b"] = snap.entries["a"]  # type: ignore[index]
    with pytest.raises(TypeError):
        snap.entries["a"].tokens["x"] = "y"  # type: ignore[index]
    with pytest.raises(FrozenInstanceError):
        snap.entries["a"].mode = "async"  # type: ignore[misc]


def test_each_resolve_returns_fresh_snapshot() -> None:
    raw = _raw(enabled=True, entries=[{"id": "a"}])
    assert resolve_endpoints_config(raw) is not resolve_endpoints_config(raw)


# --- schema ---


def test_schema_rejects_unknown_keys() -> None:
    with pytest.raises(ValidationError):
        EndpointsConfig.model_validate(
            {"enabled": True, "entries": [{"id": "a", "extra": 1}]}
        )


def test_schema_rejects_bad_mode_and_timeout() -> None:
    with pytest.raises(ValidationError):
        EndpointsConfig.model_validate({"entries": [{"id": "a", "mode": "later"}]})
    with pytest.raises(ValidationError):
        EndpointsConfig.model_validate({"entries": [{"id": "a", "timeoutSeconds": 0}]})


@pytest.mark.parametrize("enabled", ["yes", "true", 1, 0])
def test_schema_rejects_non_bool_enabled(enabled: object) -> None:
    with pytest.raises(ValidationError):
        EndpointsConfig.model_validate({"enabled": enabled, "entries": [{"id": "a"}]})


@pytest.mark.parametrize(
    "raw",
    [
        {"entries": [{"id": "a", "timeoutSeconds": "30"}]},
        {"entries": [{"id": "a", "timeoutSeconds": 1.5}]},
        {"rateLimit": {"maxRequests": 2.0}},
        {"rateLimit": {"windowSeconds": "10"}},
        {"rateLimit": {"maxRequests": True}},
    ],
)
def test_schema_rejects_non_int_numbers(raw: dict) -> None:
    with pytest.raises(ValidationError):
        EndpointsConfig.model_validate({"enabled": True, **raw})


# --- match_base_path ---


def test_match_base_path_endpoint_id() -> None:
    assert match_base_path("/endpoints/foo", "/endpoints") == "foo"


def test_match_base_path_strips_leading_slashes() -> None:
    assert match_base_path("/endpoints//foo", "/endpoints") == "foo"


def test_match_base_path_bare_base() -> None:
    assert match_base_path("/endpoints", "/endpoints") == ""
    assert match_base_path("/endpoints/", "/endpoints") == ""


def test_match_base_path_outside() -> None:
    assert match_base_path("/endpointsfoo", "/endpoints") is None
    assert match_base_path("/api/v1/utils/liveness/", "/endpoints") is None
    assert match_base_path("/", "/endpoints") is None
