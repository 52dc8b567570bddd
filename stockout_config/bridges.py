"""
Config -> Kernel bridge.

Converts a loaded configuration dict into the kernel's frozen
``StockOutSettings``.  Lives here because the kernel must never import
stockout_config.

Every key is optional; a missing key keeps the kernel default.  Present
keys are validated and a bad value raises ConfigurationError naming the
dotted key.

Usage:
    from stockout_config.bridges import build_settings

    settings = build_settings(load_yaml_file(path))
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from stockout_kernel.domain.settings import (
    AccountRole,
    AccountRoleSpec,
    AccountSettings,
    CostingSettings,
    DecrementStrategy,
    FallbackStrategy,
    InventorySettings,
    PostingMode,
    PostingSettings,
    StockOutSettings,
)
from stockout_kernel.exceptions import ConfigurationError


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigurationError(key, "expected a mapping")
    return value


def _enum(enum_cls: type[Enum], value: Any, key: str, default: Enum) -> Enum:
    if value is None:
        return default
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ConfigurationError(key, f"unknown value {value!r} (expected one of: {allowed})") from None


def _bool(value: Any, key: str, default: bool) -> bool:
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ConfigurationError(key, f"expected true/false, got {value!r}")
    return value


def _int(value: Any, key: str, default: int, minimum: int) -> int:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(key, f"expected an integer, got {value!r}")
    if value < minimum:
        raise ConfigurationError(key, f"must be >= {minimum}, got {value}")
    return value


def build_posting_settings(data: dict[str, Any]) -> PostingSettings:
    defaults = PostingSettings()
    return PostingSettings(
        mode=_enum(PostingMode, data.get("mode"), "posting.mode", defaults.mode),
        post_zero_amount_entries=_bool(
            data.get("post_zero_amount_entries"),
            "posting.post_zero_amount_entries",
            defaults.post_zero_amount_entries,
        ),
        currency_decimal_places=_int(
            data.get("currency_decimal_places"),
            "posting.currency_decimal_places",
            defaults.currency_decimal_places,
            minimum=0,
        ),
    )


def build_inventory_settings(data: dict[str, Any]) -> InventorySettings:
    defaults = InventorySettings()
    return InventorySettings(
        decrement_strategy=_enum(
            DecrementStrategy,
            data.get("decrement_strategy"),
            "inventory.decrement_strategy",
            defaults.decrement_strategy,
        ),
        fallback_strategy=_enum(
            FallbackStrategy,
            data.get("fallback_strategy"),
            "inventory.fallback_strategy",
            defaults.fallback_strategy,
        ),
    )


def build_costing_settings(data: dict[str, Any]) -> CostingSettings:
    defaults = CostingSettings()
    types = data.get("inbound_movement_types")
    if types is None:
        inbound = defaults.inbound_movement_types
    else:
        if not isinstance(types, list) or not types:
            raise ConfigurationError(
                "costing.inbound_movement_types", "expected a non-empty list"
            )
        inbound = tuple(str(t).strip().lower() for t in types)
    return CostingSettings(
        lookback_movements=_int(
            data.get("lookback_movements"),
            "costing.lookback_movements",
            defaults.lookback_movements,
            minimum=1,
        ),
        inbound_movement_types=inbound,
    )


def _role_spec(role: AccountRole, data: Any) -> AccountRoleSpec:
    key = f"accounts.roles.{role.value}"
    if not isinstance(data, dict):
        raise ConfigurationError(key, "expected a mapping")
    for required in ("account_name", "account_type"):
        if not data.get(required):
            raise ConfigurationError(f"{key}.{required}", "is required")
    return AccountRoleSpec(
        role=role,
        account_name=str(data["account_name"]),
        account_type=str(data["account_type"]).lower(),
        branch_name_template=data.get("branch_name_template"),
    )


def build_account_settings(data: dict[str, Any]) -> AccountSettings:
    defaults = AccountSettings()
    roles_data = data.get("roles")
    if roles_data is None:
        roles = defaults.roles
    else:
        if not isinstance(roles_data, dict):
            raise ConfigurationError("accounts.roles", "expected a mapping")
        unknown = sorted(set(roles_data) - {r.value for r in AccountRole})
        if unknown:
            raise ConfigurationError("accounts.roles", f"unknown roles: {', '.join(unknown)}")
        missing = [r.value for r in AccountRole if r.value not in roles_data]
        if missing:
            raise ConfigurationError("accounts.roles", f"missing roles: {', '.join(missing)}")
        roles = tuple(_role_spec(role, roles_data[role.value]) for role in AccountRole)
    return AccountSettings(
        allow_name_fallback=_bool(
            data.get("allow_name_fallback"),
            "accounts.allow_name_fallback",
            defaults.allow_name_fallback,
        ),
        roles=roles,
    )


def build_settings(data: dict[str, Any]) -> StockOutSettings:
    """Validated StockOutSettings from a configuration dict."""
    defaults = StockOutSettings()
    return StockOutSettings(
        config_id=str(data.get("config_id") or defaults.config_id),
        version=_int(data.get("version"), "version", defaults.version, minimum=1),
        posting=build_posting_settings(_section(data, "posting")),
        inventory=build_inventory_settings(_section(data, "inventory")),
        costing=build_costing_settings(_section(data, "costing")),
        accounts=build_account_settings(_section(data, "accounts")),
    )
