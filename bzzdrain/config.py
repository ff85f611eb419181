"""Network and drain policy configuration.

Values come from an optional YAML file (network.yml) plus overrides the
caller passes in. Defaults describe BZZ on Gnosis Chain.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, fields, replace
from pathlib import Path

import yaml
from web3 import Web3

from .exceptions import ConfigError
from .units import DAI_DECIMALS, to_base_units

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("network.yml")

GNOSIS_CHAIN_ID = 100
BZZ_ON_XDAI_CONTRACT = "0xdBF3Ea6F5beE45c02255B2c26a16F300502F68da"
WRAPPED_XDAI_CONTRACT = "0xe91d153e0b41518a2ce8dd3d7944fa863463a97d"
HONEYSWAP_ROUTER_CONTRACT = "0x1C232F01118CB8B424793ae03F870aa7D0ac7f77"

_ADDRESS_FIELDS = ("token_address", "router_address", "wrapped_native_address")


@dataclass(frozen=True)
class NetworkConfig:
    rpc_url: str = ""
    chain_id: int = GNOSIS_CHAIN_ID
    token_address: str = BZZ_ON_XDAI_CONTRACT
    router_address: str = HONEYSWAP_ROUTER_CONTRACT
    wrapped_native_address: str = WRAPPED_XDAI_CONTRACT
    token_decimals: int = 16
    native_decimals: int = DAI_DECIMALS
    swap_gas_limit: int = 29_000_000
    confirmations: int = 1
    receipt_timeout: float = 180
    poll_latency: float = 2


@dataclass(frozen=True)
class DrainPolicy:
    """Native-currency thresholds for a drain, as decimal strings in xDAI."""

    ignore_threshold: str = "0.01"
    rescue_value: str = "0.1"
    safe_sub_value: str = "0.008"
    native_decimals: int = DAI_DECIMALS

    @property
    def ignore_threshold_wei(self) -> int:
        return int(to_base_units(self.ignore_threshold, self.native_decimals))

    @property
    def rescue_value_wei(self) -> int:
        return int(to_base_units(self.rescue_value, self.native_decimals))

    @property
    def safe_sub_value_wei(self) -> int:
        return int(to_base_units(self.safe_sub_value, self.native_decimals))


def _checksum(name: str, value: str) -> str:
    try:
        return Web3.to_checksum_address(value)
    except (ValueError, TypeError) as e:
        raise ConfigError(f"{name} is not a valid address: {value!r}") from e


def _pick(cls, section: dict, section_name: str) -> dict:
    known = {f.name for f in fields(cls)}
    unknown = set(section) - known
    if unknown:
        logger.warning("Ignoring unknown %s keys: %s", section_name, ", ".join(sorted(unknown)))
    return {k: v for k, v in section.items() if k in known}


def _read_yaml(path: Path) -> dict:
    if not path.exists():
        logger.debug("No config file at %s, using defaults", path)
        return {}
    with open(path, "r") as config_file:
        data = yaml.safe_load(config_file) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping at the top level")
    return data


def build_network(values: dict) -> NetworkConfig:
    """Validate a mapping into a NetworkConfig."""
    network = NetworkConfig(**_pick(NetworkConfig, values, "network"))
    if not network.rpc_url:
        raise ConfigError("rpc_url is not configured")
    try:
        chain_id = int(network.chain_id)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"chain_id must be an integer: {network.chain_id!r}") from e
    addresses = {name: _checksum(name, getattr(network, name)) for name in _ADDRESS_FIELDS}
    return replace(network, chain_id=chain_id, **addresses)


def validate_policy(policy: DrainPolicy) -> DrainPolicy:
    for amount in (policy.ignore_threshold, policy.rescue_value, policy.safe_sub_value):
        to_base_units(amount, policy.native_decimals)
    if policy.safe_sub_value_wei >= policy.ignore_threshold_wei:
        # the native sweep sends balance - safe_sub_value once balance > ignore_threshold
        raise ConfigError(
            f"safe_sub_value ({policy.safe_sub_value}) must be below "
            f"ignore_threshold ({policy.ignore_threshold})"
        )
    return policy


def build_policy(values: dict) -> DrainPolicy:
    return validate_policy(
        DrainPolicy(**{k: str(v) for k, v in _pick(DrainPolicy, values, "drain").items()})
    )


def load_config(
    path: str | Path | None = None, overrides: dict | None = None
) -> tuple[NetworkConfig, DrainPolicy]:
    """Load network.yml (optional) and apply caller-supplied network overrides.

    Overrides with a None or empty value are ignored, so callers can pass
    optional settings straight through.
    """
    data = _read_yaml(Path(path) if path else DEFAULT_CONFIG_PATH)

    network_values = dict(data.get("network") or {})
    for key, value in (overrides or {}).items():
        if value not in (None, ""):
            network_values[key] = value.strip() if isinstance(value, str) else value

    network = build_network(network_values)
    policy = build_policy(dict(data.get("drain") or {}))
    if policy.native_decimals != network.native_decimals:
        policy = replace(policy, native_decimals=network.native_decimals)
    logger.info("Using chain %d via %s", network.chain_id, network.rpc_url)
    return network, policy


def load_network(path: str | Path | None = None, overrides: dict | None = None) -> NetworkConfig:
    return load_config(path, overrides)[0]
