"""Rewrite rules for the registry mutator.

The configuration is a JSON document::

    {"defaultDomain": "docker.io",
     "domainMapping": {"docker.io": "registry.example.com"}}

`defaultDomain` must itself be mapped, so any image without a registry domain
can always be rewritten.
"""

import json
import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional

from registry_mutator.errors import ConfigError

DEFAULT_DOMAIN = "docker.io"


@dataclass(frozen=True)
class MutatorConfig:
    default_domain: str
    domain_mapping: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        if self.default_domain not in self.domain_mapping:
            raise ConfigError(f"default domain {self.default_domain!r} has no entry in domainMapping")
        object.__setattr__(self, "domain_mapping", MappingProxyType(dict(self.domain_mapping)))

    @classmethod
    def from_dict(cls, payload: Any) -> "MutatorConfig":
        if not isinstance(payload, dict):
            raise ConfigError("config must be a JSON object")

        default_domain = payload.get("defaultDomain")
        if default_domain is None or default_domain == "":
            default_domain = DEFAULT_DOMAIN
        if not isinstance(default_domain, str):
            raise ConfigError("defaultDomain must be a string")

        mapping = payload.get("domainMapping")
        if not isinstance(mapping, dict):
            raise ConfigError("domainMapping must be a JSON object")
        for source, target in mapping.items():
            if not isinstance(target, str) or not source or not target:
                raise ConfigError(f"invalid domainMapping entry {source!r}: {target!r}")

        return cls(default_domain=default_domain, domain_mapping=mapping)

    @classmethod
    def from_json(cls, raw: str) -> "MutatorConfig":
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ConfigError(f"error parsing config JSON: {e}") from e
        return cls.from_dict(payload)


def load_config(environ: Optional[Mapping[str, str]] = None) -> MutatorConfig:
    """Build the config from MUTATE_CONFIG, falling back to the file in MUTATE_CONFIG_FILE."""
    if environ is None:
        environ = os.environ

    raw = environ.get("MUTATE_CONFIG")
    if raw:
        return MutatorConfig.from_json(raw)

    path = environ.get("MUTATE_CONFIG_FILE")
    if not path:
        raise ConfigError("set MUTATE_CONFIG or MUTATE_CONFIG_FILE")
    try:
        with open(path, "r") as f:
            raw = f.read()
    except OSError as e:
        raise ConfigError(f"could not read config file {path}: {e}") from e
    return MutatorConfig.from_json(raw)
