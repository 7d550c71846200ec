import pytest

from registry_mutator.config import MutatorConfig


@pytest.fixture
def config():
    return MutatorConfig(
        default_domain="docker.io",
        domain_mapping={
            "docker.io": "new.registry.io",
            "old.registry.io": "new.registry.io",
            "quay.io": "quay.mirror.example.com",
        },
    )
