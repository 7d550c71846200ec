"""Image reference rewriting.

Domain detection is a heuristic: the part before the first "/" counts as a
registry domain only when it contains a dot. "localhost/app" and
"host:5000/app" are therefore treated as having no domain.
"""

import logging
from typing import NamedTuple, Optional

from registry_mutator.config import MutatorConfig

DEFAULT_ORGANIZATION = "library"

log = logging.getLogger(__name__)


class RewriteResult(NamedTuple):
    image: str
    mutated: bool


def has_domain(image: str) -> Optional[str]:
    """Return the registry domain of `image`, or None if it names none."""
    first = image.split("/", 1)[0]
    if "." in first:
        return first
    return None


def rewrite_image(image: str, config: MutatorConfig) -> RewriteResult:
    """Point `image` at the mapped registry.

    `mutated` is False when the image's domain is not in the mapping; the
    returned image is then only a normalized form and should not be applied.
    """
    log.debug(f"processing image: {image}")

    domain = has_domain(image)
    if domain is None:
        domain = config.default_domain
        new_image = f"{domain}/{image}"
    else:
        new_image = image

    # Only the original string is checked, so "registry.example.com/nginx" keeps its single segment.
    if "/" not in image:
        new_image = new_image.replace(domain, f"{domain}/{DEFAULT_ORGANIZATION}", 1)

    target = config.domain_mapping.get(domain)
    if target is None:
        log.info(f"Domain {domain} of image {image} is not mapped, leaving it unchanged")
        return RewriteResult(new_image, False)

    new_image = new_image.replace(domain, target, 1)
    log.info(f"Rewriting image {image} -> {new_image}")
    return RewriteResult(new_image, True)
