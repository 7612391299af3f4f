"""Recipient address → topic resolution.

Examples, with domain 'ntfy.sh' and prefix 'ntfy-':
    ntfy-mytopic@ntfy.sh           → topic 'mytopic'
    ntfy-mytopic+tk_abc@ntfy.sh    → topic 'mytopic', token 'tk_abc'
    mytopic@ntfy.sh                → PrefixMismatch
    ntfy-mytopic@example.com       → DomainMismatch
"""

import logging
import re
from dataclasses import dataclass
from email.utils import getaddresses
from typing import Callable, Optional, Tuple

from .errors import DomainMismatch, InvalidTopic, PrefixMismatch
from .models import Anonymous, SessionIdentity, TopicPolicy

logger = logging.getLogger(__name__)

TOKEN_SEPARATOR = "+"

# Printable ASCII without spaces, so the token fits an Authorization header
TOKEN_PATTERN = re.compile(r"[\x21-\x7e]+")


@dataclass(frozen=True)
class ResolvedRecipient:
    """Topic (and optional access token) derived from a recipient address."""
    topic: str
    token: Optional[str] = None


def split_address(address: str) -> Tuple[str, str]:
    """Split a single mailbox into (local_part, domain).

    Accepts both 'user@host' and 'Name <user@host>'.

    Raises:
        DomainMismatch: If the input is not exactly one address with a domain
    """
    addresses = [addr for _, addr in getaddresses([address]) if addr]
    if len(addresses) != 1 or "@" not in addresses[0]:
        raise DomainMismatch()
    local_part, _, domain = addresses[0].rpartition("@")
    return local_part, domain


class TopicResolver:
    """Maps recipient mailboxes to topics under a fixed TopicPolicy.

    Args:
        policy: Domain and prefix every recipient must carry
        topic_validator: Naming rule of the dispatch sink
    """

    def __init__(self, policy: TopicPolicy, topic_validator: Callable[[str], bool]):
        self.policy = policy
        self.topic_validator = topic_validator

    def resolve(
        self,
        recipient: str,
        identity: SessionIdentity = Anonymous(),
    ) -> ResolvedRecipient:
        """Resolve a recipient address to a topic.

        The domain and prefix rules apply to anonymous and authenticated
        sessions alike; `identity` is only used for logging.

        Args:
            recipient: Address given in RCPT TO
            identity: Identity of the session issuing RCPT

        Returns:
            ResolvedRecipient: Topic and optional token

        Raises:
            DomainMismatch: Wrong or missing domain
            PrefixMismatch: Local part lacks the configured prefix
            InvalidTopic: Topic empty or rejected by the naming rule
        """
        local_part, domain = split_address(recipient)

        if domain.lower() != self.policy.domain.lower():
            logger.debug(f"Rejecting {recipient}: domain {domain} != {self.policy.domain}")
            raise DomainMismatch()

        topic = local_part
        if self.policy.prefix:
            if not topic.startswith(self.policy.prefix):
                raise PrefixMismatch()
            topic = topic[len(self.policy.prefix):]

        token = None
        if TOKEN_SEPARATOR in topic:
            topic, _, token = topic.partition(TOKEN_SEPARATOR)
            if not TOKEN_PATTERN.fullmatch(token):
                raise InvalidTopic()

        if not topic or not self.topic_validator(topic):
            raise InvalidTopic()

        logger.debug(
            f"Resolved {recipient} to topic {topic} "
            f"(authenticated={identity.is_authenticated}, token={'yes' if token else 'no'})"
        )
        return ResolvedRecipient(topic=topic, token=token)
