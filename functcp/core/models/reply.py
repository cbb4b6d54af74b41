from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class ReplyOutcome(StrEnum):
    replied = "replied"
    """The server wrote one reply frame."""

    no_reply = "no_reply"
    """The server closed the connection cleanly without replying."""

    connection_lost = "connection_lost"
    """The connection broke (reset, truncated frame, timeout) before a reply."""


@dataclass(frozen=True)
class ReplyResult:
    """
    Result of a replied exchange.

    Client.send_replied_request() only returns `reply`, which is None for
    both no_reply and connection_lost. Callers that must tell a handler
    that legitimately returned nothing apart from a server that died
    mid-response use Client.exchange() and inspect `outcome`.
    """
    outcome: ReplyOutcome
    reply: Any = None

    @property
    def replied(self) -> bool:
        return self.outcome is ReplyOutcome.replied
