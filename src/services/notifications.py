"""
Challenge notifications (email + push).

Delivery itself belongs to external providers; this module only decides who gets told what, and
makes sure a failing channel never fails the match action that triggered it.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Protocol

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def notify(self, recipient: str, match_id: str, challenger_name: str) -> None: ...


@dataclass(frozen=True)
class ChallengeMessage:
    recipient: str
    match_id: str
    challenger_name: str
    link: str

    @property
    def subject(self) -> str:
        return f"{self.challenger_name} challenges you to a penalty shootout!"

    @property
    def body(self) -> str:
        return (
            f"{self.challenger_name} picked five shots and is waiting for you.\n"
            f"Accept the challenge within 24 hours: {self.link}"
        )


class Channel(Protocol):
    name: str

    def send(self, message: ChallengeMessage) -> None: ...


class LoggingEmailChannel:
    """Hands the message to the outbound mail relay (here: the log)."""

    name = "email"

    def send(self, message: ChallengeMessage) -> None:
        logger.info("Email to %s: %s", message.recipient, message.subject)


class LoggingPushChannel:
    name = "push"

    def send(self, message: ChallengeMessage) -> None:
        logger.info("Push to %s for match %s", message.recipient, message.match_id)


class ChallengeNotifier:
    """Fans a challenge out to every configured channel. Best-effort: failures are logged and dropped."""

    def __init__(self, channels: Iterable[Channel], base_url: str) -> None:
        self.channels = list(channels)
        self.base_url = base_url.rstrip("/")

    def notify(self, recipient: str, match_id: str, challenger_name: str) -> None:
        message = ChallengeMessage(
            recipient=recipient,
            match_id=match_id,
            challenger_name=challenger_name,
            link=f"{self.base_url}/match/{match_id}",
        )
        for channel in self.channels:
            try:
                channel.send(message)
            except Exception:
                logger.exception(
                    "Could not deliver %s notification for match %s to %s",
                    channel.name,
                    match_id,
                    recipient,
                )


def build_notifier(
    base_url: str, email_enabled: bool = True, push_enabled: bool = True
) -> ChallengeNotifier:
    channels: list[Channel] = []
    if email_enabled:
        channels.append(LoggingEmailChannel())
    if push_enabled:
        channels.append(LoggingPushChannel())
    if not channels:
        logger.warning("All notification channels disabled, challenges will not be announced")
    return ChallengeNotifier(channels, base_url)
