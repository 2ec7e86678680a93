"""
User-facing strings in the deployment's display language.

Every outcome of an OTP request is reported to the caller as a sentence,
never as an error code, so the catalog below is the only place wording
lives.  French is the default deployment language.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# Waits longer than this are phrased in minutes.
_MINUTES_THRESHOLD_SECONDS = 120


@dataclass(frozen=True)
class MessageCatalog:
    disposable: str
    sent: str
    send_failed: str
    wait: str
    second: tuple[str, str]
    minute: tuple[str, str]
    subject: str
    body: str

    def format_wait(self, seconds: int) -> str:
        """Phrase a wait as "N seconds" or, past two minutes, "N minutes"."""
        if seconds > _MINUTES_THRESHOLD_SECONDS:
            amount = math.ceil(seconds / 60)
            singular, plural = self.minute
        else:
            amount = seconds
            singular, plural = self.second
        unit = singular if amount == 1 else plural
        return self.wait.format(amount=amount, unit=unit)


CATALOGS: dict[str, MessageCatalog] = {
    "fr": MessageCatalog(
        disposable="Le courriel fourni appartient à un fournisseur d'adresses temporaires",
        sent="Un code vous a été envoyé à l'adresse indiquée",
        send_failed="Erreur lors de l'envoi du code par mail",
        wait="Veuillez attendre {amount} {unit} avant de renvoyer un code",
        second=("seconde", "secondes"),
        minute=("minute", "minutes"),
        subject="Validez votre identité",
        body="Votre code, valide {hours} heures: {code}",
    ),
    "en": MessageCatalog(
        disposable="The email address belongs to a disposable mail provider",
        sent="A code has been sent to the given address",
        send_failed="Error while sending the code by email",
        wait="Please wait {amount} {unit} before requesting a new code",
        second=("second", "seconds"),
        minute=("minute", "minutes"),
        subject="Verify your identity",
        body="Your code, valid for {hours} hours: {code}",
    ),
}

DEFAULT_LANGUAGE = "fr"


def get_catalog(language: str) -> MessageCatalog:
    """Catalog for *language*, falling back to French for unknown codes."""
    catalog = CATALOGS.get(language.lower())
    if catalog is None:
        logger.warning(
            "No messages for language %r, using %r", language, DEFAULT_LANGUAGE
        )
        return CATALOGS[DEFAULT_LANGUAGE]
    return catalog
