"""Resolução de identidade: contato -> cliente.

Ordem de matching:
1. Exato por (type, normalized_value), case-insensitive: confiança 1.0
2. Fuzzy (opcional): valor sem formatação comparado com identidades do
   mesmo tipo; aceito se a confiança combinada >= limiar
3. Sem match: sugere cliente novo (com nome sugerido) ou resultado neutro

A escrita (criar cliente ou vincular identidade) acontece apenas em
create_or_link_identity.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from app.constants.ingestion import ContactType, Direction
from app.domain.contacts import fuzzy_search_key, strip_formatting
from app.domain.similarity import levenshtein_distance
from app.observability import mask_contact_value, record_identity_confidence
from app.protocols.models import IdentityMatch, IdentityResolution

if TYPE_CHECKING:
    from collections.abc import Callable

    from app.protocols.models import Contact, StoredIdentity
    from app.protocols.persistence import IngestionRepositoryProtocol

logger = logging.getLogger(__name__)

INGESTION_SOURCE = "message_ingestion"

# Pesos da confiança fuzzy
_VALUE_WEIGHT = 0.7
_VERIFIED_BONUS = 0.15
_RECENT_BONUS = 0.15
_STALE_BONUS = 0.075
_MAX_FUZZY_CONFIDENCE = 0.99

_MIN_TEXT_SIMILARITY = 0.9

_NAME_SEPARATORS = re.compile(r"[._]+")
_NON_DIGITS = re.compile(r"\D")


@dataclass(frozen=True, slots=True)
class IdentityResolutionOptions:
    """Opções de resolução de identidade."""

    fuzzy_matching: bool = True
    confidence_threshold: float = 0.5
    create_new_customer: bool = True
    suggest_name_from_contact: bool = True


def suggest_name(contact: Contact) -> str | None:
    """Sugere nome de exibição a partir do contato.

    Email: parte local separada em "." e "_", em title case.
    Social: o próprio handle (sem "@").
    Telefone: nenhum.
    """
    if contact.type == ContactType.EMAIL:
        local_part = contact.normalized_value.split("@", 1)[0]
        words = [word for word in _NAME_SEPARATORS.split(local_part) if word]
        return " ".join(word.capitalize() for word in words) or None
    if contact.type == ContactType.SOCIAL:
        handle = contact.raw_value.strip().lstrip("@")
        return handle or None
    return None


class IdentityResolver:
    """Serviço de resolução de identidade com persistência injetada."""

    def __init__(
        self,
        repository: IngestionRepositoryProtocol,
        default_options: IdentityResolutionOptions | None = None,
        *,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._repository = repository
        self._default_options = default_options or IdentityResolutionOptions()
        self._now = now or (lambda: datetime.now(UTC))

    async def resolve_identity(
        self,
        contact: Contact,
        options: IdentityResolutionOptions | None = None,
    ) -> IdentityResolution:
        """Resolve o contato para um cliente existente ou sugere criação."""
        opts = options or self._default_options

        exact = await self._repository.find_identity(contact.type, contact.normalized_value)
        if exact is not None:
            resolution = IdentityResolution(
                customer_id=exact.customer_id,
                is_new_customer=False,
                confidence=1.0,
                matched_identities=(_to_match(exact, 1.0),),
            )
            record_identity_confidence(resolution.confidence, is_new_customer=False)
            return resolution

        if opts.fuzzy_matching:
            fuzzy = await self._fuzzy_match(contact, opts.confidence_threshold)
            if fuzzy is not None:
                record_identity_confidence(fuzzy.confidence, is_new_customer=False)
                return fuzzy

        if not opts.create_new_customer:
            return IdentityResolution(customer_id=None, is_new_customer=False, confidence=0.0)

        suggested = suggest_name(contact) if opts.suggest_name_from_contact else None
        record_identity_confidence(0.0, is_new_customer=True)
        return IdentityResolution(
            customer_id=None,
            is_new_customer=True,
            confidence=0.0,
            suggested_name=suggested,
        )

    async def create_or_link_identity(
        self,
        contact: Contact,
        resolution: IdentityResolution,
    ) -> IdentityResolution:
        """Executa a escrita decidida por resolve_identity.

        Cliente novo: cria cliente + identidade com metadados de origem.
        Cliente existente: vincula a identidade (idempotente).
        Resultado neutro: nada a escrever, devolve a resolução original.
        """
        if resolution.customer_id is not None:
            already_linked = any(
                match.customer_id == resolution.customer_id
                and match.type == contact.type
                and match.value.lower() == contact.normalized_value.lower()
                for match in resolution.matched_identities
            )
            if already_linked:
                return resolution
            identity = await self._repository.link_identity(resolution.customer_id, contact)
            logger.info(
                "identity_linked",
                extra={
                    "customer_id": identity.customer_id,
                    "contact_type": str(contact.type),
                    "contact_masked": mask_contact_value(contact.normalized_value),
                },
            )
            return replace(
                resolution,
                customer_id=identity.customer_id,
                matched_identities=(*resolution.matched_identities, _to_match(identity, 1.0)),
            )

        if not resolution.is_new_customer:
            return resolution

        name = resolution.suggested_name or f"{str(contact.type).capitalize()} Customer"
        metadata = {
            "source": INGESTION_SOURCE,
            "created_from": str(contact.type),
            "original_contact": contact.raw_value,
        }
        customer, identity = await self._repository.create_identity_and_customer(
            contact, name, metadata
        )
        logger.info(
            "customer_created",
            extra={
                "customer_id": customer.id,
                "contact_type": str(contact.type),
                "contact_masked": mask_contact_value(contact.normalized_value),
            },
        )
        return replace(
            resolution,
            customer_id=customer.id,
            matched_identities=(_to_match(identity, 1.0),),
        )

    async def resolve_both_contacts(
        self,
        from_contact: Contact,
        to_contact: Contact,
        direction: Direction,
        options: IdentityResolutionOptions | None = None,
    ) -> tuple[IdentityResolution, IdentityResolution]:
        """Resolve cliente e negócio em uma chamada.

        inbound: from é o cliente; outbound: to é o cliente. O lado do
        negócio nunca gera criação de cliente.

        Returns:
            (resolução do cliente, resolução do negócio)
        """
        opts = options or self._default_options
        if direction == Direction.INBOUND:
            customer_contact, business_contact = from_contact, to_contact
        else:
            customer_contact, business_contact = to_contact, from_contact

        customer = await self.resolve_identity(customer_contact, opts)
        business = await self.resolve_identity(
            business_contact,
            replace(opts, create_new_customer=False, suggest_name_from_contact=False),
        )
        return customer, business

    # ──────────────────────────────────────────────────────────────
    # Fuzzy matching
    # ──────────────────────────────────────────────────────────────

    async def _fuzzy_match(
        self,
        contact: Contact,
        threshold: float,
    ) -> IdentityResolution | None:
        search_key = fuzzy_search_key(contact)
        if len(search_key) < 3:
            return None

        candidates = await self._repository.find_identity_candidates(contact.type, search_key)
        scored = [
            (self._fuzzy_confidence(contact, candidate), candidate) for candidate in candidates
        ]
        accepted = sorted(
            ((score, identity) for score, identity in scored if score >= threshold),
            key=lambda item: item[0],
            reverse=True,
        )
        if not accepted:
            return None

        best_score, best = accepted[0]
        logger.debug(
            "identity_fuzzy_match",
            extra={"confidence": round(best_score, 3), "candidates": len(candidates)},
        )
        return IdentityResolution(
            customer_id=best.customer_id,
            is_new_customer=False,
            confidence=best_score,
            matched_identities=tuple(_to_match(identity, score) for score, identity in accepted),
        )

    def _fuzzy_confidence(self, contact: Contact, candidate: StoredIdentity) -> float:
        value_score = max(
            _value_similarity(contact, candidate.value),
            _value_similarity(contact, candidate.raw_value),
        )
        if value_score <= 0.0:
            return 0.0

        score = _VALUE_WEIGHT * value_score
        if candidate.verified:
            score += _VERIFIED_BONUS

        age = self._now() - candidate.linked_at
        if age <= timedelta(days=30):
            score += _RECENT_BONUS
        elif age <= timedelta(days=90):
            score += _STALE_BONUS

        return min(score, _MAX_FUZZY_CONFIDENCE)


def _value_similarity(contact: Contact, stored_value: str) -> float:
    """Similaridade entre o contato e um valor armazenado, sem formatação.

    Telefones só casam pelos últimos 10 dígitos idênticos; um dígito
    diferente é outro número. Demais tipos toleram pequenas variações.
    """
    if contact.type == ContactType.PHONE:
        ours = fuzzy_search_key(contact)
        theirs = _NON_DIGITS.sub("", stored_value)[-10:]
        return 1.0 if ours and ours == theirs else 0.0

    ours = strip_formatting(contact.normalized_value)
    theirs = strip_formatting(stored_value)
    if not ours or not theirs:
        return 0.0
    if ours == theirs:
        return 1.0
    similarity = 1.0 - levenshtein_distance(ours, theirs) / max(len(ours), len(theirs))
    return similarity if similarity >= _MIN_TEXT_SIMILARITY else 0.0


def _to_match(identity: StoredIdentity, confidence: float) -> IdentityMatch:
    return IdentityMatch(
        identity_id=identity.id,
        customer_id=identity.customer_id,
        type=identity.type,
        value=identity.value,
        confidence=confidence,
    )
