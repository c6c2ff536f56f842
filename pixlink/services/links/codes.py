"""Short link-code minting with bounded retries.

The existence pre-check only filters obvious repeats. Two callers can still
pick the same candidate between check and insert, so the unique index on
`payment_links.code` is the authoritative collision signal: an
`IntegrityError` on commit counts as one failed attempt and the loop moves on.
"""

import secrets
import string
from typing import Callable

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from pixlink.common.errors import GenerationExhausted, StoreUnavailable
from pixlink.common.logging import logger
from pixlink.common.metrics import link_code_collisions_total
from pixlink.services.links.models import PaymentLink

ALPHABET = string.ascii_uppercase + string.digits


def random_code(length: int = 6) -> str:
    return "".join(secrets.choice(ALPHABET) for _ in range(length))


class CodeGenerator:
    """Produces link codes that are unique across the link store."""

    def __init__(
        self,
        length: int = 6,
        max_attempts: int = 5,
        candidate_factory: Callable[[int], str] | None = None,
        service_name: str = "pixlink",
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.length = length
        self.max_attempts = max_attempts
        self.candidate_factory = candidate_factory or random_code
        self.service_name = service_name

    def _code_exists(self, db, code: str) -> bool:
        return (
            db.execute(select(PaymentLink.link_id).where(PaymentLink.code == code)).scalar_one_or_none()
            is not None
        )

    def _record_collision(self, code: str, attempt: int, reason: str) -> None:
        link_code_collisions_total.labels(service=self.service_name).inc()
        logger.info("link code collision code=%s attempt=%s reason=%s", code, attempt, reason)

    def _free_candidate(self, db, attempt: int) -> str | None:
        code = self.candidate_factory(self.length)
        try:
            exists = self._code_exists(db, code)
        except SQLAlchemyError as exc:
            raise StoreUnavailable(str(exc)) from exc
        if exists:
            self._record_collision(code, attempt, "precheck")
            return None
        return code

    def generate(self, db) -> str:
        """Return a candidate absent from the store at call time."""

        for attempt in range(1, self.max_attempts + 1):
            code = self._free_candidate(db, attempt)
            if code is not None:
                return code
        raise GenerationExhausted(self.max_attempts)

    def mint(self, db, build_link: Callable[[str], PaymentLink]) -> PaymentLink:
        """Insert a link under a fresh code, retrying on unique-index violations.

        `build_link` receives the candidate code and returns an unsaved row. The
        row is committed on success. Pre-check hits and unique-index violations
        draw from the same `max_attempts` budget.
        """

        for attempt in range(1, self.max_attempts + 1):
            code = self._free_candidate(db, attempt)
            if code is None:
                continue
            link = build_link(code)
            db.add(link)
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                self._record_collision(code, attempt, "unique_violation")
                continue
            except SQLAlchemyError as exc:
                db.rollback()
                raise StoreUnavailable(str(exc)) from exc
            return link
        logger.error("link code generation exhausted attempts=%s", self.max_attempts)
        raise GenerationExhausted(self.max_attempts)
