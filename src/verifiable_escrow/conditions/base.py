"""Shared plumbing for database-backed condition policies.

Condition parameters arrive as opaque bytes. Every policy in this package
encodes them as a UTF-8 JSON object and validates it against a JSON Schema
(Draft 7) before any record is written.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar

from jsonschema import Draft7Validator

from verifiable_escrow.config import Settings, get_settings
from verifiable_escrow.domain.exceptions import ConditionNotFoundError, InvalidParamsError
from verifiable_escrow.infrastructure.database.orm_models import Base
from verifiable_escrow.infrastructure.database.repositories import (
    ConditionRepository,
    EventRepository,
)
from verifiable_escrow.logging_config import get_logger

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from verifiable_escrow.domain.context import CallContext

logger = get_logger(__name__)

RecordT = TypeVar("RecordT", bound=Base)


def address_schema(max_length: int = 64) -> dict[str, Any]:
    return {"type": "string", "minLength": 1, "maxLength": max_length}


class StoredConditionPolicy(Generic[RecordT]):
    """Base for policies whose records live in their own table.

    Subclasses set ``policy_type`` and ``model`` and implement
    ``params_schema``, ``create`` and ``verify``.
    """

    policy_type: ClassVar[str]
    model: ClassVar[type[Base]]

    def __init__(
        self,
        session: AsyncSession,
        context: CallContext,
        settings: Settings | None = None,
    ) -> None:
        self._session = session
        self._context = context
        self._settings = settings or get_settings()
        self._records: ConditionRepository[RecordT] = ConditionRepository(session, self.model)
        self._events = EventRepository(session)

    def params_schema(self) -> dict[str, Any]:
        raise NotImplementedError

    def parse_params(self, params: bytes) -> dict[str, Any]:
        """Decode and schema-check ``params``.

        Raises:
            InvalidParamsError: On empty, oversized, non-JSON or non-conforming input.
        """
        if not isinstance(params, (bytes, bytearray)):
            raise InvalidParamsError("Condition params must be bytes")
        if not params:
            raise InvalidParamsError("Condition params are empty")
        limit = self._settings.max_condition_params_bytes
        if len(params) > limit:
            raise InvalidParamsError(f"Condition params exceed {limit} bytes")

        try:
            document = json.loads(bytes(params).decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.warning("condition.params_parse_failed", policy=self.policy_type, error=str(exc))
            raise InvalidParamsError(f"Condition params are not valid JSON: {exc}") from exc

        validator = Draft7Validator(self.params_schema())
        errors = sorted(validator.iter_errors(document), key=lambda e: list(e.path))
        if errors:
            details = [{"path": list(err.path), "message": err.message} for err in errors]
            logger.info(
                "condition.params_invalid",
                policy=self.policy_type,
                error_count=len(errors),
            )
            raise InvalidParamsError(
                f"{self.policy_type} params failed validation with {len(errors)} error(s)",
                details=details,
            )
        return document

    def _reject_null_address(self, address: str, field: str) -> None:
        if address == self._settings.null_address:
            raise InvalidParamsError(f"{field} may not be the null address")

    async def _get_or_raise(self, handle: int) -> RecordT:
        record = await self._records.get(handle)
        if record is None:
            raise ConditionNotFoundError(self.policy_type, handle)
        return record
