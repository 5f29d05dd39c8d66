"""
Contract status bookkeeping of the properties context.

ContractStatusService owns the ContractStatusRecord of each property. It
records status changes from the contracts context, answers the approval
workflow's existence check, registers the workflow's wait token, and
resumes a waiting workflow once its contract is approved.

Every write is a compare-and-swap on the record's version. A lost race is
retried from a fresh read, so the status fields and the wait token never
overwrite each other.
"""

from datetime import UTC, datetime
from typing import Any, Callable

from loguru import logger

from propflow.core.exceptions import ConditionalCheckFailedError, ContractStatusNotFoundError
from propflow.engine.events import ContractStatusChanged
from propflow.services.tokens import TaskTokenService
from propflow.storage.base import ContractStatusStore
from propflow.storage.schemas import ContractStatus, ContractStatusRecord

CONTRACT_PUBLISHED_OUTPUT = {"ContractPublished": True}


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def is_stale(incoming: str | None, stored: str | None) -> bool:
    """
    True if ``incoming`` is strictly older than ``stored``.

    Timestamps that cannot be parsed never count as stale.
    """
    incoming_at = _parse_timestamp(incoming)
    stored_at = _parse_timestamp(stored)
    if incoming_at is None or stored_at is None:
        return False
    return incoming_at < stored_at


class ContractStatusService:
    """
    Domain service behind the contract status handlers.

    Example:
        >>> service = ContractStatusService(store, tokens)
        >>> await service.record_status_change(detail)
        >>> record = await service.check_contract_exists("usa/anytown/main-street/111")
    """

    def __init__(
        self,
        store: ContractStatusStore,
        tokens: TaskTokenService | None = None,
        max_write_attempts: int = 3,
    ) -> None:
        self.store = store
        self.tokens = tokens
        self.max_write_attempts = max(1, max_write_attempts)

    async def _compare_and_swap(
        self,
        property_id: str,
        change: Callable[[ContractStatusRecord | None], ContractStatusRecord | None],
    ) -> ContractStatusRecord | None:
        """
        Apply ``change`` to the current record and write it conditionally.

        ``change`` returns the record to write, or None to leave the store
        untouched. Conflicts are retried up to ``max_write_attempts`` times.
        """
        for attempt in range(1, self.max_write_attempts + 1):
            current = await self.store.get_contract_status(property_id)
            updated = change(current)
            if updated is None:
                return None
            try:
                return await self.store.put_contract_status(
                    updated,
                    expected_version=current.version if current else 0,
                )
            except ConditionalCheckFailedError:
                logger.warning(
                    "Contract status changed concurrently, retrying",
                    property_id=property_id,
                    attempt=attempt,
                )
        raise ConditionalCheckFailedError(
            f"Gave up writing contract status of {property_id} after "
            f"{self.max_write_attempts} attempts",
            property_id=property_id,
        )

    async def record_status_change(
        self, detail: ContractStatusChanged
    ) -> ContractStatusRecord | None:
        """
        Upsert the contract fields of a property from a status change.

        A pending wait token is preserved. An event older than the stored
        status is ignored.

        Returns:
            The stored record, or None if the event was stale
        """

        def change(current: ContractStatusRecord | None) -> ContractStatusRecord | None:
            if current is not None and is_stale(
                detail.contract_last_modified_on, current.contract_last_modified_on
            ):
                logger.info(
                    "Ignoring stale contract status change",
                    property_id=detail.property_id,
                    incoming=detail.contract_last_modified_on,
                    stored=current.contract_last_modified_on,
                )
                return None
            return ContractStatusRecord(
                property_id=detail.property_id,
                contract_id=detail.contract_id,
                contract_status=detail.contract_status,
                contract_last_modified_on=detail.contract_last_modified_on,
                sfn_wait_approved_task_token=(
                    current.sfn_wait_approved_task_token if current else None
                ),
            )

        record = await self._compare_and_swap(detail.property_id, change)
        if record is not None:
            logger.info(
                f"Contract status recorded: {record.contract_status}",
                property_id=record.property_id,
                contract_id=record.contract_id,
            )
        return record

    async def check_contract_exists(self, property_id: str) -> ContractStatusRecord:
        """
        Return the contract status record of a property.

        Raises:
            ContractStatusNotFoundError: No record, or a record without a
                contract id (a wait placeholder)
        """
        record = await self.store.get_contract_status(property_id)
        if record is None or not record.has_contract:
            raise ContractStatusNotFoundError(property_id)
        return record

    async def register_wait(self, property_id: str, task_token: str) -> ContractStatusRecord:
        """
        Store the token of a workflow waiting for contract approval.

        The token replaces any previous one regardless of status. A
        property without a record gets a token-only placeholder.
        """

        def change(current: ContractStatusRecord | None) -> ContractStatusRecord:
            record = current or ContractStatusRecord(property_id=property_id)
            record.sfn_wait_approved_task_token = task_token
            return record

        record = await self._compare_and_swap(property_id, change)
        logger.info(
            "Registered wait for contract approval",
            property_id=property_id,
            contract_status=record.contract_status if record else None,
        )
        return record  # type: ignore[return-value]

    async def resume_if_approved(self, image: dict[str, Any]) -> bool:
        """
        Resume the workflow waiting on a property once its contract is approved.

        Args:
            image: Deserialized NewImage of a contract status stream record

        Returns:
            True if a workflow was resumed

        Raises:
            TaskTokenError: If the token no longer resumes anything
        """
        token = image.get("sfn_wait_approved_task_token")
        property_id = image.get("property_id")
        if not token:
            logger.debug("No workflow waiting", property_id=property_id)
            return False

        if image.get("contract_status") != ContractStatus.APPROVED.value:
            logger.warning(
                "Workflow waiting but contract is not approved",
                property_id=property_id,
                contract_status=image.get("contract_status"),
            )
            return False

        if self.tokens is None:
            raise RuntimeError("ContractStatusService has no task token service")

        # Stream records can be replayed after the token was consumed
        current = await self.store.get_contract_status(property_id)
        if current is None or current.sfn_wait_approved_task_token != token:
            logger.info("Wait token already consumed", property_id=property_id)
            return False

        await self.tokens.send_task_success(token, CONTRACT_PUBLISHED_OUTPUT)
        cleared = await self.store.clear_task_token(property_id, token)
        logger.info(
            "Resumed workflow waiting for contract approval",
            property_id=property_id,
            token_cleared=cleared,
        )
        return True

    async def list_statuses(self) -> list[ContractStatusRecord]:
        return await self.store.list_contract_statuses()

