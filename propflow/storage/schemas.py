"""
Data models for contract status, the search projection, contracts and
local workflow executions.

These schemas define the item shapes stored by the various backends.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class ContractStatus(str, Enum):
    """Lifecycle of a sale contract. Other values may appear on the wire."""

    DRAFT = "DRAFT"
    APPROVED = "APPROVED"
    CANCELLED = "CANCELLED"
    CLOSED = "CLOSED"
    EXPIRED = "EXPIRED"


# A new contract may replace one in any of these states
REPLACEABLE_CONTRACT_STATUSES = (
    ContractStatus.CANCELLED,
    ContractStatus.CLOSED,
    ContractStatus.EXPIRED,
)


class PropertyStatus(str, Enum):
    """Publication status of a listing in the search projection."""

    NEW = "NEW"
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    DECLINED = "DECLINED"


class ExecutionStatus(Enum):
    """Approval workflow execution status."""

    RUNNING = "RUNNING"
    WAITING = "WAITING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"


@dataclass
class ContractStatusRecord:
    """
    The properties context's view of a property's contract.

    At most one record exists per property. ``sfn_wait_approved_task_token``
    is set only while an approval workflow waits on the property.
    ``version`` increases by one on every write.
    """

    property_id: str
    contract_id: str | None = None
    contract_status: str | None = None
    contract_last_modified_on: str | None = None
    sfn_wait_approved_task_token: str | None = None
    version: int = 0

    @property
    def has_contract(self) -> bool:
        return bool(self.contract_id)

    @property
    def is_waiting(self) -> bool:
        return bool(self.sfn_wait_approved_task_token)

    @property
    def is_approved(self) -> bool:
        return self.contract_status == ContractStatus.APPROVED.value

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain item. Absent optional fields are omitted."""
        data: dict[str, Any] = {"property_id": self.property_id}
        for key in (
            "contract_id",
            "contract_status",
            "contract_last_modified_on",
            "sfn_wait_approved_task_token",
        ):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        data["version"] = self.version
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ContractStatusRecord":
        return cls(
            property_id=data["property_id"],
            contract_id=data.get("contract_id"),
            contract_status=data.get("contract_status"),
            contract_last_modified_on=data.get("contract_last_modified_on"),
            sfn_wait_approved_task_token=data.get("sfn_wait_approved_task_token"),
            version=int(data.get("version", 0)),
        )


@dataclass
class PropertyRecord:
    """
    A row of the search projection.

    Keyed by ``PK = PROPERTY#{country}#{city}`` and ``SK = {street}#{number}``.
    A row written only by a status update carries nothing but its keys and
    status, so every other field is optional.
    """

    pk: str
    sk: str
    country: str = ""
    city: str = ""
    street: str = ""
    number: str = ""
    description: str = ""
    contract: str | None = None
    listprice: float | None = None
    currency: str | None = None
    status: str = PropertyStatus.NEW.value
    images: list[str] = field(default_factory=list)

    @property
    def is_approved(self) -> bool:
        return self.status == PropertyStatus.APPROVED.value

    @property
    def property_id(self) -> str:
        return "/".join([self.country, self.city, self.street, self.number])

    def to_dict(self) -> dict[str, Any]:
        """Convert to an item using the table's attribute names."""
        return {
            "PK": self.pk,
            "SK": self.sk,
            "country": self.country,
            "city": self.city,
            "street": self.street,
            "number": self.number,
            "description": self.description,
            "contract": self.contract,
            "listprice": self.listprice,
            "currency": self.currency,
            "status": self.status,
            "images": list(self.images),
        }

    def to_public_dict(self) -> dict[str, Any]:
        """Item as returned by search, without the table keys."""
        data = self.to_dict()
        del data["PK"]
        del data["SK"]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PropertyRecord":
        listprice = data.get("listprice")
        return cls(
            pk=data["PK"],
            sk=data["SK"],
            country=data.get("country", ""),
            city=data.get("city", ""),
            street=data.get("street", ""),
            number=str(data.get("number", "")),
            description=data.get("description", ""),
            contract=data.get("contract"),
            listprice=float(listprice) if listprice is not None else None,
            currency=data.get("currency"),
            status=data.get("status", PropertyStatus.NEW.value),
            images=list(data.get("images") or []),
        )


@dataclass
class ContractRecord:
    """A row of the contracts table, keyed by ``property_id``."""

    property_id: str
    contract_id: str
    contract_status: str = ContractStatus.DRAFT.value
    address: dict[str, Any] = field(default_factory=dict)
    seller_name: str | None = None
    contract_created: str | None = None
    contract_last_modified_on: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "property_id": self.property_id,
            "contract_id": self.contract_id,
            "contract_status": self.contract_status,
            "address": dict(self.address),
            "seller_name": self.seller_name,
            "contract_created": self.contract_created,
            "contract_last_modified_on": self.contract_last_modified_on,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ContractRecord":
        return cls(
            property_id=data["property_id"],
            contract_id=data["contract_id"],
            contract_status=data.get("contract_status", ContractStatus.DRAFT.value),
            address=dict(data.get("address") or {}),
            seller_name=data.get("seller_name"),
            contract_created=data.get("contract_created"),
            contract_last_modified_on=data.get("contract_last_modified_on"),
        )


@dataclass
class HistoryEvent:
    """A single entry of an execution's history."""

    type: str
    name: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "name": self.name,
            "timestamp": self.timestamp.isoformat(),
            "details": self.details,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HistoryEvent":
        return cls(
            type=data["type"],
            name=data["name"],
            timestamp=datetime.fromisoformat(data["timestamp"]),
            details=data.get("details", {}),
        )


@dataclass
class WorkflowExecution:
    """
    An execution of the local approval state machine.

    While WAITING, ``task_token`` holds the token that resumes it.
    """

    execution_id: str
    property_id: str
    status: ExecutionStatus = ExecutionStatus.RUNNING
    input: dict[str, Any] = field(default_factory=dict)
    current_state: str | None = None
    task_token: str | None = None
    output: dict[str, Any] | None = None
    error: str | None = None
    cause: str | None = None
    history: list[HistoryEvent] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    completed_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (ExecutionStatus.SUCCEEDED, ExecutionStatus.FAILED)

    def record(self, event_type: str, name: str, **details: Any) -> None:
        """Append a history entry; entering a state makes it the current state."""
        self.history.append(HistoryEvent(type=event_type, name=name, details=details))
        if event_type.endswith("StateEntered"):
            self.current_state = name
        self.updated_at = datetime.now(UTC)

    def to_dict(self) -> dict[str, Any]:
        return {
            "execution_id": self.execution_id,
            "property_id": self.property_id,
            "status": self.status.value,
            "input": self.input,
            "current_state": self.current_state,
            "task_token": self.task_token,
            "output": self.output,
            "error": self.error,
            "cause": self.cause,
            "history": [event.to_dict() for event in self.history],
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WorkflowExecution":
        return cls(
            execution_id=data["execution_id"],
            property_id=data["property_id"],
            status=ExecutionStatus(data["status"]),
            input=data.get("input", {}),
            current_state=data.get("current_state"),
            task_token=data.get("task_token"),
            output=data.get("output"),
            error=data.get("error"),
            cause=data.get("cause"),
            history=[HistoryEvent.from_dict(e) for e in data.get("history", [])],
            created_at=datetime.fromisoformat(data["created_at"]),
            updated_at=datetime.fromisoformat(data["updated_at"]),
            completed_at=(
                datetime.fromisoformat(data["completed_at"]) if data.get("completed_at") else None
            ),
        )
