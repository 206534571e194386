# ============================================================================
# CLAUDE CONTEXT - CORE MODELS - TRIGGERS
# ============================================================================
# STATUS: Core models - trigger descriptors produced by the external indexer
# PURPOSE: Blob, storage queue and Service Bus trigger definitions plus the snapshot that groups them
# EXPORTS: BlobTrigger, QueueTrigger, ServiceBusTrigger, Trigger, TriggerSnapshot
# INTERFACES: Pydantic BaseModel
# PYDANTIC_MODELS: BlobTrigger, QueueTrigger, ServiceBusTrigger, TriggerSnapshot
# DEPENDENCIES: pydantic
# SCOPE: Immutable input to the listener
# VALIDATION: Input pattern container must be literal, queue names lower-cased
# PATTERNS: Discriminated union on trigger_type
# ENTRY_POINTS: TriggerSnapshot.model_validate(indexer_output)
# ============================================================================

"""
Trigger descriptors.

The indexer that discovers triggers from job definitions is not part of
this package; it hands over a TriggerSnapshot. Every trigger is frozen so
the registry built from it can be shared between timer threads without
locking.
"""

from typing import Annotated, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .blob_path import BlobPath


class BlobTrigger(BaseModel):
    """
    Run a function when a blob matching blob_input appears or changes.

    blob_outputs are checked in order by the freshness evaluator; the
    function is skipped when every output exists and is at least as new as
    the input.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    trigger_type: Literal["blob"] = "blob"
    function_name: str = Field(..., min_length=1)
    blob_input: BlobPath
    blob_outputs: Optional[Tuple[BlobPath, ...]] = None
    storage_connection_string: Optional[str] = Field(default=None, repr=False)

    @field_validator("blob_input", "blob_outputs", mode="before")
    @classmethod
    def _parse_paths(cls, value):
        if isinstance(value, str):
            return BlobPath.parse(value)
        if isinstance(value, (list, tuple)):
            return tuple(BlobPath.parse(v) if isinstance(v, str) else v for v in value)
        return value

    @field_validator("blob_input")
    @classmethod
    def _container_is_literal(cls, value: BlobPath) -> BlobPath:
        # Listing needs a concrete container to enumerate
        if "{" in value.container_name:
            raise ValueError(
                f"Input container must not contain placeholders: '{value}'"
            )
        return value


class QueueTrigger(BaseModel):
    """Run a function for each message on a storage queue."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    trigger_type: Literal["queue"] = "queue"
    function_name: str = Field(..., min_length=1)
    queue_name: str = Field(..., min_length=1)
    storage_connection_string: Optional[str] = Field(default=None, repr=False)

    @field_validator("queue_name")
    @classmethod
    def _normalize_queue_name(cls, value: str) -> str:
        return value.lower()


class ServiceBusTrigger(BaseModel):
    """
    Run a function for each message on a Service Bus queue.

    Handled by the Service Bus extension, not by the core listener.
    Authentication uses service_bus_connection_string when present and
    otherwise the namespace with DefaultAzureCredential.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    trigger_type: Literal["service_bus"] = "service_bus"
    function_name: str = Field(..., min_length=1)
    entity_path: str = Field(..., min_length=1, description="Queue name")
    service_bus_connection_string: Optional[str] = Field(default=None, repr=False)
    namespace: Optional[str] = Field(default=None, description="e.g. mybus.servicebus.windows.net")


Trigger = Annotated[
    Union[BlobTrigger, QueueTrigger, ServiceBusTrigger],
    Field(discriminator="trigger_type"),
]


class TriggerSnapshot(BaseModel):
    """
    Scope name to triggers, as produced by the indexer.

    The scope is an opaque grouping key (usually the declaring class);
    the listener flattens it.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    scopes: Dict[str, List[Trigger]] = Field(default_factory=dict)

    def all_triggers(self) -> List[Union[BlobTrigger, QueueTrigger, ServiceBusTrigger]]:
        """Every trigger, in scope order then declaration order."""
        return [trigger for triggers in self.scopes.values() for trigger in triggers]

    def blob_triggers(self) -> List[BlobTrigger]:
        return [t for t in self.all_triggers() if isinstance(t, BlobTrigger)]

    def queue_triggers(self) -> List[QueueTrigger]:
        return [t for t in self.all_triggers() if isinstance(t, QueueTrigger)]

    def service_bus_triggers(self) -> List[ServiceBusTrigger]:
        return [t for t in self.all_triggers() if isinstance(t, ServiceBusTrigger)]
