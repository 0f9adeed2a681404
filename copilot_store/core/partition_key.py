"""
Hierarchical partition keys.

A partition scope is an ordered prefix of (tenant, user, session). Documents
are written under a full scope; queries may address any prefix of it, which
is how "all sessions of a user" becomes a single-partition range scan.

Dependencies: None (pure domain layer)
System role: Partition scoping for chat documents and atomic batches
"""

from dataclasses import dataclass

from copilot_store.core.exceptions import InvalidArgumentError

MAX_PARTITION_DEPTH = 3


@dataclass(frozen=True)
class PartitionScope:
    """
    Immutable hierarchical partition key.

    Attributes:
        components: Non-empty key components, outermost first (1 to 3 levels)
    """

    components: tuple[str, ...]

    def __post_init__(self) -> None:
        if not 1 <= len(self.components) <= MAX_PARTITION_DEPTH:
            raise InvalidArgumentError(
                f"Partition key must have 1 to {MAX_PARTITION_DEPTH} components",
                field="partition_key",
                details={"depth": len(self.components)},
            )
        for component in self.components:
            if not isinstance(component, str) or not component:
                raise InvalidArgumentError(
                    "Partition key components must be non-empty strings",
                    field="partition_key",
                )

    @property
    def depth(self) -> int:
        return len(self.components)

    @property
    def tenant_id(self) -> str:
        return self.components[0]

    @property
    def user_id(self) -> str | None:
        return self.components[1] if self.depth > 1 else None

    @property
    def session_id(self) -> str | None:
        return self.components[2] if self.depth > 2 else None

    def padded(self) -> tuple[str, ...]:
        """Components right-padded with empty strings to the maximum depth."""
        return self.components + ("",) * (MAX_PARTITION_DEPTH - self.depth)

    def is_prefix_of(self, other: "PartitionScope") -> bool:
        """True when every component of this scope leads ``other``'s."""
        return other.components[: self.depth] == self.components

    def matches(self, document_scope: "PartitionScope") -> bool:
        """True when a document stored under ``document_scope`` falls inside this scope."""
        return self.is_prefix_of(document_scope)

    def child(self, component: str) -> "PartitionScope":
        """Return the scope one level deeper."""
        return PartitionScope(self.components + (component,))

    def __str__(self) -> str:
        return "/".join(self.components)


class PartitionKeyBuilder:
    """
    Fluent builder for partition scopes.

    Usage:
        scope = PartitionKeyBuilder().add(tenant_id).add(user_id).build()
        scope = PartitionKeyBuilder.derive(tenant_id, user_id, session_id)
    """

    def __init__(self) -> None:
        self._components: list[str] = []

    def add(self, component: str) -> "PartitionKeyBuilder":
        if len(self._components) >= MAX_PARTITION_DEPTH:
            raise InvalidArgumentError(
                f"Partition key cannot exceed {MAX_PARTITION_DEPTH} components",
                field="partition_key",
            )
        self._components.append(component)
        return self

    def build(self) -> PartitionScope:
        return PartitionScope(tuple(self._components))

    @staticmethod
    def derive(
        tenant_id: str | None,
        user_id: str | None = None,
        session_id: str | None = None,
    ) -> PartitionScope:
        """
        Derive a full or partial partition scope.

        Trailing components degrade gracefully: a missing session yields the
        (tenant, user) scope, a missing user yields the tenant-only scope.

        Args:
            tenant_id: Tenant identifier (required)
            user_id: User identifier
            session_id: Chat session identifier

        Returns:
            PartitionScope: 3-, 2- or 1-level scope

        Raises:
            InvalidArgumentError: If tenant_id is empty
        """
        if not tenant_id:
            raise InvalidArgumentError(
                "tenant_id is required to build a partition key",
                field="tenant_id",
                details={"user_id": user_id, "session_id": session_id},
            )

        builder = PartitionKeyBuilder().add(tenant_id)
        if user_id:
            builder.add(user_id)
            if session_id:
                builder.add(session_id)
        return builder.build()
