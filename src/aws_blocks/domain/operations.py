"""Domain objects for AWS operations."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class OperationDescriptor:
    """Everything needed to run one block: which client, which call, how to publish.

    ``service`` is the boto3 client name (``s3``, ``events``, ``route53``) and
    ``operation`` the API operation name as AWS spells it (``ListObjectsV2``).
    ``stream_bearing`` marks operations whose responses must be materialized
    before emission.
    """

    id: str
    group: str
    service: str
    operation: str
    name: str
    stream_bearing: bool = False
    required: tuple[str, ...] = field(default_factory=tuple)

    def missing_parameters(self, parameters: dict[str, object]) -> list[str]:
        return [name for name in self.required if parameters.get(name) is None]
