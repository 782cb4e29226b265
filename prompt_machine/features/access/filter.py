"""Partition a submission's responses into accessible and blocked sets."""

from typing import Any, Dict, Iterable, List, Mapping

from prompt_machine.features.access.resolver import PermissionResolver
from prompt_machine.models.access import BlockedField, FilterResult
from prompt_machine.models.field import Field, order_fields
from prompt_machine.models.subject import Subject


class ResponseFilter:
    def __init__(self, resolver: PermissionResolver):
        self.resolver = resolver

    def filter(
        self,
        responses: Mapping[str, Any],
        fields: Iterable[Field],
        subject: Subject,
        project_id: str = "",
    ) -> FilterResult:
        """Keep responses the subject may use; record the gated ones that were supplied.

        Fields are walked in author order so ``blocked`` lists features the way
        the tool presents them. Responses for fields outside ``fields`` are
        ignored. Neither input is mutated.
        """
        responses = dict(responses or {})
        ordered = order_fields(list(fields))

        accessible: Dict[str, Any] = {}
        blocked: List[BlockedField] = []
        accessible_fields: List[Field] = []
        known_ids = set()

        for field in ordered:
            known_ids.add(field.field_id)
            decision = self.resolver.resolve_field_access(subject, field, project_id)
            supplied = field.field_id in responses

            if decision.allowed:
                accessible_fields.append(field)
                if supplied:
                    accessible[field.field_id] = responses[field.field_id]
            elif supplied:
                blocked.append(
                    BlockedField(
                        field_id=field.field_id,
                        field_label=field.label,
                        required_tier=decision.required_tier or field.required_tier or "",
                        description=field.description,
                    )
                )

        ignored = sum(1 for field_id in responses if field_id not in known_ids)
        return FilterResult(
            accessible=accessible,
            blocked=blocked,
            accessible_fields=accessible_fields,
            total_fields=len(responses),
            ignored_count=ignored,
        )
