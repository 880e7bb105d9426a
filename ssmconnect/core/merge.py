"""Join discovered compute resources with their display names."""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from ssmconnect.core.models import ComputeResource, EnrichedRecord


def merge_records(
    resources: Sequence[ComputeResource], display_names: Mapping[str, str]
) -> list[EnrichedRecord]:
    """Attach a display name to every resource.

    Output order equals input order and the output always has one record per
    input resource, so index N of the result is the Nth discovered resource.
    Duplicated ids are kept as-is.

    Parameters
    ----------
    resources : Sequence[ComputeResource]
        Resources in discovery order
    display_names : Mapping[str, str]
        Resource id to Name tag value; may be incomplete or empty

    Returns
    -------
    list[EnrichedRecord]
        Records ready for display and selection
    """
    return [
        EnrichedRecord(
            resource=resource,
            display_name=display_names.get(resource.resource_id, ""),
        )
        for resource in resources
    ]
