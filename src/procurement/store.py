"""Entity store helpers.

Thin wrappers over the domain repositories: load one record by id with a
typed not-found error, and list records of a collection by field filters.
"""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from procurement.errors import NotFoundError


def load(aggregate_cls, identifier):
    """Fetch an aggregate by id, raising ``NotFoundError`` when absent."""
    try:
        return current_domain.repository_for(aggregate_cls).get(str(identifier))
    except ObjectNotFoundError as exc:
        raise NotFoundError({aggregate_cls.__name__: [f"{aggregate_cls.__name__} {identifier} not found"]}) from exc


def find_all(aggregate_cls, **filters) -> list:
    """Return every record of the collection matching ``filters``."""
    query = current_domain.repository_for(aggregate_cls)._dao.query
    if filters:
        query = query.filter(**filters)
    return list(query.all().items)


def find_first(aggregate_cls, **filters):
    results = find_all(aggregate_cls, **filters)
    return results[0] if results else None


def save(*aggregates) -> None:
    """Persist aggregates in the current unit of work."""
    for aggregate in aggregates:
        current_domain.repository_for(type(aggregate)).add(aggregate)


def with_pending(records: list, *pending) -> list:
    """Overlay in-flight aggregates (modified but not yet committed) on a query result."""
    overrides = {str(p.id): p for p in pending}
    merged = [overrides.pop(str(r.id), r) for r in records]
    return merged + list(overrides.values())
