"""Repository lookups that surface missing aggregates as marketplace errors."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from marketplace.exceptions import NotFoundError

# Upper bound on rows pulled by read-side scans; the query set default is 100.
SCAN_LIMIT = 10_000


def get_or_raise(aggregate_cls, identifier, field, message):
    """Fetch ``aggregate_cls`` by id or raise ``NotFoundError`` keyed on ``field``."""
    if not identifier:
        raise NotFoundError({field: [message]})
    try:
        return current_domain.repository_for(aggregate_cls).get(identifier)
    except ObjectNotFoundError:
        raise NotFoundError({field: [message]}) from None


def scan(aggregate_cls, **filters):
    """Every persisted ``aggregate_cls`` matching the equality ``filters``."""
    query = current_domain.repository_for(aggregate_cls)._dao.query
    if filters:
        query = query.filter(**filters)
    return query.limit(SCAN_LIMIT).all().items
