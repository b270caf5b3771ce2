"""Schema management for relational providers (sqlite, postgresql)."""

from protean.domain import Domain
from sqlalchemy import create_engine

_RELATIONAL_PROVIDERS = ("sqlite", "postgresql")


def _relational_providers(domain: Domain):
    return [p for _, p in domain.providers.items() if p.conn_info["provider"] in _RELATIONAL_PROVIDERS]


def setup_db(domain: Domain) -> None:
    """Create tables for every aggregate and entity stored in a relational provider."""
    with domain.domain_context():
        for provider in _relational_providers(domain):
            engine = create_engine(provider.conn_info["database_uri"])

            # Touching the DAO registers the model with SQLAlchemy's metadata
            records = list(domain.registry.aggregates.values()) + list(domain.registry.entities.values())
            for record in records:
                if record.cls.meta_.provider == provider.name:
                    domain.repository_for(record.cls)._dao  # noqa: B018

            provider._metadata.create_all(engine)


def drop_db(domain: Domain) -> None:
    with domain.domain_context():
        for provider in _relational_providers(domain):
            engine = create_engine(provider.conn_info["database_uri"])
            provider._metadata.drop_all(engine)
