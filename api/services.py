"""
api/services.py -- Composition root: build every component from Settings.

This is the one place that reads configuration and hands explicit values to
constructors. Components receive what they need (a secret, a TTL, a cost
factor, an engine) and never look anything up themselves.

AppServices is attached to app.state.services by the lifespan in api/main.py.
It is built once per process and holds no per-request state.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Request
from sqlalchemy.engine import Engine

from auth.accounts import AccountService
from auth.gate import IdentityGate
from auth.passwords import CredentialHasher
from auth.store import UserStore
from auth.tokens import TokenService
from core.config import Settings
from core.db import create_db_engine
from core.workers import CpuPool
from tasks.store import TaskStore


@dataclass(frozen=True)
class AppServices:
    engine: Engine
    pool: CpuPool
    hasher: CredentialHasher
    tokens: TokenService
    gate: IdentityGate
    users: UserStore
    accounts: AccountService
    tasks: TaskStore

    def close(self) -> None:
        self.pool.close()
        self.engine.dispose()


def build_services(settings: Settings, db_url: Optional[str] = None) -> AppServices:
    """Wire all components. db_url overrides settings.database_url (tests)."""
    engine = create_db_engine(db_url or settings.database_url)
    pool = CpuPool(max_workers=settings.crypto_workers)
    hasher = CredentialHasher(rounds=settings.bcrypt_rounds)
    tokens = TokenService(secret_key=settings.secret_key, ttl_seconds=settings.token_ttl_seconds)
    users = UserStore(engine)
    return AppServices(
        engine=engine,
        pool=pool,
        hasher=hasher,
        tokens=tokens,
        gate=IdentityGate(tokens, pool),
        users=users,
        accounts=AccountService(users, hasher, tokens, pool),
        tasks=TaskStore(engine),
    )


def get_services(request: Request) -> AppServices:
    return request.app.state.services
