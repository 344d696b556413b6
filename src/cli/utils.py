"""Shared CLI utilities: component wiring and async helpers."""

import asyncio
from typing import Optional

import structlog
from rich.console import Console

from cli.config_models import QuotidianConfig

console = Console()
logger = structlog.get_logger()


def get_components(config_model: Optional[QuotidianConfig] = None) -> dict:
    """Build every component from config, wired by explicit injection.

    Remote pieces are None when no backend is configured (local-only mode).
    """
    from actions import ReflectionApp
    from catalog import QuoteCatalog, load_journeys
    from cli.config import load_config_model
    from selection import ContentScorer
    from storage import LocalStore
    from sync import (
        ConflictResolver,
        Connectivity,
        MagicLinkAuth,
        PostgrestRemoteStore,
        SyncContext,
        SyncQueue,
        SyncService,
    )
    from sync.retry import retry_from_config

    config_model = config_model or load_config_model()
    paths = config_model.paths
    remote_cfg = config_model.remote

    local = LocalStore(paths.db_path)
    catalog = QuoteCatalog.load(paths.catalog_path)

    auth = None
    remote = None
    if remote_cfg.configured:
        auth = MagicLinkAuth(
            remote_cfg.url,
            remote_cfg.anon_key,
            access_token=remote_cfg.access_token,
            redirect_to=remote_cfg.redirect_to,
            timeout=remote_cfg.timeout_seconds,
        )
        remote = PostgrestRemoteStore(
            remote_cfg.url,
            remote_cfg.anon_key,
            token_provider=lambda: auth.access_token,
            timeout=remote_cfg.timeout_seconds,
        )

    resolver = ConflictResolver(log_size=config_model.sync.conflict_log_size)
    ctx = SyncContext(local, remote=remote, session=auth, resolver=resolver)
    connectivity = Connectivity(online=True)
    config_dict = config_model.to_dict()
    service = SyncService(
        ctx,
        SyncQueue(paths.db_path),
        connectivity,
        attempt_timeout=config_model.sync.attempt_timeout_seconds,
        retrying=lambda: retry_from_config(config_dict),
    )
    scoring = config_model.scoring
    scorer = ContentScorer(
        catalog,
        local,
        recent_days=scoring.recent_days,
        penalty_days=scoring.penalty_days,
        topic_bonus=scoring.topic_bonus,
        author_bonus=scoring.author_bonus,
        recent_penalty=scoring.recent_penalty,
    )

    journeys = load_journeys(paths.journeys_path)

    return {
        "config_model": config_model,
        "local": local,
        "catalog": catalog,
        "auth": auth,
        "remote": remote,
        "ctx": ctx,
        "connectivity": connectivity,
        "sync": service,
        "scorer": scorer,
        "app": ReflectionApp(local, catalog, service, scorer=scorer, journeys=journeys),
    }


async def check_connectivity(c: dict) -> bool:
    """Probe the remote backend so offline writes get queued instead of failing."""
    remote = c.get("remote")
    if remote is None:
        return c["connectivity"].online
    url = c["config_model"].remote.url
    return await c["connectivity"].probe(url, remote.client)


async def close_components(c: dict) -> None:
    for key in ("remote", "auth"):
        component = c.get(key)
        if component is not None:
            await component.close()


def run_async(c: dict, coro_fn):
    """Run ``coro_fn(c)`` after a connectivity probe, always closing HTTP clients."""

    async def runner():
        try:
            await check_connectivity(c)
            return await coro_fn(c)
        finally:
            await close_components(c)

    return asyncio.run(runner())
