"""
Poll runner orchestrator.

Coordinates one poll cycle: fetch → extract → normalize → ingest →
match → dispatch.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any, Sequence

from stockwatch.core.backends.base import Backend, RequestSpec
from stockwatch.core.backends.http_backend import HttpBackend
from stockwatch.core.config.loader import load_all_source_configs
from stockwatch.core.config.models import AppConfig, FetchConfig, RunStatus, SourceConfig
from stockwatch.core.extract import get_extractor
from stockwatch.core.logging import get_contextual_logger
from stockwatch.core.matching.matcher import match_events
from stockwatch.core.normalize.canonical import StockingEvent, normalize_rows, utc_now
from stockwatch.core.notify.dispatcher import dispatch
from stockwatch.core.notify.messages import build_messages, dedupe_messages
from stockwatch.core.notify.transport import ExpoPushTransport, LogPushTransport, PushTransport
from stockwatch.persistence.store import RecordStore, open_store

logger = logging.getLogger(__name__)


@dataclass
class PollSummary:
    """Counts for one poll cycle."""

    parsed: int = 0
    inserted: int = 0
    subscriptions: int = 0
    matched_messages: int = 0
    pushed: int = 0
    transport_response: Any = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "parsed": self.parsed,
            "inserted": self.inserted,
            "subscriptions": self.subscriptions,
            "matched_messages": self.matched_messages,
            "pushed": self.pushed,
            "transport_response": self.transport_response,
        }


def build_request(source: SourceConfig, fetch: FetchConfig | None = None) -> RequestSpec:
    """Request for a source's report page, with the year override if set."""
    fetch = fetch or FetchConfig()
    params = {"y": str(source.year)} if source.year else {}

    return RequestSpec(
        url=str(source.url),
        headers={"User-Agent": fetch.user_agent, "Accept": fetch.accept},
        params=params,
        timeout=fetch.timeout_seconds,
        source_name=source.name,
    )


async def collect_source(
    backend: Backend,
    source: SourceConfig,
    fetch: FetchConfig | None = None,
) -> list[StockingEvent]:
    """Fetch, extract and normalize one source. Fetch errors propagate."""
    result = await backend.fetch(build_request(source, fetch))

    rows = get_extractor(source).extract(result.html)
    events = normalize_rows(rows, source=source.name)

    logger.info(
        "%s: %d rows, %d events",
        source.name,
        len(rows),
        len(events),
        extra={"source": source.name, "url": result.final_url},
    )
    return events


class PollRunner:
    """Runs poll cycles against a store, a fetch backend and a push transport.

    Cycles are sequential: sources are fetched one after another, the
    combined batch is ingested once and only newly inserted events are
    matched. Any error aborts the cycle.
    """

    def __init__(
        self,
        store: RecordStore,
        backend: Backend,
        transport: PushTransport,
        sources: Sequence[SourceConfig],
        fetch: FetchConfig | None = None,
    ) -> None:
        self.store = store
        self.backend = backend
        self.transport = transport
        self.sources = [source for source in sources if source.enabled]
        self.fetch = fetch or FetchConfig()

    async def run_once(self) -> PollSummary:
        """Execute one poll cycle.

        Returns:
            PollSummary with the cycle's counts

        Raises:
            FetchError: A source page could not be fetched
            PushError: The push gateway rejected the batch
        """
        run_id = uuid.uuid4().hex[:8]
        log = get_contextual_logger("orchestrator", run_id=run_id)
        started_at = utc_now()
        source_names = [source.name for source in self.sources]
        dry_run = isinstance(self.transport, LogPushTransport)

        try:
            summary = await self._execute(log)
        except Exception as e:
            log.exception("Poll cycle failed")
            try:
                await self.store.record_run(
                    RunStatus.FAILED,
                    started_at,
                    error_message=str(e),
                    sources=source_names,
                    dry_run=dry_run,
                )
            except Exception:
                log.exception("Could not record failed run")
            raise

        await self.store.record_run(
            RunStatus.COMPLETED,
            started_at,
            summary=summary.to_dict(),
            sources=source_names,
            dry_run=dry_run,
        )
        return summary

    async def _execute(self, log: logging.LoggerAdapter) -> PollSummary:
        summary = PollSummary()

        events: list[StockingEvent] = []
        for source in self.sources:
            events.extend(await collect_source(self.backend, source, self.fetch))
        summary.parsed = len(events)

        ingest = await self.store.insert(events)
        summary.inserted = ingest.inserted_count

        subscriptions = await self.store.list_subscriptions()
        summary.subscriptions = len(subscriptions)

        pairs = match_events(ingest.new_records, subscriptions)
        messages = dedupe_messages(build_messages(pairs))
        summary.matched_messages = len(messages)

        result = await dispatch(messages, self.transport)
        summary.pushed = result.sent
        summary.transport_response = result.response

        log.info(
            "parsed=%d inserted=%d subscriptions=%d matched=%d pushed=%d",
            summary.parsed,
            summary.inserted,
            summary.subscriptions,
            summary.matched_messages,
            summary.pushed,
            extra={"inserted": summary.inserted, "pushed": summary.pushed},
        )
        return summary


def create_transport(config: AppConfig, dry_run: bool = False) -> PushTransport:
    """Push transport for the configuration; dry-run logs instead of sending."""
    if dry_run or config.push.dry_run:
        return LogPushTransport()
    return ExpoPushTransport(url=config.push.url, timeout=config.push.timeout_seconds)


def create_backend(config: AppConfig) -> HttpBackend:
    return HttpBackend(
        timeout=config.fetch.timeout_seconds,
        max_retries=config.fetch.max_retries,
        user_agent=config.fetch.user_agent,
        accept=config.fetch.accept,
    )


async def run_poll_once(
    config: AppConfig,
    dry_run: bool = False,
    sources: Sequence[SourceConfig] | None = None,
) -> PollSummary:
    """Build everything from configuration, run one cycle and clean up.

    Args:
        config: Application configuration
        dry_run: Log push messages instead of sending them
        sources: Sources to poll (default: all files in the sources directory)
    """
    if sources is None:
        sources = list(load_all_source_configs(config.sources_dir).values())

    async with open_store(config.database) as store:
        async with create_backend(config) as backend, create_transport(config, dry_run) as transport:
            runner = PollRunner(store, backend, transport, sources, fetch=config.fetch)
            return await runner.run_once()
