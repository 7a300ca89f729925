"""Registry of pooled HTTP transports shared between request builders.

Creating a new ``httpx.AsyncClient`` per request exhausts sockets, so
builders borrow a client from a pool entry instead. Each entry couples one
client with the options builders are allowed to change on it (cookie jar,
credentials, timeout, user agent). Those options are shared: a change made
through one builder is seen by every builder bound to the same key.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime
from types import TracebackType
from typing import ClassVar
from uuid import UUID, uuid4

import httpx

from fluenthttp.config import ClientSettings, TransportConfig, get_settings
from fluenthttp.constants import USER_AGENT_HEADER
from fluenthttp.errors import PoolEntryNotFoundError
from fluenthttp.models import Cookie, Credentials
from fluenthttp.observability import get_logger


logger = get_logger()


@dataclass
class PoolEntry:
    """One pooled client and its shared, mutable options.

    Attributes:
        key: Unique key of the entry within its pool.
        client: The transport handle.
        timeout: Whole-dispatch timeout in seconds, None for no limit.
        lock: Guards option merges. Never held across network I/O.
        created_at: When the entry was created.
    """

    key: UUID
    client: httpx.AsyncClient
    timeout: float | None = None
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def cookies(self) -> httpx.Cookies:
        """The shared cookie jar."""
        return self.client.cookies

    @property
    def user_agent(self) -> str:
        """The default User-Agent sent by the client."""
        return self.client.headers.get(USER_AGENT_HEADER, "")

    def add_cookie(self, cookie: Cookie, default_domain: str) -> None:
        """Append a cookie to the shared jar.

        Args:
            cookie: Cookie to add.
            default_domain: Domain used when the cookie has none.
        """
        self.client.cookies.set(
            cookie.name,
            cookie.value,
            domain=cookie.domain or default_domain,
            path=cookie.path,
        )

    def set_credentials(self, credentials: Credentials) -> None:
        """Replace the client's auth. Last writer wins."""
        self.client.auth = credentials.to_auth()

    def set_timeout(self, seconds: float) -> None:
        """Replace the timeout for every later dispatch on this entry."""
        self.timeout = seconds
        self.client.timeout = httpx.Timeout(seconds)

    def merge_user_agent(self, identity: str) -> None:
        """Append an identity to the default User-Agent unless present."""
        current = self.user_agent
        if identity in current.split():
            return
        merged = f"{current} {identity}" if current else identity
        self.client.headers[USER_AGENT_HEADER] = merged


class TransportPool:
    """Get-or-create registry of pool entries.

    Builders that do not ask for a fresh transport share the most recently
    created entry. Entries are only removed through :meth:`discard` or
    :meth:`aclose`; there is no automatic eviction.
    """

    _instance: ClassVar["TransportPool | None"] = None

    def __init__(
        self,
        config: TransportConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize an empty pool.

        Args:
            config: Defaults for created clients.
            transport: Transport injected into every created client.
        """
        self._config = config if config is not None else TransportConfig()
        self._transport = transport
        self._entries: dict[UUID, PoolEntry] = {}
        self._log = logger.bind(component="pool")

    @classmethod
    def from_settings(
        cls,
        settings: ClientSettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "TransportPool":
        """Create a pool configured from ``FLUENTHTTP_*`` settings.

        Args:
            settings: Settings to use; read from the environment if omitted.
            transport: Transport injected into every created client.

        Raises:
            pydantic.ValidationError: If a setting is out of bounds.
        """
        settings = settings if settings is not None else get_settings()
        return cls(config=settings.to_transport_config(), transport=transport)

    @classmethod
    def get_instance(cls) -> "TransportPool":
        """Get the process-wide default pool, configured from the environment."""
        if cls._instance is None:
            cls._instance = cls.from_settings()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Forget the default pool (primarily for testing).

        Clients of the forgotten pool are not closed.
        """
        cls._instance = None

    @property
    def config(self) -> TransportConfig:
        """Defaults for created clients."""
        return self._config

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def keys(self) -> list[UUID]:
        """Keys in insertion order."""
        return list(self._entries)

    def acquire(self, force_new: bool = False) -> UUID:
        """Select a pool entry, creating one if needed.

        Args:
            force_new: Always create a new entry.

        Returns:
            Key of the last inserted entry, or of the newly created one.
        """
        if self._entries and not force_new:
            return next(reversed(self._entries))

        entry = self._create_entry()
        self._entries[entry.key] = entry
        self._log.debug(
            "pool_entry_created",
            pool_key=str(entry.key),
            forced=force_new,
            pool_size=len(self._entries),
        )
        return entry.key

    def get(self, key: UUID) -> PoolEntry:
        """Look up an entry.

        Raises:
            PoolEntryNotFoundError: If the key is unknown or was discarded.
        """
        try:
            return self._entries[key]
        except KeyError:
            raise PoolEntryNotFoundError(key) from None

    async def discard(self, key: UUID) -> None:
        """Close and remove one entry.

        Builders still bound to the key fail on their next dispatch.
        """
        entry = self._entries.pop(key, None)
        if entry is None:
            raise PoolEntryNotFoundError(key)
        await entry.client.aclose()
        self._log.debug(
            "pool_entry_discarded",
            pool_key=str(key),
            pool_size=len(self._entries),
        )

    async def aclose(self) -> None:
        """Close and remove every entry."""
        entries = list(self._entries.values())
        self._entries.clear()
        for entry in entries:
            await entry.client.aclose()
        self._log.debug("pool_closed", entries_closed=len(entries))

    async def __aenter__(self) -> "TransportPool":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    def _create_entry(self) -> PoolEntry:
        client = httpx.AsyncClient(
            transport=self._transport,
            timeout=self._config.build_timeout(),
            limits=self._config.build_limits(),
            headers=self._config.build_headers(),
            follow_redirects=self._config.follow_redirects,
        )
        return PoolEntry(
            key=uuid4(),
            client=client,
            timeout=self._config.timeout_seconds,
        )
