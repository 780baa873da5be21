"""
Routing table mapping source channels to their ordered target channels.
Built once at startup from the JSON routing configuration and never mutated.
"""
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Annotated, Dict, Iterator, List, Mapping, Sequence, Tuple, Union

from pydantic import Field, TypeAdapter, ValidationError

from .exceptions import RoutingConfigError

logger = logging.getLogger(__name__)

ChannelId = Annotated[int, Field(strict=True, ge=0)]
RouteEntry = Annotated[List[ChannelId], Field(min_length=1)]

_ROUTES_ADAPTER = TypeAdapter(List[RouteEntry])


class RoutingTable:
    """Read-only mapping of source channel id to target channel ids."""

    def __init__(self, routes: Mapping[int, Sequence[int]]):
        self._routes: Mapping[int, Tuple[int, ...]] = MappingProxyType(
            {source: tuple(targets) for source, targets in routes.items()}
        )

    @classmethod
    def from_entries(cls, entries: Sequence[Sequence[int]]) -> "RoutingTable":
        """Build from [source, target, ...] arrays; a repeated source replaces the earlier entry."""
        routes: Dict[int, List[int]] = {}
        for entry in entries:
            source, *targets = entry
            if source in routes:
                logger.warning(f"Source channel {source} configured twice, keeping the last entry")
            routes[source] = targets
        return cls(routes)

    @classmethod
    def from_json(cls, raw: Union[str, bytes]) -> "RoutingTable":
        """Parse and validate a JSON routing document."""
        try:
            entries = _ROUTES_ADAPTER.validate_json(raw)
        except ValidationError as e:
            raise RoutingConfigError(
                f"Routing configuration must be an array of non-empty arrays "
                f"of non-negative integers: {e}"
            ) from e
        return cls.from_entries(entries)

    @classmethod
    def load(cls, path: Union[str, Path]) -> "RoutingTable":
        """Load the routing table from a file; any problem is fatal."""
        path = Path(path)
        try:
            raw = path.read_bytes()
        except FileNotFoundError as e:
            raise RoutingConfigError(f"Routing configuration not found: {path}") from e
        except OSError as e:
            raise RoutingConfigError(f"Unable to read routing configuration {path}: {e}") from e

        table = cls.from_json(raw)
        logger.info(f"Loaded {len(table)} routes from {path}")
        return table

    def targets_for(self, source_channel_id: int) -> Tuple[int, ...]:
        """Ordered targets for a source channel; empty when it is not routed."""
        return self._routes.get(source_channel_id, ())

    def items(self) -> Iterator[Tuple[int, Tuple[int, ...]]]:
        return iter(self._routes.items())

    def __len__(self) -> int:
        return len(self._routes)

    def __repr__(self) -> str:
        return f"RoutingTable({dict(self._routes)!r})"
