# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Transitive group membership resolution.

Membership graphs may contain cycles (a group that is, directly or not, a
member of itself). A visited set owned by the top-level call ensures each
group is listed and expanded at most once. Expansion keeps its own stack of
pending listings, so nesting depth is not bounded by the interpreter's
recursion limit.
"""

from typing import Iterable, Iterator, List, Optional, Set

from connector_logging import Logger, create_logger

from .directory import DirectoryRoutingTable, extract_domain


class GroupResolver:
    """Resolves a member's groups through the directory routing table."""

    def __init__(self, routing_table: DirectoryRoutingTable, logger: Optional[Logger] = None):
        self.routing_table = routing_table
        self._logger = logger or create_logger(name="google_connector.groups")

    def resolve_groups(
        self,
        member: str,
        transitive: bool = False,
        visited: Optional[Set[str]] = None,
    ) -> List[str]:
        """List the groups ``member`` belongs to.

        Groups are returned in discovery order: page order, then depth-first
        expansion when ``transitive`` is set. Each group appears once.

        Args:
            member: Email or alias of a user or a group
            transitive: Also expand the groups each group is a member of
            visited: Groups already listed in this resolution; a new set is
                created if omitted. Groups in it are neither listed nor expanded.

        Returns:
            Group emails

        Raises:
            NoDirectoryRoute: If no client is configured for the member's domain
            DirectoryQueryFailed: If any page fails; partial results are dropped
        """
        if visited is None:
            visited = set()

        groups: List[str] = []
        # Each entry lists one member's groups; the top entry is the deepest
        stack = [self._iter_direct_groups(member)]
        while stack:
            group = next(stack[-1], None)
            if group is None:
                stack.pop()
                continue
            if group in visited:
                continue
            visited.add(group)
            groups.append(group)

            if transitive:
                # A group email is a valid member key
                stack.append(self._iter_direct_groups(group))

        return groups

    def _iter_direct_groups(self, member: str) -> Iterator[str]:
        """Yield the direct groups of ``member``, fetching pages on demand."""
        client = self.routing_table.resolve(extract_domain(member))

        page_token = ""
        while True:
            page = client.list_groups(member, page_token)
            self._logger.debug(
                "Fetched directory page", member=member, groups=len(page.groups)
            )
            yield from page.groups

            page_token = page.next_page_token
            if not page_token:
                return


def filter_groups(groups: Iterable[str], allowed: Iterable[str]) -> List[str]:
    """Keep the groups that are also in ``allowed``, preserving order."""
    allowed_set = set(allowed)
    return [group for group in groups if group in allowed_set]
