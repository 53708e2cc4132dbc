"""Topology analysis for modular room layouts.

This module provides the adjacency graph between rooms and the
connected-component bookkeeping used to derive wall groups: a
union-find over an index arena, and networkx components for
split detection.
"""

from __future__ import annotations

from typing import Dict, List, Sequence

import networkx as nx

from ..geom.rect import are_rooms_adjacent, shared_edge
from .model import Room


class DisjointSet:
    """Union-find over indices ``0..size-1`` with path compression."""

    def __init__(self, size: int):
        self.parent: List[int] = list(range(size))
        self.rank: List[int] = [0] * size

    def find(self, index: int) -> int:
        root = index
        while self.parent[root] != root:
            root = self.parent[root]
        # Path compression
        while self.parent[index] != root:
            self.parent[index], index = root, self.parent[index]
        return root

    def union(self, a: int, b: int) -> bool:
        root_a, root_b = self.find(a), self.find(b)
        if root_a == root_b:
            return False
        if self.rank[root_a] < self.rank[root_b]:
            root_a, root_b = root_b, root_a
        self.parent[root_b] = root_a
        if self.rank[root_a] == self.rank[root_b]:
            self.rank[root_a] += 1
        return True


def build_wall_groups(rooms: Sequence[Room]) -> List[List[str]]:
    """Partition rooms into groups of mutually reachable adjacent rooms.

    Args:
        rooms: Rooms to partition.

    Returns:
        List of groups, each a list of room IDs in input order. Groups are
        ordered by their first room in the input.
    """
    disjoint = DisjointSet(len(rooms))
    for i in range(len(rooms)):
        for j in range(i + 1, len(rooms)):
            if are_rooms_adjacent(rooms[i], rooms[j]):
                disjoint.union(i, j)

    groups: Dict[int, List[str]] = {}
    for index, room in enumerate(rooms):
        groups.setdefault(disjoint.find(index), []).append(room.id)
    return list(groups.values())


def build_adjacency_graph(rooms: Sequence[Room]) -> nx.Graph:
    """Build a graph whose nodes are rooms and whose edges are shared walls.

    Each graph edge carries the shared wall length in pixels.
    """
    graph = nx.Graph()
    for room in rooms:
        graph.add_node(room.id)

    for i in range(len(rooms)):
        for j in range(i + 1, len(rooms)):
            edge = shared_edge(rooms[i], rooms[j])
            if edge is not None:
                graph.add_edge(rooms[i].id, rooms[j].id, length=edge.length)

    return graph


def find_connected_components(rooms: Sequence[Room]) -> List[List[Room]]:
    """Connected components of a room set under adjacency.

    Components are returned in order of their first room in the input and
    keep the input order of rooms inside each component.
    """
    if not rooms:
        return []

    graph = build_adjacency_graph(rooms)
    order = {room.id: index for index, room in enumerate(rooms)}
    by_id = {room.id: room for room in rooms}

    components = [sorted(component, key=order.__getitem__) for component in nx.connected_components(graph)]
    components.sort(key=lambda component: order[component[0]])
    return [[by_id[room_id] for room_id in component] for component in components]
