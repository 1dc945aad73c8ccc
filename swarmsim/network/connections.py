"""
connections.py - Connectivity graph over the device set

Directed graph (networkx.DiGraph) whose edge u -> v exists when u's
transmitter reaches v on the control frequency. Edges carry the distance
(routing weight) and the quality delivered at that distance.

Topologies:
- star: only the command device and each other device are tested, in both
  directions
- mesh: every pair of distinct devices is tested, in both directions

The graph is rebuilt from scratch every tick. Self-loops are never added.
"""

import logging
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

import networkx as nx

from swarmsim.device.device import Device
from swarmsim.ids import BROADCAST_ID
from swarmsim.physics.propagation import Frequency, delay_to
from swarmsim.signal.quality import SignalQuality
from swarmsim.signal.queue import DelayMap


logger = logging.getLogger(__name__)

Connection = Tuple[int, int, float, SignalQuality]


class ShortestPathError(Exception):
    """Base class for shortest path failures."""
    pass


class NoPathFound(ShortestPathError):
    """Raised when the destination cannot be reached from the source."""
    pass


class PathTooShort(ShortestPathError):
    """Raised when the found path has fewer than two nodes."""
    pass


class Topology(Enum):
    STAR = 'star'
    MESH = 'mesh'


class ConnectionGraph:
    """
    Directed, distance-weighted connectivity graph.

    Args:
        topology: Which device pairs are tested for reachability
    """

    def __init__(self, topology: Topology = Topology.MESH):
        self.topology = topology
        self.graph = nx.DiGraph()

    def update(
        self,
        command_device_id: int,
        devices: Mapping[int, Device],
        frequency: int = Frequency.CONTROL,
    ):
        """
        Rebuild the graph from the current device set.

        Args:
            command_device_id: Hub of the star topology
            devices: Active devices by id
            frequency: Frequency whose reachability defines the edges
        """
        self.graph.clear()

        command_device = devices.get(command_device_id)
        if command_device is None:
            return

        ordered = [devices[device_id] for device_id in sorted(devices)]

        if self.topology == Topology.STAR:
            for device in ordered:
                self._connect(command_device, device, frequency)
        else:
            for index, tx_device in enumerate(ordered):
                for rx_device in ordered[index + 1:]:
                    self._connect(tx_device, rx_device, frequency)

        logger.debug(
            "Connection graph rebuilt: %d nodes, %d edges",
            self.graph.number_of_nodes(), self.graph.number_of_edges(),
        )

    def _connect(self, device1: Device, device2: Device, frequency: int):
        if device1.id == device2.id:
            return

        distance = device1.distance_to(device2)

        quality = device1.tx_signal_quality_at(device2, frequency)
        if quality is not None:
            self.graph.add_edge(device1.id, device2.id, distance=distance, quality=quality)

        quality = device2.tx_signal_quality_at(device1, frequency)
        if quality is not None:
            self.graph.add_edge(device2.id, device1.id, distance=distance, quality=quality)

    # --- Queries ---

    def contains(self, device_id: int) -> bool:
        return self.graph.has_node(device_id)

    def edges(self) -> List[Connection]:
        """All edges as (source, destination, distance, quality), sorted by ids."""
        return sorted(
            (source, destination, data['distance'], data['quality'])
            for source, destination, data in self.graph.edges(data=True)
        )

    def edge_count(self) -> int:
        return self.graph.number_of_edges()

    def dijkstra(self, source: int, destination: Optional[int] = None) -> Dict[int, float]:
        """
        Shortest distances from source, weighted by physical distance.

        Args:
            source: Start node
            destination: If given, only its distance is returned

        Returns:
            Node id -> distance in metres (empty if source is not in the graph
            or destination is unreachable)
        """
        if not self.graph.has_node(source):
            return {}

        distances = nx.single_source_dijkstra_path_length(self.graph, source, weight='distance')
        if destination is None:
            return dict(distances)
        if destination in distances:
            return {destination: distances[destination]}
        return {}

    def find_shortest_path(self, source: int, destination: int) -> Tuple[float, List[int]]:
        """
        Shortest path between two nodes.

        Returns:
            (total distance, node ids from source to destination)

        Raises:
            NoPathFound: If destination is unreachable or a node is unknown
            PathTooShort: If the path has fewer than two nodes
        """
        try:
            distance, path = nx.single_source_dijkstra(
                self.graph, source, destination, weight='distance'
            )
        except (nx.NetworkXNoPath, nx.NodeNotFound) as e:
            raise NoPathFound(f"No path from {source} to {destination}") from e

        if len(path) < 2:
            raise PathTooShort(f"Path from {source} to {destination} has {len(path)} node(s)")

        return distance, path

    def delay_map(
        self,
        source_device: Device,
        destination_id: int,
        devices: Mapping[int, Device],
        delay_multiplier: float,
    ) -> DelayMap:
        """
        Per-destination delays for a signal from source_device.

        Inside the graph delays follow shortest-path distance. A source outside
        the graph (or a destination it cannot route to) uses direct distance.

        Args:
            source_device: Sender
            destination_id: Receiver id or BROADCAST_ID
            devices: Active devices by id
            delay_multiplier: Delay stretch factor

        Returns:
            Device id -> delay in milliseconds
        """
        if self.graph.has_node(source_device.id):
            if destination_id == BROADCAST_ID:
                return {
                    device_id: delay_to(distance, delay_multiplier)
                    for device_id, distance in self.dijkstra(source_device.id).items()
                }

            distances = self.dijkstra(source_device.id, destination_id)
            if destination_id in distances:
                return {destination_id: delay_to(distances[destination_id], delay_multiplier)}

        if destination_id == BROADCAST_ID:
            return {
                device_id: delay_to(source_device.distance_to(devices[device_id]), delay_multiplier)
                for device_id in sorted(self.graph.nodes)
                if device_id in devices
            }

        destination_device = devices.get(destination_id)
        if destination_device is None:
            return {}
        return {destination_id: delay_to(source_device.distance_to(destination_device), delay_multiplier)}

    # --- Diagnostics ---

    def incoming_degrees(self) -> Dict[int, int]:
        return dict(self.graph.in_degree())

    def outgoing_degrees(self) -> Dict[int, int]:
        return dict(self.graph.out_degree())

    def diameter(self) -> float:
        """Largest shortest-path distance between any two connected nodes."""
        return max(
            (
                distance
                for node in self.graph.nodes
                for distance in self.dijkstra(node).values()
            ),
            default=0.0,
        )

    def betweenness_centrality(self) -> Dict[int, float]:
        """Normalized betweenness (hop count, endpoints included)."""
        return nx.betweenness_centrality(self.graph, normalized=True, endpoints=True)

    # --- Snapshot ---

    def to_dict(self) -> Dict[str, Any]:
        return {
            'edges': [
                [source, destination, [distance, quality.strength]]
                for source, destination, distance, quality in self.edges()
            ],
            'topology': self.topology.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ConnectionGraph':
        if 'edges' not in data:
            raise ValueError("Connection graph is missing field 'edges'")
        if 'topology' not in data:
            raise ValueError("Connection graph is missing field 'topology'")

        connections = cls(Topology(data['topology']))
        for source, destination, (distance, strength) in data['edges']:
            connections.graph.add_edge(
                int(source), int(destination),
                distance=float(distance), quality=SignalQuality(float(strength)),
            )
        return connections
