"""
Connection Graph - Cables Between Device Ports

Directed, typed edges from output ports to input ports, kept in a NetworkX
MultiDiGraph (nodes are instance ids, edges are keyed by connection id) next
to an insertion-ordered dict that fixes the export order.

Rules enforced by ``connect``:
- both endpoints and ports exist
- source port is an output, destination port is an input
- source and destination are different devices
- signal categories are compatible (identical, or balanced <-> unbalanced)
- at most one cable terminates at any input port

Cable length is a pure function of the two endpoint positions:

    length = round(distance * 1.2 + 1.0, 0.1)

which models practical (non-straight) routing with 20% slack and a one
meter allowance, without pathfinding. Lengths are refreshed whenever an
instance moves.

The graph also owns the node positions of the connection view, a separate
coordinate space from the physical layout. Positions are assigned lazily by
``ensure_position`` to the next free cell of a growing grid.

Usage:
    graph = ConnectionGraph(registry)
    check = graph.validate(mixer_id, "main_out_l", monitor_id, "xlr_in")
    if check.valid:
        cable = graph.connect(mixer_id, "main_out_l", monitor_id, "xlr_in")
"""

import logging
from copy import deepcopy
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import networkx as nx

from ..config.settings import get_setting
from ..models.connection import CableConnection, ConnectionCheck
from ..models.equipment import EquipmentInstance
from ..models.geometry import BoundingBox, Position, round_to_tenth
from ..models.port_spec import (
    Port,
    PortDirection,
    PortLayout,
    categories_compatible,
    format_cable_type,
)
from .errors import NotFoundError, StudioError, ValidationError
from .registry import ItemRegistry, RegistryHook

logger = logging.getLogger(__name__)

CABLE_SLACK = 1.2
CABLE_ALLOWANCE = 1.0


def calculate_length(source: EquipmentInstance, destination: EquipmentInstance) -> float:
    """Estimate the cable length between two instances (meters)."""
    distance = source.position.distance_to(destination.position)
    return round_to_tenth(
        distance * CABLE_SLACK + CABLE_ALLOWANCE
    )


def connection_name(
    source: EquipmentInstance,
    source_port: Port,
    destination: EquipmentInstance,
    destination_port: Port,
) -> str:
    return (
        f"{source.name} {source_port.name} to "
        f"{destination.name} {destination_port.name}"
    )


@dataclass
class GraphSnapshot:
    """Deep copy of connection state for rollback."""
    connections: Dict[str, CableConnection]
    node_positions: Dict[str, Position]


class ConnectionGraph(RegistryHook):
    """Cable connections between the instances of an ItemRegistry."""

    def __init__(self, registry: ItemRegistry):
        self.registry = registry
        self._graph = nx.MultiDiGraph()
        self._connections: Dict[str, CableConnection] = {}
        self._node_positions: Dict[str, Position] = {}

        for instance in registry.all_items():
            self._graph.add_node(instance.id)
        registry.add_hook(self)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _resolve(
        self,
        from_instance_id: str,
        from_port_id: str,
        to_instance_id: str,
        to_port_id: str,
    ) -> Tuple[EquipmentInstance, Port, EquipmentInstance, Port]:
        """Resolve and check both endpoints, raising on the first violation."""
        source = self.registry.get(from_instance_id)
        destination = self.registry.get(to_instance_id)

        source_port = source.get_port(from_port_id)
        if source_port is None:
            raise NotFoundError("port", f"{from_port_id} on {source.name}")
        destination_port = destination.get_port(to_port_id)
        if destination_port is None:
            raise NotFoundError("port", f"{to_port_id} on {destination.name}")

        if (source_port.direction != PortDirection.OUTPUT
                or destination_port.direction != PortDirection.INPUT):
            raise ValidationError("must connect output to input")

        if source.id == destination.id:
            raise ValidationError("cannot connect to same device")

        if not categories_compatible(source_port.category, destination_port.category):
            raise ValidationError(
                f"cannot connect {source_port.category.value} "
                f"to {destination_port.category.value}"
            )

        return source, source_port, destination, destination_port

    def validate(
        self,
        from_instance_id: str,
        from_port_id: str,
        to_instance_id: str,
        to_port_id: str,
    ) -> ConnectionCheck:
        """Check whether a cable between two ports would be allowed.

        Occupancy of the destination port is not part of this check; see
        ``connect``.
        """
        try:
            self._resolve(from_instance_id, from_port_id, to_instance_id, to_port_id)
        except StudioError as e:
            return ConnectionCheck.rejected(e.message)
        return ConnectionCheck.ok()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def connect(
        self,
        from_instance_id: str,
        from_port_id: str,
        to_instance_id: str,
        to_port_id: str,
    ) -> CableConnection:
        """Create a validated cable from an output port to an input port.

        Returns:
            The new connection

        Raises:
            NotFoundError: If an instance or port does not exist
            ValidationError: If a rule is violated or the input port is
                already connected
        """
        source, source_port, destination, destination_port = self._resolve(
            from_instance_id, from_port_id, to_instance_id, to_port_id
        )

        if self.connection_into(destination.id, destination_port.id) is not None:
            raise ValidationError("already connected")

        from_end = source_port.cable_end()
        to_end = destination_port.cable_end()
        connection = CableConnection(
            name=connection_name(source, source_port, destination, destination_port),
            cable_type=format_cable_type(source_port, destination_port, from_end, to_end),
            from_instance_id=source.id,
            from_port_id=source_port.id,
            to_instance_id=destination.id,
            to_port_id=destination_port.id,
            from_cable_end=from_end,
            to_cable_end=to_end,
            length=calculate_length(source, destination),
        )
        self._add_edge(connection)

        logger.info(f"Connected {connection.name} ({connection.length}m)")
        return connection

    def disconnect(self, connection_id: str) -> Optional[CableConnection]:
        """Remove a connection. Unknown ids are ignored.

        Returns:
            The removed connection, or None
        """
        connection = self._connections.pop(connection_id, None)
        if connection is None:
            return None

        if self._graph.has_edge(connection.from_instance_id, connection.to_instance_id, key=connection_id):
            self._graph.remove_edge(
                connection.from_instance_id, connection.to_instance_id, key=connection_id
            )
        logger.debug(f"Disconnected {connection.name}")
        return connection

    def recalculate_all_lengths(self) -> None:
        """Recompute every cable length from the current endpoint positions."""
        for connection in self._connections.values():
            source = self.registry.find(connection.from_instance_id)
            destination = self.registry.find(connection.to_instance_id)
            if source is None or destination is None:
                continue
            connection.length = calculate_length(source, destination)

    def restore(self, connection: CableConnection) -> None:
        """Re-add a persisted connection after checking it still holds.

        Raises:
            NotFoundError / ValidationError: As for ``connect``
        """
        self._resolve(
            connection.from_instance_id,
            connection.from_port_id,
            connection.to_instance_id,
            connection.to_port_id,
        )
        if connection.id in self._connections:
            raise ValidationError(f"Connection {connection.id} already exists")
        if self.connection_into(connection.to_instance_id, connection.to_port_id) is not None:
            raise ValidationError("already connected")
        self._add_edge(connection)

    def _add_edge(self, connection: CableConnection) -> None:
        self._connections[connection.id] = connection
        self._graph.add_edge(
            connection.from_instance_id,
            connection.to_instance_id,
            key=connection.id,
            from_port=connection.from_port_id,
            to_port=connection.to_port_id,
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def connections(self) -> List[CableConnection]:
        return list(self._connections.values())

    def get(self, connection_id: str) -> CableConnection:
        connection = self._connections.get(connection_id)
        if connection is None:
            raise NotFoundError("connection", connection_id)
        return connection

    def connections_for(self, instance_id: str) -> List[CableConnection]:
        """Every connection touching an instance, in creation order."""
        if instance_id not in self._graph:
            return []
        keys = {key for _, _, key in self._graph.in_edges(instance_id, keys=True)}
        keys.update(key for _, _, key in self._graph.out_edges(instance_id, keys=True))
        return [c for c in self._connections.values() if c.id in keys]

    def connection_into(self, instance_id: str, port_id: str) -> Optional[CableConnection]:
        """The connection terminating at an input port, if any."""
        if instance_id not in self._graph:
            return None
        for _, _, key, data in self._graph.in_edges(instance_id, keys=True, data=True):
            if data.get("to_port") == port_id:
                return self._connections[key]
        return None

    def is_port_connected(self, instance_id: str, port_id: str) -> bool:
        for connection in self.connections_for(instance_id):
            if (connection.from_instance_id == instance_id and connection.from_port_id == port_id) or (
                connection.to_instance_id == instance_id and connection.to_port_id == port_id
            ):
                return True
        return False

    def total_length(self) -> float:
        return round_to_tenth(sum(c.length for c in self._connections.values()))

    def __len__(self) -> int:
        return len(self._connections)

    # ------------------------------------------------------------------
    # Connection-view node layout
    # ------------------------------------------------------------------

    def node_position(self, instance_id: str) -> Optional[Position]:
        """Stored connection-view position, or None if never assigned."""
        return self._node_positions.get(instance_id)

    def node_positions(self) -> Dict[str, Position]:
        return dict(self._node_positions)

    def ensure_position(self, instance_id: str) -> Position:
        """Return the node position, assigning the next free grid cell first if needed.

        Cells are ``node_grid_size`` apart, filled row by row with
        ``node_grid_columns`` cells per row. A cell counts as taken when an
        existing position lies within ``node_grid_tolerance`` of it.
        """
        existing = self._node_positions.get(instance_id)
        if existing is not None:
            return existing

        size = get_setting('node_grid_size')
        columns = int(get_setting('node_grid_columns'))
        tolerance = get_setting('node_grid_tolerance')
        taken = list(self._node_positions.values())

        def occupied(x: float, y: float) -> bool:
            return any(abs(p.x - x) < tolerance and abs(p.y - y) < tolerance for p in taken)

        row, col = 0, 0
        while occupied(col * size, row * size):
            col += 1
            if col >= columns:
                col = 0
                row += 1

        position = Position(x=col * size, y=row * size)
        self._node_positions[instance_id] = position
        logger.debug(f"Assigned node position ({position.x}, {position.y}) to {instance_id}")
        return position

    def ensure_all_positions(self) -> None:
        """Assign node positions to every registered instance (call before drawing)."""
        for instance in self.registry.all_items():
            self.ensure_position(instance.id)

    def update_node_position(self, instance_id: str, x: float, y: float) -> None:
        self.registry.get(instance_id)
        self._node_positions[instance_id] = Position(x=x, y=y)

    def set_node_positions(self, positions: Dict[str, Position]) -> None:
        """Replace node positions wholesale (used when loading a project)."""
        self._node_positions = {
            instance_id: position
            for instance_id, position in positions.items()
            if self.registry.exists(instance_id)
        }

    @staticmethod
    def node_size(instance: EquipmentInstance) -> Tuple[float, float]:
        """(width, height) of the node card drawn for an instance."""
        return PortLayout.node_size(instance.ports)

    def node_bounds(self, instance: EquipmentInstance) -> Optional[BoundingBox]:
        position = self._node_positions.get(instance.id)
        if position is None:
            return None
        width, height = self.node_size(instance)
        return BoundingBox.around(position, width, height)

    def port_anchor(self, instance_id: str, port_id: str) -> Optional[Position]:
        """World position of a port anchor in the connection view."""
        instance = self.registry.get(instance_id)
        position = self._node_positions.get(instance_id)
        offset = PortLayout.anchor_offset(instance.ports, port_id)
        if position is None or offset is None:
            return None
        return Position(x=position.x + offset[0], y=position.y + offset[1])

    def hit_test_node(self, world_point: Position) -> Optional[EquipmentInstance]:
        """First instance whose node card contains the point."""
        for instance in self.registry.all_items():
            bounds = self.node_bounds(instance)
            if bounds is not None and bounds.contains(world_point):
                return instance
        return None

    def hit_test_port(
        self,
        world_point: Position,
        direction: Optional[PortDirection] = None,
    ) -> Optional[Tuple[EquipmentInstance, Port]]:
        """Nearest port anchor within the hit radius, optionally of one direction."""
        best: Optional[Tuple[EquipmentInstance, Port]] = None
        best_distance = PortLayout.ANCHOR_HIT_RADIUS
        for instance in self.registry.all_items():
            if instance.id not in self._node_positions:
                continue
            for port in instance.ports:
                if direction is not None and port.direction != direction:
                    continue
                anchor = self.port_anchor(instance.id, port.id)
                distance = anchor.distance_to(world_point)
                if distance <= best_distance:
                    best, best_distance = (instance, port), distance
        return best

    # ------------------------------------------------------------------
    # Registry hooks
    # ------------------------------------------------------------------

    def on_added(self, instance: EquipmentInstance) -> None:
        self._graph.add_node(instance.id)

    def on_moved(self, instance: EquipmentInstance, old_position: Position) -> None:
        self.recalculate_all_lengths()

    def on_removing(self, instance: EquipmentInstance) -> None:
        for connection in self.connections_for(instance.id):
            self.disconnect(connection.id)

    def on_removed(self, instance: EquipmentInstance) -> None:
        if instance.id in self._graph:
            self._graph.remove_node(instance.id)
        self._node_positions.pop(instance.id, None)

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def create_snapshot(self) -> GraphSnapshot:
        return GraphSnapshot(
            connections=deepcopy(self._connections),
            node_positions=deepcopy(self._node_positions),
        )

    def restore_snapshot(self, snapshot: GraphSnapshot) -> None:
        """Restore connections and rebuild the adjacency from the registry."""
        self._connections = deepcopy(snapshot.connections)
        self._node_positions = deepcopy(snapshot.node_positions)
        self._graph = nx.MultiDiGraph()
        for instance in self.registry.all_items():
            self._graph.add_node(instance.id)
        for connection in self._connections.values():
            self._graph.add_edge(
                connection.from_instance_id,
                connection.to_instance_id,
                key=connection.id,
                from_port=connection.from_port_id,
                to_port=connection.to_port_id,
            )

    def to_networkx(self) -> nx.MultiDiGraph:
        """Copy of the underlying graph (for analysis by callers)."""
        return self._graph.copy()


__all__ = [
    "calculate_length",
    "connection_name",
    "ConnectionGraph",
    "GraphSnapshot",
]
