import copy
from collections import deque

import orjson

from fnsim.config import BLOCK_INDENT, INSTRUCTION_INDENT, MAX_ADDRESS
from fnsim.lib.instruction import Instruction
from fnsim.logger import LOG


def is_address(value):
    """Checks that the value is usable as an unsigned 64-bit address."""
    return (
        isinstance(value, int)
        and not isinstance(value, bool)
        and 0 <= value <= MAX_ADDRESS
    )


def dot_escape(text):
    """Escapes text for use inside a double quoted DOT string."""
    return text.replace("\\", "\\\\").replace('"', '\\"')


class Flowgraph:
    """
    Directed graph over integer addresses.

    Nodes are enumerated in insertion order. Edges may reference addresses
    that were never added as nodes; such edges are kept but never followed
    when extracting subgraphs.
    """

    def __init__(self):
        # dicts are used as insertion-ordered sets
        self._nodes = {}
        self._edges = {}
        self._children = {}
        self._parents = {}

    def add_node(self, address):
        self._nodes[address] = None
        return True

    def add_edge(self, source, destination):
        if (source, destination) in self._edges:
            return True
        self._edges[(source, destination)] = None
        self._children.setdefault(source, set()).add(destination)
        self._parents.setdefault(destination, set()).add(source)
        return True

    def has_node(self, address):
        return address in self._nodes

    def get_nodes(self):
        return list(self._nodes)

    def get_edges(self):
        return list(self._edges)

    def get_children(self, address):
        return sorted(self._children.get(address, ()))

    def get_parents(self, address):
        return sorted(self._parents.get(address, ()))

    def get_size(self):
        return len(self._nodes)

    def clone(self):
        """Returns a deep copy of the graph and of any data attached to its nodes.

        This is expensive for large functions and is never done implicitly.
        """
        return copy.deepcopy(self)

    def _neighbours(self, address):
        for child in self.get_children(address):
            if child in self._nodes:
                yield child
        for parent in self.get_parents(address):
            if parent in self._nodes:
                yield parent

    def get_subgraph(self, center, distance, max_size):
        """Extracts the neighbourhood of a node as a new graph.

        The traversal is breadth first and ignores edge direction: a hop is
        either a successor or a predecessor. Successors are visited before
        predecessors, each in ascending address order. Traversal stops as
        soon as max_size nodes have been retained, so the nodes closest to
        the center are the ones kept.

        Args:
            center (int): Address of the node to start from.
            distance (int): Maximum number of hops from the center.
            max_size (int): Maximum number of nodes in the result.

        Returns:
            Flowgraph: A new graph with the retained nodes and every edge of
            this graph between two retained nodes. Empty when center is not a
            node of this graph.
        """
        subgraph = Flowgraph()
        if center not in self._nodes:
            return subgraph
        queue = deque([(center, 0)])
        seen = {center}
        while queue and subgraph.get_size() < max_size:
            node, hops = queue.popleft()
            subgraph.add_node(node)
            if hops >= distance:
                continue
            for neighbour in self._neighbours(node):
                if neighbour not in seen:
                    seen.add(neighbour)
                    queue.append((neighbour, hops + 1))
        for source, destination in self._edges:
            if subgraph.has_node(source) and subgraph.has_node(destination):
                subgraph.add_edge(source, destination)
        return subgraph

    def _node_label(self, address):
        """Returns the escaped DOT label of a node."""
        return f"{address:#x}"

    def get_dot(self):
        """Renders the graph in Graphviz DOT format."""
        lines = ["digraph g {", '  node [shape=box, fontname="monospace"];']
        for address in self._nodes:
            label = self._node_label(address)
            lines.append(f'  "{address:#x}" [label="{label}"];')
        for source, destination in self._edges:
            lines.append(f'  "{source:#x}" -> "{destination:#x}";')
        lines.append("}")
        return "\n".join(lines) + "\n"


def _parse_instruction_json(instruction):
    if not isinstance(instruction, dict):
        return None
    if "mnemonic" not in instruction or "operands" not in instruction:
        return None
    mnemonic = instruction["mnemonic"]
    operands = instruction["operands"]
    if not isinstance(mnemonic, str) or not mnemonic:
        return None
    if not isinstance(operands, list):
        return None
    if not all(isinstance(operand, str) for operand in operands):
        return None
    return Instruction(mnemonic, operands)


class FlowgraphWithInstructions(Flowgraph):
    """
    Flowgraph whose nodes carry the list of instructions of the basic block
    starting at the node's address.
    """

    def __init__(self):
        super().__init__()
        self._instructions = {}

    def add_instructions(self, address, instructions):
        """Attaches instructions to a node, replacing any previous list."""
        self._instructions[address] = list(instructions)
        return True

    def get_instructions(self):
        """Returns the instruction lists keyed by address in ascending order."""
        return {
            address: self._instructions[address]
            for address in sorted(self._instructions)
        }

    def get_node_instructions(self, address):
        return self._instructions.get(address, [])

    def parse_node_json(self, node):
        """
        Adds a node and its instructions from its JSON representation.

        The node is only added once all of its instructions have been parsed,
        so a malformed instruction leaves the graph untouched.

        Args:
            node (dict): Object with an `address` and an `instructions` array.

        Returns:
            bool: True if the node was added.
        """
        if not isinstance(node, dict) or "address" not in node or "instructions" not in node:
            LOG.debug("Node is missing the address or instructions field")
            return False
        address = node["address"]
        if not is_address(address) or not isinstance(node["instructions"], list):
            LOG.debug(f"Node {address!r} has an invalid address or instructions field")
            return False
        instructions = []
        for entry in node["instructions"]:
            instruction = _parse_instruction_json(entry)
            if instruction is None:
                LOG.debug(f"Node {address:#x} has a malformed instruction {entry!r}")
                return False
            instructions.append(instruction)
        self.add_node(address)
        self.add_instructions(address, instructions)
        return True

    def parse_edge_json(self, edge):
        """Adds a directed edge from its JSON representation."""
        if not isinstance(edge, dict) or "source" not in edge or "destination" not in edge:
            LOG.debug("Edge is missing the source or destination field")
            return False
        source = edge["source"]
        destination = edge["destination"]
        if not is_address(source) or not is_address(destination):
            LOG.debug(f"Edge {source!r} -> {destination!r} has an invalid address")
            return False
        self.add_edge(source, destination)
        return True

    def parse_json(self, json_graph):
        """
        Populates the graph from a parsed JSON document. Nodes are processed
        before edges and parsing stops at the first malformed element.
        Elements parsed before the failure stay in the graph.

        Args:
            json_graph (dict): Document with `nodes` and `edges` arrays.

        Returns:
            bool: True if every node and edge was parsed.
        """
        if not isinstance(json_graph, dict) or "nodes" not in json_graph or "edges" not in json_graph:
            LOG.debug("Flowgraph document is missing the nodes or edges field")
            return False
        if not isinstance(json_graph["nodes"], list) or not isinstance(json_graph["edges"], list):
            LOG.debug("Flowgraph nodes and edges must be arrays")
            return False
        for node in json_graph["nodes"]:
            if not self.parse_node_json(node):
                return False
        for edge in json_graph["edges"]:
            if not self.parse_edge_json(edge):
                return False
        return True

    def to_json(self):
        """Returns the graph as a document in the flowgraph JSON format.

        The format has no way to express instructions without a node or a
        node without instructions: instructions attached to addresses that
        are not nodes are left out, and nodes without instructions are
        written with an empty instruction list.
        """
        return {
            "nodes": [
                {
                    "address": address,
                    "instructions": [
                        instruction.to_json()
                        for instruction in self.get_node_instructions(address)
                    ],
                }
                for address in self.get_nodes()
            ],
            "edges": [
                {"source": source, "destination": destination}
                for source, destination in self.get_edges()
            ],
        }

    def to_json_text(self):
        return orjson.dumps(self.to_json(), option=orjson.OPT_INDENT_2).decode("utf-8")

    def get_disassembly(self):
        """
        Renders the function as text: a header naming the lowest block
        address, then every block in ascending address order with its
        instruction count and its instructions.

        Raises:
            ValueError: If no instructions were attached to the graph.
        """
        instructions = self.get_instructions()
        if not instructions:
            raise ValueError("Cannot disassemble a flowgraph without instructions")
        # The lowest block address is taken as the function start
        lines = [f"\n[!] Function at {next(iter(instructions)):x}\n"]
        for address, block in instructions.items():
            lines.append(f"{BLOCK_INDENT}Block at {address:x} ({len(block)})\n")
            for instruction in block:
                lines.append(f"{INSTRUCTION_INDENT}{instruction.as_string()}\n")
        return "".join(lines)

    def _node_label(self, address):
        block = self.get_node_instructions(address)
        return "\\l".join(
            [f"{address:#x}"] + [dot_escape(instruction.as_string()) for instruction in block]
        ) + "\\l"


def flowgraph_from_json(json_text):
    """Parses a flowgraph from JSON text.

    Args:
        json_text (str | bytes): The JSON document.

    Returns:
        tuple[FlowgraphWithInstructions, bool]: The graph and whether parsing
        succeeded. On failure the graph holds whatever was parsed before the
        first malformed element.
    """
    graph = FlowgraphWithInstructions()
    try:
        json_graph = orjson.loads(json_text)
    except orjson.JSONDecodeError as e:
        LOG.debug(f"Caught {type(e)}: {e} while parsing the flowgraph JSON")
        return graph, False
    if not isinstance(json_graph, dict) or "nodes" not in json_graph or "edges" not in json_graph:
        LOG.debug("Flowgraph document is missing the nodes or edges field")
        return graph, False
    return graph, graph.parse_json(json_graph)


def flowgraph_from_json_file(file_name):
    """Reads a whole file and parses it as a flowgraph JSON document."""
    try:
        with open(file_name, "rb") as fp:
            json_text = fp.read()
    except OSError as e:
        LOG.debug(f"Caught {type(e)}: {e} while reading {file_name}")
        return FlowgraphWithInstructions(), False
    return flowgraph_from_json(json_text)
