from collections import deque

from fnsim.config import MAX_SUBGRAPH_NODES, MNEMONIC_NGRAM_SIZE, SUBGRAPH_DISTANCES


def build_mnemonic_ngrams(flowgraph, size=MNEMONIC_NGRAM_SIZE):
    """
    Builds the contiguous mnemonic n-grams of a function.

    The mnemonics of all blocks are concatenated in ascending block address
    order, so an n-gram may span the end of one block and the start of the
    next one even when no edge connects them.

    Args:
        flowgraph (FlowgraphWithInstructions): The function.
        size (int): Length of each n-gram.

    Returns:
        list[tuple[str, ...]]: The n-grams in sequence order.
    """
    sequence = [
        instruction.mnemonic
        for block in flowgraph.get_instructions().values()
        for instruction in block
    ]
    return [
        tuple(sequence[index:index + size])
        for index in range(len(sequence) - size + 1)
    ]


class FlowgraphWithInstructionsFeatureGenerator:
    """
    Enumerates the features of one function: the neighbourhood subgraph of
    every node for each hop distance, and the mnemonic 3-grams of its
    instruction stream.

    Both feature streams are single pass. Once a stream has been drained it
    stays empty; build a new generator to enumerate the features again. The
    flowgraph is only read, never modified.

    Pulling from a drained stream raises IndexError.
    """

    def __init__(self, flowgraph):
        self._flowgraph = flowgraph
        nodes = flowgraph.get_nodes()
        self._nodes_and_distance = deque(
            (node, distance) for distance in SUBGRAPH_DISTANCES for node in nodes
        )
        self._mnem_tuples = deque(build_mnemonic_ngrams(flowgraph))

    def has_more_subgraphs(self):
        return bool(self._nodes_and_distance)

    def get_next_subgraph(self):
        """
        Returns the next subgraph feature.

        Returns:
            tuple[Flowgraph, int]: A new graph holding at most
            MAX_SUBGRAPH_NODES nodes around the center node, and the address
            of the center node.
        """
        if not self._nodes_and_distance:
            raise IndexError("No more subgraphs to generate")
        node, distance = self._nodes_and_distance.popleft()
        return self._flowgraph.get_subgraph(node, distance, MAX_SUBGRAPH_NODES), node

    def has_more_mnemonics(self):
        return bool(self._mnem_tuples)

    def get_next_mnem_tuple(self):
        if not self._mnem_tuples:
            raise IndexError("No more mnemonic tuples to generate")
        return self._mnem_tuples.popleft()

    def subgraphs(self):
        """Yields the remaining (subgraph, center) pairs."""
        while self.has_more_subgraphs():
            yield self.get_next_subgraph()

    def mnemonic_tuples(self):
        """Yields the remaining mnemonic tuples."""
        while self.has_more_mnemonics():
            yield self.get_next_mnem_tuple()
