import os
from dataclasses import dataclass, field


# Addresses are unsigned 64-bit integers
MAX_ADDRESS = 2**64 - 1

# Hop radii for the local subgraph features. All nodes are scheduled for the
# first radius before any node is scheduled for the next one.
SUBGRAPH_DISTANCES = (2, 3)

# Hard upper bound on the number of nodes of any extracted subgraph
MAX_SUBGRAPH_NODES = 30

# Length of the mnemonic n-grams
MNEMONIC_NGRAM_SIZE = 3

# Indentation used by the disassembly listing
BLOCK_INDENT = "\t\t"
INSTRUCTION_INDENT = "\t\t\t "


@dataclass
class FnsimOptions:
    """
    Options for a fnsim run, built from the command line arguments.

    Attributes:
        src_files (list[str]): Flowgraph JSON files to process.
        reports_dir (str): Directory to export the feature reports to.
        show_disassembly (bool): Print the disassembly of every graph.
        show_features (bool): Print a summary table of the features.
        export_features (bool): Write the features as JSON into reports_dir.
        quiet_mode (bool): Disable logging.
        no_error (bool): Do not exit with an error code on parse failures.
    """
    src_files: list[str] = field(default_factory=list)
    reports_dir: str = ""
    show_disassembly: bool = False
    show_features: bool = True
    export_features: bool = False
    quiet_mode: bool = False
    no_error: bool = False

    def __post_init__(self):
        if self.export_features and not self.reports_dir:
            self.reports_dir = os.path.join(os.getcwd(), "reports")
