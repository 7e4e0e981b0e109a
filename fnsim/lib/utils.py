import os
from collections import Counter
from pathlib import Path
from typing import Dict

import orjson
from rich import box
from rich.markup import escape
from rich.table import Table

from fnsim.config import SUBGRAPH_DISTANCES
from fnsim.logger import console, LOG

# Extensions of flowgraph documents picked up from directories
KNOWN_GRAPH_EXTNS = (".json",)


def find_files(path, extns):
    """
    Returns the files under path having one of the given extensions.

    Args:
        path (str): Directory to search.
        extns (tuple[str]): File extensions to look for.

    Returns:
        list[str]: Absolute file paths, sorted.
    """
    result = []
    for root, _, files in os.walk(path):
        for file in files:
            if file.lower().endswith(extns):
                result.append(os.path.abspath(os.path.join(root, file)))
    return sorted(result)


def gen_file_list(src: list[str]) -> list[str]:
    """Generates the list of flowgraph files from files and directories.

    Args:
        src (list[str]): Source files or directories.

    Returns:
        list[str]: A list of files.
    """
    files = []
    for s in src:
        if os.path.isdir(s):
            files += find_files(s, KNOWN_GRAPH_EXTNS)
        else:
            files.append(os.path.abspath(s))
    return files


def collect_features(generator, node_count) -> Dict:
    """
    Drains both feature streams of a generator into a serializable dict.

    Args:
        generator (FlowgraphWithInstructionsFeatureGenerator): A fresh generator.
        node_count (int): Number of nodes of the generator's flowgraph.

    Returns:
        dict: `subgraphs` with one entry per (center, distance) request and
        `mnemonic_tuples` with the n-grams in order.
    """
    subgraphs = []
    for index, (subgraph, center) in enumerate(generator.subgraphs()):
        subgraphs.append(
            {
                "center": center,
                "distance": SUBGRAPH_DISTANCES[index // node_count],
                "nodes": subgraph.get_nodes(),
                "edges": [list(edge) for edge in subgraph.get_edges()],
            }
        )
    mnemonic_tuples = [list(t) for t in generator.mnemonic_tuples()]
    return {"subgraphs": subgraphs, "mnemonic_tuples": mnemonic_tuples}


def export_features(directory: str, features: Dict, name: str):
    """
    Exports the features of a function to a JSON file.
    """
    if not os.path.exists(directory):
        os.makedirs(directory)
    outfile = Path(directory) / f"{name.lower()}-features.json"
    output = orjson.dumps(features, option=orjson.OPT_INDENT_2)
    with open(outfile, "wb") as fp:
        fp.write(output)
    LOG.debug(f"Features written to {outfile}")
    return str(outfile)


def create_features_table(files: list[str], title: str) -> Table:
    """
    Creates a table for displaying feature summaries.

    Args:
        files: The list of files.
        title: The title of the table.

    Returns:
        Table: The created table.
    """
    table = Table(
        title=title,
        box=box.DOUBLE_EDGE,
        header_style="bold magenta",
        show_lines=True,
    )
    if len(files) > 1:
        table.add_column("Graph")
    table.add_column("Nodes")
    table.add_column("Edges")
    table.add_column("Subgraphs")
    table.add_column("Largest subgraph")
    table.add_column("Mnemonic tuples")
    table.add_column("Top tuple")
    return table


def print_features_table(summaries, files):
    """
    Prints one row per function summarizing its features.

    Args:
        summaries (list[dict]): Summaries produced by `summarize_features`.
        files (list[str]): The processed files.
    """
    table = create_features_table(files, "Function Features")
    for s in summaries:
        row = [
            str(s.get("nodes")),
            str(s.get("edges")),
            str(s.get("subgraphs")),
            str(s.get("largest_subgraph")),
            str(s.get("mnemonic_tuples")),
            escape(s.get("top_tuple") or ""),
        ]
        if len(files) > 1:
            row.insert(0, escape(s.get("name")))
        table.add_row(*row)
    console.print(table)


def summarize_features(name, flowgraph, features):
    """Summarizes collected features for display."""
    tuple_counts = Counter(tuple(t) for t in features["mnemonic_tuples"])
    top_tuple = ""
    if tuple_counts:
        (top, count), = tuple_counts.most_common(1)
        top_tuple = f"{' '.join(top)} ({count})"
    return {
        "name": name,
        "nodes": flowgraph.get_size(),
        "edges": len(flowgraph.get_edges()),
        "subgraphs": len(features["subgraphs"]),
        "largest_subgraph": max(
            (len(s["nodes"]) for s in features["subgraphs"]), default=0
        ),
        "mnemonic_tuples": len(features["mnemonic_tuples"]),
        "top_tuple": top_tuple,
    }
