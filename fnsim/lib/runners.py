import os
import sys

from rich.markup import escape
from rich.progress import Progress

from fnsim.config import FnsimOptions
from fnsim.lib.features import FlowgraphWithInstructionsFeatureGenerator
from fnsim.lib.flowgraph import flowgraph_from_json_file
from fnsim.lib.utils import (
    collect_features,
    export_features,
    gen_file_list,
    print_features_table,
    summarize_features,
)
from fnsim.logger import console, LOG


def run_default_mode(fnsim_options: FnsimOptions) -> None:
    graph_files = gen_file_list(fnsim_options.src_files)
    if not graph_files:
        LOG.error("No flowgraph files to process.")
        if not fnsim_options.no_error:
            sys.exit(1)
        return
    runner = FeatureRunner()
    summaries, failures = runner.start(fnsim_options, graph_files)
    if fnsim_options.show_features and summaries:
        print_features_table(summaries, graph_files)
    if failures and not fnsim_options.no_error:
        sys.exit(1)


class FeatureRunner:
    """Class to generate the features of flowgraph files."""

    def __init__(self):
        self.summaries = []
        self.failures = []
        self.progress = Progress(
            transient=True,
            redirect_stderr=True,
            redirect_stdout=True,
            refresh_per_second=1,
        )
        self.task = None

    def start(self, fnsim_options, graph_files):
        """Parses every flowgraph file and generates its features.

        Returns:
            tuple: The feature summaries and the files that failed to parse.
        """
        with self.progress:
            self.task = self.progress.add_task(
                f"[green] Generating features for {len(graph_files)} functions",
                total=len(graph_files),
                start=True,
            )
            for f in graph_files:
                self._process_file(f, fnsim_options)
        return self.summaries, self.failures

    def _process_file(self, f, fnsim_options):
        fname = escape(f)
        self.progress.update(self.task, description=f"Parsing [bold]{fname}[/bold]")
        flowgraph, ok = flowgraph_from_json_file(f)
        if not ok:
            LOG.error(f"Unable to parse the flowgraph in {fname}")
            self.failures.append(f)
            self.progress.advance(self.task)
            return
        name = os.path.splitext(os.path.basename(f))[0]
        if fnsim_options.show_disassembly:
            if flowgraph.get_instructions():
                console.print(flowgraph.get_disassembly(), markup=False, highlight=False)
            else:
                LOG.warning(f"{fname} has no instructions to disassemble")
        self.progress.update(self.task, description=f"Generating features for [bold]{fname}[/bold]")
        generator = FlowgraphWithInstructionsFeatureGenerator(flowgraph)
        features = collect_features(generator, flowgraph.get_size())
        self.summaries.append(summarize_features(name, flowgraph, features))
        if fnsim_options.export_features:
            export_features(fnsim_options.reports_dir, features, name)
        self.progress.advance(self.task)
