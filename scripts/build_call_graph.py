#!/usr/bin/env python3
"""Build the call graph of a Python repository and print each callable's direct dependencies."""

import argparse
import sys
from pathlib import Path

from callgraph.digester.repository_digester import RepositoryDigester
from callgraph.graph.call_graph import CallGraph, CallGraphNode
from callgraph.utils.config_loader import load_app_config


def print_dependencies(graph: CallGraph, node: CallGraphNode) -> None:
    print(f"{node.callable_name} [{node.kind}]")
    deps = graph.get_direct_dependencies(node)
    for child in sorted(deps, key=lambda n: str(n.callable_name)):
        ranges = ", ".join(str(edge.reference_range) for edge in deps[child])
        print(f"    -> {child.callable_name} ({ranges})")


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Print the call graph of a Python repository"
    )
    parser.add_argument("project_root", type=Path, help="Root of the repository to walk")
    parser.add_argument(
        "--config", type=Path, default=None, help="Optional config YAML"
    )
    parser.add_argument(
        "--callable", dest="callable_name", default=None,
        help="Only print the dependencies of this dotted callable name",
    )
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args()

    app_config = load_app_config(args.config)
    app_config["general"]["project_root"] = str(args.project_root.resolve())
    if args.verbose:
        app_config["general"]["verbose"] = True

    digester = RepositoryDigester(args.project_root, app_config)
    graph = digester.digest_repository()

    if args.callable_name:
        node = graph.get_node(args.callable_name)
        if node is None:
            print(f"Callable '{args.callable_name}' not found in the call graph.", file=sys.stderr)
            return 1
        print_dependencies(graph, node)
        return 0

    for node in sorted(graph.nodes, key=lambda n: str(n.callable_name)):
        print_dependencies(graph, node)
    summary = graph.summary()
    print(f"\n{summary['nodes']} callables, {summary['edges']} call sites.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
