from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import libcst as cst
from libcst.metadata import MetadataWrapper

from callgraph.graph.call_graph import CallGraph
from .call_graph_visitor import walk_module


@dataclass
class ParsedFileResult:
    file_path: Path
    module_qname: str
    source_code: str
    libcst_module: Optional[cst.Module] = None
    libcst_error: Optional[str] = None


class RepositoryDigester:
    def __init__(self,
                 repo_path: Union[str, Path],
                 app_config: Dict[str, Any]
                ):
        """
        Initializes the RepositoryDigester.

        Args:
            repo_path: The path to the repository to be digested.
            app_config: Application configuration dictionary (see config_loader).
                        'general.verbose' and the 'call_graph' section are read from it.
        """
        self.repo_path = Path(repo_path).resolve()
        self.app_config = app_config
        self.verbose = self.app_config.get("general", {}).get("verbose", False)
        self.call_graph_config: Dict[str, Any] = self.app_config.get("call_graph", {})

        if not self.repo_path.is_dir():
            raise ValueError(f"Repository path {self.repo_path} is not a valid directory.")

        self._all_py_files: List[Path] = []
        self.digested_files: Dict[Path, ParsedFileResult] = {}
        self.call_graph: CallGraph = CallGraph()

    @staticmethod
    def _get_module_qname_from_path(file_path: Path, project_root: Path) -> str:
        try:
            parts = list(file_path.relative_to(project_root).with_suffix("").parts)
        except ValueError:
            return file_path.stem
        if len(parts) > 1 and parts[-1] == "__init__":
            parts.pop()  # pkg/__init__.py defines pkg
        return ".".join(parts)

    def discover_python_files(self) -> List[Path]:
        self._all_py_files = []
        ignored_dirs = set(self.call_graph_config.get("ignored_dirs", []))
        ignored_files = set(self.call_graph_config.get("ignored_files", []))
        for py_file in sorted(self.repo_path.rglob("*.py")):
            if py_file.name in ignored_files:
                continue
            if any(part in ignored_dirs for part in py_file.relative_to(self.repo_path).parts[:-1]):
                continue
            self._all_py_files.append(py_file)
        if self.verbose:
            print(f"RepositoryDigester: Discovered {len(self._all_py_files)} Python files.")
        return list(self._all_py_files)

    def parse_file(self, file_path: Path) -> ParsedFileResult:
        module_qname = self._get_module_qname_from_path(file_path, self.repo_path)
        try:
            source_code = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e_read:
            return ParsedFileResult(file_path=file_path, module_qname=module_qname, source_code="",
                                    libcst_error=f"File read error: {e_read}")

        try:
            libcst_module = cst.parse_module(source_code)
        except cst.ParserSyntaxError as e_cst:
            return ParsedFileResult(file_path=file_path, module_qname=module_qname, source_code=source_code,
                                    libcst_error=f"LibCST PSE: {e_cst.message}")
        return ParsedFileResult(file_path=file_path, module_qname=module_qname,
                                source_code=source_code, libcst_module=libcst_module)

    def digest_repository(self) -> CallGraph:
        """
        Walks every discovered Python file into a fresh call graph.

        All definitions across the repository are registered first, then all call
        sites are recorded. Files that cannot be read or parsed are reported and
        skipped. The graph is sealed afterwards when 'call_graph.seal_after_build' is set.

        Returns:
            The populated CallGraph (also kept on ``self.call_graph``).
        """
        self.call_graph = CallGraph()
        self.digested_files = {}
        self.discover_python_files()
        if not self._all_py_files:
            print("RepositoryDigester: No Python files found.")

        wrappers: List[tuple] = []
        num_total_files = len(self._all_py_files)
        for i, py_file in enumerate(self._all_py_files):
            if self.verbose:
                print(f"RepositoryDigester: Parsing file {i+1}/{num_total_files}: {py_file.name}...")
            parsed_result = self.parse_file(py_file)
            self.digested_files[py_file] = parsed_result
            if parsed_result.libcst_module is None:
                print(f"RepositoryDigester Warning: Skipping {py_file}: {parsed_result.libcst_error}")
                continue
            wrappers.append((MetadataWrapper(parsed_result.libcst_module), parsed_result))

        resolve_constructors = self.call_graph_config.get("resolve_constructors", True)
        for wrapper, parsed_result in wrappers:
            walk_module(wrapper, parsed_result.module_qname, self.call_graph,
                        file_path=parsed_result.file_path, record_calls=False, verbose=self.verbose)
        unresolved = 0
        for wrapper, parsed_result in wrappers:
            visitor = walk_module(wrapper, parsed_result.module_qname, self.call_graph,
                                  file_path=parsed_result.file_path,
                                  resolve_constructors=resolve_constructors,
                                  register_definitions=False, verbose=self.verbose)
            unresolved += visitor.unresolved_calls

        if self.call_graph_config.get("seal_after_build", True):
            self.call_graph.seal()
        if self.verbose:
            summary = self.call_graph.summary()
            print(f"RepositoryDigester: Call graph built: {summary['nodes']} callables, "
                  f"{summary['edges']} call sites, {unresolved} unresolved calls.")
        return self.call_graph

    @property
    def failed_files(self) -> Dict[Path, str]:
        return {path: result.libcst_error for path, result in self.digested_files.items()
                if result.libcst_error}
