import re
from pathlib import Path
from typing import List, Optional, Tuple

import libcst as cst
from libcst.metadata import MetadataWrapper, PositionProvider, QualifiedNameProvider, QualifiedNameSource

from callgraph.graph.call_graph import CallGraph
from callgraph.graph.graph_structures import Range

_PASCAL_CASE = re.compile(r"^[A-Z]")
_LOCALS = "<locals>"


class CallGraphVisitor(cst.CSTVisitor):
    """
    Walks one module and feeds a CallGraph.

    Function, method and class definitions are registered with ``add_callable``
    (when ``register_definitions`` is set); every call made inside a function body is
    recorded with ``add_call``, one edge per call site (when ``record_calls`` is set).
    Names follow libcst's qualified-name convention, including the ``<locals>``
    segment for definitions nested in functions.
    """

    METADATA_DEPENDENCIES = (PositionProvider, QualifiedNameProvider)

    def __init__(
        self,
        module_qname: str,
        call_graph: CallGraph,
        file_path: Optional[Path] = None,
        resolve_constructors: bool = True,
        register_definitions: bool = True,
        record_calls: bool = True,
        verbose: bool = False,
    ):
        super().__init__()
        self.module_qname: str = module_qname
        self.call_graph: CallGraph = call_graph
        self.file_path: Optional[Path] = file_path
        self.resolve_constructors = resolve_constructors
        self.register_definitions = register_definitions
        self.record_calls = record_calls
        self.verbose = verbose
        # (simple name, "class" | "function") for each enclosing definition
        self.scope_stack: List[Tuple[str, str]] = []
        self.unresolved_calls: int = 0

    def _qualified_name_for(self, depth: int) -> str:
        parts = [self.module_qname] if self.module_qname else []
        for i, (name, _kind) in enumerate(self.scope_stack[:depth]):
            if i > 0 and self.scope_stack[i - 1][1] == "function":
                parts.append(_LOCALS)
            parts.append(name)
        return ".".join(parts)

    def _innermost_index(self, kind: str) -> Optional[int]:
        for i in range(len(self.scope_stack) - 1, -1, -1):
            if self.scope_stack[i][1] == kind:
                return i
        return None

    def _get_current_caller_fqn(self) -> Optional[str]:
        idx = self._innermost_index("function")
        if idx is None:
            return None  # Module or class body
        return self._qualified_name_for(idx + 1)

    def _register_definition(self, name: str, kind: str) -> None:
        if not self.register_definitions:
            return
        self.scope_stack.append((name, kind))
        fqn = self._qualified_name_for(len(self.scope_stack))
        self.scope_stack.pop()
        if kind == "function" and self.scope_stack and self.scope_stack[-1][1] == "class":
            node_kind = "method"
        else:
            node_kind = kind
        self.call_graph.add_callable(
            fqn, kind=node_kind, file_path=str(self.file_path) if self.file_path else None
        )

    def _resolve_callee_fqn(self, call_node: cst.Call) -> Optional[str]:
        func_expr = call_node.func

        # self.method(): resolve against the innermost enclosing class
        if (
            isinstance(func_expr, cst.Attribute)
            and isinstance(func_expr.value, cst.Name)
            and func_expr.value.value == "self"
        ):
            class_idx = self._innermost_index("class")
            if class_idx is not None:
                return f"{self._qualified_name_for(class_idx + 1)}.{func_expr.attr.value}"

        qnames = self.get_metadata(QualifiedNameProvider, func_expr, set())
        if qnames:
            # Several candidates when a name is conditionally bound; take the first by name
            qname = sorted(qnames, key=lambda q: q.name)[0]
            if qname.source == QualifiedNameSource.LOCAL and self.module_qname:
                resolved = f"{self.module_qname}.{qname.name}"
            else:
                resolved = qname.name
            # Names bound inside a function (parameters, local variables and attributes
            # reached through them) are not callables unless they are nested definitions
            if _LOCALS in qname.name and self.call_graph.get_node(resolved) is None:
                return None
        elif isinstance(func_expr, cst.Name):
            # Name with no binding in this module (star import, injected global)
            resolved = f"{self.module_qname}.{func_expr.value}" if self.module_qname else func_expr.value
        else:
            return None

        last_segment = resolved.rsplit(".", 1)[-1]
        if self.resolve_constructors and _PASCAL_CASE.match(last_segment):
            resolved += ".__init__"
        return resolved

    def visit_FunctionDef(self, node: cst.FunctionDef) -> None:
        self._register_definition(node.name.value, "function")

    # Decorators, parameter defaults and annotations run in the enclosing scope.
    # Only the body belongs to the function itself.
    def visit_FunctionDef_body(self, node: cst.FunctionDef) -> None:
        self.scope_stack.append((node.name.value, "function"))

    def leave_FunctionDef_body(self, node: cst.FunctionDef) -> None:
        self.scope_stack.pop()

    def visit_ClassDef(self, node: cst.ClassDef) -> None:
        self._register_definition(node.name.value, "class")

    def visit_ClassDef_body(self, node: cst.ClassDef) -> None:
        self.scope_stack.append((node.name.value, "class"))

    def leave_ClassDef_body(self, node: cst.ClassDef) -> None:
        self.scope_stack.pop()

    def visit_Call(self, node: cst.Call) -> None:
        if not self.record_calls:
            return
        caller_fqn = self._get_current_caller_fqn()
        if not caller_fqn:
            return
        callee_fqn = self._resolve_callee_fqn(node)
        call_text = cst.Module(body=[]).code_for_node(node.func)
        if not callee_fqn:
            self.unresolved_calls += 1
            if self.verbose:
                print(f"CallGraphVisitor: Could not resolve FQN for call: {call_text} in {caller_fqn}")
            return
        reference_range = Range.from_code_range(self.get_metadata(PositionProvider, node))
        self.call_graph.add_call(caller_fqn, callee_fqn, reference_range, call_text=call_text)


def walk_module(
    wrapper: MetadataWrapper,
    module_qname: str,
    call_graph: CallGraph,
    file_path: Optional[Path] = None,
    resolve_constructors: bool = True,
    register_definitions: bool = True,
    record_calls: bool = True,
    verbose: bool = False,
) -> CallGraphVisitor:
    visitor = CallGraphVisitor(
        module_qname,
        call_graph,
        file_path=file_path,
        resolve_constructors=resolve_constructors,
        register_definitions=register_definitions,
        record_calls=record_calls,
        verbose=verbose,
    )
    wrapper.visit(visitor)
    return visitor


def build_call_graph_for_source(
    source_code: str,
    module_qname: str,
    call_graph: Optional[CallGraph] = None,
    resolve_constructors: bool = True,
    verbose: bool = False,
) -> CallGraph:
    """
    Builds (or extends) a call graph from one module's source.

    Definitions are registered in a first pass so that calls to functions defined
    further down the module keep their definition payload.

    Raises:
        libcst.ParserSyntaxError: if ``source_code`` is not valid Python.
    """
    graph = call_graph if call_graph is not None else CallGraph()
    wrapper = MetadataWrapper(cst.parse_module(source_code))
    walk_module(wrapper, module_qname, graph, record_calls=False, verbose=verbose)
    walk_module(
        wrapper, module_qname, graph,
        resolve_constructors=resolve_constructors, register_definitions=False, verbose=verbose,
    )
    return graph
