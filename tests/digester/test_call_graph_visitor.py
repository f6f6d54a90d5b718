import unittest

import libcst as cst
from libcst.metadata import MetadataWrapper

from callgraph.digester.call_graph_visitor import build_call_graph_for_source, walk_module
from callgraph.graph.call_graph import CallGraph

SAMPLE_MODULE = """import json


def helper(value):
    return value


def main():
    helper(1)
    helper(2)
    data = json.dumps({})
    print(len(data))
    return later()


def later():
    return Widget()


class Widget:
    def __init__(self):
        self.reset()

    def reset(self):
        pass


def outer():
    def inner():
        return helper(3)
    return inner()


helper(0)
"""


class TestCallGraphVisitor(unittest.TestCase):
    def setUp(self):
        self.graph = build_call_graph_for_source(SAMPLE_MODULE, "pkg.mod")

    def _deps_by_name(self, dotted_name):
        node = self.graph.get_node(dotted_name)
        self.assertIsNotNone(node, f"{dotted_name} not registered")
        return {str(child.callable_name): edges for child, edges in self.graph.get_direct_dependencies(node).items()}

    def test_every_call_site_is_an_edge(self):
        deps = self._deps_by_name("pkg.mod.main")
        helper_edges = deps["pkg.mod.helper"]
        self.assertEqual(len(helper_edges), 2)
        self.assertEqual([e.reference_range.start.line for e in helper_edges], [9, 10])
        self.assertEqual(helper_edges[0].reference_range.start.column, 4)
        self.assertEqual(helper_edges[0].call_text, "helper")

    def test_imported_and_builtin_callees(self):
        deps = self._deps_by_name("pkg.mod.main")
        self.assertIn("json.dumps", deps)
        self.assertIn("builtins.print", deps)
        self.assertIn("builtins.len", deps)
        self.assertEqual(self.graph.get_node("json.dumps").kind, "external")

    def test_forward_reference_keeps_definition_payload(self):
        deps = self._deps_by_name("pkg.mod.main")
        self.assertIn("pkg.mod.later", deps)
        self.assertEqual(self.graph.get_node("pkg.mod.later").kind, "function")

    def test_constructor_and_self_calls(self):
        self.assertIn("pkg.mod.Widget.__init__", self._deps_by_name("pkg.mod.later"))
        self.assertIn("pkg.mod.Widget.reset", self._deps_by_name("pkg.mod.Widget.__init__"))
        self.assertEqual(self.graph.get_node("pkg.mod.Widget").kind, "class")
        self.assertEqual(self.graph.get_node("pkg.mod.Widget.reset").kind, "method")

    def test_nested_function_names(self):
        self.assertIn("pkg.mod.outer.<locals>.inner", self._deps_by_name("pkg.mod.outer"))
        self.assertIn("pkg.mod.helper", self._deps_by_name("pkg.mod.outer.<locals>.inner"))

    def test_leaf_and_module_level_calls(self):
        # helper makes no calls and the module-level helper(0) has no caller
        self.assertEqual(self._deps_by_name("pkg.mod.helper"), {})
        self.assertEqual(self._deps_by_name("pkg.mod.Widget.reset"), {})
        total_helper_edges = sum(
            1 for edge in self.graph.edges() if str(edge.to_callable_name) == "pkg.mod.helper"
        )
        self.assertEqual(total_helper_edges, 3)

    def test_node_count(self):
        self.assertEqual(self.graph.count, 11)

    def test_constructor_resolution_can_be_disabled(self):
        graph = build_call_graph_for_source(SAMPLE_MODULE, "pkg.mod", resolve_constructors=False)
        later = graph.get_node("pkg.mod.later")
        names = {str(n.callable_name) for n in graph.get_direct_dependencies(later)}
        self.assertEqual(names, {"pkg.mod.Widget"})

    def test_extends_existing_graph(self):
        graph = CallGraph()
        build_call_graph_for_source("def a():\n    b()\n", "one", call_graph=graph)
        build_call_graph_for_source("def b():\n    pass\n", "two", call_graph=graph)
        self.assertIs(graph, build_call_graph_for_source("", "three", call_graph=graph))
        self.assertIn("one.b", {str(n.callable_name) for n in graph.nodes})
        self.assertIn("two.b", {str(n.callable_name) for n in graph.nodes})

    def test_syntax_error_propagates(self):
        with self.assertRaises(cst.ParserSyntaxError):
            build_call_graph_for_source("def broken(:\n", "bad")


SCOPING_MODULE = """import functools


def deco(n):
    return lambda f: f


def compute():
    return 1


def outer():
    @deco(1)
    def inner(v=compute()):
        return v
    return inner


@functools.lru_cache(maxsize=None)
def top():
    return compute()


def factory():
    @deco(3)
    class Local:
        pass
    return Local()


def use(callback):
    return callback()


class Svc:
    def run(self):
        self.client.fetch()
        self.reset()
        print("ok")

    def reset(self):
        pass
"""


class TestCallGraphVisitorScoping(unittest.TestCase):
    def setUp(self):
        self.graph = CallGraph()
        wrapper = MetadataWrapper(cst.parse_module(SCOPING_MODULE))
        walk_module(wrapper, "m", self.graph, record_calls=False)
        self.visitor = walk_module(wrapper, "m", self.graph, register_definitions=False)

    def _dep_names(self, dotted_name):
        node = self.graph.get_node(dotted_name)
        self.assertIsNotNone(node, f"{dotted_name} not registered")
        return {str(child.callable_name) for child in self.graph.get_direct_dependencies(node)}

    def test_decorator_and_default_calls_belong_to_enclosing_function(self):
        self.assertEqual(self._dep_names("m.outer"), {"m.deco", "m.compute"})
        self.assertEqual(self._dep_names("m.outer.<locals>.inner"), set())

    def test_module_level_decorator_is_not_a_call_of_the_function(self):
        self.assertEqual(self._dep_names("m.top"), {"m.compute"})
        self.assertIsNone(self.graph.get_node("functools.lru_cache"))

    def test_class_decorator_and_local_class_constructor(self):
        self.assertEqual(
            self._dep_names("m.factory"), {"m.deco", "m.factory.<locals>.Local.__init__"}
        )
        self.assertEqual(self.graph.get_node("m.factory.<locals>.Local").kind, "class")

    def test_calls_through_parameters_are_unresolved(self):
        self.assertEqual(self._dep_names("m.Svc.run"), {"m.Svc.reset", "builtins.print"})
        self.assertEqual(self._dep_names("m.use"), set())
        local_names = [str(n.callable_name) for n in self.graph.nodes if "<locals>" in str(n.callable_name)]
        self.assertEqual(sorted(local_names), ["m.factory.<locals>.Local", "m.factory.<locals>.Local.__init__", "m.outer.<locals>.inner"])
        self.assertEqual(self.visitor.unresolved_calls, 2)


if __name__ == '__main__':
    unittest.main()
