import sys
import io
from contextlib import redirect_stderr, redirect_stdout

from . import ast_nodes as ast
from . import builders as b
from .tokens import Token, TokenType
from .bindings import ResolutionTable
from .errors import ErrorReporter
from .resolver import Resolver, resolve_program

def run_resolver_test(name, statements, expected_error=None, expected_count=1):
    """
    Runs the resolver over a hand-built tree and checks for specific errors.
    With no expected error, the program must resolve cleanly.
    """
    print(f"--- Running Resolver Test: {name} ---")

    # Capture stderr to check the echoed diagnostics too
    f = io.StringIO()
    with redirect_stderr(f):
        reporter = ErrorReporter()
        resolver = Resolver(ResolutionTable(), reporter)
        resolver.resolve(statements)

    output = f.getvalue()

    if resolver.scopes:
        print(f"FAIL: {name} - {len(resolver.scopes)} scope(s) left open.")
        return False

    if expected_error:
        matching = [m for m in reporter.messages() if expected_error in m]
        if len(matching) == expected_count and expected_error in output:
            print(f"PASS: {name} (Correctly caught error)")
            return True
        print(f"FAIL: {name}")
        print(f"Expected {expected_count} error(s) containing: '{expected_error}'")
        print(f"Got output: '{output.strip()}'")
        return False

    if not reporter.had_error:
        print(f"PASS: {name} (Correctly identified valid code)")
        return True
    print(f"FAIL: {name}")
    print("Expected no errors, but got:")
    print(output.strip())
    return False

def run_depth_test(name, statements, expected_depths):
    """
    Resolves the tree and checks the hop count recorded for each reference.
    `expected_depths` pairs reference nodes with a depth, or None for a
    reference that must be left to global lookup.
    """
    print(f"--- Running Depth Test: {name} ---")

    bindings = ResolutionTable()
    reporter = ErrorReporter(echo=False)
    resolve_program(statements, bindings, reporter)

    for expr, expected in expected_depths:
        actual = bindings.depth_of(expr)
        if actual != expected:
            print(f"FAIL: {name}")
            print(f"Expected depth {expected} for {expr}, got {actual}.")
            return False

    print(f"PASS: {name}")
    return True


# --- Hop counts ---

def test_enclosing_block_reference():
    # { var a = 1; { print a; } }
    a = b.variable("a")
    program = [b.scoped(b.var("a", b.num(1)), b.scoped(b.print_(a)))]
    assert run_depth_test("Enclosing Block Reference", program, [(a, 1)])

def test_shadowing_picks_innermost():
    # { var a = 1; { var a = 2; print a; } }
    a = b.variable("a")
    program = [b.scoped(b.var("a", b.num(1)), b.scoped(b.var("a", b.num(2)), b.print_(a)))]
    assert run_depth_test("Shadowing", program, [(a, 0)])

def test_globals_are_left_unresolved():
    # var a = 1; print a;
    a = b.variable("a")
    program = [b.var("a", b.num(1)), b.print_(a)]
    assert run_depth_test("Global Reference", program, [(a, None)])
    assert run_resolver_test("Global Reference Is Valid", program)

def test_assignment_target_depth():
    # { var a; { a = a + 1; } }
    read = b.variable("a")
    write = b.assign("a", b.binary(read, "+", b.num(1)))
    program = [b.scoped(b.var("a"), b.scoped(b.expr_stmt(write)))]
    assert run_depth_test("Assignment Target", program, [(write, 1), (read, 1)])

def test_recursive_function_in_block():
    # { fun f() { f(); } }
    f = b.variable("f")
    program = [b.scoped(b.fun("f", [], b.expr_stmt(b.call(f))))]
    assert run_depth_test("Recursive Function", program, [(f, 1)])
    assert run_resolver_test("Recursive Function Is Valid", program)

def test_recursive_function_at_top_level():
    # fun f() { f(); }
    f = b.variable("f")
    program = [b.fun("f", [], b.expr_stmt(b.call(f)))]
    assert run_depth_test("Top-Level Recursive Function", program, [(f, None)])
    assert run_resolver_test("Top-Level Recursive Function Is Valid", program)

def test_closure_captures_enclosing_function_scope():
    # fun outer() { var x = 1; fun inner() { return x; } }
    x = b.variable("x")
    program = [b.fun("outer", [], b.var("x", b.num(1)), b.fun("inner", [], b.ret(x)))]
    assert run_depth_test("Closure Capture", program, [(x, 1)])

def test_parameter_shadows_outer_name():
    # { var a; fun f(a) { print a; } }
    a = b.variable("a")
    program = [b.scoped(b.var("a"), b.fun("f", ["a"], b.print_(a)))]
    assert run_depth_test("Parameter Shadowing", program, [(a, 0)])

def test_unscoped_block_shares_scope():
    # { var a; <body: print a;> }
    a = b.variable("a")
    program = [b.scoped(b.var("a"), b.block(b.print_(a)))]
    assert run_depth_test("Unscoped Block", program, [(a, 0)])

def test_for_loop_clauses():
    # { for (var i = 0; i < 3; i = i + 1) { print i; } }
    cond = b.variable("i")
    inc_read = b.variable("i")
    inc = b.assign("i", b.binary(inc_read, "+", b.num(1)))
    body_read = b.variable("i")
    loop = b.for_(b.var("i", b.num(0)), b.binary(cond, "<", b.num(3)), inc, b.scoped(b.print_(body_read)))
    program = [b.scoped(loop)]
    assert run_depth_test("For Loop", program, [(cond, 0), (inc, 0), (inc_read, 0), (body_read, 1)])

def test_for_loop_with_missing_clauses():
    # for (;;) ;
    program = [b.for_(None, None, None, None)]
    assert run_resolver_test("Empty For Loop", program)

def test_if_while_and_conditional():
    # { var a; if (a) print a ? a : a; else while (a) print a; }
    refs = [b.variable("a") for _ in range(6)]
    stmt = b.if_(refs[0], b.print_(b.conditional(refs[1], refs[2], refs[3])),
                 b.while_(refs[4], b.print_(refs[5])))
    program = [b.scoped(b.var("a"), stmt)]
    assert run_depth_test("If/While/Conditional", program, [(r, 0) for r in refs])

def test_this_in_method_and_nested_function():
    # class A { m() { this; fun g() { this; } } }
    direct = b.this()
    nested = b.this()
    method = b.fun("m", [], b.expr_stmt(direct), b.fun("g", [], b.expr_stmt(nested)))
    program = [b.klass("A", [method])]
    assert run_depth_test("This Depth", program, [(direct, 1), (nested, 2)])
    assert run_resolver_test("This In Method Is Valid", program)

def test_super_accounts_for_injected_scopes():
    # { class A {} class B < A { m() { super.m(); } } }
    sup = b.super_get("m")
    b_class = b.klass("B", [b.fun("m", [], b.expr_stmt(b.call(sup)))], superclass="A")
    program = [b.scoped(b.klass("A", []), b_class)]
    assert run_depth_test("Super Depth", program, [(sup, 2), (b_class.superclass, 0)])
    assert run_resolver_test("Super In Subclass Is Valid", program)

def test_this_and_super_bind_by_keyword_role():
    # The injected scopes are looked up by role, whatever lexeme the keyword token carries.
    this = ast.This(Token(TokenType.THIS, "self", None, 1))
    sup = ast.Super(Token(TokenType.SUPER, "base", None, 1), b.ident("m"))
    method = b.fun("m", [], b.expr_stmt(this), b.expr_stmt(sup))
    program = [b.klass("B", [method], superclass="A")]
    assert run_depth_test("Keyword Role", program, [(this, 1), (sup, 2)])

def test_property_access_resolves_object():
    # { var o; o.x = o.y; }
    target = b.variable("o")
    source = b.variable("o")
    program = [b.scoped(b.var("o"), b.expr_stmt(b.set_(target, "x", b.get(source, "y"))))]
    assert run_depth_test("Property Access", program, [(target, 0), (source, 0)])


# --- Errors ---

def test_self_reference_in_initializer():
    # { var a = a; }
    a = b.variable("a")
    program = [b.scoped(b.var("a", a))]
    assert run_resolver_test("Variable in Initializer", program, "Cannot read local variable in its own initializer")
    assert run_depth_test("Variable in Initializer Still Resolves", program, [(a, 0)])

def test_self_reference_sees_outer_binding_after_error():
    # { var a = 1; { var a = a; } } -- still an error, the inner slot is declared
    program = [b.scoped(b.var("a", b.num(1)), b.scoped(b.var("a", b.variable("a"))))]
    assert run_resolver_test("Shadowed Self Reference", program, "Cannot read local variable in its own initializer")

def test_redeclaration_in_same_scope_is_allowed():
    # { var a = 1; var a; print a; }
    a = b.variable("a")
    program = [b.scoped(b.var("a", b.num(1)), b.var("a"), b.print_(a))]
    assert run_resolver_test("Redeclaration", program)
    assert run_depth_test("Redeclaration Depth", program, [(a, 0)])

def test_redeclaration_resets_to_undefined():
    # { var a = 1; var a = a; } -- the second declaration starts over as undefined
    a = b.variable("a")
    program = [b.scoped(b.var("a", b.num(1)), b.var("a", a))]
    assert run_resolver_test("Redeclared Self Reference", program, "Cannot read local variable in its own initializer")
    assert run_depth_test("Redeclared Self Reference Depth", program, [(a, 0)])

def test_top_level_self_reference_is_global():
    # var a = a;
    program = [b.var("a", b.variable("a"))]
    assert run_resolver_test("Top-Level Self Reference", program)

def test_return_placement():
    assert run_resolver_test("Top-Level Return", [b.ret(b.num(1))], "Cannot return from top-level code")
    assert run_resolver_test("Return In Function", [b.fun("f", [], b.ret(b.num(1)))])

def test_initializer_returns():
    with_value = b.klass("A", [b.fun("init", [], b.ret(b.num(1)))])
    bare = b.klass("A", [b.fun("init", [], b.ret())])
    assert run_resolver_test("Return Value From Initializer", [with_value], "Cannot return a value from an initializer")
    assert run_resolver_test("Bare Return From Initializer", [bare])

def test_function_nested_in_initializer_may_return_value():
    # class A { init() { fun g() { return 1; } } }
    program = [b.klass("A", [b.fun("init", [], b.fun("g", [], b.ret(b.num(1))))])]
    assert run_resolver_test("Nested Function In Initializer", program)

def test_method_may_return_value():
    program = [b.klass("A", [b.fun("get", [], b.ret(b.this()))])]
    assert run_resolver_test("Method Return", program)

def test_class_inherits_from_itself():
    program = [b.klass("A", [], superclass="A")]
    assert run_resolver_test("Self Inheritance", program, "A class cannot inherit from itself")

def test_this_outside_class():
    this = b.this()
    program = [b.print_(this)]
    assert run_resolver_test("This Outside Class", program, "Cannot use 'this' outside of a class")
    assert run_depth_test("This Outside Class Is Unresolved", program, [(this, None)])

def test_this_in_plain_function():
    program = [b.fun("f", [], b.print_(b.this()))]
    assert run_resolver_test("This In Function", program, "Cannot use 'this' outside of a class")

def test_this_after_class_body():
    # The class context is restored once the class is done.
    program = [b.klass("A", [b.fun("m", [], b.print_(b.this()))]), b.print_(b.this())]
    assert run_resolver_test("This After Class", program, "Cannot use 'this' outside of a class")

def test_super_outside_class():
    program = [b.expr_stmt(b.call(b.super_get("m")))]
    assert run_resolver_test("Super Outside Class", program, "Cannot use 'super' outside of a class")

def test_super_without_superclass():
    sup = b.super_get("m")
    program = [b.klass("A", [b.fun("m", [], b.expr_stmt(b.call(sup)))])]
    assert run_resolver_test("Super Without Superclass", program, "Cannot use 'super' in a class with no superclass")
    assert run_depth_test("Super Without Superclass Is Unresolved", program, [(sup, None)])

def test_super_in_plain_class_nested_in_subclass():
    inner = b.klass("C", [b.fun("m", [], b.expr_stmt(b.super_get("m")))])
    outer = b.klass("B", [b.fun("m", [], inner)], superclass="A")
    assert run_resolver_test("Nested Plain Class", [outer], "Cannot use 'super' in a class with no superclass")

def test_all_errors_reported_in_one_pass():
    program = [
        b.ret(line=1),
        b.scoped(b.var("a", b.variable("a", line=2), line=2)),
        b.print_(b.this(line=3)),
        b.klass("A", [], superclass="A", line=4),
    ]
    reporter = ErrorReporter(echo=False)
    resolve_program(program, ResolutionTable(), reporter)
    assert [e.line for e in reporter.errors] == [1, 2, 3, 4]

def test_errors_in_nested_scopes_leave_stack_balanced():
    program = [b.scoped(b.fun("f", [], b.scoped(b.var("a", b.variable("a")), b.print_(b.super_get("m")))))]
    reporter = ErrorReporter(echo=False)
    resolver = Resolver(ResolutionTable(), reporter)
    resolver.resolve(program)
    assert len(reporter.errors) == 2
    assert resolver.scopes == []


# --- Traversal order ---

class RecordingTable(ResolutionTable):
    def __init__(self):
        super().__init__()
        self.order = []

    def record_resolution(self, expr, depth):
        super().record_resolution(expr, depth)
        self.order.append(expr)

def test_evaluation_order():
    # { var a; var o; var f; o.x = a; f(a, o); }
    value, obj = b.variable("a"), b.variable("o")
    callee, arg1, arg2 = b.variable("f"), b.variable("a"), b.variable("o")
    program = [b.scoped(
        b.var("a"), b.var("o"), b.var("f"),
        b.expr_stmt(b.set_(obj, "x", value)),
        b.expr_stmt(b.call(callee, arg1, arg2)),
    )]
    bindings = RecordingTable()
    resolve_program(program, bindings, ErrorReporter(echo=False))
    assert bindings.order == [value, obj, callee, arg1, arg2]

def test_resolving_twice_gives_identical_results():
    a, f = b.variable("a"), b.variable("f")
    program = [
        b.scoped(b.var("a", b.num(1)), b.fun("f", ["x"], b.ret(b.binary(a, "+", b.variable("x")))),
                 b.print_(b.call(f, b.num(2)))),
        b.ret(b.this()),
    ]
    runs = []
    for _ in range(2):
        bindings = RecordingTable()
        reporter = ErrorReporter(echo=False)
        resolve_program(program, bindings, reporter)
        runs.append(([(id(e), bindings.depth_of(e)) for e in bindings.order], reporter.errors))
    assert runs[0] == runs[1]
    assert len(runs[0][1]) == 2


# --- Tracing ---

def test_debug_trace():
    f = io.StringIO()
    with redirect_stdout(f):
        resolve_program([b.scoped(b.var("a"), b.print_(b.variable("a")))], ResolutionTable(),
                        ErrorReporter(echo=False), debug=True)
    output = f.getvalue()
    assert "DEBUG: Entered scope 1." in output
    assert "DEBUG: Resolved 'a' (line 1) at depth 0." in output


def main():
    tests = [value for key, value in globals().items() if key.startswith("test_") and callable(value)]
    failures = 0
    for test in tests:
        try:
            test()
        except AssertionError:
            failures += 1
            print(f"FAIL: {test.__name__}")

    print(f"\n--- Resolver Test Summary ---")
    print(f"{len(tests) - failures} / {len(tests)} tests passed.")

    if failures:
        sys.exit(1)

if __name__ == "__main__":
    main()
