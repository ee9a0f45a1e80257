from contextlib import contextmanager
from enum import Enum, auto
from typing import List, Dict, Optional

from . import ast_nodes as ast
from .tokens import Token
from .bindings import BindingRegistry
from .errors import DiagnosticsSink, ErrorReporter, ResolverInternalError

INITIALIZER_NAME = "init"
THIS_NAME = "this"
SUPER_NAME = "super"


class FunctionType(Enum):
    NONE = auto()
    FUNCTION = auto()
    METHOD = auto()
    INITIALIZER = auto()


class ClassType(Enum):
    NONE = auto()
    CLASS = auto()
    SUBCLASS = auto()


class Resolver(ast.ExprVisitor, ast.StmtVisitor):
    """
    The Resolver walks the tree once before execution. For every reference to
    a local variable it records how many scopes separate the reference from
    the declaration, and it reports the static errors that would otherwise
    only show up at run time.

    Errors are reported, never raised, so one pass surfaces all of them.
    """
    def __init__(self, bindings: BindingRegistry, reporter: Optional[DiagnosticsSink] = None,
                 debug: bool = False, initializer_name: str = INITIALIZER_NAME):
        self.bindings = bindings
        self.reporter: DiagnosticsSink = reporter if reporter is not None else ErrorReporter()
        self.debug = debug
        self.initializer_name = initializer_name
        # Each scope maps var name -> is_defined. The global scope is never on the stack.
        self.scopes: List[Dict[str, bool]] = []
        self.current_function = FunctionType.NONE
        self.current_class = ClassType.NONE

    def resolve(self, statements: List[ast.Stmt]):
        for statement in statements:
            self._resolve_stmt(statement)

    def _resolve_stmt(self, stmt: ast.Stmt):
        if not isinstance(stmt, ast.Stmt):
            raise ResolverInternalError(f"Expected a statement node, got {type(stmt).__name__}.")
        stmt.accept(self)

    def _resolve_expr(self, expr: ast.Expr):
        if not isinstance(expr, ast.Expr):
            raise ResolverInternalError(f"Expected an expression node, got {type(expr).__name__}.")
        expr.accept(self)

    # --- Scope Management ---

    def _begin_scope(self):
        self.scopes.append({})
        self._trace(f"Entered scope {len(self.scopes)}.")

    def _end_scope(self):
        if not self.scopes:
            raise ResolverInternalError("Scope stack underflow.")
        self._trace(f"Leaving scope {len(self.scopes)}.")
        self.scopes.pop()

    @contextmanager
    def _scope(self):
        self._begin_scope()
        try:
            yield self.scopes[-1]
        finally:
            self._end_scope()

    def _declare(self, name: Token):
        if not self.scopes: return
        # A redeclaration in the same scope simply starts over as undefined.
        self.scopes[-1][name.lexeme] = False

    def _define(self, name: Token):
        if not self.scopes: return
        self.scopes[-1][name.lexeme] = True

    def _resolve_local(self, expr: ast.Expr, name: str, line: int):
        for i in range(len(self.scopes) - 1, -1, -1):
            if name in self.scopes[i]:
                depth = len(self.scopes) - 1 - i
                self._trace(f"Resolved '{name}' (line {line}) at depth {depth}.")
                self.bindings.record_resolution(expr, depth)
                return
        # Not found: assume it is global.
        self._trace(f"'{name}' (line {line}) left for global lookup.")

    # --- Context Management ---

    @contextmanager
    def _function_context(self, function_type: FunctionType):
        enclosing_function = self.current_function
        self.current_function = function_type
        try:
            yield
        finally:
            self.current_function = enclosing_function

    @contextmanager
    def _class_context(self, class_type: ClassType):
        enclosing_class = self.current_class
        self.current_class = class_type
        try:
            yield
        finally:
            self.current_class = enclosing_class

    # --- Statement Visitor Methods ---

    def visit_scoped_block_stmt(self, stmt: ast.ScopedBlock):
        with self._scope():
            self.resolve(stmt.statements)

    def visit_block_stmt(self, stmt: ast.Block):
        self.resolve(stmt.statements)

    def visit_var_stmt(self, stmt: ast.Var):
        self._declare(stmt.name)
        if stmt.initializer is not None:
            self._resolve_expr(stmt.initializer)
        self._define(stmt.name)

    def visit_function_stmt(self, stmt: ast.Function):
        # Defined before the body so the function can call itself.
        self._declare(stmt.name)
        self._define(stmt.name)
        self._resolve_function(stmt, FunctionType.FUNCTION)

    def _resolve_function(self, function: ast.Function, function_type: FunctionType):
        with self._function_context(function_type), self._scope():
            for param in function.params:
                self._declare(param)
                self._define(param)
            self.resolve(function.body)

    def visit_class_stmt(self, stmt: ast.Class):
        with self._class_context(ClassType.CLASS):
            self._declare(stmt.name)
            self._define(stmt.name)

            if stmt.superclass is not None:
                self.current_class = ClassType.SUBCLASS
                if stmt.superclass.name.lexeme == stmt.name.lexeme:
                    self._report_error(stmt.superclass.name, "A class cannot inherit from itself.")
                # Resolved before the 'super' scope exists, so it binds outside the class.
                self._resolve_expr(stmt.superclass)
                with self._scope() as super_scope:
                    super_scope[SUPER_NAME] = True
                    self._resolve_class_body(stmt)
            else:
                self._resolve_class_body(stmt)

    def _resolve_class_body(self, stmt: ast.Class):
        with self._scope() as this_scope:
            this_scope[THIS_NAME] = True
            for method in stmt.methods:
                if method.name.lexeme == self.initializer_name:
                    function_type = FunctionType.INITIALIZER
                else:
                    function_type = FunctionType.METHOD
                self._resolve_function(method, function_type)

    def visit_return_stmt(self, stmt: ast.Return):
        if self.current_function == FunctionType.NONE:
            self._report_error(stmt.keyword, "Cannot return from top-level code.")

        if stmt.value is not None:
            if self.current_function == FunctionType.INITIALIZER:
                self._report_error(stmt.keyword, "Cannot return a value from an initializer.")
            self._resolve_expr(stmt.value)

    def visit_if_stmt(self, stmt: ast.If):
        self._resolve_expr(stmt.condition)
        self._resolve_stmt(stmt.then_branch)
        if stmt.else_branch is not None:
            self._resolve_stmt(stmt.else_branch)

    def visit_while_stmt(self, stmt: ast.While):
        self._resolve_expr(stmt.condition)
        self._resolve_stmt(stmt.body)

    def visit_for_stmt(self, stmt: ast.For):
        if stmt.initializer is not None: self._resolve_stmt(stmt.initializer)
        if stmt.condition is not None: self._resolve_expr(stmt.condition)
        if stmt.body is not None: self._resolve_stmt(stmt.body)
        if stmt.increment is not None: self._resolve_expr(stmt.increment)

    def visit_expression_stmt(self, stmt: ast.Expression): self._resolve_expr(stmt.expression)
    def visit_print_stmt(self, stmt: ast.Print): self._resolve_expr(stmt.expression)

    # --- Expression Visitor Methods ---

    def visit_variable_expr(self, expr: ast.Variable):
        if self.scopes and self.scopes[-1].get(expr.name.lexeme) is False:
            self._report_error(expr.name, "Cannot read local variable in its own initializer.")
        self._resolve_local(expr, expr.name.lexeme, expr.name.line)

    def visit_assign_expr(self, expr: ast.Assign):
        self._resolve_expr(expr.value)
        self._resolve_local(expr, expr.name.lexeme, expr.name.line)

    def visit_this_expr(self, expr: ast.This):
        if self.current_class == ClassType.NONE:
            self._report_error(expr.keyword, "Cannot use 'this' outside of a class.")
            return
        self._resolve_local(expr, THIS_NAME, expr.keyword.line)

    def visit_super_expr(self, expr: ast.Super):
        if self.current_class == ClassType.NONE:
            self._report_error(expr.keyword, "Cannot use 'super' outside of a class.")
            return
        if self.current_class == ClassType.CLASS:
            self._report_error(expr.keyword, "Cannot use 'super' in a class with no superclass.")
            return
        self._resolve_local(expr, SUPER_NAME, expr.keyword.line)

    def visit_call_expr(self, expr: ast.Call):
        self._resolve_expr(expr.callee)
        for argument in expr.arguments:
            self._resolve_expr(argument)

    def visit_conditional_expr(self, expr: ast.Conditional):
        self._resolve_expr(expr.condition)
        self._resolve_expr(expr.then_branch)
        self._resolve_expr(expr.else_branch)

    def visit_binary_expr(self, expr: ast.Binary): self._resolve_expr(expr.left); self._resolve_expr(expr.right)
    def visit_logical_expr(self, expr: ast.Logical): self._resolve_expr(expr.left); self._resolve_expr(expr.right)
    def visit_set_expr(self, expr: ast.Set): self._resolve_expr(expr.value); self._resolve_expr(expr.object)
    def visit_get_expr(self, expr: ast.Get): self._resolve_expr(expr.object)
    def visit_grouping_expr(self, expr: ast.Grouping): self._resolve_expr(expr.expression)
    def visit_unary_expr(self, expr: ast.Unary): self._resolve_expr(expr.right)
    def visit_literal_expr(self, expr: ast.Literal): pass

    # --- Helpers ---

    def _report_error(self, token: Token, message: str):
        self.reporter.report_error(token, message)

    def _trace(self, message: str):
        if self.debug:
            print(f"DEBUG: {message}")


def resolve_program(statements: List[ast.Stmt], bindings: BindingRegistry,
                    reporter: Optional[DiagnosticsSink] = None, debug: bool = False) -> DiagnosticsSink:
    """
    Resolves a whole program against an empty scope stack and returns the
    diagnostics sink that received its errors.
    """
    resolver = Resolver(bindings, reporter, debug=debug)
    resolver.resolve(statements)
    return resolver.reporter
