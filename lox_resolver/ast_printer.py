from typing import List, Optional

from . import ast_nodes as ast
from .bindings import ResolutionTable

class AstPrinter(ast.ExprVisitor, ast.StmtVisitor):
    """
    A utility class to print the AST in a readable Lisp-like format.
    Given a ResolutionTable, every resolved reference is printed with its
    hop count (`a@1`); references left for global lookup print bare.
    """
    def __init__(self):
        self.bindings: Optional[ResolutionTable] = None

    def print_program(self, statements: List[ast.Stmt], bindings: Optional[ResolutionTable] = None) -> str:
        self.bindings = bindings
        lines = []
        for stmt in statements:
            lines.append(stmt.accept(self))
        return "\n".join(lines)

    def print_expr(self, expr: ast.Expr, bindings: Optional[ResolutionTable] = None) -> str:
        self.bindings = bindings
        return expr.accept(self)

    # --- Statement Visitor Methods ---

    def visit_expression_stmt(self, stmt: ast.Expression) -> str:
        return self._parenthesize("expr_stmt", stmt.expression)

    def visit_print_stmt(self, stmt: ast.Print) -> str:
        return self._parenthesize("print", stmt.expression)

    def visit_var_stmt(self, stmt: ast.Var) -> str:
        if stmt.initializer:
            return self._parenthesize(f"var {stmt.name.lexeme}", stmt.initializer)
        return f"(var {stmt.name.lexeme})"

    def visit_block_stmt(self, stmt: ast.Block) -> str:
        return self._lines("(body", stmt.statements, ")")

    def visit_scoped_block_stmt(self, stmt: ast.ScopedBlock) -> str:
        return self._lines("(block", stmt.statements, ")")

    def visit_if_stmt(self, stmt: ast.If) -> str:
        parts = [
            "(if ",
            stmt.condition.accept(self),
            " ",
            stmt.then_branch.accept(self)
        ]
        if stmt.else_branch:
            parts.append(" else ")
            parts.append(stmt.else_branch.accept(self))
        parts.append(")")
        return "".join(parts)

    def visit_while_stmt(self, stmt: ast.While) -> str:
        return "".join(["(while ", stmt.condition.accept(self), " ", stmt.body.accept(self), ")"])

    def visit_for_stmt(self, stmt: ast.For) -> str:
        clauses = [stmt.initializer, stmt.condition, stmt.increment]
        parts = ["(for"]
        for clause in clauses:
            parts.append(f" {clause.accept(self)}" if clause is not None else " _")
        parts.append(f" {stmt.body.accept(self)}" if stmt.body is not None else " _")
        parts.append(")")
        return "".join(parts)

    def visit_function_stmt(self, stmt: ast.Function) -> str:
        param_str = ", ".join(p.lexeme for p in stmt.params)
        return self._lines(f"(fun {stmt.name.lexeme}({param_str}) {{", stmt.body, "})")

    def visit_return_stmt(self, stmt: ast.Return) -> str:
        if stmt.value:
            return self._parenthesize("return", stmt.value)
        return "(return)"

    def visit_class_stmt(self, stmt: ast.Class) -> str:
        header = f"(class {stmt.name.lexeme}"
        if stmt.superclass is not None:
            header += f" < {stmt.superclass.accept(self)}"
        return self._lines(header + " {", stmt.methods, "})")

    # --- Expression Visitor Methods ---

    def visit_binary_expr(self, expr: ast.Binary) -> str:
        return self._parenthesize(expr.operator.lexeme, expr.left, expr.right)

    def visit_grouping_expr(self, expr: ast.Grouping) -> str:
        return self._parenthesize("group", expr.expression)

    def visit_literal_expr(self, expr: ast.Literal) -> str:
        if expr.value is None: return "nil"
        if isinstance(expr.value, str): return f'"{expr.value}"'
        if isinstance(expr.value, bool): return str(expr.value).lower()
        return str(expr.value)

    def visit_unary_expr(self, expr: ast.Unary) -> str:
        return self._parenthesize(expr.operator.lexeme, expr.right)

    def visit_variable_expr(self, expr: ast.Variable) -> str:
        return self._with_depth(expr, expr.name.lexeme)

    def visit_assign_expr(self, expr: ast.Assign) -> str:
        return self._parenthesize(f"assign {self._with_depth(expr, expr.name.lexeme)}", expr.value)

    def visit_logical_expr(self, expr: ast.Logical) -> str:
        return self._parenthesize(expr.operator.lexeme, expr.left, expr.right)

    def visit_conditional_expr(self, expr: ast.Conditional) -> str:
        return self._parenthesize("?:", expr.condition, expr.then_branch, expr.else_branch)

    def visit_call_expr(self, expr: ast.Call) -> str:
        return self._parenthesize("call", expr.callee, *expr.arguments)

    def visit_get_expr(self, expr: ast.Get) -> str:
        return self._parenthesize(f". {expr.name.lexeme}", expr.object)

    def visit_set_expr(self, expr: ast.Set) -> str:
        return self._parenthesize(f"= {expr.name.lexeme}", expr.object, expr.value)

    def visit_this_expr(self, expr: ast.This) -> str:
        return self._with_depth(expr, "this")

    def visit_super_expr(self, expr: ast.Super) -> str:
        return f"(. {expr.method.lexeme} {self._with_depth(expr, 'super')})"

    # --- Helper Methods ---

    def _with_depth(self, expr: ast.Expr, text: str) -> str:
        if self.bindings is None:
            return text
        depth = self.bindings.depth_of(expr)
        return text if depth is None else f"{text}@{depth}"

    def _lines(self, opener: str, statements: List[ast.Stmt], closer: str) -> str:
        lines = [opener]
        for statement in statements:
            # Nested blocks are indented one level per enclosing block.
            for line in statement.accept(self).split("\n"):
                lines.append(f"  {line}")
        lines.append(closer)
        return "\n".join(lines)

    def _parenthesize(self, name: str, *parts) -> str:
        """Helper to format a node and its children."""
        result = [f"({name}"]
        for part in parts:
            if isinstance(part, ast.Expr) or isinstance(part, ast.Stmt):
                result.append(f" {part.accept(self)}")
            else:
                # This case shouldn't be hit if used correctly
                result.append(f" {str(part)}")
        result.append(")")
        return "".join(result)
