"""
Helpers for building syntax trees by hand, for embedders that produce trees
without going through source text. Every helper takes plain strings for
names and an optional line number for error attribution.

Each reference needs its own node: resolutions are keyed by node identity,
so reusing one `variable("a")` twice in a tree (as in
`binary(a, "+", a)`) makes the second resolution raise
ResolverInternalError. Call the helper again for every occurrence.
"""
from typing import Any, List, Optional

from . import ast_nodes as ast
from .tokens import Token, TokenType

_OPERATORS = {
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "*": TokenType.STAR,
    "/": TokenType.SLASH,
    "!": TokenType.BANG,
    "!=": TokenType.BANG_EQUAL,
    "==": TokenType.EQUAL_EQUAL,
    ">": TokenType.GREATER,
    ">=": TokenType.GREATER_EQUAL,
    "<": TokenType.LESS,
    "<=": TokenType.LESS_EQUAL,
    "and": TokenType.AND,
    "or": TokenType.OR,
}


def ident(name: str, line: int = 1) -> Token:
    return Token(TokenType.IDENTIFIER, name, None, line)


def keyword(token_type: TokenType, line: int = 1) -> Token:
    return Token(token_type, token_type.name.lower(), None, line)


def operator(lexeme: str, line: int = 1) -> Token:
    return Token(_OPERATORS[lexeme], lexeme, None, line)


# --- Expressions ---

def literal(value: Any) -> ast.Literal:
    return ast.Literal(value)


def num(value: float) -> ast.Literal:
    return ast.Literal(value)


def variable(name: str, line: int = 1) -> ast.Variable:
    return ast.Variable(ident(name, line))


def assign(name: str, value: ast.Expr, line: int = 1) -> ast.Assign:
    return ast.Assign(ident(name, line), value)


def binary(left: ast.Expr, op: str, right: ast.Expr, line: int = 1) -> ast.Binary:
    return ast.Binary(left, operator(op, line), right)


def logical(left: ast.Expr, op: str, right: ast.Expr, line: int = 1) -> ast.Logical:
    return ast.Logical(left, operator(op, line), right)


def unary(op: str, right: ast.Expr, line: int = 1) -> ast.Unary:
    return ast.Unary(operator(op, line), right)


def call(callee: ast.Expr, *arguments: ast.Expr, line: int = 1) -> ast.Call:
    return ast.Call(callee, Token(TokenType.RIGHT_PAREN, ")", None, line), list(arguments))


def get(obj: ast.Expr, name: str, line: int = 1) -> ast.Get:
    return ast.Get(obj, ident(name, line))


def set_(obj: ast.Expr, name: str, value: ast.Expr, line: int = 1) -> ast.Set:
    return ast.Set(obj, ident(name, line), value)


def this(line: int = 1) -> ast.This:
    return ast.This(keyword(TokenType.THIS, line))


def super_get(method: str, line: int = 1) -> ast.Super:
    return ast.Super(keyword(TokenType.SUPER, line), ident(method, line))


def grouping(expr: ast.Expr) -> ast.Grouping:
    return ast.Grouping(expr)


def conditional(condition: ast.Expr, then_branch: ast.Expr, else_branch: ast.Expr) -> ast.Conditional:
    return ast.Conditional(condition, then_branch, else_branch)


# --- Statements ---

def expr_stmt(expr: ast.Expr) -> ast.Expression:
    return ast.Expression(expr)


def print_(expr: ast.Expr) -> ast.Print:
    return ast.Print(expr)


def var(name: str, initializer: Optional[ast.Expr] = None, line: int = 1) -> ast.Var:
    return ast.Var(ident(name, line), initializer)


def scoped(*statements: ast.Stmt) -> ast.ScopedBlock:
    return ast.ScopedBlock(list(statements))


def block(*statements: ast.Stmt) -> ast.Block:
    return ast.Block(list(statements))


def if_(condition: ast.Expr, then_branch: ast.Stmt, else_branch: Optional[ast.Stmt] = None) -> ast.If:
    return ast.If(condition, then_branch, else_branch)


def while_(condition: ast.Expr, body: ast.Stmt) -> ast.While:
    return ast.While(condition, body)


def for_(initializer: Optional[ast.Stmt], condition: Optional[ast.Expr],
         increment: Optional[ast.Expr], body: Optional[ast.Stmt]) -> ast.For:
    return ast.For(initializer, condition, increment, body)


def ret(value: Optional[ast.Expr] = None, line: int = 1) -> ast.Return:
    return ast.Return(keyword(TokenType.RETURN, line), value)


def fun(name: str, params: List[str], *body: ast.Stmt, line: int = 1) -> ast.Function:
    return ast.Function(ident(name, line), [ident(p, line) for p in params], list(body))


def klass(name: str, methods: List[ast.Function], superclass: Optional[str] = None, line: int = 1) -> ast.Class:
    parent = variable(superclass, line) if superclass is not None else None
    return ast.Class(ident(name, line), parent, methods)
