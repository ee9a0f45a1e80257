from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Any, Optional

from .tokens import Token


# --- Visitor Pattern Definition ---

class ExprVisitor(ABC):
    @abstractmethod
    def visit_assign_expr(self, expr: 'Assign'):
        raise NotImplementedError

    @abstractmethod
    def visit_binary_expr(self, expr: 'Binary'):
        raise NotImplementedError

    @abstractmethod
    def visit_call_expr(self, expr: 'Call'):
        raise NotImplementedError

    @abstractmethod
    def visit_conditional_expr(self, expr: 'Conditional'):
        raise NotImplementedError

    @abstractmethod
    def visit_get_expr(self, expr: 'Get'):
        raise NotImplementedError

    @abstractmethod
    def visit_grouping_expr(self, expr: 'Grouping'):
        raise NotImplementedError

    @abstractmethod
    def visit_literal_expr(self, expr: 'Literal'):
        raise NotImplementedError

    @abstractmethod
    def visit_logical_expr(self, expr: 'Logical'):
        raise NotImplementedError

    @abstractmethod
    def visit_set_expr(self, expr: 'Set'):
        raise NotImplementedError

    @abstractmethod
    def visit_super_expr(self, expr: 'Super'):
        raise NotImplementedError

    @abstractmethod
    def visit_this_expr(self, expr: 'This'):
        raise NotImplementedError

    @abstractmethod
    def visit_unary_expr(self, expr: 'Unary'):
        raise NotImplementedError

    @abstractmethod
    def visit_variable_expr(self, expr: 'Variable'):
        raise NotImplementedError


class StmtVisitor(ABC):
    @abstractmethod
    def visit_block_stmt(self, stmt: 'Block'):
        raise NotImplementedError

    @abstractmethod
    def visit_scoped_block_stmt(self, stmt: 'ScopedBlock'):
        raise NotImplementedError

    @abstractmethod
    def visit_class_stmt(self, stmt: 'Class'):
        raise NotImplementedError

    @abstractmethod
    def visit_expression_stmt(self, stmt: 'Expression'):
        raise NotImplementedError

    @abstractmethod
    def visit_for_stmt(self, stmt: 'For'):
        raise NotImplementedError

    @abstractmethod
    def visit_function_stmt(self, stmt: 'Function'):
        raise NotImplementedError

    @abstractmethod
    def visit_if_stmt(self, stmt: 'If'):
        raise NotImplementedError

    @abstractmethod
    def visit_print_stmt(self, stmt: 'Print'):
        raise NotImplementedError

    @abstractmethod
    def visit_return_stmt(self, stmt: 'Return'):
        raise NotImplementedError

    @abstractmethod
    def visit_var_stmt(self, stmt: 'Var'):
        raise NotImplementedError

    @abstractmethod
    def visit_while_stmt(self, stmt: 'While'):
        raise NotImplementedError


# --- Abstract Base Classes for AST Nodes ---

class Expr(ABC):
    @abstractmethod
    def accept(self, visitor: ExprVisitor):
        raise NotImplementedError


class Stmt(ABC):
    @abstractmethod
    def accept(self, visitor: StmtVisitor):
        raise NotImplementedError


# --- Concrete Expression Nodes ---
# Nodes compare and hash by identity (eq=False): two textually identical
# references are still two distinct resolution sites.

@dataclass(eq=False)
class Assign(Expr):
    name: Token
    value: Expr

    def accept(self, visitor: ExprVisitor):
        return visitor.visit_assign_expr(self)


@dataclass(eq=False)
class Binary(Expr):
    left: Expr
    operator: Token
    right: Expr

    def accept(self, visitor: ExprVisitor):
        return visitor.visit_binary_expr(self)


@dataclass(eq=False)
class Call(Expr):
    callee: Expr
    paren: Token
    arguments: List[Expr]

    def accept(self, visitor: ExprVisitor):
        return visitor.visit_call_expr(self)


@dataclass(eq=False)
class Conditional(Expr):
    condition: Expr
    then_branch: Expr
    else_branch: Expr

    def accept(self, visitor: ExprVisitor):
        return visitor.visit_conditional_expr(self)


@dataclass(eq=False)
class Get(Expr):
    object: Expr
    name: Token

    def accept(self, visitor: ExprVisitor):
        return visitor.visit_get_expr(self)


@dataclass(eq=False)
class Grouping(Expr):
    expression: Expr

    def accept(self, visitor: ExprVisitor):
        return visitor.visit_grouping_expr(self)


@dataclass(eq=False)
class Literal(Expr):
    value: Any

    def accept(self, visitor: ExprVisitor):
        return visitor.visit_literal_expr(self)


@dataclass(eq=False)
class Logical(Expr):
    left: Expr
    operator: Token
    right: Expr

    def accept(self, visitor: ExprVisitor):
        return visitor.visit_logical_expr(self)


@dataclass(eq=False)
class Set(Expr):
    object: Expr
    name: Token
    value: Expr

    def accept(self, visitor: ExprVisitor):
        return visitor.visit_set_expr(self)


@dataclass(eq=False)
class Super(Expr):
    keyword: Token
    method: Token

    def accept(self, visitor: ExprVisitor):
        return visitor.visit_super_expr(self)


@dataclass(eq=False)
class This(Expr):
    keyword: Token

    def accept(self, visitor: ExprVisitor):
        return visitor.visit_this_expr(self)


@dataclass(eq=False)
class Unary(Expr):
    operator: Token
    right: Expr

    def accept(self, visitor: ExprVisitor):
        return visitor.visit_unary_expr(self)


@dataclass(eq=False)
class Variable(Expr):
    name: Token

    def accept(self, visitor: ExprVisitor):
        return visitor.visit_variable_expr(self)


# --- Concrete Statement Nodes ---

@dataclass(eq=False)
class Block(Stmt):
    """Statements that share the enclosing scope, e.g. a function body."""
    statements: List[Stmt]

    def accept(self, visitor: StmtVisitor):
        return visitor.visit_block_stmt(self)


@dataclass(eq=False)
class ScopedBlock(Stmt):
    """A `{ ... }` block that opens its own scope."""
    statements: List[Stmt]

    def accept(self, visitor: StmtVisitor):
        return visitor.visit_scoped_block_stmt(self)


@dataclass(eq=False)
class Expression(Stmt):
    expression: Expr

    def accept(self, visitor: StmtVisitor):
        return visitor.visit_expression_stmt(self)


@dataclass(eq=False)
class Print(Stmt):
    expression: Expr

    def accept(self, visitor: StmtVisitor):
        return visitor.visit_print_stmt(self)


@dataclass(eq=False)
class Var(Stmt):
    name: Token
    initializer: Optional[Expr]

    def accept(self, visitor: StmtVisitor):
        return visitor.visit_var_stmt(self)


@dataclass(eq=False)
class If(Stmt):
    condition: Expr
    then_branch: Stmt
    else_branch: Optional[Stmt]

    def accept(self, visitor: StmtVisitor):
        return visitor.visit_if_stmt(self)


@dataclass(eq=False)
class While(Stmt):
    condition: Expr
    body: Stmt

    def accept(self, visitor: StmtVisitor):
        return visitor.visit_while_stmt(self)


@dataclass(eq=False)
class For(Stmt):
    initializer: Optional[Stmt]
    condition: Optional[Expr]
    increment: Optional[Expr]
    body: Optional[Stmt]

    def accept(self, visitor: StmtVisitor):
        return visitor.visit_for_stmt(self)


@dataclass(eq=False)
class Function(Stmt):
    name: Token
    params: List[Token]
    body: List[Stmt]

    def accept(self, visitor: StmtVisitor):
        return visitor.visit_function_stmt(self)


@dataclass(eq=False)
class Return(Stmt):
    keyword: Token
    value: Optional[Expr]

    def accept(self, visitor: StmtVisitor):
        return visitor.visit_return_stmt(self)


@dataclass(eq=False)
class Class(Stmt):
    name: Token
    superclass: Optional[Variable]
    methods: List[Function]

    def accept(self, visitor: StmtVisitor):
        return visitor.visit_class_stmt(self)
