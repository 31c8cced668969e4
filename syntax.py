"""
Lox abstract syntax tree
Statement and expression node classes shared by the resolver and the interpreter
"""

from typing import Any, List, Optional
from dataclasses import dataclass, field
from itertools import count

from scanning import Token


_node_ids = count(1)


def next_node_id() -> int:
    """Process-unique, monotonically increasing expression identity"""
    return next(_node_ids)


# ============================================================================
# EXPRESSIONS
# ============================================================================

@dataclass(frozen=True, eq=False)
class Expr:
    """Base expression node; equality and hashing use node_id only"""
    node_id: int = field(default_factory=next_node_id, init=False, repr=False)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Expr):
            return NotImplemented
        return self.node_id == other.node_id

    def __hash__(self) -> int:
        return hash(self.node_id)


@dataclass(frozen=True, eq=False)
class Assign(Expr):
    name: Token
    value: Expr


@dataclass(frozen=True, eq=False)
class Binary(Expr):
    left: Expr
    operator: Token
    right: Expr


@dataclass(frozen=True, eq=False)
class Call(Expr):
    callee: Expr
    paren: Token
    arguments: List[Expr]


@dataclass(frozen=True, eq=False)
class Get(Expr):
    object: Expr
    name: Token


@dataclass(frozen=True, eq=False)
class Grouping(Expr):
    expression: Expr


@dataclass(frozen=True, eq=False)
class Literal(Expr):
    value: Any


@dataclass(frozen=True, eq=False)
class Logical(Expr):
    left: Expr
    operator: Token
    right: Expr


@dataclass(frozen=True, eq=False)
class Set(Expr):
    object: Expr
    name: Token
    value: Expr


@dataclass(frozen=True, eq=False)
class SelfExpr(Expr):
    keyword: Token


@dataclass(frozen=True, eq=False)
class Super(Expr):
    keyword: Token
    method: Token


@dataclass(frozen=True, eq=False)
class Unary(Expr):
    operator: Token
    right: Expr


@dataclass(frozen=True, eq=False)
class Variable(Expr):
    name: Token


# ============================================================================
# STATEMENTS
# ============================================================================

@dataclass(frozen=True)
class Stmt:
    """Base statement node"""


@dataclass(frozen=True)
class Block(Stmt):
    statements: List[Stmt]


@dataclass(frozen=True)
class Expression(Stmt):
    expression: Expr


@dataclass(frozen=True)
class Function(Stmt):
    name: Token
    params: List[Token]
    body: List[Stmt]


@dataclass(frozen=True)
class Class(Stmt):
    name: Token
    superclass: Optional[Variable]
    methods: List[Function]


@dataclass(frozen=True)
class If(Stmt):
    condition: Expr
    then_branch: Stmt
    else_branch: Optional[Stmt]


@dataclass(frozen=True)
class Return(Stmt):
    keyword: Token
    value: Optional[Expr]


@dataclass(frozen=True)
class Var(Stmt):
    name: Token
    initializer: Optional[Expr]


@dataclass(frozen=True)
class While(Stmt):
    condition: Expr
    body: Stmt


# The closed node sets every pass must handle
EXPR_TYPES = (Assign, Binary, Call, Get, Grouping, Literal, Logical, Set,
              SelfExpr, Super, Unary, Variable)
STMT_TYPES = (Block, Class, Expression, Function, If, Return, Var, While)


def make_dispatch_table(owner: Any, prefix: str, node_types: tuple) -> dict:
    """Map each node class to owner's `<prefix>_<snake_name>` method.

    Raises TypeError up front when a node kind has no handler, so a pass can
    never silently skip a new kind.
    """
    table = {}
    for node_type in node_types:
        method_name = f"{prefix}_{snake_case(node_type.__name__)}"
        handler = getattr(owner, method_name, None)
        if handler is None:
            raise TypeError(f"{type(owner).__name__} has no handler {method_name}")
        table[node_type] = handler
    return table


def snake_case(name: str) -> str:
    """SelfExpr -> self_expr"""
    parts = []
    for i, char in enumerate(name):
        if char.isupper() and i > 0:
            parts.append("_")
        parts.append(char.lower())
    return "".join(parts)


# ============================================================================
# AST PRINTER (debugging)
# ============================================================================

def pretty_print_expr(expr: Expr) -> str:
    """Render an expression as a parenthesised prefix form"""
    if isinstance(expr, Literal):
        return literal_text(expr.value)
    if isinstance(expr, Variable):
        return expr.name.lexeme
    if isinstance(expr, SelfExpr):
        return "self"
    if isinstance(expr, Super):
        return f"(super {expr.method.lexeme})"
    if isinstance(expr, Grouping):
        return _parenthesize("group", expr.expression)
    if isinstance(expr, Unary):
        return _parenthesize(expr.operator.lexeme, expr.right)
    if isinstance(expr, (Binary, Logical)):
        return _parenthesize(expr.operator.lexeme, expr.left, expr.right)
    if isinstance(expr, Assign):
        return _parenthesize(f"= {expr.name.lexeme}", expr.value)
    if isinstance(expr, Call):
        return _parenthesize("call", expr.callee, *expr.arguments)
    if isinstance(expr, Get):
        return _parenthesize(f". {expr.name.lexeme}", expr.object)
    if isinstance(expr, Set):
        return _parenthesize(f"= .{expr.name.lexeme}", expr.object, expr.value)
    raise TypeError(f"Unknown expression node: {type(expr).__name__}")


def pretty_print_stmt(stmt: Stmt, indent: int = 0) -> str:
    """Render a statement (and its children) one node per line"""
    pad = "  " * indent
    if isinstance(stmt, Expression):
        return f"{pad}(expr {pretty_print_expr(stmt.expression)})"
    if isinstance(stmt, Var):
        init = pretty_print_expr(stmt.initializer) if stmt.initializer else "nil"
        return f"{pad}(var {stmt.name.lexeme} {init})"
    if isinstance(stmt, Return):
        value = f" {pretty_print_expr(stmt.value)}" if stmt.value else ""
        return f"{pad}(return{value})"
    if isinstance(stmt, Block):
        return _nest(pad, "(block", stmt.statements, indent)
    if isinstance(stmt, If):
        lines = [f"{pad}(if {pretty_print_expr(stmt.condition)}",
                 pretty_print_stmt(stmt.then_branch, indent + 1)]
        if stmt.else_branch is not None:
            lines.append(pretty_print_stmt(stmt.else_branch, indent + 1))
        return "\n".join(lines) + ")"
    if isinstance(stmt, While):
        return "\n".join([f"{pad}(while {pretty_print_expr(stmt.condition)}",
                          pretty_print_stmt(stmt.body, indent + 1)]) + ")"
    if isinstance(stmt, Function):
        params = " ".join(param.lexeme for param in stmt.params)
        return _nest(pad, f"(fun {stmt.name.lexeme} ({params})", stmt.body, indent)
    if isinstance(stmt, Class):
        header = f"(class {stmt.name.lexeme}"
        if stmt.superclass is not None:
            header += f" < {stmt.superclass.name.lexeme}"
        return _nest(pad, header, stmt.methods, indent)
    raise TypeError(f"Unknown statement node: {type(stmt).__name__}")


def pretty_print_ast(statements: List[Stmt]) -> str:
    """Pretty print a whole program for debugging"""
    return "\n".join(pretty_print_stmt(stmt) for stmt in statements)


def literal_text(value: Any) -> str:
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else repr(value)
    return repr(value)


def _parenthesize(name: str, *exprs: Expr) -> str:
    parts = " ".join(pretty_print_expr(expr) for expr in exprs)
    return f"({name} {parts})"


def _nest(pad: str, header: str, children: List[Stmt], indent: int) -> str:
    if not children:
        return f"{pad}{header})"
    lines = [f"{pad}{header}"]
    lines.extend(pretty_print_stmt(child, indent + 1) for child in children)
    return "\n".join(lines) + ")"
