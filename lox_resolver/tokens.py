from enum import Enum, auto
from dataclasses import dataclass
from typing import Any, Optional

class TokenType(Enum):
    # Punctuation kept on call nodes for error attribution
    RIGHT_PAREN = auto()    # )

    # Operators
    MINUS = auto()          # -
    PLUS = auto()           # +
    SLASH = auto()          # /
    STAR = auto()           # *
    BANG = auto()           # !
    BANG_EQUAL = auto()     # !=
    EQUAL_EQUAL = auto()    # ==
    GREATER = auto()        # >
    GREATER_EQUAL = auto()  # >=
    LESS = auto()           # <
    LESS_EQUAL = auto()     # <=
    AND = auto()
    OR = auto()

    IDENTIFIER = auto()

    # Keywords the resolver reports errors against
    RETURN = auto()
    SUPER = auto()
    THIS = auto()


@dataclass
class Token:
    token_type: TokenType
    lexeme: str
    literal: Optional[Any]
    line: int
